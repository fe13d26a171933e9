"""Domain error taxonomy shared by every bounded context.

Each module raises subclasses of the four kinds below.  A ``kind`` tells
the caller *what went wrong* (bad input, missing entity, conflicting
state, illegal transition) and ``code`` is a stable, machine-readable
identifier.  The domain layer knows nothing about HTTP; translating a
kind into a status code is the API layer's job
(see ``modules.core.responses``).

None of these errors is retryable: the caller must fix the input or
the state.  Database / infrastructure failures are deliberately *not*
part of this hierarchy and propagate unchanged.
"""

from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base class for business-rule violations."""

    kind: str = "DOMAIN_ERROR"
    code: str = "DOMAIN_ERROR"
    default_message: str = "Business rule violated."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class InvalidInput(DomainError):
    """Malformed or missing request data."""

    kind = "INVALID_INPUT"
    code = "INVALID_INPUT"
    default_message = "Invalid input."


class NotFound(DomainError):
    """A referenced entity does not exist."""

    kind = "NOT_FOUND"
    code = "NOT_FOUND"
    default_message = "Resource not found."


class Conflict(DomainError):
    """The request conflicts with the current state of a resource."""

    kind = "CONFLICT"
    code = "CONFLICT"
    default_message = "Conflict with current state."


class InvalidState(DomainError):
    """The entity is in the wrong state for the requested transition."""

    kind = "INVALID_STATE"
    code = "INVALID_STATE"
    default_message = "Operation not allowed in the current state."
