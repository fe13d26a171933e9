"""Catalog domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) translates them into HTTP responses through
``modules.core.responses.domain_error_response``.
"""

from __future__ import annotations

from shared.domain.exceptions import Conflict, NotFound


class ProductNotFound(NotFound):
    """The requested product does not exist or has been soft-deleted."""

    code = "PRODUCT_NOT_FOUND"
    default_message = "Product not found."


class PresentationNotFound(NotFound):
    code = "PRESENTATION_NOT_FOUND"
    default_message = "Presentation not found."


class CategoryNotFound(NotFound):
    code = "CATEGORY_NOT_FOUND"
    default_message = "Category not found."


class CategoryAlreadyExists(Conflict):
    """A category with the same name already exists."""

    code = "CATEGORY_ALREADY_EXISTS"


class CategoryInUse(Conflict):
    """The category still has live products attached."""

    code = "CATEGORY_IN_USE"
