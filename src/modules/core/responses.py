"""Boundary helpers shared by the API views.

The domain layer raises ``DomainError`` subclasses that carry a ``kind``
and a ``code``; this module is the single place where a kind becomes an
HTTP status code.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response

from shared.domain.exceptions import DomainError, InvalidInput

logger = structlog.get_logger(__name__)

STATUS_BY_KIND: Dict[str, int] = {
    "INVALID_INPUT": status.HTTP_400_BAD_REQUEST,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "INVALID_STATE": status.HTTP_422_UNPROCESSABLE_ENTITY,
}

GUEST_ACTOR = "guest"


def domain_error_response(exc: DomainError) -> Response:
    """Translate a domain error into ``{"detail", "code", "kind"}``."""
    status_code = STATUS_BY_KIND.get(exc.kind, status.HTTP_400_BAD_REQUEST)
    logger.info(
        "api.domain_error",
        code=exc.code,
        kind=exc.kind,
        status_code=status_code,
    )
    return Response(
        {"detail": exc.message, "code": exc.code, "kind": exc.kind},
        status=status_code,
    )


def validation_error_response(exc: PydanticValidationError) -> Response:
    """Render a pydantic validation failure as an ``INVALID_INPUT`` error."""
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return Response(
        {
            "detail": "Invalid request data.",
            "code": "INVALID_INPUT",
            "kind": "INVALID_INPUT",
            "errors": errors,
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


def request_actor(request: Request) -> str:
    """Identifier recorded as the author of a state change."""
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return GUEST_ACTOR
    return user.email or user.get_username()


def request_user(request: Request) -> Optional[Any]:
    """Authenticated user or ``None`` for guest checkout."""
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return None
    return user


def request_payload(request: Request) -> Mapping[str, Any]:
    """Request body as a mapping.

    Raises:
        InvalidInput: the body is a JSON list or scalar.
    """
    if not isinstance(request.data, Mapping):
        raise InvalidInput("Request body must be a JSON object.")
    return request.data


def text_field(payload: Mapping[str, Any], *names: str) -> str:
    """First non-blank value among *names*, stripped; ``""`` when none."""
    for name in names:
        value = payload.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""
