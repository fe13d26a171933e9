"""Payment domain exceptions.

``OrderNotFound`` and ``InvalidOrderStatus`` are the orders module's own
errors, re-exported because payment use-cases raise them unchanged.
"""

from __future__ import annotations

from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound
from shared.domain.exceptions import Conflict, InvalidInput, InvalidState, NotFound

__all__ = [
    "AmountMismatch",
    "DuplicatePaymentId",
    "InvalidOrderStatus",
    "InvalidPaymentData",
    "OrderNotFound",
    "PaymentAlreadyExists",
    "PaymentAlreadyProcessed",
    "PaymentNotFound",
    "PaymentNotVerified",
]


class PaymentNotFound(NotFound):
    code = "PAYMENT_NOT_FOUND"
    default_message = "Payment not found."


class InvalidPaymentData(InvalidInput):
    """Missing or malformed payment / verification fields."""

    code = "INVALID_PAYMENT_DATA"


class PaymentAlreadyExists(Conflict):
    code = "PAYMENT_ALREADY_EXISTS"
    default_message = "Order already has a payment."


class AmountMismatch(Conflict):
    """Declared amount differs from the order total beyond the tolerance."""

    code = "AMOUNT_MISMATCH"
    default_message = "Payment amount does not match order total."


class PaymentAlreadyProcessed(Conflict):
    code = "PAYMENT_ALREADY_PROCESSED"
    default_message = "Payment has already been processed."


class DuplicatePaymentId(Conflict):
    code = "DUPLICATE_PAYMENT_ID"


class PaymentNotVerified(InvalidState):
    code = "PAYMENT_NOT_VERIFIED"
    default_message = "Payment must be verified before confirmation."
