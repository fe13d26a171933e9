"""Payment domain constants.

Payment methods and statuses are shared with the order, which keeps a
denormalized ``payment_status`` of its own.
"""

from decimal import Decimal

from modules.orders.constants import PaymentMethod, PaymentStatus

__all__ = [
    "AMOUNT_TOLERANCE",
    "PAYMENT_ID_MAX_RETRIES",
    "PAYMENT_ID_PREFIX",
    "PaymentMethod",
    "PaymentStatus",
    "VERIFICATION_OUTCOMES",
]

AMOUNT_TOLERANCE = Decimal("0.01")

PAYMENT_ID_PREFIX = "PAY-"
PAYMENT_ID_MAX_RETRIES = 5

VERIFICATION_OUTCOMES = (PaymentStatus.VERIFIED, PaymentStatus.REJECTED)
