"""Order domain exceptions.

Raised by the pricing engine and the Service Layer when business rules
are violated.  Catalog look-up failures are the catalog's own exceptions,
re-exported here because the pricing engine raises them unchanged.
"""

from __future__ import annotations

from modules.products.exceptions import PresentationNotFound, ProductNotFound
from shared.domain.exceptions import Conflict, InvalidInput, InvalidState, NotFound

__all__ = [
    "DuplicateOrderId",
    "InvalidOrderData",
    "InvalidOrderStatus",
    "InvalidQuantity",
    "InvalidStatus",
    "OrderAlreadyCancelled",
    "OrderAlreadyDelivered",
    "OrderNotFound",
    "PresentationNotFound",
    "ProductInactive",
    "ProductNotFound",
]


class OrderNotFound(NotFound):
    code = "ORDER_NOT_FOUND"
    default_message = "Order not found."


class InvalidOrderData(InvalidInput):
    """Customer data, payment method or item list missing or malformed."""

    code = "INVALID_ORDER_DATA"


class ProductInactive(InvalidInput):
    """An ordered product exists but is not currently sold."""

    code = "PRODUCT_INACTIVE"


class InvalidQuantity(InvalidInput):
    code = "INVALID_QUANTITY"
    default_message = "Quantity must be a positive number."


class InvalidStatus(InvalidInput):
    """The requested status is not one of ``OrderStatus``."""

    code = "INVALID_STATUS"


class InvalidOrderStatus(InvalidState):
    """The order's current status does not allow the requested move."""

    code = "INVALID_ORDER_STATUS"


class OrderAlreadyCancelled(Conflict):
    code = "ORDER_ALREADY_CANCELLED"
    default_message = "Order is already cancelled."


class OrderAlreadyDelivered(Conflict):
    code = "ORDER_ALREADY_DELIVERED"
    default_message = "Cannot cancel a delivered order."


class DuplicateOrderId(Conflict):
    """The generated order id collided with an existing row."""

    code = "DUPLICATE_ORDER_ID"
