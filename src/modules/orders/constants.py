"""Order domain constants.

Status choices, the directed graph of legal status moves, money/quantity
precision and the fixed audit notes written to the status history.
"""

from decimal import Decimal

from django.db import models


class OrderStatus(models.TextChoices):
    AWAITING_PAYMENT = "AWAITING_PAYMENT", "Esperando pago"
    PREPARING = "PREPARING", "En preparación"
    READY_FOR_SHIPPING = "READY_FOR_SHIPPING", "Listo para envío"
    SHIPPED = "SHIPPED", "Enviado"
    DELIVERED = "DELIVERED", "Entregado"
    CANCELLED = "CANCELLED", "Cancelado"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pendiente"
    VERIFIED = "VERIFIED", "Verificado"
    REJECTED = "REJECTED", "Rechazado"


class PaymentMethod(models.TextChoices):
    TRANSFER = "TRANSFER", "Transferencia bancaria"
    YAPE = "YAPE", "Yape"
    PLIN = "PLIN", "Plin"
    CASH = "CASH", "Efectivo"


# AWAITING_PAYMENT -> PREPARING is listed so the graph is complete, but
# only payment confirmation may take that edge.
VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.AWAITING_PAYMENT: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY_FOR_SHIPPING, OrderStatus.CANCELLED},
    OrderStatus.READY_FOR_SHIPPING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

TAX_RATE = Decimal("0.18")
MONEY_QUANTUM = Decimal("0.01")
QUANTITY_QUANTUM = Decimal("0.001")
MAX_QUANTITY = Decimal("9999999.999")
# Largest value a DECIMAL(10, 2) money column holds.
MAX_AMOUNT = Decimal("99999999.99")
MAX_ITEMS_PER_ORDER = 50

ORDER_ID_PREFIX = "ORD-"
ORDER_ID_MAX_RETRIES = 5

SYSTEM_ACTOR = "system"

NOTE_ORDER_CREATED = "Order created"
NOTE_PAYMENT_VERIFIED = (
    "Payment verified - awaiting final confirmation to start preparation"
)
NOTE_PAYMENT_CONFIRMED = "Payment confirmed - order started preparation"
NOTE_ORDER_CANCELLED = "Order cancelled"

STATS_PERIODS: dict[str, int] = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}
REVENUE_GROUPINGS = ("day", "week", "month")
RANKING_DEFAULT_LIMIT = 10
RANKING_MAX_LIMIT = 50
