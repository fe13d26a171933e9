"""Order, OrderItem, and OrderStatusHistory models.

Business rules implemented:
- The order id is a human-readable ``ORD-<digits>`` primary key; its
  uniqueness is enforced by the primary-key constraint.
- Customer data is a snapshot taken at checkout, independent of any linked
  account, so an order never changes when the account does.
- Guest checkout: ``user`` is nullable.
- OrderItem snapshots the product name, unit price and presentation
  metadata at creation time and is never updated afterwards.
- Every status change appends one OrderStatusHistory row (insert-only).
"""

from __future__ import annotations

import secrets
import time
from decimal import Decimal
from typing import Any

import structlog
from django.conf import settings
from django.db import models

from modules.core.models import BaseModel, TimeStampedModel
from modules.orders.constants import (
    ORDER_ID_MAX_RETRIES,
    ORDER_ID_PREFIX,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


def generate_order_id() -> str:
    """``ORD-`` + millisecond timestamp + 4 random digits."""
    millis = time.time_ns() // 1_000_000
    return f"{ORDER_ID_PREFIX}{millis}{secrets.randbelow(10_000):04d}"


class Order(DomainEventMixin, TimeStampedModel):
    """Order aggregate root."""

    id = models.CharField(
        primary_key=True,
        max_length=32,
        default=generate_order_id,
        editable=False,
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    customer_name = models.CharField(max_length=150)
    customer_phone = models.CharField(max_length=20)
    customer_email = models.EmailField(blank=True, default="")
    customer_address = models.TextField()
    customer_reference = models.TextField(blank=True, default="")
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.AWAITING_PAYMENT,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    subtotal = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    tax = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    notes = models.TextField(blank=True, default="")
    delivery_date = models.DateTimeField(null=True, blank=True)
    delivery_notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["payment_status"], name="orders_payment_status_idx"),
            models.Index(fields=["customer_phone"], name="orders_phone_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether *new_status* is an edge of the status graph."""
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self._state.adding:
            for _ in range(ORDER_ID_MAX_RETRIES):
                if not Order.objects.filter(id=self.id).exists():
                    break
                logger.warning("order.id_collision", order_id=self.id)
                self.id = generate_order_id()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.id} ({self.status})"


class OrderItem(BaseModel):
    """Priced line of an order.

    ``price`` is the unit price at the time of purchase (the presentation's
    price when one was chosen) and ``total`` is ``round(price * quantity, 2)``
    as computed by the pricing engine.  Rows are written once, together
    with their order.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    presentation = models.ForeignKey(
        "products.Presentation",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )
    product_name = models.CharField(max_length=255)
    quantity = models.DecimalField(max_digits=10, decimal_places=3)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    total = models.DecimalField(max_digits=10, decimal_places=2)
    presentation_info = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gt=0),
                name="order_items_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} ({self.total})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail of order status changes.

    ``updated_by`` is the actor identifier (account email/username,
    ``guest`` or ``system``), stored as text so the trail survives account
    deletion.  Payment verification writes a row whose ``status`` equals
    ``old_status``: the audit point without a status change.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    status = models.CharField(max_length=20, choices=OrderStatus.choices)
    notes = models.TextField(blank=True, default="")
    updated_by = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at", "-id"]
        verbose_name_plural = "order status history"
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_status} -> {self.status}"
