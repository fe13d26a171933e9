"""Payment model.

Business rules implemented:
- One payment per order, enforced by the one-to-one column.
- The payment id is a human-readable ``PAY-<digits>`` primary key.
- Customer name and phone are copied from the order at creation time.
- ``verified_by`` / ``verified_at`` are set by the verification step,
  whatever its outcome; ``rejected_reason`` only when rejected.
"""

from __future__ import annotations

import secrets
import time
from typing import Any

import structlog
from django.db import models

from modules.core.models import TimeStampedModel
from modules.payments.constants import (
    PAYMENT_ID_MAX_RETRIES,
    PAYMENT_ID_PREFIX,
    PaymentMethod,
    PaymentStatus,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


def generate_payment_id() -> str:
    """``PAY-`` + millisecond timestamp + 4 random digits."""
    millis = time.time_ns() // 1_000_000
    return f"{PAYMENT_ID_PREFIX}{millis}{secrets.randbelow(10_000):04d}"


class Payment(DomainEventMixin, TimeStampedModel):
    """Payment declared by the customer and verified by staff."""

    id = models.CharField(
        primary_key=True,
        max_length=32,
        default=generate_payment_id,
        editable=False,
    )
    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="payment",
    )
    customer_name = models.CharField(max_length=150)
    customer_phone = models.CharField(max_length=20)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    reference_number = models.CharField(max_length=100, blank=True, default="")
    verification_notes = models.TextField(blank=True, default="")
    verified_by = models.CharField(max_length=255, blank=True, default="")
    verified_at = models.DateTimeField(null=True, blank=True)
    rejected_reason = models.TextField(blank=True, default="")

    class Meta:
        db_table = "payments"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="payments_status_idx"),
            models.Index(fields=["method"], name="payments_method_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(amount__gt=0),
                name="payments_amount_positive",
            ),
        ]

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self._state.adding:
            for _ in range(PAYMENT_ID_MAX_RETRIES):
                if not Payment.objects.filter(id=self.id).exists():
                    break
                logger.warning("payment.id_collision", payment_id=self.id)
                self.id = generate_payment_id()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.id} ({self.status})"
