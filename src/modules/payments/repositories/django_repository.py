"""Django ORM implementation of the Payment repository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

import structlog
from django.db import IntegrityError, models, transaction
from django.db.models import Avg, Count, Sum

from modules.core.outbox import record_domain_events
from modules.orders.handlers import invalidate_order_stats
from modules.payments.constants import PaymentStatus
from modules.payments.exceptions import DuplicatePaymentId, PaymentAlreadyExists
from modules.payments.handlers import invalidate_payment_stats
from modules.payments.models import Payment
from modules.payments.repositories.interfaces import IPaymentRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "payments"


class PaymentDjangoRepository(IPaymentRepository):
    """Concrete Payment repository backed by Django ORM."""

    def create(self, data: Dict[str, Any]) -> Payment:
        payment = Payment(**data)
        try:
            with transaction.atomic():
                payment.save()
        except IntegrityError as exc:
            if Payment.objects.filter(order_id=payment.order_id).exists():
                raise PaymentAlreadyExists(
                    f"Order {payment.order_id} already has a payment."
                ) from exc
            raise DuplicatePaymentId(
                f"Payment id {payment.id} already exists."
            ) from exc
        logger.info("payment.persisted", payment_id=payment.id)
        return payment

    def get_by_id(self, id: str) -> Optional[Payment]:
        return Payment.objects.select_related("order").filter(id=id).first()

    def get_by_order(self, order_id: str) -> Optional[Payment]:
        return Payment.objects.select_related("order").filter(order_id=order_id).first()

    def get_for_update(self, id: str) -> Optional[Payment]:
        return Payment.objects.select_for_update().filter(id=id).first()

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> models.QuerySet[Payment]:
        queryset = Payment.objects.select_related("order")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def compare_and_set_status(
        self, id: str, expected: str, changes: Dict[str, Any]
    ) -> bool:
        updated = Payment.objects.filter(id=id, status=expected).update(**changes)
        return updated == 1

    @transaction.atomic
    def save(self, entity: Payment) -> Payment:
        entity.save()
        self.record_events(entity)
        return entity

    def record_events(self, entity: Payment) -> None:
        """Outbox rows for pending events; both stats caches drop on commit."""
        events = record_domain_events(entity, topic=OUTBOX_TOPIC)
        transaction.on_commit(invalidate_payment_stats)
        transaction.on_commit(invalidate_order_stats)
        logger.info("payment.events_recorded", payment_id=entity.id, count=len(events))

    def aggregate_stats(self, since: datetime) -> Dict[str, Any]:
        """Period figures; amounts only count verified payments."""
        in_period = Payment.objects.filter(created_at__gte=since)
        verified = in_period.filter(status=PaymentStatus.VERIFIED).aggregate(
            collected=Sum("amount"), average=Avg("amount")
        )

        def count_by(field: str) -> Dict[str, int]:
            rows = in_period.order_by().values(field).annotate(n=Count("id"))
            return {row[field]: row["n"] for row in rows}

        return {
            "total_payments": Payment.objects.count(),
            "payments_in_period": in_period.count(),
            "by_status": count_by("status"),
            "by_method": count_by("method"),
            "total_amount_collected": verified["collected"] or Decimal("0.00"),
            "average_payment_amount": verified["average"] or Decimal("0.00"),
            "pending_verifications": Payment.objects.filter(
                status=PaymentStatus.PENDING
            ).count(),
        }
