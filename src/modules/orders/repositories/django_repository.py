"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
Concurrency control on status updates uses ``select_for_update()``
(no ``version`` column exists on the model).  Domain events collected
on the aggregate are written to the outbox by ``save`` in the caller's
transaction.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from django.db import IntegrityError, models, transaction
from django.db.models import Avg, Count, Sum
from django.db.models.functions import TruncDay, TruncMonth, TruncWeek

from modules.core.outbox import record_domain_events
from modules.orders.constants import OrderStatus
from modules.orders.exceptions import DuplicateOrderId
from modules.orders.handlers import invalidate_order_stats
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"

TRUNC_BY_GROUPING = {"day": TruncDay, "week": TruncWeek, "month": TruncMonth}


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically."""
        lines = data.pop("lines")
        order = Order(**data)
        try:
            with transaction.atomic():
                order.save()
        except IntegrityError as exc:
            logger.warning("order.duplicate_id", order_id=order.id)
            raise DuplicateOrderId(f"Order id {order.id} already exists.") from exc

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product_id=line.product_id,
                    presentation_id=line.presentation_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    price=line.price,
                    total=line.total,
                    presentation_info=line.presentation_info,
                )
                for line in lines
            ]
        )

        logger.info("order.persisted", order_id=order.id, item_count=len(lines))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _base_queryset(self) -> models.QuerySet[Order]:
        return Order.objects.select_related("user").prefetch_related(
            "items", "status_history", "payment"
        )

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations (prevents N+1)."""
        return self._base_queryset().filter(id=id).first()

    def get_for_update(self, id: str) -> Optional[Order]:
        """Lock the order row for the rest of the current transaction."""
        return Order.objects.select_for_update().filter(id=id).first()

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> models.QuerySet[Order]:
        """List orders with optional Django ORM look-ups.

        Examples of valid filters::

            {"status": "PREPARING"}
            {"user_id": 7}
            {"created_at__gte": some_datetime}
        """
        queryset = Order.objects.select_related("user").prefetch_related("items")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_items(self, order_id: str) -> List[OrderItem]:
        return list(
            OrderItem.objects.filter(order_id=order_id).select_related(
                "product", "presentation"
            )
        )

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist the order and move its pending events to the outbox.

        Cached stats are also dropped on commit, so they are fresh even
        when no relay worker is running.
        """
        entity.save()
        events = record_domain_events(entity, topic=OUTBOX_TOPIC)
        transaction.on_commit(invalidate_order_stats)
        logger.info("order.saved", order_id=entity.id, event_count=len(events))
        return entity

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def aggregate_stats(self, since: datetime) -> Dict[str, Any]:
        """Dashboard aggregates; revenue ignores cancelled orders."""
        queryset = Order.objects.filter(created_at__gte=since)
        billable = queryset.exclude(status=OrderStatus.CANCELLED)
        figures = billable.aggregate(revenue=Sum("total"), average=Avg("total"))

        def count_by(field: str) -> Dict[str, int]:
            rows = queryset.order_by().values(field).annotate(n=Count("id"))
            return {row[field]: row["n"] for row in rows}

        return {
            "total_orders": queryset.count(),
            "revenue": figures["revenue"] or Decimal("0.00"),
            "average_order_value": figures["average"] or Decimal("0.00"),
            "by_status": count_by("status"),
            "by_payment_method": count_by("payment_method"),
            "by_payment_status": count_by("payment_status"),
        }

    @staticmethod
    def _billable_items(since: datetime) -> models.QuerySet[OrderItem]:
        return (
            OrderItem.objects.filter(order__created_at__gte=since)
            .exclude(order__status=OrderStatus.CANCELLED)
            .order_by()
        )

    def top_products(self, since: datetime, limit: int) -> List[Dict[str, Any]]:
        rows = (
            self._billable_items(since)
            .values("product_id", "product__name", "product__category__name")
            .annotate(
                quantity=Sum("quantity"),
                revenue=Sum("total"),
                order_count=Count("order", distinct=True),
            )
            .order_by("-quantity", "product__name")[:limit]
        )
        return [
            {
                "product_id": row["product_id"],
                "product_name": row["product__name"],
                "category": row["product__category__name"],
                "quantity_sold": row["quantity"],
                "revenue": row["revenue"],
                "order_count": row["order_count"],
            }
            for row in rows
        ]

    def top_categories(self, since: datetime, limit: int) -> List[Dict[str, Any]]:
        rows = (
            self._billable_items(since)
            .values(
                "product__category_id",
                "product__category__name",
                "product__category__icon",
                "product__category__color",
            )
            .annotate(
                revenue=Sum("total"),
                quantity=Sum("quantity"),
                items_sold=Count("id"),
                order_count=Count("order", distinct=True),
            )
            .order_by("-revenue", "product__category__name")[:limit]
        )
        return [
            {
                "category_id": row["product__category_id"],
                "category_name": row["product__category__name"],
                "icon": row["product__category__icon"],
                "color": row["product__category__color"],
                "revenue": row["revenue"],
                "quantity_sold": row["quantity"],
                "items_sold": row["items_sold"],
                "order_count": row["order_count"],
            }
            for row in rows
        ]

    def revenue_by_period(
        self, since: datetime, group_by: str
    ) -> List[Dict[str, Any]]:
        trunc = TRUNC_BY_GROUPING[group_by]
        rows = (
            Order.objects.filter(created_at__gte=since)
            .exclude(status=OrderStatus.CANCELLED)
            .annotate(bucket=trunc("created_at"))
            .order_by()
            .values("bucket")
            .annotate(
                revenue=Sum("total"),
                subtotal=Sum("subtotal"),
                tax=Sum("tax"),
                order_count=Count("id"),
            )
            .order_by("bucket")
        )
        return list(rows)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: str,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        updated_by: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            status=status,
            notes=notes,
            updated_by=updated_by,
        )
        logger.info(
            "order.history_added",
            order_id=order_id,
            old_status=old_status,
            new_status=status,
        )
        return history
