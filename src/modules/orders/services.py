"""Order service layer (Use Cases).

Orchestrates order creation, status management and cancellation.
All write operations are atomic: the service defines the unit-of-work
boundary and every state change writes exactly one status history row
plus one domain event in the same transaction.

Business rules enforced:
- Items are priced from the catalog; inactive products are refused.
- Totals are derived server-side (subtotal, tax, total).
- Status moves follow ``VALID_TRANSITIONS`` (switchable through
  ``ORDERS_ENFORCE_TRANSITIONS``).
- Cancellation goes through ``cancel_order`` only; AWAITING_PAYMENT ->
  PREPARING goes through payment confirmation only.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.conf import settings
from django.core.cache import cache
from django.db import models, transaction
from django.utils import timezone

from modules.orders.constants import (
    NOTE_ORDER_CANCELLED,
    NOTE_ORDER_CREATED,
    RANKING_DEFAULT_LIMIT,
    RANKING_MAX_LIMIT,
    REVENUE_GROUPINGS,
    STATS_PERIODS,
    OrderStatus,
)
from modules.orders.dtos import (
    OrderStatsDTO,
    RevenueBucketDTO,
    RevenueReportDTO,
    TopCategoryDTO,
    TopProductDTO,
)
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.exceptions import (
    InvalidOrderData,
    InvalidOrderStatus,
    InvalidStatus,
    OrderAlreadyCancelled,
    OrderAlreadyDelivered,
    OrderNotFound,
)
from modules.orders.handlers import stats_cache_key
from modules.orders.pricing import PricingEngine, quantize_money

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order, OrderItem
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

STATS_CACHE_TIMEOUT = 300


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        pricing_engine: Optional[PricingEngine] = None,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._pricing = pricing_engine or PricingEngine(
            product_repository, tax_rate=settings.ORDER_TAX_RATE
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(
        self,
        dto: CreateOrderDTO,
        actor: str,
        user: Optional[Any] = None,
    ) -> Order:
        """Create an order from a validated checkout request.

        Steps:
        1. Price every item against the catalog.
        2. Persist order (AWAITING_PAYMENT / PENDING) + items.
        3. Record the initial status history row.
        4. Record ``OrderCreated`` into the outbox.

        Any failure rolls the whole unit back: no partial order is ever
        visible.

        Raises:
            ProductNotFound: a product does not exist.
            ProductInactive: a product is not available for sale.
            PresentationNotFound: a presentation does not belong to its product.
            InvalidQuantity: a quantity is not a positive number.
            DuplicateOrderId: the generated order id collided.
        """
        log = logger.bind(actor=actor, item_count=len(dto.items))
        log.info("order.creation_started")

        if not dto.items:
            raise InvalidOrderData("An order needs at least one item.")

        # 1. Price
        pricing = self._pricing.price(dto.items)

        # 2. Persist order + items
        order = self._order_repo.create(
            {
                "user": user,
                "customer_name": dto.customer_name,
                "customer_phone": dto.customer_phone,
                "customer_email": dto.customer_email or "",
                "customer_address": dto.customer_address,
                "customer_reference": dto.customer_reference,
                "payment_method": dto.payment_method,
                "status": OrderStatus.AWAITING_PAYMENT,
                "subtotal": pricing.subtotal,
                "tax": pricing.tax,
                "total": pricing.total,
                "notes": dto.notes,
                "delivery_date": dto.delivery_date,
                "delivery_notes": dto.delivery_notes,
                "lines": pricing.lines,
            }
        )

        # 3. Initial history
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.AWAITING_PAYMENT,
            notes=NOTE_ORDER_CREATED,
            updated_by=actor,
        )

        # 4. Event
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                status=order.status,
                total=str(order.total),
                item_count=len(pricing.lines),
                user_id=getattr(user, "pk", None),
            )
        )
        self._order_repo.save(order)

        log.info("order.created", order_id=order.id, total=str(order.total))
        return self._order_repo.get_by_id(order.id) or order

    @transaction.atomic
    def update_status(
        self,
        order_id: str,
        new_status: str,
        notes: str = "",
        actor: str = "",
    ) -> Order:
        """Move an order along the status graph.

        Acquires a row-level lock (``SELECT FOR UPDATE``) on the order
        before validating the transition.

        Raises:
            OrderNotFound: order does not exist.
            InvalidStatus: *new_status* is not a known status.
            InvalidOrderStatus: the move is not allowed.
        """
        if new_status not in OrderStatus.values:
            raise InvalidStatus(f"Unknown order status {new_status!r}.")

        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(
            order_id=order_id,
            current_status=order.status,
            new_status=new_status,
        )

        if new_status == OrderStatus.CANCELLED:
            log.warning("order.invalid_transition", reason="use_cancel")
            raise InvalidOrderStatus("Use the cancel operation to cancel an order.")

        if (
            order.status == OrderStatus.AWAITING_PAYMENT
            and new_status == OrderStatus.PREPARING
        ):
            log.warning("order.invalid_transition", reason="payment_required")
            raise InvalidOrderStatus(
                "An order awaiting payment starts preparation only when its "
                "payment is confirmed."
            )

        if settings.ORDERS_ENFORCE_TRANSITIONS and not order.can_transition_to(
            new_status
        ):
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(
                f"Cannot transition from {order.status} to {new_status}."
            )

        old_status = order.status
        order.status = new_status
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=new_status,
                updated_by=actor,
            )
        )
        self._order_repo.save(order)

        self._order_repo.add_history(
            order_id=order.id,
            status=new_status,
            notes=notes,
            old_status=old_status,
            updated_by=actor,
        )

        log.info("order.status_updated")
        return self._order_repo.get_by_id(order_id)

    @transaction.atomic
    def cancel_order(self, order_id: str, reason: str = "", actor: str = "") -> Order:
        """Cancel an order from any non-terminal status.

        Raises:
            OrderNotFound: order does not exist.
            OrderAlreadyCancelled: order is already CANCELLED.
            OrderAlreadyDelivered: order was DELIVERED.
        """
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=order_id, current_status=order.status)

        if order.status == OrderStatus.CANCELLED:
            log.warning("order.cancel_not_allowed")
            raise OrderAlreadyCancelled(f"Order {order_id} is already cancelled.")
        if order.status == OrderStatus.DELIVERED:
            log.warning("order.cancel_not_allowed")
            raise OrderAlreadyDelivered(
                f"Order {order_id} was delivered and cannot be cancelled."
            )

        old_status = order.status
        order.status = OrderStatus.CANCELLED
        order.add_domain_event(
            OrderCancelled(
                aggregate_id=order.id,
                old_status=old_status,
                reason=reason,
                updated_by=actor,
            )
        )
        self._order_repo.save(order)

        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.CANCELLED,
            notes=reason or NOTE_ORDER_CANCELLED,
            old_status=old_status,
            updated_by=actor,
        )

        log.info("order.cancelled")
        return self._order_repo.get_by_id(order_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> models.QuerySet[Order]:
        """Return orders, optionally filtered."""
        return self._order_repo.list(filters)

    def list_items(self, order_id: str) -> List[OrderItem]:
        """Raises ``OrderNotFound`` for unknown orders."""
        self.get_order(order_id)
        return self._order_repo.list_items(order_id)

    def get_stats(self, period: str = "30d") -> OrderStatsDTO:
        """Dashboard figures for *period*.

        Cached for ``STATS_CACHE_TIMEOUT`` seconds.  Every committed order
        write drops the cache, and so does the outbox relay when it delivers
        the matching event.

        Raises:
            InvalidOrderData: unknown period.
        """
        since = period_start(period)
        key = stats_cache_key(period)
        cached = cache.get(key)
        if cached is not None:
            return OrderStatsDTO.model_validate(cached)

        figures = self._order_repo.aggregate_stats(since)
        stats = OrderStatsDTO(
            period=period,
            total_orders=figures["total_orders"],
            revenue=quantize_money(figures["revenue"]),
            average_order_value=quantize_money(
                Decimal(figures["average_order_value"])
            ),
            by_status=figures["by_status"],
            by_payment_method=figures["by_payment_method"],
            by_payment_status=figures["by_payment_status"],
        )
        cache.set(key, stats.model_dump(), STATS_CACHE_TIMEOUT)
        return stats

    def top_products(
        self, period: str = "30d", limit: Any = None
    ) -> List[TopProductDTO]:
        """Best sellers by quantity; cancelled orders do not count.

        Raises:
            InvalidOrderData: unknown period or a limit outside 1..50.
        """
        since = period_start(period)
        rows = self._order_repo.top_products(since, ranking_limit(limit))
        return [
            TopProductDTO(
                **{
                    **row,
                    "revenue": quantize_money(row["revenue"]),
                    "average_price": quantize_money(
                        row["revenue"] / row["quantity_sold"]
                    ),
                }
            )
            for row in rows
        ]

    def top_categories(
        self, period: str = "30d", limit: Any = None
    ) -> List[TopCategoryDTO]:
        """Categories ranked by revenue.

        Raises:
            InvalidOrderData: unknown period or a limit outside 1..50.
        """
        since = period_start(period)
        rows = self._order_repo.top_categories(since, ranking_limit(limit))
        return [
            TopCategoryDTO(
                **{
                    **row,
                    "revenue": quantize_money(row["revenue"]),
                    "average_order_value": quantize_money(
                        row["revenue"] / row["order_count"]
                    ),
                }
            )
            for row in rows
        ]

    def revenue_by_period(
        self, period: str = "30d", group_by: str = "day"
    ) -> RevenueReportDTO:
        """Revenue series of non-cancelled orders with bucket-over-bucket growth.

        Raises:
            InvalidOrderData: unknown period or grouping.
        """
        since = period_start(period)
        if group_by not in REVENUE_GROUPINGS:
            raise InvalidOrderData(
                f"Unknown grouping {group_by!r}; use one of "
                f"{', '.join(REVENUE_GROUPINGS)}."
            )

        buckets: List[RevenueBucketDTO] = []
        previous: Optional[Decimal] = None
        for row in self._order_repo.revenue_by_period(since, group_by):
            revenue = quantize_money(row["revenue"])
            growth = Decimal("0.00")
            if previous:
                growth = quantize_money((revenue - previous) / previous * 100)
            buckets.append(
                RevenueBucketDTO(
                    period_start=row["bucket"].date(),
                    revenue=revenue,
                    subtotal=quantize_money(row["subtotal"]),
                    tax=quantize_money(row["tax"]),
                    order_count=row["order_count"],
                    average_order_value=quantize_money(revenue / row["order_count"]),
                    growth_rate=growth,
                )
            )
            previous = revenue

        zero = Decimal("0.00")
        return RevenueReportDTO(
            period=period,
            group_by=group_by,
            buckets=buckets,
            total_revenue=sum((b.revenue for b in buckets), zero),
            total_subtotal=sum((b.subtotal for b in buckets), zero),
            total_tax=sum((b.tax for b in buckets), zero),
            total_orders=sum(b.order_count for b in buckets),
        )


def period_start(period: str) -> datetime:
    """Start of a dashboard window such as ``"30d"``.

    Raises:
        InvalidOrderData: *period* is not one of ``STATS_PERIODS``.
    """
    if period not in STATS_PERIODS:
        raise InvalidOrderData(
            f"Unknown period {period!r}; use one of {', '.join(STATS_PERIODS)}."
        )
    return timezone.now() - timedelta(days=STATS_PERIODS[period])


def ranking_limit(raw: Any) -> int:
    if raw is None or raw == "":
        return RANKING_DEFAULT_LIMIT
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        raise InvalidOrderData(f"Invalid limit {raw!r}.") from None
    if not 1 <= limit <= RANKING_MAX_LIMIT:
        raise InvalidOrderData(f"limit must be between 1 and {RANKING_MAX_LIMIT}.")
    return limit
