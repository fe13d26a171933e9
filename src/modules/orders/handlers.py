"""Event handlers for Orders domain events.

Delivered by the outbox relay.  They keep the cached dashboard figures
honest and leave an audit trail in the logs.
"""

from __future__ import annotations

import structlog
from django.core.cache import cache

from modules.orders.constants import STATS_PERIODS
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)

STATS_CACHE_PREFIX = "orders:stats"


def stats_cache_key(period: str) -> str:
    return f"{STATS_CACHE_PREFIX}:{period}"


def invalidate_order_stats() -> None:
    cache.delete_many([stats_cache_key(period) for period in STATS_PERIODS])


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        invalidate_order_stats()
        logger.info(
            f"Procesando creación del pedido {event.aggregate_id}",
            order_id=event.aggregate_id,
            total=event.total,
            item_count=event.item_count,
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        invalidate_order_stats()
        logger.info(
            f"Procesando cancelación del pedido {event.aggregate_id}",
            order_id=event.aggregate_id,
            old_status=event.old_status,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        invalidate_order_stats()
        logger.info(
            f"Procesando cambio de estado del pedido {event.aggregate_id}",
            order_id=event.aggregate_id,
            old_status=event.old_status,
            new_status=event.new_status,
        )


order_created_handler = OrderCreatedHandler()
order_cancelled_handler = OrderCancelledHandler()
order_status_changed_handler = OrderStatusChangedHandler()
