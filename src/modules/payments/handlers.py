"""Event handlers for Payments domain events.

Payment outcomes change both the payment figures and the order's
``payment_status`` counts, so both stats caches are dropped.
"""

from __future__ import annotations

import structlog
from django.core.cache import cache

from modules.orders.constants import STATS_PERIODS
from modules.orders.handlers import invalidate_order_stats
from modules.payments.events import PaymentCreated, PaymentRejected, PaymentVerified
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)

STATS_CACHE_PREFIX = "payments:stats"


def stats_cache_key(period: str) -> str:
    return f"{STATS_CACHE_PREFIX}:{period}"


def invalidate_payment_stats() -> None:
    cache.delete_many([stats_cache_key(period) for period in STATS_PERIODS])


class PaymentCreatedHandler(IEventHandler[PaymentCreated]):
    def handle(self, event: PaymentCreated) -> None:
        invalidate_payment_stats()
        logger.info(
            f"Pago {event.aggregate_id} registrado para el pedido {event.order_id}",
            payment_id=event.aggregate_id,
            order_id=event.order_id,
            amount=event.amount,
        )


class PaymentVerifiedHandler(IEventHandler[PaymentVerified]):
    def handle(self, event: PaymentVerified) -> None:
        invalidate_payment_stats()
        invalidate_order_stats()
        logger.info(
            f"Pago {event.aggregate_id} verificado",
            payment_id=event.aggregate_id,
            order_id=event.order_id,
        )


class PaymentRejectedHandler(IEventHandler[PaymentRejected]):
    def handle(self, event: PaymentRejected) -> None:
        invalidate_payment_stats()
        invalidate_order_stats()
        logger.warning(
            f"Pago {event.aggregate_id} rechazado",
            payment_id=event.aggregate_id,
            order_id=event.order_id,
        )


payment_created_handler = PaymentCreatedHandler()
payment_verified_handler = PaymentVerifiedHandler()
payment_rejected_handler = PaymentRejectedHandler()
