from __future__ import annotations

import pytest
from django.core.cache import cache

from modules.orders.handlers import stats_cache_key as order_stats_key
from modules.payments.events import PaymentCreated, PaymentRejected, PaymentVerified
from modules.payments.handlers import stats_cache_key as payment_stats_key
from shared.infrastructure.bus import event_bus

pytestmark = pytest.mark.unit


def test_payment_created_drops_payment_stats():
    cache.set(payment_stats_key("30d"), {"stale": True})
    cache.set(order_stats_key("30d"), {"stale": True})

    event_bus.publish(PaymentCreated(aggregate_id="PAY-1", order_id="ORD-1"))

    assert cache.get(payment_stats_key("30d")) is None
    assert cache.get(order_stats_key("30d")) is not None


@pytest.mark.parametrize(
    "event",
    [
        PaymentVerified(aggregate_id="PAY-1", order_id="ORD-1"),
        PaymentRejected(aggregate_id="PAY-1", order_id="ORD-1", reason="ilegible"),
    ],
)
def test_outcomes_drop_both_stats(event):
    cache.set(payment_stats_key("7d"), {"stale": True})
    cache.set(order_stats_key("7d"), {"stale": True})

    event_bus.publish(event)

    assert cache.get(payment_stats_key("7d")) is None
    assert cache.get(order_stats_key("7d")) is None
