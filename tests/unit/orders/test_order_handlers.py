from __future__ import annotations

import pytest
from django.core.cache import cache

from modules.orders.constants import STATS_PERIODS
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.handlers import (
    order_cancelled_handler,
    order_created_handler,
    order_status_changed_handler,
    stats_cache_key,
)
from shared.infrastructure.bus import event_bus

pytestmark = pytest.mark.unit


@pytest.fixture()
def warm_cache():
    for period in STATS_PERIODS:
        cache.set(stats_cache_key(period), {"stale": True})


class TestSubscriptions:
    def test_handlers_are_registered_on_startup(self):
        assert order_created_handler in event_bus.handlers_for(OrderCreated)
        assert order_cancelled_handler in event_bus.handlers_for(OrderCancelled)
        assert order_status_changed_handler in event_bus.handlers_for(
            OrderStatusChanged
        )


class TestStatsInvalidation:
    @pytest.mark.parametrize(
        "event",
        [
            OrderCreated(aggregate_id="ORD-1", total="10.38", item_count=2),
            OrderCancelled(aggregate_id="ORD-1", old_status="AWAITING_PAYMENT"),
            OrderStatusChanged(
                aggregate_id="ORD-1", old_status="PREPARING", new_status="SHIPPED"
            ),
        ],
    )
    def test_every_order_event_drops_cached_stats(self, warm_cache, event):
        event_bus.publish(event)

        for period in STATS_PERIODS:
            assert cache.get(stats_cache_key(period)) is None
