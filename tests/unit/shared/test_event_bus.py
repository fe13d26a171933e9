from __future__ import annotations

import pytest

from modules.orders.events import OrderCreated
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


class Recorder:
    def __init__(self):
        self.received = []

    def handle(self, event):
        self.received.append(event)


class Exploding:
    def handle(self, event):
        raise RuntimeError("handler failed")


class TestInMemoryEventBus:
    def test_publish_reaches_subscribers(self):
        bus = InMemoryEventBus()
        recorder = Recorder()
        bus.subscribe(OrderCreated, recorder)

        delivered = bus.publish(OrderCreated(aggregate_id="ORD-1"))

        assert delivered == 1
        assert recorder.received[0].aggregate_id == "ORD-1"

    def test_subscribe_is_idempotent(self):
        bus = InMemoryEventBus()
        recorder = Recorder()
        bus.subscribe(OrderCreated, recorder)
        bus.subscribe(OrderCreated, recorder)

        assert bus.publish(OrderCreated(aggregate_id="ORD-1")) == 1

    def test_unsubscribe(self):
        bus = InMemoryEventBus()
        recorder = Recorder()
        bus.subscribe(OrderCreated, recorder)
        bus.unsubscribe(OrderCreated, recorder)

        assert bus.publish(OrderCreated(aggregate_id="ORD-1")) == 0
        assert recorder.received == []

    def test_handler_errors_propagate(self):
        bus = InMemoryEventBus()
        bus.subscribe(OrderCreated, Exploding())

        with pytest.raises(RuntimeError):
            bus.publish(OrderCreated(aggregate_id="ORD-1"))
