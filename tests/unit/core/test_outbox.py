"""Unit tests for the transactional outbox.

Covers:
- record_domain_events writes one row per collected event and clears them
- OutboxRelay delivery, failure bookkeeping, retry ceiling and purge
- the Celery tasks wrapping the relay
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone

from modules.core.models import EventStatus, OutboxEvent
from modules.core.outbox import OutboxRelay, record_domain_events
from modules.core.tasks import publish_outbox_events, purge_outbox_events
from modules.orders.events import OrderCancelled, OrderCreated
from shared.domain.events import DomainEventMixin
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


class Aggregate(DomainEventMixin):
    pass


class Recorder:
    def __init__(self):
        self.received = []

    def handle(self, event):
        self.received.append(event)


class Exploding:
    def handle(self, event):
        raise RuntimeError("downstream unavailable")


def _stage(*events, topic="orders"):
    aggregate = Aggregate()
    for event in events:
        aggregate.add_domain_event(event)
    return record_domain_events(aggregate, topic)


class TestRecordDomainEvents:
    def test_one_row_per_event(self):
        aggregate = Aggregate()
        aggregate.add_domain_event(OrderCreated(aggregate_id="ORD-1", total="10.38"))
        aggregate.add_domain_event(OrderCancelled(aggregate_id="ORD-1", reason="x"))

        rows = record_domain_events(aggregate, "orders")

        assert [row.event_type for row in rows] == ["OrderCreated", "OrderCancelled"]
        assert all(row.status == EventStatus.PENDING for row in rows)
        assert rows[0].payload["total"] == "10.38"
        assert rows[0].topic == "orders"
        assert aggregate.domain_events == []

    def test_nothing_to_record(self):
        assert record_domain_events(Aggregate(), "orders") == []
        assert OutboxEvent.objects.count() == 0


class TestOutboxRelay:
    def test_publishes_pending_rows(self):
        bus = InMemoryEventBus()
        recorder = Recorder()
        bus.subscribe(OrderCreated, recorder)
        (row,) = _stage(OrderCreated(aggregate_id="ORD-1"))

        result = OutboxRelay(bus=bus).publish_pending(batch_size=10)

        assert result == {"published": 1, "failed": 0}
        assert recorder.received[0].aggregate_id == "ORD-1"
        row.refresh_from_db()
        assert row.status == EventStatus.PUBLISHED
        assert row.processed_at is not None

    def test_published_rows_are_not_redelivered(self):
        bus = InMemoryEventBus()
        _stage(OrderCreated(aggregate_id="ORD-1"))
        relay = OutboxRelay(bus=bus)
        relay.publish_pending(batch_size=10)

        assert relay.publish_pending(batch_size=10) == {"published": 0, "failed": 0}

    def test_handler_failure_is_recorded(self):
        bus = InMemoryEventBus()
        bus.subscribe(OrderCreated, Exploding())
        (row,) = _stage(OrderCreated(aggregate_id="ORD-1"))

        result = OutboxRelay(bus=bus, max_retries=3).publish_pending(batch_size=10)

        assert result == {"published": 0, "failed": 1}
        row.refresh_from_db()
        assert row.status == EventStatus.FAILED
        assert row.retry_count == 1
        assert "downstream unavailable" in row.error_message

    def test_unknown_event_type_fails(self):
        row = OutboxEvent.objects.create(
            event_type="Vanished", payload={}, aggregate_id="ORD-1", topic="orders"
        )

        result = OutboxRelay(bus=InMemoryEventBus()).publish_pending(batch_size=10)

        assert result["failed"] == 1
        row.refresh_from_db()
        assert row.error_message.startswith("LookupError")

    def test_failed_rows_retry_until_ceiling(self):
        bus = InMemoryEventBus()
        bus.subscribe(OrderCreated, Exploding())
        (row,) = _stage(OrderCreated(aggregate_id="ORD-1"))
        relay = OutboxRelay(bus=bus, max_retries=2)

        relay.publish_pending(batch_size=10)
        relay.publish_pending(batch_size=10)
        third = relay.publish_pending(batch_size=10)

        row.refresh_from_db()
        assert row.retry_count == 2
        assert third == {"published": 0, "failed": 0}
        assert relay.dead_letters() == [row]

    def test_failed_row_recovers(self):
        bus = InMemoryEventBus()
        exploding = Exploding()
        bus.subscribe(OrderCreated, exploding)
        (row,) = _stage(OrderCreated(aggregate_id="ORD-1"))
        relay = OutboxRelay(bus=bus, max_retries=3)
        relay.publish_pending(batch_size=10)

        bus.unsubscribe(OrderCreated, exploding)
        assert relay.publish_pending(batch_size=10) == {"published": 1, "failed": 0}
        row.refresh_from_db()
        assert row.status == EventStatus.PUBLISHED

    def test_batch_size_limits_delivery(self):
        _stage(*[OrderCreated(aggregate_id=f"ORD-{n}") for n in range(3)])

        result = OutboxRelay(bus=InMemoryEventBus()).publish_pending(batch_size=2)

        assert result["published"] == 2
        assert OutboxEvent.objects.filter(status=EventStatus.PENDING).count() == 1

    def test_purge_only_old_published_rows(self):
        old, recent, pending = _stage(
            OrderCreated(aggregate_id="ORD-1"),
            OrderCreated(aggregate_id="ORD-2"),
            OrderCreated(aggregate_id="ORD-3"),
        )
        old.mark_as_published()
        recent.mark_as_published()
        OutboxEvent.objects.filter(pk=old.pk).update(
            processed_at=timezone.now() - timedelta(days=30)
        )

        deleted = OutboxRelay(bus=InMemoryEventBus()).purge_published(
            older_than=timezone.now() - timedelta(days=7)
        )

        assert deleted == 1
        assert set(OutboxEvent.objects.values_list("pk", flat=True)) == {
            recent.pk,
            pending.pk,
        }


class TestOutboxTasks:
    def test_publish_task_uses_global_bus(self):
        _stage(OrderCreated(aggregate_id="ORD-1"))

        result = publish_outbox_events.apply(kwargs={"batch_size": 10}).get()

        assert result == {"published": 1, "failed": 0}

    def test_purge_task(self):
        (row,) = _stage(OrderCreated(aggregate_id="ORD-1"))
        row.mark_as_published()
        OutboxEvent.objects.filter(pk=row.pk).update(
            processed_at=timezone.now() - timedelta(days=10)
        )

        assert purge_outbox_events.apply(kwargs={"days": 7}).get() == {"deleted": 1}
