"""Transactional outbox: write side and relay.

``record_domain_events`` turns the events an aggregate collected during a
use case into ``OutboxEvent`` rows.  It must be called inside the same
``transaction.atomic()`` block as the aggregate's own writes, so events
and state commit (or roll back) together.

``OutboxRelay`` is the read side: it rebuilds each stored event and hands
it to the in-process event bus, recording the outcome on the row.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.domain.bus import IEventBus
from shared.domain.events import DomainEvent, DomainEventMixin

logger = structlog.get_logger(__name__)


def record_domain_events(entity: DomainEventMixin, topic: str) -> List[OutboxEvent]:
    """Persist and clear the pending events of *entity*."""
    rows = [
        OutboxEvent.objects.create(
            event_type=event.event_name,
            aggregate_id=str(event.aggregate_id),
            payload=serialize_event_payload(event),
            topic=topic,
        )
        for event in entity.domain_events
    ]
    entity.clear_domain_events()
    return rows


def serialize_event_payload(event: DomainEvent) -> Dict[str, Any]:
    data = asdict(event)
    normalized = _normalize_for_json(data)
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value


class OutboxRelay:
    """Publishes stored outbox events to the in-process bus."""

    def __init__(
        self,
        bus: Optional[IEventBus] = None,
        max_retries: Optional[int] = None,
    ) -> None:
        if bus is None:
            from shared.infrastructure.bus import event_bus

            bus = event_bus
        self._bus = bus
        self._max_retries = (
            settings.OUTBOX_MAX_RETRIES if max_retries is None else max_retries
        )

    def pending(self, batch_size: int) -> List[OutboxEvent]:
        return list(OutboxEvent.objects.deliverable(self._max_retries)[:batch_size])

    def publish_pending(self, batch_size: Optional[int] = None) -> Dict[str, int]:
        """Deliver one batch; returns ``{"published": n, "failed": m}``."""
        batch_size = batch_size or settings.OUTBOX_BATCH_SIZE
        published = failed = 0

        for row in self.pending(batch_size):
            log = logger.bind(
                outbox_id=str(row.id),
                event_type=row.event_type,
                aggregate_id=row.aggregate_id,
            )
            try:
                event = DomainEvent.from_payload(row.event_type, row.payload)
                with transaction.atomic():
                    self._bus.publish(event)
                    row.mark_as_published()
            except Exception as exc:
                row.mark_as_failed(f"{type(exc).__name__}: {exc}")
                log.warning(
                    "outbox.publish_failed",
                    error=str(exc),
                    retry_count=row.retry_count,
                )
                failed += 1
                continue
            log.info("outbox.published")
            published += 1

        return {"published": published, "failed": failed}

    def dead_letters(self) -> List[OutboxEvent]:
        """Rows the relay has given up on."""
        return list(OutboxEvent.objects.dead_letters(self._max_retries))

    def purge_published(self, older_than: datetime) -> int:
        """Hard-delete rows delivered before *older_than*."""
        deleted, _ = OutboxEvent.objects.published_before(older_than).delete()
        return deleted

