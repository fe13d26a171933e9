"""Asynchronous tasks of the core module."""

from datetime import timedelta

import structlog
from celery import shared_task
from django.utils import timezone

from modules.core.outbox import OutboxRelay

logger = structlog.get_logger(__name__)


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(batch_size=None):
    """Relay one batch of pending outbox events to the event bus."""
    result = OutboxRelay().publish_pending(batch_size=batch_size)
    logger.info("outbox.relay_completed", **result)
    return result


@shared_task(name="core.purge_outbox_events")
def purge_outbox_events(days=7):
    """Remove published outbox rows older than *days*."""
    deleted = OutboxRelay().purge_published(
        older_than=timezone.now() - timedelta(days=days)
    )
    logger.info("outbox.purged", deleted=deleted, days=days)
    return {"deleted": deleted}
