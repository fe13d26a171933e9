"""Shared model infrastructure.

- ``TimeStampedModel``: ``created_at`` / ``updated_at`` for aggregates that
  carry their own readable key (orders ``ORD-…``, payments ``PAY-…``).
- ``BaseModel``: the same bookkeeping plus a UUIDv7 key, for catalog rows
  and child records.
- ``SoftDeleteModel``: catalog rows are never removed while order lines may
  still point at them; ``deleted_at`` marks them gone instead.
- ``OutboxEvent``: domain events waiting to be relayed to the event bus.
"""

from __future__ import annotations

from datetime import datetime

import structlog
import uuid6
from django.db import models
from django.db.models import Q
from django.utils import timezone

logger = structlog.get_logger(__name__)

ERROR_MESSAGE_MAX_LENGTH = 2000


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        # auto_now is skipped when update_fields omits it
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "updated_at"]
        super().save(*args, **kwargs)


class BaseModel(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid6.uuid7, editable=False)

    class Meta:
        abstract = True


# ---------------------------------------------------------------------------
# Soft delete
# ---------------------------------------------------------------------------


class SoftDeleteQuerySet(models.QuerySet):
    def alive(self) -> SoftDeleteQuerySet:
        return self.filter(deleted_at__isnull=True)

    def dead(self) -> SoftDeleteQuerySet:
        return self.filter(deleted_at__isnull=False)

    def delete(self) -> tuple[int, dict[str, int]]:
        """Stamp ``deleted_at`` on every live row of the queryset."""
        now = timezone.now()
        count = self.alive().update(deleted_at=now, updated_at=now)
        return count, {self.model._meta.label: count}

    delete.queryset_only = True

    def hard_delete(self) -> tuple[int, dict[str, int]]:
        return super().delete()

    hard_delete.queryset_only = True


class SoftDeleteModel(BaseModel):
    """Row that disappears from ``objects.alive()`` when deleted.

    ``objects`` itself is unfiltered, so admin screens and order history can
    still reach deleted rows; every catalog read goes through ``alive()``.
    """

    deleted_at = models.DateTimeField(
        null=True, blank=True, default=None, db_index=True
    )

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def delete(self, using=None, keep_parents=False) -> tuple[int, dict[str, int]]:
        if self.is_deleted:
            return 0, {}
        self.deleted_at = timezone.now()
        self.save(update_fields=["deleted_at"])
        logger.info("soft_deleted", model=self._meta.label, pk=str(self.pk))
        return 1, {self._meta.label: 1}

    def hard_delete(self, using=None, keep_parents=False) -> tuple[int, dict[str, int]]:
        return super().delete(using=using, keep_parents=keep_parents)

    def restore(self) -> None:
        if not self.is_deleted:
            return
        self.deleted_at = None
        self.save(update_fields=["deleted_at"])
        logger.info("restored", model=self._meta.label, pk=str(self.pk))


# ---------------------------------------------------------------------------
# Transactional outbox
# ---------------------------------------------------------------------------


class EventStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PUBLISHED = "PUBLISHED", "Published"
    FAILED = "FAILED", "Failed"


class OutboxEventQuerySet(models.QuerySet):
    def deliverable(self, max_retries: int) -> OutboxEventQuerySet:
        """Pending rows plus failed rows that still have retries left."""
        retryable = Q(status=EventStatus.FAILED, retry_count__lt=max_retries)
        return self.filter(Q(status=EventStatus.PENDING) | retryable).order_by(
            "created_at", "id"
        )

    def dead_letters(self, max_retries: int) -> OutboxEventQuerySet:
        return self.filter(
            status=EventStatus.FAILED, retry_count__gte=max_retries
        ).order_by("created_at")

    def published_before(self, moment: datetime) -> OutboxEventQuerySet:
        return self.filter(status=EventStatus.PUBLISHED, processed_at__lt=moment)


class OutboxEvent(BaseModel):
    """A domain event stored in the same transaction as the state change.

    Rows start ``PENDING``.  The relay marks them ``PUBLISHED`` once every
    handler ran, or ``FAILED`` with the error and a bumped ``retry_count``;
    failed rows are retried until ``OUTBOX_MAX_RETRIES`` is reached.
    """

    event_type = models.CharField(max_length=100)
    payload = models.JSONField()
    aggregate_id = models.CharField(max_length=255)
    topic = models.CharField(max_length=100)
    status = models.CharField(
        max_length=20,
        choices=EventStatus.choices,
        default=EventStatus.PENDING,
    )
    processed_at = models.DateTimeField(null=True, blank=True, default=None)
    error_message = models.TextField(null=True, blank=True, default=None)  # noqa: DJ01
    retry_count = models.PositiveIntegerField(default=0)

    objects = OutboxEventQuerySet.as_manager()

    class Meta:
        db_table = "outbox_events"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["event_type"], name="outbox_event_type_idx"),
            models.Index(fields=["aggregate_id"], name="outbox_aggregate_id_idx"),
            models.Index(
                fields=["status", "created_at"], name="outbox_status_created_idx"
            ),
        ]

    def mark_as_published(self) -> None:
        self.status = EventStatus.PUBLISHED
        self.processed_at = timezone.now()
        self.error_message = None
        self.save(update_fields=["status", "processed_at", "error_message"])

    def mark_as_failed(self, error: str) -> None:
        self.status = EventStatus.FAILED
        self.error_message = error[:ERROR_MESSAGE_MAX_LENGTH]
        self.retry_count += 1
        self.save(update_fields=["status", "error_message", "retry_count"])

    def __str__(self) -> str:
        return f"{self.event_type} [{self.status}] ({self.aggregate_id})"
