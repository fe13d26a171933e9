"""Payment repository interface.

Besides the generic contract the payment aggregate needs a
compare-and-swap status update: verification only succeeds if the row
is still PENDING when the UPDATE runs.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db import models

    from modules.payments.models import Payment


class IPaymentRepository(IRepository["Payment"]):
    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Payment:
        """Insert a payment.

        Raises:
            PaymentAlreadyExists: the order already has a payment.
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Payment]: ...

    @abstractmethod
    def get_by_order(self, order_id: str) -> Optional[Payment]: ...

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Payment]:
        """Retrieve a payment with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Payment]": ...

    @abstractmethod
    def compare_and_set_status(
        self, id: str, expected: str, changes: Dict[str, Any]
    ) -> bool:
        """Apply *changes* only if the stored status equals *expected*.

        Returns ``True`` when exactly one row was updated.
        """

    @abstractmethod
    def record_events(self, entity: Payment) -> None:
        """Move the entity's pending domain events to the outbox."""

    @abstractmethod
    def aggregate_stats(self, since: datetime) -> Dict[str, Any]: ...
