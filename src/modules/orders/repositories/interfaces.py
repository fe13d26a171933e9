"""Order repository interface.

Extends ``IRepository[Order]`` with what the Order aggregate needs:
atomic creation with priced items, status history tracking and
row-level locking for state transitions.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db import models

    from modules.orders.models import Order, OrderItem, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Insert an order and its items.

        ``data`` holds the order columns plus ``lines``: the
        ``PricedLine`` objects produced by the pricing engine.

        Raises:
            DuplicateOrderId: the generated id is already taken.
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched items and status history."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Order]":
        """List orders with optional filters."""

    @abstractmethod
    def list_items(self, order_id: str) -> List[OrderItem]:
        """Line items of an order."""

    @abstractmethod
    def aggregate_stats(self, since: datetime) -> Dict[str, Any]:
        """Counts and revenue of orders created at or after *since*."""

    @abstractmethod
    def top_products(self, since: datetime, limit: int) -> List[Dict[str, Any]]:
        """Best sellers by quantity among non-cancelled orders since *since*."""

    @abstractmethod
    def top_categories(self, since: datetime, limit: int) -> List[Dict[str, Any]]:
        """Categories ranked by revenue among non-cancelled orders."""

    @abstractmethod
    def revenue_by_period(
        self, since: datetime, group_by: str
    ) -> List[Dict[str, Any]]:
        """Revenue of non-cancelled orders bucketed by day, week or month."""

    @abstractmethod
    def add_history(
        self,
        order_id: str,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        updated_by: str = "",
    ) -> OrderStatusHistory:
        """Append a row to the order's audit trail."""
