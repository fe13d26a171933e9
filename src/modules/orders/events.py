"""Domain events for the Orders bounded context.

Each event carries the order id (``aggregate_id``) and the state it moved
to; money is carried as strings so payloads stay JSON-native.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created."""

    status: str = ""
    total: str = "0.00"
    item_count: int = 0
    user_id: Optional[int] = None


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an order status changes."""

    old_status: str = ""
    new_status: str = ""
    updated_by: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled."""

    old_status: str = ""
    reason: str = ""
    updated_by: str = ""
