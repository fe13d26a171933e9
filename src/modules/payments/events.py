"""Domain events for the Payments bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class PaymentCreated(DomainEvent):
    order_id: str = ""
    amount: str = "0.00"
    method: str = ""


@dataclass(frozen=True)
class PaymentVerified(DomainEvent):
    order_id: str = ""
    verified_by: str = ""


@dataclass(frozen=True)
class PaymentRejected(DomainEvent):
    order_id: str = ""
    verified_by: str = ""
    reason: str = ""
