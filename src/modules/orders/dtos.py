"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer and the Service layer.
DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO``: one ``(product, presentation?, quantity)`` selection.
- ``CreateOrderDTO``: checkout request (customer snapshot + items).
- ``UpdateOrderStatusDTO``: status move requested by staff.
- ``OrderStatsDTO``: dashboard figures for a period.
- ``TopProductDTO`` / ``TopCategoryDTO`` / ``RevenueReportDTO``: dashboard
  rankings and the revenue series.

``CreateOrderDTO.build`` is the entry point used by callers that hold raw
request data: it turns a pydantic ``ValidationError`` into the domain's
``InvalidOrderData`` so the service contract only ever raises domain
errors.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    field_validator,
)

from modules.orders.constants import MAX_ITEMS_PER_ORDER, OrderStatus, PaymentMethod
from modules.orders.exceptions import InvalidOrderData, InvalidStatus

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{8,14}$")


def describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "body"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """A single line of a checkout request.

    ``quantity`` is only type-checked here; positivity and precision are
    enforced by the pricing engine (``InvalidQuantity``).
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    presentation_id: Optional[UUID] = None
    quantity: Decimal


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    customer_name: str = Field(min_length=2, max_length=100)
    customer_phone: str
    customer_email: Optional[EmailStr] = None
    customer_address: str = Field(min_length=10, max_length=500)
    customer_reference: str = Field(default="", max_length=500)
    payment_method: PaymentMethod
    items: List[CreateOrderItemDTO] = Field(
        min_length=1, max_length=MAX_ITEMS_PER_ORDER
    )
    notes: str = Field(default="", max_length=1000)
    delivery_date: Optional[datetime] = None
    delivery_notes: str = Field(default="", max_length=500)

    @field_validator("customer_phone")
    @classmethod
    def phone_must_be_valid(cls, v: str) -> str:
        compact = v.replace(" ", "")
        if not PHONE_PATTERN.match(compact):
            raise ValueError("Invalid phone number format.")
        return compact

    @field_validator("customer_email", "delivery_date", mode="before")
    @classmethod
    def blank_means_missing(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("payment_method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @classmethod
    def build(cls, data: Mapping[str, Any]) -> CreateOrderDTO:
        """Validate raw request data.

        Raises:
            InvalidOrderData: any field is missing or malformed.
        """
        if not isinstance(data, Mapping):
            raise InvalidOrderData("Request body must be a JSON object.")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise InvalidOrderData(describe_validation_error(exc)) from exc


class UpdateOrderStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    notes: str = Field(default="", max_length=500)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @classmethod
    def build(cls, data: Mapping[str, Any]) -> UpdateOrderStatusDTO:
        """Raises ``InvalidStatus`` for unknown or missing status values."""
        if not isinstance(data, Mapping):
            raise InvalidStatus("Request body must be a JSON object.")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise InvalidStatus(describe_validation_error(exc)) from exc


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderStatsDTO(BaseModel):
    """Order figures for the admin dashboard."""

    model_config = ConfigDict(frozen=True)

    period: str
    total_orders: int
    revenue: Decimal
    average_order_value: Decimal
    by_status: Dict[str, int]
    by_payment_method: Dict[str, int]
    by_payment_status: Dict[str, int]


class TopProductDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    product_name: str
    category: str
    quantity_sold: Decimal
    revenue: Decimal
    order_count: int
    average_price: Decimal


class TopCategoryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    category_id: UUID
    category_name: str
    icon: str
    color: str
    revenue: Decimal
    quantity_sold: Decimal
    items_sold: int
    order_count: int
    average_order_value: Decimal


class RevenueBucketDTO(BaseModel):
    """Revenue of one day, week or month.

    ``growth_rate`` is the percentage change against the previous bucket,
    ``0`` for the first bucket or when the previous one had no revenue.
    """

    model_config = ConfigDict(frozen=True)

    period_start: date
    revenue: Decimal
    subtotal: Decimal
    tax: Decimal
    order_count: int
    average_order_value: Decimal
    growth_rate: Decimal


class RevenueReportDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    period: str
    group_by: str
    buckets: List[RevenueBucketDTO]
    total_revenue: Decimal
    total_subtotal: Decimal
    total_tax: Decimal
    total_orders: int
