"""Payment DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  ``build``
turns a pydantic ``ValidationError`` into ``InvalidPaymentData``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from modules.orders.dtos import describe_validation_error
from modules.payments.constants import PaymentMethod
from modules.payments.exceptions import InvalidPaymentData


class CreatePaymentDTO(BaseModel):
    """Payment declared by a customer for an order.

    ``amount`` is optional: the order total is used when omitted.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    order_id: str = Field(min_length=1, max_length=50)
    method: PaymentMethod
    reference_number: str = Field(default="", max_length=100)
    amount: Optional[Decimal] = Field(default=None, gt=0)

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("amount", mode="before")
    @classmethod
    def blank_amount(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    @classmethod
    def build(cls, data: Mapping[str, Any]) -> CreatePaymentDTO:
        if not isinstance(data, Mapping):
            raise InvalidPaymentData("Request body must be a JSON object.")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise InvalidPaymentData(describe_validation_error(exc)) from exc


class VerifyPaymentDTO(BaseModel):
    """Staff decision on a pending payment.

    The "reason required when rejecting" rule is checked by the service so
    that it is applied after the payment is known to be pending.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    status: Literal["VERIFIED", "REJECTED"]
    verification_notes: str = Field(default="", max_length=1000)
    rejected_reason: str = Field(default="", max_length=500)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("verification_notes", "rejected_reason", mode="before")
    @classmethod
    def none_is_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @classmethod
    def build(cls, data: Mapping[str, Any]) -> VerifyPaymentDTO:
        if not isinstance(data, Mapping):
            raise InvalidPaymentData("Request body must be a JSON object.")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise InvalidPaymentData(describe_validation_error(exc)) from exc


class PaymentStatsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    period: str
    total_payments: int
    payments_in_period: int
    by_status: Dict[str, int]
    by_method: Dict[str, int]
    total_amount_collected: Decimal
    average_payment_amount: Decimal
    pending_verifications: int
