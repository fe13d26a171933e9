"""Catalog DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer and the Service layer.
DTOs are immutable (``frozen=True``).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.products.models import UnitType


def _strip_required(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    if not v.strip():
        raise ValueError("Must not be empty.")
    return v.strip()


# ---------------------------------------------------------------------------
# Category
# ---------------------------------------------------------------------------


class CreateCategoryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    icon: str = ""
    color: str = ""
    sort_order: int = 0
    active: bool = True

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        return _strip_required(v)


class UpdateCategoryDTO(BaseModel):
    """All fields optional; only supplied fields are updated."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    sort_order: Optional[int] = None
    active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v)


# ---------------------------------------------------------------------------
# Product
# ---------------------------------------------------------------------------


class CreateProductDTO(BaseModel):
    """Immutable DTO for product creation requests.

    Validates:
    - ``name`` is a non-empty string.
    - ``price`` is a Decimal greater than zero.
    - ``unit`` is one of ``UnitType``.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    category_id: UUID
    price: Decimal
    unit: UnitType = UnitType.UNIT
    description: str = ""
    image: str = ""
    active: bool = True

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v


class UpdateProductDTO(BaseModel):
    """Immutable DTO for product update requests.

    All fields are optional; only supplied fields will be updated.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    category_id: Optional[UUID] = None
    price: Optional[Decimal] = None
    unit: Optional[UnitType] = None
    description: Optional[str] = None
    image: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v)

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v


class CreatePresentationDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    price: Decimal
    unit: str
    sort_order: int = 0

    @field_validator("name", "unit")
    @classmethod
    def text_must_not_be_empty(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v
