"""Pricing engine for order line items.

Given ``(product, optional presentation, quantity)`` selections it
resolves unit prices from the catalog, validates them and computes::

    line total = round(unit price * quantity, 2)
    subtotal   = sum(line totals)
    tax        = round(subtotal * TAX_RATE, 2)
    total      = subtotal + tax

Rounding is ROUND_HALF_UP at every step.  The engine has no side
effects: it only reads the catalog through ``IProductRepository``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Sequence
from uuid import UUID

from modules.orders.constants import (
    MAX_AMOUNT,
    MAX_QUANTITY,
    MONEY_QUANTUM,
    QUANTITY_QUANTUM,
    TAX_RATE,
)
from modules.orders.exceptions import (
    InvalidOrderData,
    InvalidQuantity,
    PresentationNotFound,
    ProductInactive,
    ProductNotFound,
)

if TYPE_CHECKING:
    from modules.products.repositories.interfaces import IProductRepository


class ItemSelection(Protocol):
    product_id: UUID
    presentation_id: Optional[UUID]
    quantity: Any


def quantize_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def calculate_line_total(price: Decimal, quantity: Decimal) -> Decimal:
    return quantize_money(Decimal(price) * Decimal(quantity))


def calculate_tax(subtotal: Decimal, rate: Decimal = TAX_RATE) -> Decimal:
    return quantize_money(Decimal(subtotal) * Decimal(rate))


def normalize_quantity(raw: Any) -> Decimal:
    """Coerce *raw* into a positive quantity with 3 decimal places.

    Raises:
        InvalidQuantity: not a number, not finite, zero/negative or too big.
    """
    if isinstance(raw, bool) or raw is None:
        raise InvalidQuantity(f"Invalid quantity: {raw!r}.")
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        raise InvalidQuantity(f"Invalid quantity: {raw!r}.") from None
    if not value.is_finite():
        raise InvalidQuantity(f"Invalid quantity: {raw!r}.")
    value = value.quantize(QUANTITY_QUANTUM, rounding=ROUND_HALF_UP)
    if value <= 0 or value > MAX_QUANTITY:
        raise InvalidQuantity(f"Quantity must be between 0.001 and {MAX_QUANTITY}.")
    return value


@dataclass(frozen=True)
class PricedLine:
    product_id: UUID
    presentation_id: Optional[UUID]
    product_name: str
    quantity: Decimal
    price: Decimal
    total: Decimal
    presentation_info: Optional[Dict[str, str]] = None


@dataclass(frozen=True)
class PricingResult:
    lines: List[PricedLine]
    subtotal: Decimal
    tax: Decimal
    total: Decimal


class PricingEngine:
    """Prices a list of item selections against the live catalog."""

    def __init__(
        self,
        product_repository: IProductRepository,
        tax_rate: Decimal = TAX_RATE,
    ) -> None:
        self._products = product_repository
        self._tax_rate = Decimal(tax_rate)

    def price(self, items: Sequence[ItemSelection]) -> PricingResult:
        """Price *items* in order.

        Raises:
            ProductNotFound: a product does not exist (or was deleted).
            ProductInactive: a product is not active.
            PresentationNotFound: the presentation is not one of the product's.
            InvalidQuantity: a quantity is not a positive decimal, or its
                line total does not fit a money column.
            InvalidOrderData: the order total does not fit a money column.
        """
        lines = [self.price_line(item) for item in items]
        subtotal = quantize_money(sum((line.total for line in lines), Decimal("0")))
        tax = calculate_tax(subtotal, self._tax_rate)
        total = subtotal + tax
        if total > MAX_AMOUNT:
            raise InvalidOrderData(f"Order total {total} exceeds {MAX_AMOUNT}.")
        return PricingResult(lines=lines, subtotal=subtotal, tax=tax, total=total)

    def price_line(self, item: ItemSelection) -> PricedLine:
        quantity = normalize_quantity(item.quantity)

        product = self._products.get_by_id(str(item.product_id))
        if product is None:
            raise ProductNotFound(f"Product {item.product_id} not found.")
        if not product.active:
            raise ProductInactive(f"Product '{product.name}' is not available.")

        price = product.price
        presentation_info = None
        if item.presentation_id is not None:
            presentation = self._products.get_presentation(
                str(product.id), str(item.presentation_id)
            )
            if presentation is None:
                raise PresentationNotFound(
                    f"Presentation {item.presentation_id} not found "
                    f"for product {product.id}."
                )
            price = presentation.price
            presentation_info = {
                "name": presentation.name,
                "unit": presentation.unit,
            }

        total = calculate_line_total(price, quantity)
        if total > MAX_AMOUNT:
            raise InvalidQuantity(
                f"Line total for '{product.name}' exceeds {MAX_AMOUNT}; "
                "reduce the quantity."
            )
        return PricedLine(
            product_id=product.id,
            presentation_id=item.presentation_id,
            product_name=product.name,
            quantity=quantity,
            price=Decimal(price),
            total=total,
            presentation_info=presentation_info,
        )
