"""Unit tests for the pricing engine.

Covers:
- Line totals, subtotal, 18% tax and total with ROUND_HALF_UP.
- Fractional quantities (sold by weight / volume).
- Presentation prices and snapshots.
- Failures: unknown / inactive product, foreign presentation, bad quantity.
- Amounts that would not fit the DECIMAL(10, 2) money columns.
"""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from modules.orders.exceptions import (
    InvalidOrderData,
    InvalidQuantity,
    PresentationNotFound,
    ProductInactive,
    ProductNotFound,
)
from modules.orders.pricing import (
    PricingEngine,
    calculate_line_total,
    calculate_tax,
    normalize_quantity,
    quantize_money,
)
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit


def item(product, quantity, presentation=None):
    return SimpleNamespace(
        product_id=product.id if hasattr(product, "id") else product,
        presentation_id=presentation.id if presentation is not None else None,
        quantity=quantity,
    )


@pytest.fixture()
def engine():
    return PricingEngine(ProductDjangoRepository())


class TestMoneyHelpers:
    def test_quantize_rounds_half_up(self):
        assert quantize_money(Decimal("1.585")) == Decimal("1.59")
        assert quantize_money(Decimal("1.584")) == Decimal("1.58")

    def test_line_total_is_rounded_product(self):
        total = calculate_line_total(Decimal("2.50"), Decimal("0.333"))
        assert total == Decimal("0.83")

    def test_tax_at_eighteen_percent(self):
        assert calculate_tax(Decimal("8.80"), Decimal("0.18")) == Decimal("1.58")


class TestNormalizeQuantity:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("2", Decimal("2.000")),
            (1.5, Decimal("1.500")),
            ("0.0005", Decimal("0.001")),
        ],
    )
    def test_accepts_positive_numbers(self, raw, expected):
        assert normalize_quantity(raw) == expected

    @pytest.mark.parametrize(
        "raw", [0, -1, "0.0004", "abc", None, True, "NaN", "Infinity", "10000000"]
    )
    def test_rejects_invalid_values(self, raw):
        with pytest.raises(InvalidQuantity):
            normalize_quantity(raw)


class TestPricingEngine:
    def test_reference_basket(self, engine, apple, milk):
        result = engine.price([item(apple, 2), item(milk, 1)])

        totals = [line.total for line in result.lines]
        assert totals == [Decimal("5.00"), Decimal("3.80")]
        assert result.subtotal == Decimal("8.80")
        assert result.tax == Decimal("1.58")
        assert result.total == Decimal("10.38")

    def test_total_is_subtotal_plus_tax(self, engine, apple, milk):
        result = engine.price([item(apple, "1.337"), item(milk, "0.75")])
        assert result.total == result.subtotal + result.tax

    def test_fractional_quantity(self, engine, apple):
        result = engine.price([item(apple, "0.5")])

        line = result.lines[0]
        assert line.quantity == Decimal("0.500")
        assert line.total == Decimal("1.25")
        assert result.tax == Decimal("0.23")

    def test_lines_snapshot_product_name_and_price(self, engine, apple):
        line = engine.price([item(apple, 1)]).lines[0]

        assert line.product_name == "Apple"
        assert line.price == Decimal("2.50")
        assert line.presentation_info is None

    def test_presentation_price_replaces_product_price(self, engine, milk, milk_box):
        line = engine.price([item(milk, 2, milk_box)]).lines[0]

        assert line.price == Decimal("21.00")
        assert line.total == Decimal("42.00")
        assert line.presentation_info == {"name": "Caja x 6", "unit": "PAQ"}

    def test_unknown_product(self, engine):
        with pytest.raises(ProductNotFound):
            engine.price([item(uuid4(), 1)])

    def test_soft_deleted_product_is_not_found(self, engine, apple):
        apple.delete()
        with pytest.raises(ProductNotFound):
            engine.price([item(apple, 1)])

    def test_inactive_product(self, engine, inactive_product):
        with pytest.raises(ProductInactive):
            engine.price([item(inactive_product, 1)])

    def test_presentation_of_another_product(self, engine, apple, milk_box):
        with pytest.raises(PresentationNotFound):
            engine.price([item(apple, 1, milk_box)])

    def test_invalid_quantity_stops_pricing(self, engine, apple):
        with pytest.raises(InvalidQuantity):
            engine.price([item(apple, 0)])

    def test_custom_tax_rate(self, apple):
        engine = PricingEngine(ProductDjangoRepository(), tax_rate=Decimal("0.10"))
        result = engine.price([item(apple, 4)])
        assert result.tax == Decimal("1.00")
        assert result.total == Decimal("11.00")


class TestMoneyCeiling:
    def test_line_total_too_large(self, engine, milk, milk_box):
        # 21.00 x 9,999,999 = 209,999,979.00
        with pytest.raises(InvalidQuantity, match="exceeds"):
            engine.price([item(milk, "9999999", milk_box)])

    def test_order_total_too_large(self, engine, milk, milk_box):
        # line 94,500,000.00 fits, but with 18% tax the total does not
        with pytest.raises(InvalidOrderData, match="exceeds"):
            engine.price([item(milk, "4500000", milk_box)])

    def test_large_order_within_limit(self, engine, milk, milk_box):
        result = engine.price([item(milk, "4000000", milk_box)])

        assert result.subtotal == Decimal("84000000.00")
        assert result.total == Decimal("99120000.00")
