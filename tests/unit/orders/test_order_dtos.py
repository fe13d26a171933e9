from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.dtos import CreateOrderDTO, UpdateOrderStatusDTO
from modules.orders.exceptions import InvalidOrderData, InvalidStatus

pytestmark = pytest.mark.unit


def payload(**overrides):
    data = {
        "customer_name": "  Rosa Huamán ",
        "customer_phone": "987 654 321",
        "customer_address": "Jr. de la Unión 456, Lima",
        "payment_method": "plin",
        "items": [{"product_id": str(uuid4()), "quantity": "1.5"}],
    }
    data.update(overrides)
    return data


class TestCreateOrderDTO:
    def test_normalizes_fields(self):
        dto = CreateOrderDTO.build(payload())

        assert dto.customer_name == "Rosa Huamán"
        assert dto.customer_phone == "987654321"
        assert dto.payment_method == PaymentMethod.PLIN
        assert dto.items[0].quantity == Decimal("1.5")
        assert dto.customer_email is None

    def test_is_immutable(self):
        dto = CreateOrderDTO.build(payload())
        with pytest.raises(ValidationError):
            dto.customer_name = "Otro"

    def test_blank_optional_values_become_none(self):
        dto = CreateOrderDTO.build(payload(customer_email=" ", delivery_date=""))
        assert dto.customer_email is None
        assert dto.delivery_date is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"customer_name": "A"},
            {"customer_phone": "abc"},
            {"customer_address": "short"},
            {"customer_email": "not-an-email"},
            {"payment_method": "VISA"},
            {"items": []},
            {"items": [{"product_id": "nope", "quantity": "1"}]},
        ],
    )
    def test_invalid_payloads(self, overrides):
        with pytest.raises(InvalidOrderData):
            CreateOrderDTO.build(payload(**overrides))

    def test_too_many_items(self):
        items = [{"product_id": str(uuid4()), "quantity": "1"} for _ in range(51)]
        with pytest.raises(InvalidOrderData):
            CreateOrderDTO.build(payload(items=items))

    def test_error_message_names_the_field(self):
        with pytest.raises(InvalidOrderData) as exc_info:
            CreateOrderDTO.build(payload(customer_address="x"))
        assert "customer_address" in exc_info.value.message


class TestUpdateOrderStatusDTO:
    def test_accepts_lowercase(self):
        dto = UpdateOrderStatusDTO.build({"status": "shipped"})
        assert dto.status == OrderStatus.SHIPPED
        assert dto.notes == ""

    def test_unknown_status(self):
        with pytest.raises(InvalidStatus):
            UpdateOrderStatusDTO.build({"status": "LOST"})

    def test_missing_status(self):
        with pytest.raises(InvalidStatus):
            UpdateOrderStatusDTO.build({})
