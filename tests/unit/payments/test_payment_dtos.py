from __future__ import annotations

from decimal import Decimal

import pytest

from modules.payments.constants import PaymentMethod
from modules.payments.dtos import CreatePaymentDTO, VerifyPaymentDTO
from modules.payments.exceptions import InvalidPaymentData

pytestmark = pytest.mark.unit


class TestCreatePaymentDTO:
    def test_amount_is_optional(self):
        dto = CreatePaymentDTO.build({"order_id": "ORD-1", "method": "transfer"})
        assert dto.amount is None
        assert dto.method == PaymentMethod.TRANSFER

    def test_blank_amount_means_missing(self):
        dto = CreatePaymentDTO.build(
            {"order_id": "ORD-1", "method": "CASH", "amount": ""}
        )
        assert dto.amount is None

    def test_parses_amount(self):
        dto = CreatePaymentDTO.build(
            {"order_id": "ORD-1", "method": "CASH", "amount": "10.37"}
        )
        assert dto.amount == Decimal("10.37")

    @pytest.mark.parametrize(
        "data",
        [
            {"method": "CASH"},
            {"order_id": "", "method": "CASH"},
            {"order_id": "ORD-1", "method": "CASH", "amount": "-1"},
            {"order_id": "ORD-1", "method": "CASH", "reference_number": "x" * 101},
        ],
    )
    def test_invalid(self, data):
        with pytest.raises(InvalidPaymentData):
            CreatePaymentDTO.build(data)


class TestVerifyPaymentDTO:
    def test_null_texts_become_blank(self):
        dto = VerifyPaymentDTO.build(
            {"status": "rejected", "rejected_reason": None, "verification_notes": None}
        )
        assert dto.status == "REJECTED"
        assert dto.rejected_reason == ""
        assert dto.verification_notes == ""

    def test_only_final_outcomes(self):
        with pytest.raises(InvalidPaymentData):
            VerifyPaymentDTO.build({"status": "PENDING"})
