"""Payment DRF serializers for API output."""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Order
from modules.payments.models import Payment


class PaymentOrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = ["id", "customer_name", "status", "payment_status", "total"]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    order = PaymentOrderSerializer(read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "order_id",
            "customer_name",
            "customer_phone",
            "amount",
            "method",
            "status",
            "reference_number",
            "verification_notes",
            "verified_by",
            "verified_at",
            "rejected_reason",
            "created_at",
            "updated_at",
            "order",
        ]
        read_only_fields = fields


class PaymentStatsSerializer(serializers.Serializer):
    period = serializers.CharField()
    total_payments = serializers.IntegerField()
    payments_in_period = serializers.IntegerField()
    by_status = serializers.DictField(child=serializers.IntegerField())
    by_method = serializers.DictField(child=serializers.IntegerField())
    total_amount_collected = serializers.DecimalField(max_digits=14, decimal_places=2)
    average_payment_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    pending_verifications = serializers.IntegerField()
