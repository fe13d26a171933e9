"""Order DRF serializers for API output.

Input is validated by the Pydantic DTOs in ``dtos.py``; these
serializers only shape what the API returns.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from rest_framework import serializers

from modules.orders.models import Order, OrderItem, OrderStatusHistory


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items (snapshot columns only)."""

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "presentation_id",
            "product_name",
            "quantity",
            "price",
            "total",
            "presentation_info",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "status",
            "notes",
            "updated_by",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items, history and payment."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)
    payment = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "user_id",
            "customer_name",
            "customer_phone",
            "customer_email",
            "customer_address",
            "customer_reference",
            "payment_method",
            "status",
            "payment_status",
            "subtotal",
            "tax",
            "total",
            "notes",
            "delivery_date",
            "delivery_notes",
            "created_at",
            "updated_at",
            "items",
            "status_history",
            "payment",
        ]
        read_only_fields = fields

    def get_payment(self, obj: Order) -> Optional[Dict[str, Any]]:
        payment = getattr(obj, "payment", None)
        if payment is None:
            return None
        return {
            "id": payment.id,
            "status": payment.status,
            "amount": str(payment.amount),
        }


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "customer_name",
            "customer_phone",
            "payment_method",
            "status",
            "payment_status",
            "total",
            "item_count",
            "created_at",
        ]
        read_only_fields = fields

    def get_item_count(self, obj: Order) -> int:
        return len(obj.items.all())


class OrderStatsSerializer(serializers.Serializer):
    period = serializers.CharField()
    total_orders = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    average_order_value = serializers.DecimalField(max_digits=14, decimal_places=2)
    by_status = serializers.DictField(child=serializers.IntegerField())
    by_payment_method = serializers.DictField(child=serializers.IntegerField())
    by_payment_status = serializers.DictField(child=serializers.IntegerField())


class TopProductSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    product_name = serializers.CharField()
    category = serializers.CharField()
    quantity_sold = serializers.DecimalField(max_digits=14, decimal_places=3)
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    order_count = serializers.IntegerField()
    average_price = serializers.DecimalField(max_digits=14, decimal_places=2)


class TopCategorySerializer(serializers.Serializer):
    category_id = serializers.UUIDField()
    category_name = serializers.CharField()
    icon = serializers.CharField()
    color = serializers.CharField()
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    quantity_sold = serializers.DecimalField(max_digits=14, decimal_places=3)
    items_sold = serializers.IntegerField()
    order_count = serializers.IntegerField()
    average_order_value = serializers.DecimalField(max_digits=14, decimal_places=2)


class RevenueBucketSerializer(serializers.Serializer):
    period_start = serializers.DateField()
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2)
    tax = serializers.DecimalField(max_digits=14, decimal_places=2)
    order_count = serializers.IntegerField()
    average_order_value = serializers.DecimalField(max_digits=14, decimal_places=2)
    growth_rate = serializers.DecimalField(max_digits=16, decimal_places=2)


class RevenueReportSerializer(serializers.Serializer):
    period = serializers.CharField()
    group_by = serializers.CharField()
    buckets = RevenueBucketSerializer(many=True)
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_subtotal = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_tax = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_orders = serializers.IntegerField()
