"""Catalog DRF serializers (read side).

Write requests are validated by the Pydantic DTOs in ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Category, Presentation, Product


class CategorySerializer(serializers.ModelSerializer):
    product_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Category
        fields = [
            "id",
            "name",
            "description",
            "icon",
            "color",
            "sort_order",
            "active",
            "product_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PresentationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Presentation
        fields = ["id", "product_id", "name", "price", "unit", "sort_order"]
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    """Product with its category name and presentations."""

    category_name = serializers.CharField(source="category.name", read_only=True)
    presentations = PresentationSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "category_id",
            "category_name",
            "description",
            "price",
            "unit",
            "image",
            "active",
            "presentations",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
