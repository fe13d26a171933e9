"""Catalog models: Category, Product and Presentation.

Business rules implemented:
- Category names are unique.
- Product and presentation prices must be greater than zero.
- An inactive product cannot be ordered (enforced by the pricing engine).
- Soft delete via ``deleted_at`` for categories and products; order lines
  keep pointing at soft-deleted products (``PROTECT`` on hard delete).
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel

logger = structlog.get_logger(__name__)


class UnitType(models.TextChoices):
    KG = "KG", "Kilogramo"
    UNIT = "U", "Unidad"
    LITER = "L", "Litro"
    GRAM = "G", "Gramo"
    PACK = "PAQ", "Paquete"
    PRESENTATION = "PRESENTATION", "Por presentación"


class Category(SoftDeleteModel):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, default="")
    icon = models.CharField(max_length=50, blank=True, default="")
    color = models.CharField(max_length=20, blank=True, default="")
    sort_order = models.PositiveIntegerField(default=0)
    active = models.BooleanField(default=True)

    class Meta:
        db_table = "categories"
        ordering = ["sort_order", "name"]
        verbose_name_plural = "categories"

    def __str__(self) -> str:
        return self.name


class Product(SoftDeleteModel):
    """Sellable item priced per ``unit``.

    When ``unit`` is ``PRESENTATION`` the product is normally sold through
    one of its presentations, each with its own price.
    """

    name = models.CharField(max_length=255)
    category = models.ForeignKey(
        "products.Category",
        on_delete=models.PROTECT,
        related_name="products",
    )
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    unit = models.CharField(
        max_length=20,
        choices=UnitType.choices,
        default=UnitType.UNIT,
    )
    image = models.CharField(max_length=500, blank=True, default="")
    active = models.BooleanField(default=True)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["active"], name="products_active_idx"),
            models.Index(fields=["category"], name="products_category_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(price__gt=0),
                name="products_price_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                name=self.name,
            )

    def __str__(self) -> str:
        return f"{self.name} ({self.unit})"


class Presentation(BaseModel):
    """Alternate packaging of a product, e.g. "Bolsa 5 kg", with its own price."""

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="presentations",
    )
    name = models.CharField(max_length=100)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    unit = models.CharField(max_length=50)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "presentations"
        ordering = ["sort_order", "name"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(price__gt=0),
                name="presentations_price_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product.name} - {self.name}"
