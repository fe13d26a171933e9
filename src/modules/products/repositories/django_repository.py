"""Django ORM implementation of the catalog repositories.

Error handling follows the Null Object pattern: methods return ``None``
instead of raising, the Service Layer decides how to translate a missing
entity.  Soft-deleted rows are invisible to every read.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.products.models import Category, Presentation, Product
from modules.products.repositories.interfaces import (
    ICategoryRepository,
    IProductRepository,
)

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a live product by primary key.

        Returns ``None`` for non-existent, soft-deleted or invalid IDs.
        """
        try:
            return (
                Product.objects.alive()
                .select_related("category")
                .prefetch_related("presentations")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> models.QuerySet[Product]:
        """List live products with optional Django ORM look-ups.

        Examples of valid filters::

            {"active": True}
            {"category_id": "0192…"}
        """
        queryset = (
            Product.objects.alive()
            .select_related("category")
            .prefetch_related("presentations")
        )
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete a product; ``False`` when it does not exist."""
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.soft_deleted", product_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Presentations
    # ------------------------------------------------------------------

    def get_presentation(
        self, product_id: str, presentation_id: str
    ) -> Optional[Presentation]:
        try:
            return Presentation.objects.filter(
                id=presentation_id, product_id=product_id
            ).first()
        except (ValueError, ValidationError):
            return None

    def list_presentations(self, product_id: str) -> List[Presentation]:
        return list(Presentation.objects.filter(product_id=product_id))

    @transaction.atomic
    def save_presentation(self, presentation: Presentation) -> Presentation:
        presentation.save()
        logger.info(
            "presentation.saved",
            presentation_id=str(presentation.id),
            product_id=str(presentation.product_id),
        )
        return presentation


class CategoryDjangoRepository(ICategoryRepository):
    """Concrete Category repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Category]:
        try:
            return Category.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> models.QuerySet[Category]:
        queryset = Category.objects.alive().annotate(
            product_count=models.Count(
                "products", filter=models.Q(products__deleted_at__isnull=True)
            )
        )
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Category) -> Category:
        entity.save()
        logger.info("category.saved", category_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        category = self.get_by_id(id)
        if not category:
            return False
        category.delete()
        logger.info("category.soft_deleted", category_id=str(id))
        return True

    def get_by_name(self, name: str) -> Optional[Category]:
        return Category.objects.alive().filter(name__iexact=name.strip()).first()

    def has_products(self, id: str) -> bool:
        return Product.objects.alive().filter(category_id=id).exists()
