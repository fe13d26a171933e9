"""Catalog repository interfaces.

``IProductRepository`` is also the catalog port consumed by the order
pricing engine: it only needs ``get_by_id`` and ``get_presentation``.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db import models

    from modules.products.models import Category, Presentation, Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """List live products with optional filters."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Soft-delete a product."""

    @abstractmethod
    def get_presentation(
        self, product_id: str, presentation_id: str
    ) -> Optional[Presentation]:
        """Presentation *presentation_id* if it belongs to *product_id*."""

    @abstractmethod
    def list_presentations(self, product_id: str) -> List[Presentation]:
        """Presentations of a product in display order."""

    @abstractmethod
    def save_presentation(self, presentation: Presentation) -> Presentation:
        """Persist a presentation."""


class ICategoryRepository(IRepository["Category"]):
    """Repository contract for categories."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Category]":
        """List live categories."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Soft-delete a category."""

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[Category]:
        """Case-insensitive look-up by name."""

    @abstractmethod
    def has_products(self, id: str) -> bool:
        """Whether live products still reference the category."""
