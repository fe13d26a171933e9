"""Catalog service layer (Use Cases).

Orchestrates business logic for categories, products and presentations,
delegating persistence to the injected repositories.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.products.exceptions import (
    CategoryAlreadyExists,
    CategoryInUse,
    CategoryNotFound,
    ProductNotFound,
)
from modules.products.models import Category, Presentation, Product

if TYPE_CHECKING:
    from modules.products.dtos import (
        CreateCategoryDTO,
        CreatePresentationDTO,
        CreateProductDTO,
        UpdateCategoryDTO,
        UpdateProductDTO,
    )
    from modules.products.repositories.interfaces import (
        ICategoryRepository,
        IProductRepository,
    )

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for Product use-cases.

    Receives its repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        repository: IProductRepository,
        category_repository: ICategoryRepository,
    ) -> None:
        self._repo = repository
        self._category_repo = category_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        """Create a product inside an existing category.

        Raises:
            CategoryNotFound: the category does not exist.
        """
        category = self._require_category(str(dto.category_id))
        product = Product(
            name=dto.name,
            category=category,
            price=dto.price,
            unit=dto.unit,
            description=dto.description,
            image=dto.image,
            active=dto.active,
        )
        product = self._repo.save(product)
        logger.info("product.created", product_id=str(product.id))
        return product

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        """Update an existing product with the supplied fields.

        Raises:
            ProductNotFound: the product does not exist.
            CategoryNotFound: the new category does not exist.
        """
        product = self.get_product(id)
        log = logger.bind(product_id=str(id))

        if dto.category_id is not None:
            product.category = self._require_category(str(dto.category_id))

        for field in ("name", "price", "unit", "description", "image", "active"):
            value = getattr(dto, field)
            if value is not None:
                setattr(product, field, value)

        product = self._repo.save(product)
        log.info("product.updated")
        return product

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        """Soft-delete a product; past order lines keep their snapshot."""
        if not self._repo.delete(id):
            raise ProductNotFound(f"Product {id} not found.")

    @transaction.atomic
    def add_presentation(
        self, product_id: str, dto: CreatePresentationDTO
    ) -> Presentation:
        product = self.get_product(product_id)
        presentation = Presentation(
            product=product,
            name=dto.name,
            price=dto.price,
            unit=dto.unit,
            sort_order=dto.sort_order,
        )
        return self._repo.save_presentation(presentation)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, filters: Optional[Dict[str, Any]] = None):
        """Return live products, optionally filtered."""
        return self._repo.list(filters)

    def get_product(self, id: str) -> Product:
        """Retrieve a single product by ID.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    def list_presentations(self, product_id: str) -> List[Presentation]:
        self.get_product(product_id)
        return self._repo.list_presentations(product_id)

    def _require_category(self, category_id: str) -> Category:
        category = self._category_repo.get_by_id(category_id)
        if not category:
            raise CategoryNotFound(f"Category {category_id} not found.")
        return category


class CategoryService:
    """Application service for Category use-cases."""

    def __init__(self, repository: ICategoryRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def create_category(self, dto: CreateCategoryDTO) -> Category:
        """Raises ``CategoryAlreadyExists`` when the name is taken."""
        log = logger.bind(name=dto.name)
        if self._repo.get_by_name(dto.name):
            log.warning("category.duplicate_name")
            raise CategoryAlreadyExists(f"Category '{dto.name}' already exists.")

        category = Category(
            name=dto.name,
            description=dto.description,
            icon=dto.icon,
            color=dto.color,
            sort_order=dto.sort_order,
            active=dto.active,
        )
        category = self._repo.save(category)
        log.info("category.created", category_id=str(category.id))
        return category

    @transaction.atomic
    def update_category(self, id: str, dto: UpdateCategoryDTO) -> Category:
        category = self.get_category(id)

        if dto.name is not None and dto.name.lower() != category.name.lower():
            if self._repo.get_by_name(dto.name):
                raise CategoryAlreadyExists(f"Category '{dto.name}' already exists.")

        for field in ("name", "description", "icon", "color", "sort_order", "active"):
            value = getattr(dto, field)
            if value is not None:
                setattr(category, field, value)

        category = self._repo.save(category)
        logger.info("category.updated", category_id=str(id))
        return category

    @transaction.atomic
    def delete_category(self, id: str) -> None:
        """Raises ``CategoryInUse`` while live products reference it."""
        self.get_category(id)
        if self._repo.has_products(id):
            raise CategoryInUse("Category has products; move or delete them first.")
        self._repo.delete(id)

    def get_category(self, id: str) -> Category:
        category = self._repo.get_by_id(id)
        if not category:
            raise CategoryNotFound(f"Category {id} not found.")
        return category

    def list_categories(self, filters: Optional[Dict[str, Any]] = None):
        return self._repo.list(filters)
