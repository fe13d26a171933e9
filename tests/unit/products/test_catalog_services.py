"""Unit tests for ProductService and CategoryService.

Covers:
- Product creation, partial update, soft delete and presentations
- Category uniqueness (case-insensitive) and the in-use guard
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from pydantic import ValidationError

from modules.products.dtos import (
    CreateCategoryDTO,
    CreatePresentationDTO,
    CreateProductDTO,
    UpdateCategoryDTO,
    UpdateProductDTO,
)
from modules.products.exceptions import (
    CategoryAlreadyExists,
    CategoryInUse,
    CategoryNotFound,
    ProductNotFound,
)
from modules.products.models import Product, UnitType
from modules.products.repositories.django_repository import (
    CategoryDjangoRepository,
    ProductDjangoRepository,
)
from modules.products.services import CategoryService, ProductService

pytestmark = pytest.mark.unit


@pytest.fixture()
def product_service():
    return ProductService(
        repository=ProductDjangoRepository(),
        category_repository=CategoryDjangoRepository(),
    )


@pytest.fixture()
def category_service():
    return CategoryService(repository=CategoryDjangoRepository())


class TestProductService:
    def test_create_product(self, product_service, category):
        dto = CreateProductDTO(
            name="  Palta Fuerte ",
            category_id=category.id,
            price=Decimal("7.90"),
            unit=UnitType.KG,
        )

        product = product_service.create_product(dto)

        assert product.name == "Palta Fuerte"
        assert product.category == category
        assert product.active is True

    def test_create_product_unknown_category(self, product_service):
        dto = CreateProductDTO(
            name="Palta", category_id=uuid.uuid4(), price=Decimal("7.90")
        )
        with pytest.raises(CategoryNotFound):
            product_service.create_product(dto)

    def test_price_must_be_positive(self, category):
        with pytest.raises(ValidationError):
            CreateProductDTO(name="Palta", category_id=category.id, price="0")

    def test_partial_update_keeps_other_fields(self, product_service, apple):
        updated = product_service.update_product(
            str(apple.id), UpdateProductDTO(price=Decimal("2.90"))
        )

        assert updated.price == Decimal("2.90")
        assert updated.name == "Apple"
        assert updated.unit == UnitType.KG

    def test_deactivate(self, product_service, apple):
        product_service.update_product(str(apple.id), UpdateProductDTO(active=False))
        apple.refresh_from_db()
        assert apple.active is False

    def test_soft_delete_hides_product(self, product_service, apple):
        product_service.delete_product(str(apple.id))

        with pytest.raises(ProductNotFound):
            product_service.get_product(str(apple.id))
        assert Product.objects.dead().filter(pk=apple.pk).exists()

    def test_delete_unknown_product(self, product_service):
        with pytest.raises(ProductNotFound):
            product_service.delete_product(str(uuid.uuid4()))

    def test_get_product_invalid_id(self, product_service):
        with pytest.raises(ProductNotFound):
            product_service.get_product("not-a-uuid")

    def test_add_and_list_presentations(self, product_service, milk):
        product_service.add_presentation(
            str(milk.id),
            CreatePresentationDTO(
                name="Caja x 12", price=Decimal("40.00"), unit="PAQ", sort_order=2
            ),
        )
        product_service.add_presentation(
            str(milk.id),
            CreatePresentationDTO(name="Caja x 6", price=Decimal("21.00"), unit="PAQ"),
        )

        names = [p.name for p in product_service.list_presentations(str(milk.id))]

        assert names == ["Caja x 6", "Caja x 12"]

    def test_list_filters_active(self, product_service, apple, inactive_product):
        active = product_service.list_products({"active": True})
        assert list(active) == [apple]


class TestCategoryService:
    def test_create_category(self, category_service):
        category = category_service.create_category(
            CreateCategoryDTO(name="Verduras", color="#2ecc71")
        )
        assert category.name == "Verduras"

    def test_duplicate_name_is_case_insensitive(self, category_service, category):
        with pytest.raises(CategoryAlreadyExists):
            category_service.create_category(CreateCategoryDTO(name="frutas"))

    def test_rename_to_existing_name(self, category_service, category):
        other = category_service.create_category(CreateCategoryDTO(name="Verduras"))
        with pytest.raises(CategoryAlreadyExists):
            category_service.update_category(
                str(other.id), UpdateCategoryDTO(name="FRUTAS")
            )

    def test_rename_same_name_different_case(self, category_service, category):
        updated = category_service.update_category(
            str(category.id), UpdateCategoryDTO(name="FRUTAS")
        )
        assert updated.name == "FRUTAS"

    def test_delete_in_use(self, category_service, apple):
        with pytest.raises(CategoryInUse):
            category_service.delete_category(str(apple.category_id))

    def test_delete_empty_category(self, category_service, category):
        category_service.delete_category(str(category.id))
        with pytest.raises(CategoryNotFound):
            category_service.get_category(str(category.id))

    def test_product_count_ignores_deleted_products(
        self, category_service, apple, milk
    ):
        milk.delete()
        (listed,) = category_service.list_categories()
        assert listed.product_count == 1
