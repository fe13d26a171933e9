"""Catalog API views.

Reads are public so guests can browse and price a cart; writes are
restricted to staff.  Domain exceptions are translated by
``domain_error_response``; the views never swallow generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.core.responses import domain_error_response, validation_error_response
from modules.products.dtos import (
    CreateCategoryDTO,
    CreatePresentationDTO,
    CreateProductDTO,
    UpdateCategoryDTO,
    UpdateProductDTO,
)
from modules.products.filters import CategoryFilter, ProductFilter
from modules.products.repositories.django_repository import (
    CategoryDjangoRepository,
    ProductDjangoRepository,
)
from modules.products.serializers import (
    CategorySerializer,
    PresentationSerializer,
    ProductSerializer,
)
from modules.products.services import CategoryService, ProductService
from shared.domain.exceptions import DomainError

PUBLIC_ACTIONS = {"list", "retrieve", "presentations"}


class CatalogPermissionMixin:
    def get_permissions(self):
        if self.action in PUBLIC_ACTIONS and self.request.method == "GET":
            return [AllowAny()]
        return [IsAdminUser()]


class ProductViewSet(CatalogPermissionMixin, ListModelMixin, GenericViewSet):
    """ViewSet for Product operations.

    Uses ``ProductService`` with the Django repositories (DIP).
    Does **not** extend ``ModelViewSet``; all ORM access goes through
    the service/repository layer.
    """

    filterset_class = ProductFilter
    search_fields = ["name", "description", "category__name"]
    ordering_fields = ["name", "price", "created_at"]
    ordering = ["name", "id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    pagination_class = StandardResultsSetPagination
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(
            repository=ProductDjangoRepository(),
            category_repository=CategoryDjangoRepository(),
        )

    def get_queryset(self):
        return self._service.list_products()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        try:
            product = self._service.get_product(pk)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(ProductSerializer(product).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        try:
            dto = CreateProductDTO.model_validate(request.data)
        except PydanticValidationError as exc:
            return validation_error_response(exc)

        try:
            product = self._service.create_product(dto)
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/"""
        try:
            dto = UpdateProductDTO.model_validate(request.data)
        except PydanticValidationError as exc:
            return validation_error_response(exc)

        try:
            product = self._service.update_product(pk, dto)
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(ProductSerializer(product).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/ (soft delete)"""
        try:
            self._service.delete_product(pk)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get", "post"])
    def presentations(self, request: Request, pk: str | None = None) -> Response:
        """GET|POST /api/v1/products/{pk}/presentations/"""
        if request.method == "GET":
            try:
                presentations = self._service.list_presentations(pk)
            except DomainError as exc:
                return domain_error_response(exc)
            return Response(PresentationSerializer(presentations, many=True).data)

        try:
            dto = CreatePresentationDTO.model_validate(request.data)
        except PydanticValidationError as exc:
            return validation_error_response(exc)

        try:
            presentation = self._service.add_presentation(pk, dto)
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(
            PresentationSerializer(presentation).data, status=status.HTTP_201_CREATED
        )


class CategoryViewSet(CatalogPermissionMixin, ListModelMixin, GenericViewSet):
    filterset_class = CategoryFilter
    search_fields = ["name", "description"]
    ordering_fields = ["sort_order", "name"]
    ordering = ["sort_order", "name"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    pagination_class = StandardResultsSetPagination
    serializer_class = CategorySerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CategoryService(repository=CategoryDjangoRepository())

    def get_queryset(self):
        return self._service.list_categories()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        try:
            category = self._service.get_category(pk)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(CategorySerializer(category).data)

    def create(self, request: Request) -> Response:
        try:
            dto = CreateCategoryDTO.model_validate(request.data)
        except PydanticValidationError as exc:
            return validation_error_response(exc)

        try:
            category = self._service.create_category(dto)
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(
            CategorySerializer(category).data, status=status.HTTP_201_CREATED
        )

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        try:
            dto = UpdateCategoryDTO.model_validate(request.data)
        except PydanticValidationError as exc:
            return validation_error_response(exc)

        try:
            category = self._service.update_category(pk, dto)
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(CategorySerializer(category).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        try:
            self._service.delete_category(pk)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)
