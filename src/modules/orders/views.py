"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are translated by ``domain_error_response``; the view
never swallows generic exceptions.

Access rules:
- Anyone may place an order (guest checkout).  An authenticated caller
  becomes the order's owner.
- An order is readable and cancellable by staff and by its owner.  A
  guest order has no owner, so the caller must present the customer's
  phone (``X-Customer-Phone`` header or ``?phone=``) alongside the id.
- Listing everything, status updates, stats and the dashboard rankings
  are staff-only.
"""

from __future__ import annotations

from django.utils.crypto import constant_time_compare
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.core.responses import (
    domain_error_response,
    request_actor,
    request_payload,
    request_user,
    text_field,
)
from modules.orders.dtos import CreateOrderDTO, UpdateOrderStatusDTO
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    OrderItemSerializer,
    OrderListSerializer,
    OrderSerializer,
    OrderStatsSerializer,
    RevenueReportSerializer,
    TopCategorySerializer,
    TopProductSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository
from shared.domain.exceptions import DomainError

PERMISSIONS_BY_ACTION = {
    "create": [AllowAny],
    "retrieve": [AllowAny],
    "items": [AllowAny],
    "cancel": [AllowAny],
    "mine": [IsAuthenticated],
    "list": [IsAuthenticated],
    "partial_update": [IsAdminUser],
    "stats": [IsAdminUser],
    "top_products": [IsAdminUser],
    "top_categories": [IsAdminUser],
    "revenue": [IsAdminUser],
}


CUSTOMER_PHONE_HEADER = "HTTP_X_CUSTOMER_PHONE"


def presented_phone(request: Request) -> str:
    raw = request.META.get(CUSTOMER_PHONE_HEADER) or request.query_params.get(
        "phone", ""
    )
    return raw.replace(" ", "")


def ensure_can_access(request: Request, order: Order) -> None:
    """Raise ``PermissionDenied`` unless the caller may see *order*.

    Staff and the owner always may.  Guest orders additionally need the
    customer phone they were placed with.
    """
    user = request_user(request)
    if user is not None and user.is_staff:
        return
    if order.user_id is not None:
        if user is None or user.pk != order.user_id:
            raise PermissionDenied("You do not have access to this order.")
        return
    phone = presented_phone(request)
    if not phone or not constant_time_compare(phone, order.customer_phone):
        raise PermissionDenied("Guest orders require the customer phone.")


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``; all ORM access goes through
    the service/repository layer.
    """

    filterset_class = OrderFilter
    search_fields = ["id", "customer_name", "customer_phone", "customer_email"]
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    pagination_class = StandardResultsSetPagination
    serializer_class = OrderSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def get_permissions(self):
        classes = PERMISSIONS_BY_ACTION.get(self.action, [IsAdminUser])
        return [permission() for permission in classes]

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scopes per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "mine", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        queryset = self._service.list_orders()
        user = request_user(self.request)
        if user is not None and not user.is_staff:
            queryset = queryset.filter(user=user)
        return queryset

    def _paginated(self, request: Request, queryset) -> Response:
        page = self.paginate_queryset(self.filter_queryset(queryset))
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        try:
            dto = CreateOrderDTO.build(request.data)
            order = self._service.create_order(
                dto,
                actor=request_actor(request),
                user=request_user(request),
            )
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Staff see every order, customers only their own.  Filtering is
        handled by ``OrderFilter``, ordering by ``OrderingFilter``.
        """
        return self._paginated(request, self.get_queryset())

    @action(detail=False, methods=["get"])
    def mine(self, request: Request) -> Response:
        """GET /api/v1/orders/mine/"""
        return self._paginated(
            request, self._service.list_orders({"user": request.user})
        )

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk)
        except DomainError as exc:
            return domain_error_response(exc)
        ensure_can_access(request, order)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["get"])
    def items(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/items/"""
        try:
            order = self._service.get_order(pk)
            ensure_can_access(request, order)
            items = self._service.list_items(pk)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(OrderItemSerializer(items, many=True).data)

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Updates order status.  Cancellations are **not** allowed via
        this endpoint; use ``POST /orders/{id}/cancel/`` instead.
        """
        try:
            dto = UpdateOrderStatusDTO.build(request.data)
            order = self._service.update_status(
                order_id=pk,
                new_status=dto.status,
                notes=dto.notes,
                actor=request_actor(request),
            )
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Cancel (dedicated action)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/"""
        try:
            ensure_can_access(request, self._service.get_order(pk))
            reason = text_field(request_payload(request), "reason", "notes")
            order = self._service.cancel_order(
                order_id=pk,
                reason=reason,
                actor=request_actor(request),
            )
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"])
    def stats(self, request: Request) -> Response:
        """GET /api/v1/orders/stats/?period=30d"""
        try:
            stats = self._service.get_stats(request.query_params.get("period", "30d"))
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(OrderStatsSerializer(stats.model_dump()).data)

    @action(detail=False, methods=["get"], url_path="stats/top-products")
    def top_products(self, request: Request) -> Response:
        """GET /api/v1/orders/stats/top-products/?period=30d&limit=10"""
        try:
            rows = self._service.top_products(
                request.query_params.get("period", "30d"),
                request.query_params.get("limit"),
            )
        except DomainError as exc:
            return domain_error_response(exc)
        data = [row.model_dump() for row in rows]
        return Response(TopProductSerializer(data, many=True).data)

    @action(detail=False, methods=["get"], url_path="stats/top-categories")
    def top_categories(self, request: Request) -> Response:
        """GET /api/v1/orders/stats/top-categories/?period=30d&limit=10"""
        try:
            rows = self._service.top_categories(
                request.query_params.get("period", "30d"),
                request.query_params.get("limit"),
            )
        except DomainError as exc:
            return domain_error_response(exc)
        data = [row.model_dump() for row in rows]
        return Response(TopCategorySerializer(data, many=True).data)

    @action(detail=False, methods=["get"], url_path="stats/revenue")
    def revenue(self, request: Request) -> Response:
        """GET /api/v1/orders/stats/revenue/?period=30d&group_by=day"""
        try:
            report = self._service.revenue_by_period(
                request.query_params.get("period", "30d"),
                request.query_params.get("group_by", "day"),
            )
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(RevenueReportSerializer(report.model_dump()).data)
