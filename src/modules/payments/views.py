"""Payment API views.

Exposes the ``PaymentService`` via HTTP using a DRF ViewSet.  Declaring a
payment and reading the receiving accounts are public (guest checkout);
verification, confirmation, listing and stats are staff-only.  A single
payment is readable under the same rule as its order.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.core.responses import (
    domain_error_response,
    request_actor,
    request_payload,
    text_field,
)
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.views import ensure_can_access
from modules.payments.dtos import CreatePaymentDTO, VerifyPaymentDTO
from modules.payments.filters import PaymentFilter
from modules.payments.repositories.django_repository import PaymentDjangoRepository
from modules.payments.serializers import PaymentSerializer, PaymentStatsSerializer
from modules.payments.services import PaymentService
from shared.domain.exceptions import DomainError

PUBLIC_ACTIONS = {"create", "retrieve", "by_order", "info"}


class PaymentViewSet(GenericViewSet):
    """ViewSet for Payment operations.

    Uses ``PaymentService`` with injected repositories (DIP).
    """

    filterset_class = PaymentFilter
    search_fields = [
        "id",
        "order__id",
        "customer_name",
        "customer_phone",
        "reference_number",
    ]
    ordering_fields = ["created_at", "amount", "customer_name"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    pagination_class = StandardResultsSetPagination
    serializer_class = PaymentSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = PaymentService(
            payment_repository=PaymentDjangoRepository(),
            order_repository=OrderDjangoRepository(),
        )

    def get_permissions(self):
        if self.action in PUBLIC_ACTIONS:
            return [AllowAny()]
        return [IsAdminUser()]

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "payment_creation" if self.action == "create" else None
        return super().get_throttles()

    def get_queryset(self):
        return self._service.list_payments()

    # ------------------------------------------------------------------
    # Create / Read
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/payments/"""
        try:
            dto = CreatePaymentDTO.build(request.data)
            payment = self._service.create_payment(dto)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    def list(self, request: Request) -> Response:
        """GET /api/v1/payments/ (staff)"""
        page = self.paginate_queryset(self.filter_queryset(self.get_queryset()))
        return self.get_paginated_response(PaymentSerializer(page, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/payments/{pk}/"""
        try:
            payment = self._service.get_payment(pk)
        except DomainError as exc:
            return domain_error_response(exc)
        ensure_can_access(request, payment.order)
        return Response(PaymentSerializer(payment).data)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"by-order/(?P<order_id>[^/.]+)",
    )
    def by_order(self, request: Request, order_id: str | None = None) -> Response:
        """GET /api/v1/payments/by-order/{order_id}/"""
        try:
            payment = self._service.get_by_order(order_id)
        except DomainError as exc:
            return domain_error_response(exc)
        ensure_can_access(request, payment.order)
        return Response(PaymentSerializer(payment).data)

    @action(detail=False, methods=["get"])
    def info(self, request: Request) -> Response:
        """GET /api/v1/payments/info/?method=YAPE"""
        return Response(self._service.payment_info(request.query_params.get("method")))

    # ------------------------------------------------------------------
    # Staff workflow
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def verify(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/payments/{pk}/verify/"""
        try:
            dto = VerifyPaymentDTO.build(request.data)
            payment = self._service.verify_payment(
                pk, dto, actor=request_actor(request)
            )
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(PaymentSerializer(payment).data)

    @action(detail=True, methods=["post"])
    def confirm(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/payments/{pk}/confirm/

        The note is read from ``confirmation_notes``, falling back to ``notes``.
        """
        try:
            payload = request_payload(request)
            payment = self._service.confirm_payment(
                pk,
                notes=text_field(payload, "confirmation_notes", "notes"),
                actor=request_actor(request),
            )
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(PaymentSerializer(payment).data)

    @action(detail=False, methods=["get"])
    def stats(self, request: Request) -> Response:
        """GET /api/v1/payments/stats/?period=30d"""
        try:
            stats = self._service.get_stats(request.query_params.get("period", "30d"))
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(PaymentStatsSerializer(stats.model_dump()).data)
