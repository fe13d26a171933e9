"""Payment service layer (Use Cases).

A payment goes through three steps:

1. ``create_payment``: the customer declares a payment for an order
   (PENDING).
2. ``verify_payment``: staff accept (VERIFIED) or reject (REJECTED) it.
   Verification mirrors the outcome on ``order.payment_status`` but never
   moves the order itself.
3. ``confirm_payment``: staff confirm a verified payment, which is the
   only way an order leaves AWAITING_PAYMENT towards PREPARING.

Verification is guarded twice: the payment row is locked, and the status
write is a compare-and-swap on ``status = PENDING``, so two concurrent
verifications can never both succeed.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.conf import settings
from django.core.cache import cache
from django.db import models, transaction
from django.utils import timezone

from modules.orders.constants import (
    NOTE_PAYMENT_CONFIRMED,
    NOTE_PAYMENT_VERIFIED,
    STATS_PERIODS,
    OrderStatus,
)
from modules.orders.events import OrderStatusChanged
from modules.orders.pricing import quantize_money
from modules.payments.constants import PaymentStatus
from modules.payments.dtos import PaymentStatsDTO
from modules.payments.events import PaymentCreated, PaymentRejected, PaymentVerified
from modules.payments.exceptions import (
    AmountMismatch,
    InvalidOrderStatus,
    InvalidPaymentData,
    OrderNotFound,
    PaymentAlreadyExists,
    PaymentAlreadyProcessed,
    PaymentNotFound,
    PaymentNotVerified,
)
from modules.payments.handlers import stats_cache_key

if TYPE_CHECKING:
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.dtos import CreatePaymentDTO, VerifyPaymentDTO
    from modules.payments.models import Payment
    from modules.payments.repositories.interfaces import IPaymentRepository

logger = structlog.get_logger(__name__)

STATS_CACHE_TIMEOUT = 300


class PaymentService:
    """Application service for Payment use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        payment_repository: IPaymentRepository,
        order_repository: IOrderRepository,
        amount_tolerance: Optional[Decimal] = None,
    ) -> None:
        self._payment_repo = payment_repository
        self._order_repo = order_repository
        self._tolerance = (
            amount_tolerance
            if amount_tolerance is not None
            else Decimal(settings.PAYMENT_AMOUNT_TOLERANCE)
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_payment(self, dto: CreatePaymentDTO) -> Payment:
        """Register a PENDING payment for an order.

        The order row is locked so concurrent declarations for the same
        order serialize; the one-to-one constraint backs the pre-check.

        Raises:
            OrderNotFound: order does not exist.
            PaymentAlreadyExists: the order already has a payment.
            AmountMismatch: amount differs from the order total by more
                than the tolerance.
        """
        log = logger.bind(order_id=dto.order_id, method=dto.method)

        order = self._order_repo.get_for_update(dto.order_id)
        if not order:
            raise OrderNotFound(f"Order {dto.order_id} not found.")

        if self._payment_repo.get_by_order(order.id):
            log.warning("payment.already_exists")
            raise PaymentAlreadyExists(f"Order {order.id} already has a payment.")

        amount = quantize_money(dto.amount if dto.amount is not None else order.total)
        if abs(amount - order.total) > self._tolerance:
            log.warning(
                "payment.amount_mismatch", amount=str(amount), total=str(order.total)
            )
            raise AmountMismatch(
                f"Payment amount {amount} does not match order total {order.total}."
            )

        payment = self._payment_repo.create(
            {
                "order": order,
                "customer_name": order.customer_name,
                "customer_phone": order.customer_phone,
                "amount": amount,
                "method": dto.method,
                "reference_number": dto.reference_number,
            }
        )
        payment.add_domain_event(
            PaymentCreated(
                aggregate_id=payment.id,
                order_id=order.id,
                amount=str(amount),
                method=payment.method,
            )
        )
        self._payment_repo.record_events(payment)

        log.info("payment.created", payment_id=payment.id, amount=str(amount))
        return self._payment_repo.get_by_id(payment.id) or payment

    @transaction.atomic
    def verify_payment(
        self, payment_id: str, dto: VerifyPaymentDTO, actor: str
    ) -> Payment:
        """Accept or reject a PENDING payment.

        Raises:
            PaymentNotFound: payment does not exist.
            PaymentAlreadyProcessed: payment is no longer PENDING.
            InvalidPaymentData: rejecting without a reason.
        """
        log = logger.bind(payment_id=payment_id, outcome=dto.status, actor=actor)

        payment = self._payment_repo.get_for_update(payment_id)
        if not payment:
            raise PaymentNotFound(f"Payment {payment_id} not found.")
        if payment.status != PaymentStatus.PENDING:
            log.warning("payment.already_processed", status=payment.status)
            raise PaymentAlreadyProcessed(
                f"Payment {payment_id} is already {payment.status}."
            )

        rejecting = dto.status == PaymentStatus.REJECTED
        if rejecting and not dto.rejected_reason.strip():
            raise InvalidPaymentData(
                "A rejection reason is required when rejecting a payment."
            )

        now = timezone.now()
        changes: Dict[str, Any] = {
            "status": dto.status,
            "verification_notes": dto.verification_notes,
            "verified_by": actor,
            "verified_at": now,
            "rejected_reason": dto.rejected_reason if rejecting else "",
            "updated_at": now,
        }
        if not self._payment_repo.compare_and_set_status(
            payment_id, expected=PaymentStatus.PENDING, changes=changes
        ):
            log.warning("payment.verify_lost_race")
            raise PaymentAlreadyProcessed(
                f"Payment {payment_id} was already processed."
            )

        for field, value in changes.items():
            setattr(payment, field, value)

        order = self._order_repo.get_for_update(payment.order_id)
        order.payment_status = dto.status
        self._order_repo.save(order)

        if rejecting:
            payment.add_domain_event(
                PaymentRejected(
                    aggregate_id=payment.id,
                    order_id=order.id,
                    verified_by=actor,
                    reason=dto.rejected_reason,
                )
            )
        else:
            # audit point without a status change
            self._order_repo.add_history(
                order_id=order.id,
                status=order.status,
                notes=NOTE_PAYMENT_VERIFIED,
                old_status=order.status,
                updated_by=actor,
            )
            payment.add_domain_event(
                PaymentVerified(
                    aggregate_id=payment.id,
                    order_id=order.id,
                    verified_by=actor,
                )
            )
        self._payment_repo.record_events(payment)

        log.info("payment.verified" if not rejecting else "payment.rejected")
        return self._payment_repo.get_by_id(payment_id)

    @transaction.atomic
    def confirm_payment(
        self, payment_id: str, notes: str = "", actor: str = ""
    ) -> Payment:
        """Start preparation of the order behind a verified payment.

        Raises:
            PaymentNotFound: payment does not exist.
            PaymentNotVerified: payment is not VERIFIED.
            InvalidOrderStatus: order is not AWAITING_PAYMENT (already
                confirmed, or cancelled in the meantime).
        """
        log = logger.bind(payment_id=payment_id, actor=actor)

        payment = self._payment_repo.get_for_update(payment_id)
        if not payment:
            raise PaymentNotFound(f"Payment {payment_id} not found.")
        if payment.status != PaymentStatus.VERIFIED:
            log.warning("payment.confirm_not_verified", status=payment.status)
            raise PaymentNotVerified(
                f"Payment {payment_id} is {payment.status}; only verified "
                "payments can be confirmed."
            )

        order = self._order_repo.get_for_update(payment.order_id)
        if order.status != OrderStatus.AWAITING_PAYMENT:
            log.warning("payment.confirm_invalid_order_status", status=order.status)
            raise InvalidOrderStatus(
                f"Order {order.id} is {order.status}; expected "
                f"{OrderStatus.AWAITING_PAYMENT}."
            )

        old_status = order.status
        order.status = OrderStatus.PREPARING
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=OrderStatus.PREPARING,
                updated_by=actor,
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PREPARING,
            notes=notes or NOTE_PAYMENT_CONFIRMED,
            old_status=old_status,
            updated_by=actor,
        )

        log.info("payment.confirmed", order_id=order.id)
        return self._payment_repo.get_by_id(payment_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_payment(self, payment_id: str) -> Payment:
        payment = self._payment_repo.get_by_id(payment_id)
        if not payment:
            raise PaymentNotFound(f"Payment {payment_id} not found.")
        return payment

    def get_by_order(self, order_id: str) -> Payment:
        """Raises ``PaymentNotFound`` when the order has no payment."""
        payment = self._payment_repo.get_by_order(order_id)
        if not payment:
            raise PaymentNotFound(f"Order {order_id} has no payment.")
        return payment

    def list_payments(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> models.QuerySet[Payment]:
        return self._payment_repo.list(filters)

    def payment_info(self, method: Optional[str] = None) -> Dict[str, Any]:
        """Receiving accounts; a single method's when *method* is known."""
        accounts = settings.PAYMENT_ACCOUNTS
        if method and method.upper() in accounts:
            return {method.upper(): accounts[method.upper()]}
        return dict(accounts)

    def get_stats(self, period: str = "30d") -> PaymentStatsDTO:
        """Payment figures for *period*, cached like the order stats.

        Raises:
            InvalidPaymentData: unknown period.
        """
        if period not in STATS_PERIODS:
            raise InvalidPaymentData(
                f"Unknown period {period!r}; use one of {', '.join(STATS_PERIODS)}."
            )

        key = stats_cache_key(period)
        cached = cache.get(key)
        if cached is not None:
            return PaymentStatsDTO.model_validate(cached)

        since = timezone.now() - timedelta(days=STATS_PERIODS[period])
        figures = self._payment_repo.aggregate_stats(since)
        stats = PaymentStatsDTO(
            period=period,
            total_payments=figures["total_payments"],
            payments_in_period=figures["payments_in_period"],
            by_status=figures["by_status"],
            by_method=figures["by_method"],
            total_amount_collected=quantize_money(figures["total_amount_collected"]),
            average_payment_amount=quantize_money(
                Decimal(figures["average_payment_amount"])
            ),
            pending_verifications=figures["pending_verifications"],
        )
        cache.set(key, stats.model_dump(), STATS_CACHE_TIMEOUT)
        return stats
