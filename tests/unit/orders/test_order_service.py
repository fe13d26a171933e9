"""Unit tests for OrderService.

Covers:
- Order creation: totals, item snapshots, initial history, outbox event.
- Atomicity: a failing item leaves no order, item, history or event.
- Cancellation rules and the single history row per transition.
- Queries and cached stats.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from django.core.cache import cache
from freezegun import freeze_time

from modules.core.models import OutboxEvent
from modules.orders.constants import (
    NOTE_ORDER_CANCELLED,
    NOTE_ORDER_CREATED,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.exceptions import (
    InvalidOrderData,
    OrderAlreadyCancelled,
    OrderAlreadyDelivered,
    OrderNotFound,
    ProductInactive,
    ProductNotFound,
)
from modules.orders.handlers import stats_cache_key
from modules.orders.models import Order, OrderItem, OrderStatusHistory

pytestmark = pytest.mark.unit


class TestCreateOrder:
    def test_creates_order_with_server_side_totals(self, order):
        assert order.id.startswith("ORD-")
        assert order.status == OrderStatus.AWAITING_PAYMENT
        assert order.payment_status == PaymentStatus.PENDING
        assert order.subtotal == Decimal("8.80")
        assert order.tax == Decimal("1.58")
        assert order.total == Decimal("10.38")

    def test_items_snapshot_catalog(self, order, apple):
        items = {item.product_name: item for item in order.items.all()}

        assert set(items) == {"Apple", "Milk"}
        assert items["Apple"].price == Decimal("2.50")
        assert items["Apple"].quantity == Decimal("2.000")
        assert items["Apple"].total == Decimal("5.00")

        apple.price = Decimal("9.99")
        apple.save()
        items["Apple"].refresh_from_db()
        assert items["Apple"].price == Decimal("2.50")

    def test_records_initial_history(self, place_order):
        order = place_order(actor="maria@example.com")

        history = list(order.status_history.all())
        assert len(history) == 1
        assert history[0].old_status is None
        assert history[0].status == OrderStatus.AWAITING_PAYMENT
        assert history[0].notes == NOTE_ORDER_CREATED
        assert history[0].updated_by == "maria@example.com"

    def test_records_order_created_event(self, order):
        event = OutboxEvent.objects.get(aggregate_id=order.id)

        assert event.event_type == "OrderCreated"
        assert event.topic == "orders"
        assert event.payload["total"] == "10.38"
        assert event.payload["item_count"] == 2

    def test_links_authenticated_user(self, place_order, customer_user):
        order = place_order(user=customer_user)
        assert order.user == customer_user

    def test_guest_order_has_no_user(self, order):
        assert order.user is None

    def test_blank_email_is_stored_empty(self, place_order):
        order = place_order(customer_email="")
        assert order.customer_email == ""

    def test_inactive_product_rolls_back_everything(
        self, place_order, apple, inactive_product
    ):
        items = [
            {"product_id": str(apple.id), "quantity": "1"},
            {"product_id": str(inactive_product.id), "quantity": "1"},
        ]
        with pytest.raises(ProductInactive):
            place_order(items=items)

        assert Order.objects.count() == 0
        assert OrderItem.objects.count() == 0
        assert OrderStatusHistory.objects.count() == 0
        assert OutboxEvent.objects.count() == 0

    def test_unknown_product(self, place_order):
        with pytest.raises(ProductNotFound):
            place_order(items=[{"product_id": str(uuid4()), "quantity": "1"}])
        assert Order.objects.count() == 0

    def test_invalid_payload_is_invalid_order_data(self, place_order):
        with pytest.raises(InvalidOrderData):
            place_order(items=[])
        with pytest.raises(InvalidOrderData):
            place_order(payment_method="BITCOIN")
        with pytest.raises(InvalidOrderData):
            place_order(customer_phone="12")


class TestCancelOrder:
    def test_cancel_awaiting_payment(self, order_service, order):
        cancelled = order_service.cancel_order(order.id, actor="guest")

        assert cancelled.status == OrderStatus.CANCELLED
        latest = cancelled.status_history.first()
        assert latest.old_status == OrderStatus.AWAITING_PAYMENT
        assert latest.status == OrderStatus.CANCELLED
        assert latest.notes == NOTE_ORDER_CANCELLED
        assert cancelled.status_history.count() == 2

    def test_cancel_keeps_reason(self, order_service, order):
        cancelled = order_service.cancel_order(order.id, reason="Cliente no responde")
        assert cancelled.status_history.first().notes == "Cliente no responde"

    def test_cancel_shipped_order_is_allowed(self, order_service, order):
        Order.objects.filter(id=order.id).update(status=OrderStatus.SHIPPED)

        cancelled = order_service.cancel_order(order.id)

        assert cancelled.status == OrderStatus.CANCELLED

    def test_cancel_twice(self, order_service, order):
        order_service.cancel_order(order.id)

        with pytest.raises(OrderAlreadyCancelled):
            order_service.cancel_order(order.id)
        assert OrderStatusHistory.objects.filter(order=order).count() == 2

    def test_cancel_delivered(self, order_service, order):
        Order.objects.filter(id=order.id).update(status=OrderStatus.DELIVERED)

        with pytest.raises(OrderAlreadyDelivered):
            order_service.cancel_order(order.id)

    def test_cancel_unknown(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.cancel_order("ORD-0")

    def test_cancel_records_event(self, order_service, order):
        order_service.cancel_order(order.id, reason="duplicado", actor="staff")

        event = OutboxEvent.objects.get(
            aggregate_id=order.id, event_type="OrderCancelled"
        )
        assert event.payload["old_status"] == OrderStatus.AWAITING_PAYMENT
        assert event.payload["reason"] == "duplicado"


class TestQueries:
    def test_get_order_unknown(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.get_order("ORD-missing")

    def test_list_items(self, order_service, order):
        assert len(order_service.list_items(order.id)) == 2

    def test_list_items_unknown_order(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.list_items("ORD-missing")

    def test_list_orders_with_filters(self, order_service, place_order):
        first = place_order()
        place_order(payment_method="CASH")

        yape = order_service.list_orders({"payment_method": "YAPE"})
        assert list(yape.values_list("id", flat=True)) == [first.id]


class TestStats:
    def test_stats_exclude_cancelled_revenue(self, order_service, place_order):
        place_order()
        cancelled = place_order()
        order_service.cancel_order(cancelled.id)

        stats = order_service.get_stats("30d")

        assert stats.total_orders == 2
        assert stats.revenue == Decimal("10.38")
        assert stats.average_order_value == Decimal("10.38")
        assert stats.by_status == {
            OrderStatus.AWAITING_PAYMENT: 1,
            OrderStatus.CANCELLED: 1,
        }
        assert stats.by_payment_method == {"YAPE": 2}

    def test_stats_are_cached(
        self, order_service, place_order, django_assert_num_queries
    ):
        place_order()
        order_service.get_stats("7d")

        with django_assert_num_queries(0):
            cached = order_service.get_stats("7d")
        assert cached.total_orders == 1

    def test_stats_cache_key(self, order_service):
        order_service.get_stats("90d")
        assert cache.get(stats_cache_key("90d")) is not None

    def test_committed_write_drops_cached_stats(
        self, order_service, place_order, django_capture_on_commit_callbacks
    ):
        assert order_service.get_stats("7d").total_orders == 0

        with django_capture_on_commit_callbacks(execute=True):
            place_order()

        assert cache.get(stats_cache_key("7d")) is None
        assert order_service.get_stats("7d").total_orders == 1

    def test_unknown_period(self, order_service):
        with pytest.raises(InvalidOrderData):
            order_service.get_stats("2w")

    def test_period_window(self, order_service, place_order):
        with freeze_time("2026-01-01 12:00:00"):
            place_order()
        with freeze_time("2026-02-20 12:00:00"):
            place_order()
            week = order_service.get_stats("7d")
            quarter = order_service.get_stats("90d")

        assert week.total_orders == 1
        assert quarter.total_orders == 2
