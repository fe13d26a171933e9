from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.orders.dtos import CreateOrderDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.payments.repositories.django_repository import PaymentDjangoRepository
from modules.payments.services import PaymentService
from modules.products.models import Category, Presentation, Product, UnitType
from modules.products.repositories.django_repository import ProductDjangoRepository

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _local_cache(settings):
    """Keep cache-backed features (stats, throttling) off Redis."""
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}
    }
    cache.clear()
    yield
    cache.clear()


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def guest_client():
    """Anonymous client presenting the phone used in ``checkout_payload``."""
    client = APIClient()
    client.defaults["HTTP_X_CUSTOMER_PHONE"] = "987654321"
    return client


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="staff", email="staff@freshmarket.pe", password="x", is_staff=True
    )


@pytest.fixture()
def customer_user():
    return User.objects.create_user(
        username="maria", email="maria@example.com", password="x"
    )


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture()
def customer_client(customer_user):
    client = APIClient()
    client.force_authenticate(user=customer_user)
    return client


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def category():
    return Category.objects.create(name="Frutas", sort_order=1)


@pytest.fixture()
def apple(category):
    return Product.objects.create(
        name="Apple", category=category, price=Decimal("2.50"), unit=UnitType.KG
    )


@pytest.fixture()
def milk(category):
    return Product.objects.create(
        name="Milk", category=category, price=Decimal("3.80"), unit=UnitType.LITER
    )


@pytest.fixture()
def milk_box(milk):
    return Presentation.objects.create(
        product=milk, name="Caja x 6", price=Decimal("21.00"), unit=UnitType.PACK
    )


@pytest.fixture()
def inactive_product(category):
    return Product.objects.create(
        name="Out of season", category=category, price=Decimal("9.90"), active=False
    )


# ---------------------------------------------------------------------------
# Services / orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


@pytest.fixture()
def payment_service():
    return PaymentService(
        payment_repository=PaymentDjangoRepository(),
        order_repository=OrderDjangoRepository(),
    )


@pytest.fixture()
def checkout_payload(apple, milk):
    """Apple 2.50 x 2 + Milk 3.80 x 1: subtotal 8.80, tax 1.58, total 10.38."""
    return {
        "customer_name": "María Quispe",
        "customer_phone": "987654321",
        "customer_email": "maria@example.com",
        "customer_address": "Av. Arequipa 1234, Lince",
        "payment_method": "YAPE",
        "items": [
            {"product_id": str(apple.id), "quantity": "2"},
            {"product_id": str(milk.id), "quantity": "1"},
        ],
    }


@pytest.fixture()
def place_order(order_service, checkout_payload):
    """Create an order through the service; keyword overrides patch the payload."""

    def _place(actor="guest", user=None, **overrides):
        dto = CreateOrderDTO.build({**checkout_payload, **overrides})
        return order_service.create_order(dto, actor=actor, user=user)

    return _place


@pytest.fixture()
def order(place_order):
    return place_order()
