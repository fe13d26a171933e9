from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.orders.constants import SYSTEM_ACTOR, PaymentMethod
from modules.orders.dtos import CreateOrderDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Category, Presentation, Product, UnitType
from modules.products.repositories.django_repository import ProductDjangoRepository

CATEGORIES = [
    ("Frutas", "Apple", "#e74c3c"),
    ("Verduras", "Carrot", "#2ecc71"),
    ("Lácteos", "Milk", "#3498db"),
    ("Carnes", "Drumstick", "#e67e22"),
    ("Pescados", "Fish", "#1abc9c"),
    ("Panadería", "Bread", "#f39c12"),
    ("Bebidas", "Wine", "#9b59b6"),
    ("Abarrotes", "ShoppingBasket", "#34495e"),
]

PRODUCTS = [
    ("Manzana Roja", "Frutas", Decimal("8.50"), UnitType.KG),
    ("Plátano", "Frutas", Decimal("3.20"), UnitType.KG),
    ("Tomate", "Verduras", Decimal("6.80"), UnitType.KG),
    ("Cebolla", "Verduras", Decimal("4.50"), UnitType.KG),
    ("Leche Entera", "Lácteos", Decimal("4.80"), UnitType.LITER),
    ("Pan Francés", "Panadería", Decimal("0.30"), UnitType.UNIT),
    ("Arroz Extra", "Abarrotes", Decimal("4.20"), UnitType.KG),
]

PRESENTATIONS = {
    "Leche Entera": [("Caja x 6", Decimal("27.00"), UnitType.PACK)],
    "Arroz Extra": [("Saco 5 kg", Decimal("19.90"), UnitType.PACK)],
}


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=20)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        categories = self._seed_categories()
        products = self._seed_products(categories)
        orders_created = self._seed_orders(products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"categories={len(categories)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser(
                "admin", email="admin@freshmarket.pe", password="admin123"
            )
            created += 1
        if not User.objects.filter(username="customer").exists():
            User.objects.create_user(
                "customer", email="customer@test.com", password="customer123"
            )
            created += 1
        return created

    def _seed_categories(self) -> dict[str, Category]:
        self.stdout.write("Creating categories...")
        categories: dict[str, Category] = {}
        for position, (name, icon, color) in enumerate(CATEGORIES, start=1):
            category, _ = Category.objects.get_or_create(
                name=name,
                defaults={"icon": icon, "color": color, "sort_order": position},
            )
            categories[name] = category
        self.stdout.write(self.style.SUCCESS("Creating categories... Done!"))
        return categories

    def _seed_products(self, categories: dict[str, Category]) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        for name, category_name, price, unit in PRODUCTS:
            product, created = Product.objects.get_or_create(
                name=name,
                defaults={
                    "category": categories[category_name],
                    "price": price,
                    "unit": unit,
                },
            )
            if created:
                for position, (label, p_price, p_unit) in enumerate(
                    PRESENTATIONS.get(name, [])
                ):
                    Presentation.objects.create(
                        product=product,
                        name=label,
                        price=p_price,
                        unit=p_unit,
                        sort_order=position,
                    )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, products: list[Product], count: int) -> int:
        self.stdout.write("Creating orders...")
        if not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no products)."))
            return 0

        service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )
        methods = list(PaymentMethod.values)

        for i in range(count):
            size = random.randint(1, min(4, len(products)))
            chosen = random.sample(products, k=size)
            dto = CreateOrderDTO.build(
                {
                    "customer_name": f"Cliente Demo {i + 1}",
                    "customer_phone": f"9{random.randint(10_000_000, 99_999_999)}",
                    "customer_address": f"Av. Ejemplo {100 + i}, Lima",
                    "payment_method": random.choice(methods),
                    "items": [
                        {
                            "product_id": product.id,
                            "quantity": str(random.choice([1, 2, "0.5", "1.25"])),
                        }
                        for product in chosen
                    ],
                    "notes": f"Seed order {i + 1}",
                }
            )
            service.create_order(dto, actor=SYSTEM_ACTOR)

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return count
