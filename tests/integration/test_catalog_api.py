"""Integration tests for the catalog endpoints (categories, products)."""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration

PRODUCTS_URL = "/api/v1/products/"
CATEGORIES_URL = "/api/v1/categories/"


class TestPublicCatalog:
    def test_list_products(self, api_client, apple, milk, milk_box):
        response = api_client.get(PRODUCTS_URL)

        assert response.status_code == 200
        rows = {row["name"]: row for row in response.json()["results"]}
        assert set(rows) == {"Apple", "Milk"}
        assert rows["Milk"]["presentations"][0]["name"] == "Caja x 6"
        assert rows["Apple"]["category_name"] == "Frutas"

    def test_filter_active(self, api_client, apple, inactive_product):
        response = api_client.get(PRODUCTS_URL, {"active": "true"})
        assert [row["name"] for row in response.json()["results"]] == ["Apple"]

    def test_search(self, api_client, apple, milk):
        response = api_client.get(PRODUCTS_URL, {"search": "mil"})
        assert [row["name"] for row in response.json()["results"]] == ["Milk"]

    def test_retrieve_unknown(self, api_client):
        response = api_client.get(f"{PRODUCTS_URL}not-a-uuid/")

        assert response.status_code == 404
        assert response.json()["code"] == "PRODUCT_NOT_FOUND"

    def test_presentations(self, api_client, milk, milk_box):
        response = api_client.get(f"{PRODUCTS_URL}{milk.id}/presentations/")

        assert response.status_code == 200
        assert response.json()[0]["price"] == "21.00"

    def test_categories_with_product_count(self, api_client, apple, milk):
        response = api_client.get(CATEGORIES_URL)

        (row,) = response.json()["results"]
        assert row["name"] == "Frutas"
        assert row["product_count"] == 2


class TestCatalogAdministration:
    def test_guest_cannot_create(self, api_client, category):
        response = api_client.post(
            PRODUCTS_URL,
            {"name": "Palta", "category_id": str(category.id), "price": "7.90"},
            format="json",
        )
        assert response.status_code in (401, 403)

    def test_customer_cannot_add_presentation(self, customer_client, milk):
        response = customer_client.post(
            f"{PRODUCTS_URL}{milk.id}/presentations/",
            {"name": "Caja x 12", "price": "40.00", "unit": "PAQ"},
            format="json",
        )
        assert response.status_code == 403

    def test_staff_creates_product(self, staff_client, category):
        response = staff_client.post(
            PRODUCTS_URL,
            {
                "name": "Palta",
                "category_id": str(category.id),
                "price": "7.90",
                "unit": "KG",
            },
            format="json",
        )

        assert response.status_code == 201
        assert response.json()["unit"] == "KG"

    def test_invalid_price(self, staff_client, category):
        response = staff_client.post(
            PRODUCTS_URL,
            {"name": "Palta", "category_id": str(category.id), "price": "-1"},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "price"

    def test_staff_updates_and_deletes(self, staff_client, apple):
        updated = staff_client.patch(
            f"{PRODUCTS_URL}{apple.id}/", {"price": "2.75"}, format="json"
        )
        assert updated.json()["price"] == "2.75"

        assert staff_client.delete(f"{PRODUCTS_URL}{apple.id}/").status_code == 204
        assert staff_client.get(f"{PRODUCTS_URL}{apple.id}/").status_code == 404

    def test_staff_adds_presentation(self, staff_client, milk):
        response = staff_client.post(
            f"{PRODUCTS_URL}{milk.id}/presentations/",
            {"name": "Caja x 12", "price": "40.00", "unit": "PAQ"},
            format="json",
        )

        assert response.status_code == 201
        assert response.json()["product_id"] == str(milk.id)

    def test_duplicate_category(self, staff_client, category):
        response = staff_client.post(
            CATEGORIES_URL, {"name": "FRUTAS"}, format="json"
        )

        assert response.status_code == 409
        assert response.json()["code"] == "CATEGORY_ALREADY_EXISTS"

    def test_delete_category_in_use(self, staff_client, apple):
        response = staff_client.delete(f"{CATEGORIES_URL}{apple.category_id}/")
        assert response.status_code == 409
