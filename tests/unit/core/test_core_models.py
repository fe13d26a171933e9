from __future__ import annotations

import pytest

from modules.products.models import Category

pytestmark = pytest.mark.unit


class TestSoftDelete:
    def test_delete_sets_deleted_at(self, category):
        count, detail = category.delete()

        assert count == 1
        assert detail == {"products.Category": 1}
        category.refresh_from_db()
        assert category.is_deleted

    def test_delete_twice_is_noop(self, category):
        category.delete()
        assert category.delete() == (0, {})

    def test_alive_and_dead(self, category):
        other = Category.objects.create(name="Verduras")
        other.delete()

        assert list(Category.objects.alive()) == [category]
        assert list(Category.objects.dead()) == [other]
        assert Category.objects.count() == 2

    def test_restore(self, category):
        category.delete()
        category.restore()
        category.refresh_from_db()
        assert not category.is_deleted

    def test_queryset_delete_is_soft(self, category):
        Category.objects.create(name="Verduras")

        count, _ = Category.objects.all().delete()

        assert count == 2
        assert Category.objects.alive().count() == 0
        assert Category.objects.count() == 2

    def test_hard_delete(self, category):
        category.hard_delete()
        assert not Category.objects.filter(pk=category.pk).exists()


class TestTimestamps:
    def test_update_fields_refreshes_updated_at(self, category):
        before = category.updated_at

        category.name = "Frutas de estación"
        category.save(update_fields=["name"])

        category.refresh_from_db()
        assert category.name == "Frutas de estación"
        assert category.updated_at > before
