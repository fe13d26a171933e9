import django_filters

from modules.products.models import Category, Product


class ProductFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    category = django_filters.UUIDFilter(field_name="category_id")
    unit = django_filters.CharFilter(field_name="unit", lookup_expr="iexact")
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    active = django_filters.BooleanFilter(field_name="active")

    class Meta:
        model = Product
        fields = ["name", "category", "unit", "min_price", "max_price", "active"]


class CategoryFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    active = django_filters.BooleanFilter(field_name="active")

    class Meta:
        model = Category
        fields = ["name", "active"]
