import django_filters
from django.db.models import Q
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Filter products by free-text search, type, brand and part flag"""
    search = django_filters.CharFilter(method='filter_search')
    product_type = django_filters.CharFilter(field_name='product_type', lookup_expr='iexact')
    brand = django_filters.CharFilter(field_name='brand', lookup_expr='iexact')
    is_part = django_filters.BooleanFilter(field_name='is_part')

    class Meta:
        model = Product
        fields = ['search', 'product_type', 'brand', 'is_part']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(model__icontains=value) |
            Q(brand__icontains=value) |
            Q(description__icontains=value)
        )
