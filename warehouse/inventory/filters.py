import django_filters
from django.db.models import Q
from .models import InventoryItem, LoadMetadata

ALL_VALUE = 'all'
UNASSIGNED_VALUE = 'unassigned'

SORT_FIELDS = ['model', 'serial', 'cso', 'created_at', 'updated_at', 'sub_inventory']
DEFAULT_SORT = '-created_at'


class InventoryItemFilter(django_filters.FilterSet):
    """Inventory page filters. 'all' disables a filter, 'unassigned' matches items with no load."""
    inventory_type = django_filters.CharFilter(method='filter_inventory_type')
    sub_inventory = django_filters.CharFilter(method='filter_sub_inventory')
    search = django_filters.CharFilter(method='filter_search')
    brand = django_filters.CharFilter(field_name='product__brand', lookup_expr='iexact')
    status = django_filters.CharFilter(field_name='status', lookup_expr='iexact')
    is_scanned = django_filters.BooleanFilter(field_name='is_scanned')

    class Meta:
        model = InventoryItem
        fields = ['inventory_type', 'sub_inventory', 'search', 'brand', 'status', 'is_scanned']

    def filter_inventory_type(self, queryset, name, value):
        if not value or value == ALL_VALUE:
            return queryset
        return queryset.filter(inventory_type=value)

    def filter_sub_inventory(self, queryset, name, value):
        if not value or value == ALL_VALUE:
            return queryset
        if value == UNASSIGNED_VALUE:
            return queryset.filter(Q(sub_inventory__isnull=True) | Q(sub_inventory=''))
        return queryset.filter(sub_inventory=value)

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(serial__icontains=value) |
            Q(cso__icontains=value) |
            Q(model__icontains=value) |
            Q(consumer_customer_name__icontains=value)
        )


class LoadMetadataFilter(django_filters.FilterSet):
    inventory_type = django_filters.CharFilter(field_name='inventory_type')
    status = django_filters.CharFilter(field_name='status')

    class Meta:
        model = LoadMetadata
        fields = ['inventory_type', 'status']


def parse_sort(value):
    """
    Validate a sort parameter ('field' or '-field').
    Returns the order_by expression, or None when the field is not sortable.
    """
    value = (value or DEFAULT_SORT).strip()
    field = value[1:] if value.startswith('-') else value
    if field not in SORT_FIELDS:
        return None
    return value
