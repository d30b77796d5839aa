import django_filters
from django.db.models import F, Q
from .models import InventoryItem, StockMovement


class InventoryItemFilter(django_filters.FilterSet):
    """Filter for inventory items using django-filter"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.CharFilter(field_name='category', lookup_expr='exact')
    warehouse = django_filters.NumberFilter(field_name='warehouse_id', lookup_expr='exact')
    is_active = django_filters.BooleanFilter(field_name='is_active')
    low_stock = django_filters.CharFilter(method='filter_low_stock', label='Low Stock')

    class Meta:
        model = InventoryItem
        fields = ['search', 'category', 'warehouse', 'is_active', 'low_stock']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(item_code__icontains=value) |
            Q(description__icontains=value)
        )

    def filter_low_stock(self, queryset, name, value):
        if value.lower() in ('true', '1', 'yes'):
            return low_stock_queryset(queryset)
        return queryset


class StockMovementFilter(django_filters.FilterSet):
    item = django_filters.NumberFilter(field_name='item_id')
    movement_type = django_filters.CharFilter(field_name='movement_type')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = StockMovement
        fields = ['item', 'movement_type', 'date_from', 'date_to']


def low_stock_queryset(queryset):
    return queryset.filter(reorder_level__gt=0, current_stock__lte=F('reorder_level'))
