import django_filters
from django.db.models import Q
from .models import Dispatch


class DispatchFilter(django_filters.FilterSet):
    """Filter for dispatches using django-filter"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(field_name='status', choices=Dispatch.STATUS_CHOICES)
    customer = django_filters.NumberFilter(field_name='customer_id')
    production_order = django_filters.NumberFilter(field_name='production_order_id')
    date_from = django_filters.DateFilter(field_name='dispatch_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='dispatch_date', lookup_expr='lte')

    class Meta:
        model = Dispatch
        fields = ['search', 'status', 'customer', 'production_order', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(dispatch_number__icontains=value) |
            Q(customer__name__icontains=value) |
            Q(vehicle_number__icontains=value) |
            Q(invoice_number__icontains=value)
        )
