import django_filters
from django.db.models import Q
from django.utils import timezone
from .models import ProductionOrder, FoldingChecking, Packing, RejectionStock, STAGE_TYPE_CHOICES


class ProductionOrderFilter(django_filters.FilterSet):
    """Filter for production orders using django-filter"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.CharFilter(method='filter_status', label='Status (comma separated)')
    priority = django_filters.ChoiceFilter(choices=ProductionOrder.PRIORITY_CHOICES)
    customer = django_filters.NumberFilter(field_name='customer_id')
    stage_type = django_filters.ChoiceFilter(choices=STAGE_TYPE_CHOICES, method='filter_stage_type',
                                             label='Stage currently in progress')
    planned_from = django_filters.DateFilter(field_name='planned_start_date', lookup_expr='gte')
    planned_to = django_filters.DateFilter(field_name='planned_end_date', lookup_expr='lte')
    delayed = django_filters.BooleanFilter(method='filter_delayed', label='Delayed')

    class Meta:
        model = ProductionOrder
        fields = ['search', 'status', 'priority', 'customer', 'stage_type', 'planned_from', 'planned_to', 'delayed']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(order_number__icontains=value) |
            Q(fabric_type__icontains=value) |
            Q(fabric_quality__icontains=value) |
            Q(color__icontains=value) |
            Q(customer__name__icontains=value)
        )

    def filter_status(self, queryset, name, value):
        statuses = [status.strip() for status in value.split(',') if status.strip()]
        return queryset.filter(status__in=statuses) if statuses else queryset

    def filter_stage_type(self, queryset, name, value):
        return queryset.filter(stages__stage_type=value, stages__status='in_progress').distinct()

    def filter_delayed(self, queryset, name, value):
        delayed = Q(planned_end_date__lt=timezone.localdate()) & ~Q(status__in=['completed', 'cancelled'])
        return queryset.filter(delayed) if value else queryset.exclude(delayed)


class FoldingCheckingFilter(django_filters.FilterSet):
    qc_status = django_filters.CharFilter(field_name='qc_status')
    production_order = django_filters.NumberFilter(field_name='production_order_id')
    lot_number = django_filters.CharFilter(field_name='lot_number', lookup_expr='icontains')
    date_from = django_filters.DateFilter(field_name='date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='date', lookup_expr='lte')

    class Meta:
        model = FoldingChecking
        fields = ['qc_status', 'production_order', 'lot_number', 'date_from', 'date_to']


class PackingFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name='status')
    packing_type = django_filters.CharFilter(field_name='packing_type')
    customer = django_filters.NumberFilter(field_name='customer_id')

    class Meta:
        model = Packing
        fields = ['status', 'packing_type', 'customer']


class RejectionStockFilter(django_filters.FilterSet):
    disposition = django_filters.CharFilter(field_name='disposition')
    source_module = django_filters.CharFilter(field_name='source_module')

    class Meta:
        model = RejectionStock
        fields = ['disposition', 'source_module']
