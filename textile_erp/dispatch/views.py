import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Count, Sum
from decimal import Decimal

from textile_erp.core.permissions import CanManageProduction, get_request_company, get_company_object
from textile_erp.core.responses import api_success, api_error, validation_error, paginate
from textile_erp.core.utils import create_audit_log
from . import services
from .filters import DispatchFilter
from .models import Dispatch
from .serializers import DispatchSerializer, DispatchStatusSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def dispatch_list_create(request):
    """List dispatches or create a new dispatch"""
    company = get_request_company(request)

    if request.method == 'GET':
        queryset = Dispatch.objects.filter(company=company).select_related('customer', 'production_order')
        dispatch_filter = DispatchFilter(request.query_params, queryset=queryset)
        if not dispatch_filter.is_valid():
            return validation_error(dispatch_filter.errors)
        dispatches = dispatch_filter.qs
        data, pagination = paginate(request, dispatches.order_by('-dispatch_date', '-id'), DispatchSerializer)
        return api_success(data, pagination=pagination)

    serializer = DispatchSerializer(data=request.data, context={'request': request, 'company': company})
    if not serializer.is_valid():
        return validation_error(serializer.errors)

    with transaction.atomic():
        order = serializer.validated_data.get('production_order')
        if order is not None:
            services.check_production_order(order, serializer.validated_data['quantity'])
        dispatch = serializer.save(
            dispatch_number=services.generate_dispatch_number(company),
            created_by=request.user,
        )

    create_audit_log(request, 'create', 'Dispatch', dispatch.pk, company=company,
                     object_reference=dispatch.dispatch_number,
                     changes={'quantity': str(dispatch.quantity), 'customer': dispatch.customer.name})
    logger.info(f"Dispatch {dispatch.dispatch_number} created for {dispatch.customer.name}")
    return api_success(DispatchSerializer(dispatch).data, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanManageProduction])
def dispatch_detail(request, pk):
    """Retrieve, update or delete a dispatch"""
    company = get_request_company(request)
    dispatch = get_company_object(Dispatch.objects.select_related('customer', 'production_order'), company, pk=pk)

    if request.method == 'GET':
        return api_success(DispatchSerializer(dispatch).data)

    if dispatch.status not in Dispatch.EDITABLE_STATUSES:
        return api_error('invalid_transition', f"A {dispatch.status} dispatch cannot be changed.")

    if request.method in ('PUT', 'PATCH'):
        serializer = DispatchSerializer(dispatch, data=request.data, partial=request.method == 'PATCH',
                                        context={'request': request, 'company': company})
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        with transaction.atomic():
            order = serializer.validated_data.get('production_order', dispatch.production_order)
            if order is not None and dispatch.status != 'cancelled':
                quantity = serializer.validated_data.get('quantity', dispatch.quantity)
                services.check_production_order(order, quantity, exclude_dispatch=dispatch)
            serializer.save()
        create_audit_log(request, 'update', 'Dispatch', dispatch.pk, company=company,
                         object_reference=dispatch.dispatch_number,
                         changes={key: str(value) for key, value in serializer.validated_data.items()})
        return api_success(serializer.data)

    # DELETE
    dispatch_number = dispatch.dispatch_number
    dispatch.delete()
    create_audit_log(request, 'delete', 'Dispatch', pk, company=company, object_reference=dispatch_number)
    return api_success(None, message='Dispatch deleted.')


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def dispatch_update_status(request, pk):
    """Move a dispatch along pending -> ready -> dispatched -> delivered"""
    company = get_request_company(request)
    dispatch = get_company_object(Dispatch.objects.all(), company, pk=pk)
    serializer = DispatchStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer.errors)
    dispatch = services.change_dispatch_status(
        dispatch, serializer.validated_data['status'], request.user,
        remarks=serializer.validated_data['remarks'],
    )
    return api_success(DispatchSerializer(dispatch).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dispatch_stats(request):
    """Dispatch counts per status and total shipped quantity"""
    company = get_request_company(request)
    dispatches = Dispatch.objects.filter(company=company)
    by_status = {code: 0 for code, _label in Dispatch.STATUS_CHOICES}
    for row in dispatches.values('status').annotate(count=Count('id')).order_by('status'):
        by_status[row['status']] = row['count']
    shipped = dispatches.filter(status__in=['dispatched', 'delivered']).aggregate(total=Sum('quantity'))['total']
    return api_success({
        'total_dispatches': dispatches.count(),
        'by_status': by_status,
        'total_dispatched_quantity': str(shipped or Decimal('0')),
    })
