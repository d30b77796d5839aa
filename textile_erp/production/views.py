import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from django.db import transaction

from textile_erp.core.permissions import CanManageProduction, get_request_company, get_company_object
from textile_erp.core.responses import api_success, api_error, validation_error, paginate
from textile_erp.core.utils import create_audit_log
from . import services
from .filters import ProductionOrderFilter, FoldingCheckingFilter, PackingFilter, RejectionStockFilter
from .models import ProductionOrder, FoldingChecking, Packing, RejectionStock
from .serializers import (
    ProductionOrderSerializer, ProductionOrderDetailSerializer, StageTransitionSerializer,
    ProductionLogSerializer, FoldingCheckingSerializer, FoldingQCSerializer,
    PackingSerializer, RejectionStockSerializer,
)

logger = logging.getLogger('textile_erp.production')

EDITABLE_ORDER_FIELDS = {
    'customer', 'fabric_type', 'fabric_quality', 'color', 'design', 'planned_quantity', 'unit',
    'priority', 'planned_start_date', 'planned_end_date', 'notes',
}


def _get_order(request, pk):
    company = get_request_company(request)
    queryset = ProductionOrder.objects.select_related('customer', 'created_by')
    return company, get_company_object(queryset, company, pk=pk)


def _order_detail(order):
    order = ProductionOrder.objects.select_related('customer', 'created_by').prefetch_related('stages').get(pk=order.pk)
    return ProductionOrderDetailSerializer(order).data


# Production order views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def order_list_create(request):
    """List production orders with filters or create a new order"""
    company = get_request_company(request)

    if request.method == 'GET':
        queryset = ProductionOrder.objects.filter(company=company).select_related('customer', 'created_by')
        order_filter = ProductionOrderFilter(request.query_params, queryset=queryset)
        if not order_filter.is_valid():
            return validation_error(order_filter.errors)
        data, pagination = paginate(request, order_filter.qs.order_by('-created_at', '-id'), ProductionOrderSerializer)
        return api_success(data, pagination=pagination)

    serializer = ProductionOrderSerializer(data=request.data, context={'request': request, 'company': company})
    if not serializer.is_valid():
        return validation_error(serializer.errors)

    order = services.create_production_order(company, request.user, **serializer.validated_data)
    create_audit_log(request, 'create', 'ProductionOrder', order.pk, company=company,
                     object_reference=order.order_number,
                     changes={'planned_quantity': str(order.planned_quantity), 'fabric_type': order.fabric_type})
    return api_success(_order_detail(order), status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanManageProduction])
def order_detail(request, pk):
    """Retrieve, update or delete a production order"""
    company, order = _get_order(request, pk)

    if request.method == 'GET':
        return api_success(_order_detail(order))

    elif request.method in ('PUT', 'PATCH'):
        if order.status in ProductionOrder.TERMINAL_STATUSES:
            return api_error('invalid_transition', f"A {order.status} production order cannot be edited.")

        data = {key: value for key, value in request.data.items() if key in EDITABLE_ORDER_FIELDS}
        serializer = ProductionOrderSerializer(order, data=data, partial=request.method == 'PATCH',
                                               context={'request': request, 'company': company})
        if not serializer.is_valid():
            return validation_error(serializer.errors)

        with transaction.atomic():
            new_quantity = serializer.validated_data.get('planned_quantity')
            if new_quantity is not None and new_quantity != order.planned_quantity:
                services.update_planned_quantity(order, new_quantity)
            serializer.save()

        create_audit_log(request, 'update', 'ProductionOrder', order.pk, company=company,
                         object_reference=order.order_number,
                         changes={key: str(value) for key, value in serializer.validated_data.items()})
        return api_success(_order_detail(order))

    else:  # DELETE
        if order.status not in ('draft', 'cancelled'):
            return api_error('invalid_transition', 'Only draft or cancelled production orders can be deleted.')
        order_number = order.order_number
        order.delete()
        create_audit_log(request, 'delete', 'ProductionOrder', pk, company=company, object_reference=order_number)
        logger.info(f"Production order {order_number} deleted by {request.user.username}")
        return api_success(None, message='Production order deleted.')


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def order_approve(request, pk):
    """Approve a draft production order"""
    _company, order = _get_order(request, pk)
    order = services.approve_order(order, request.user, reason=request.data.get('reason', ''))
    return api_success(_order_detail(order), message='Production order approved.')


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def order_cancel(request, pk):
    """Cancel a production order and all of its open stages"""
    _company, order = _get_order(request, pk)
    order = services.cancel_order(order, request.user, reason=(request.data.get('reason') or '').strip())
    return api_success(_order_detail(order), message='Production order cancelled.')


def _run_transition(request, pk, stage_number, target_status):
    _company, order = _get_order(request, pk)
    payload = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
    if target_status:
        payload['status'] = target_status
    serializer = StageTransitionSerializer(data=payload)
    if not serializer.is_valid():
        return validation_error(serializer.errors)
    data = serializer.validated_data

    order, stage = services.transition_stage(
        order, stage_number, data['status'], request.user,
        reason=data['reason'],
        actual_quantity=data.get('actual_quantity'),
        defect_quantity=data.get('defect_quantity'),
        quality_grade=data['quality_grade'],
        qc_status=data['qc_status'],
        notes=data['notes'],
    )
    return api_success({
        'order': _order_detail(order),
        'stage': stage.stage_number,
        'flow': services.get_flow_status(order),
    }, message=f"{stage.stage_name} is now {stage.status}.")


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def stage_transition(request, pk, stage_number):
    """Move a stage to the requested status"""
    return _run_transition(request, pk, stage_number, None)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def stage_start(request, pk, stage_number):
    return _run_transition(request, pk, stage_number, 'in_progress')


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def stage_complete(request, pk, stage_number):
    return _run_transition(request, pk, stage_number, 'completed')


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def stage_hold(request, pk, stage_number):
    return _run_transition(request, pk, stage_number, 'on_hold')


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def stage_resume(request, pk, stage_number):
    return _run_transition(request, pk, stage_number, 'in_progress')


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def stage_reject(request, pk, stage_number):
    return _run_transition(request, pk, stage_number, 'rejected')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_flow(request, pk):
    """Current/next stage and progress of an order"""
    _company, order = _get_order(request, pk)
    return api_success(services.get_flow_status(order))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_logs(request, pk):
    """Status history of an order, newest first"""
    _company, order = _get_order(request, pk)
    logs = order.logs.select_related('stage', 'user').order_by('-created_at', '-id')
    data, pagination = paginate(request, logs, ProductionLogSerializer)
    return api_success(data, pagination=pagination)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def production_dashboard(request):
    """Order totals, in-progress stages and recent activity"""
    company = get_request_company(request)
    return api_success(services.production_dashboard(company))


# Folding / checking views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def folding_list_create(request):
    """List folding/checking entries or create a new one"""
    company = get_request_company(request)
    if request.method == 'GET':
        queryset = FoldingChecking.objects.filter(company=company).select_related('production_order')
        folding_filter = FoldingCheckingFilter(request.query_params, queryset=queryset)
        if not folding_filter.is_valid():
            return validation_error(folding_filter.errors)
        data, pagination = paginate(request, folding_filter.qs.order_by('-date', '-id'), FoldingCheckingSerializer)
        return api_success(data, pagination=pagination)

    serializer = FoldingCheckingSerializer(data=request.data, context={'request': request, 'company': company})
    if serializer.is_valid():
        folding = serializer.save(created_by=request.user)
        create_audit_log(request, 'create', 'FoldingChecking', folding.pk, company=company,
                         object_reference=folding.lot_number, changes={'input_meter': str(folding.input_meter)})
        return api_success(FoldingCheckingSerializer(folding).data, status_code=status.HTTP_201_CREATED)
    return validation_error(serializer.errors)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanManageProduction])
def folding_detail(request, pk):
    """Retrieve, update or delete a folding/checking entry"""
    company = get_request_company(request)
    folding = get_company_object(FoldingChecking.objects.select_related('production_order'), company, pk=pk)

    if request.method == 'GET':
        data = FoldingCheckingSerializer(folding).data
        packing = Packing.objects.filter(folding_checking=folding).first()
        rejection = RejectionStock.objects.filter(folding_checking=folding).first()
        data['packing'] = PackingSerializer(packing).data if packing else None
        data['rejection'] = RejectionStockSerializer(rejection).data if rejection else None
        return api_success(data)
    elif request.method == 'PATCH':
        serializer = FoldingCheckingSerializer(folding, data=request.data, partial=True,
                                               context={'request': request, 'company': company})
        if serializer.is_valid():
            serializer.save()
            return api_success(serializer.data)
        return validation_error(serializer.errors)
    else:  # DELETE
        if folding.qc_status != 'pending':
            return api_error('invalid_transition', 'Inspected lots cannot be deleted.')
        folding.delete()
        create_audit_log(request, 'delete', 'FoldingChecking', pk, company=company, object_reference=folding.lot_number)
        return api_success(None, message='Folding/checking entry deleted.')


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def folding_update_qc(request, pk):
    """Record checked/rejected meters of a lot"""
    company = get_request_company(request)
    folding = get_company_object(FoldingChecking.objects.all(), company, pk=pk)
    serializer = FoldingQCSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer.errors)
    data = serializer.validated_data

    folding = services.record_folding_qc(
        folding, data['checked_meter'], data['rejected_meter'], data['qc_status'],
        data['checker_name'], request.user, remarks=data.get('remarks'),
    )
    return api_success(FoldingCheckingSerializer(folding).data, message='QC recorded.')


# Packing views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def packing_list(request):
    """List packing entries"""
    company = get_request_company(request)
    queryset = Packing.objects.filter(company=company).select_related('production_order')
    packing_filter = PackingFilter(request.query_params, queryset=queryset)
    if not packing_filter.is_valid():
        return validation_error(packing_filter.errors)
    data, pagination = paginate(request, packing_filter.qs.order_by('-date', '-id'), PackingSerializer)
    return api_success(data, pagination=pagination)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, CanManageProduction])
def packing_detail(request, pk):
    """Retrieve or update a packing entry"""
    company = get_request_company(request)
    packing = get_company_object(Packing.objects.select_related('production_order'), company, pk=pk)
    if request.method == 'GET':
        return api_success(PackingSerializer(packing).data)

    serializer = PackingSerializer(packing, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        create_audit_log(request, 'update', 'Packing', packing.pk, company=company,
                         object_reference=packing.lot_number,
                         changes={key: str(value) for key, value in serializer.validated_data.items()})
        return api_success(serializer.data)
    return validation_error(serializer.errors)


# Rejection stock views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def rejection_list(request):
    """List rejected fabric"""
    company = get_request_company(request)
    rejection_filter = RejectionStockFilter(request.query_params, queryset=RejectionStock.objects.filter(company=company))
    if not rejection_filter.is_valid():
        return validation_error(rejection_filter.errors)
    data, pagination = paginate(request, rejection_filter.qs.order_by('-date', '-id'), RejectionStockSerializer)
    return api_success(data, pagination=pagination)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, CanManageProduction])
def rejection_detail(request, pk):
    """Retrieve a rejection or set its disposition"""
    company = get_request_company(request)
    rejection = get_company_object(RejectionStock.objects.all(), company, pk=pk)
    if request.method == 'GET':
        return api_success(RejectionStockSerializer(rejection).data)

    serializer = RejectionStockSerializer(rejection, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        create_audit_log(request, 'update', 'RejectionStock', rejection.pk, company=company,
                         object_reference=rejection.lot_number,
                         changes={key: str(value) for key, value in serializer.validated_data.items()})
        return api_success(serializer.data)
    return validation_error(serializer.errors)
