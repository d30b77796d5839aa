import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import ProtectedError

from textile_erp.core.exceptions import NotFoundError
from textile_erp.core.permissions import get_request_company, get_company_object
from textile_erp.core.responses import api_success, api_error, validation_error, paginate
from textile_erp.core.utils import create_audit_log
from .filters import InventoryItemFilter, StockMovementFilter, low_stock_queryset
from .models import Warehouse, InventoryItem, StockMovement
from .serializers import (
    WarehouseSerializer, InventoryItemSerializer,
    StockMovementSerializer, StockMovementCreateSerializer
)
from .services import post_stock_movement

logger = logging.getLogger(__name__)


# Warehouse views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def warehouse_list_create(request):
    """List all warehouses or create a new warehouse"""
    company = get_request_company(request)
    if request.method == 'GET':
        warehouses = Warehouse.objects.filter(company=company)
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            warehouses = warehouses.filter(is_active=is_active.lower() == 'true')
        return api_success(WarehouseSerializer(warehouses.order_by('name'), many=True).data)

    serializer = WarehouseSerializer(data=request.data, context={'request': request, 'company': company})
    if serializer.is_valid():
        warehouse = serializer.save()
        create_audit_log(request, 'create', 'Warehouse', warehouse.pk, company=company,
                         object_reference=warehouse.code)
        return api_success(WarehouseSerializer(warehouse).data, status_code=status.HTTP_201_CREATED)
    return validation_error(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def warehouse_detail(request, pk):
    """Retrieve, update or delete a warehouse"""
    company = get_request_company(request)
    warehouse = get_company_object(Warehouse.objects.all(), company, pk=pk)

    if request.method == 'GET':
        return api_success(WarehouseSerializer(warehouse).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = WarehouseSerializer(warehouse, data=request.data, partial=request.method == 'PATCH',
                                         context={'request': request, 'company': company})
        if serializer.is_valid():
            serializer.save()
            return api_success(serializer.data)
        return validation_error(serializer.errors)
    else:  # DELETE
        try:
            warehouse.delete()
        except ProtectedError:
            logger.warning(f"Refused to delete warehouse {warehouse.code}: items still assigned")
            return api_error('protected', 'Warehouse still holds inventory items.')
        create_audit_log(request, 'delete', 'Warehouse', pk, company=company, object_reference=warehouse.code)
        return api_success(None, message='Warehouse deleted.')


# Inventory item views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def item_list_create(request):
    """List inventory items with filters or create a new item"""
    company = get_request_company(request)
    if request.method == 'GET':
        queryset = InventoryItem.objects.filter(company=company).select_related('warehouse')
        item_filter = InventoryItemFilter(request.query_params, queryset=queryset)
        if not item_filter.is_valid():
            return validation_error(item_filter.errors)
        data, pagination = paginate(request, item_filter.qs.order_by('name'), InventoryItemSerializer)
        return api_success(data, pagination=pagination)

    serializer = InventoryItemSerializer(data=request.data, context={'request': request, 'company': company})
    if not serializer.is_valid():
        return validation_error(serializer.errors)

    opening_stock = serializer.validated_data.get('opening_stock')
    with transaction.atomic():
        item = serializer.save()
        if opening_stock:
            post_stock_movement(item, 'in', opening_stock, user=request.user,
                                reference='OPENING', notes='Opening stock')
            item.refresh_from_db()
    create_audit_log(request, 'create', 'InventoryItem', item.pk, company=company,
                     object_reference=item.item_code,
                     changes={'name': item.name, 'opening_stock': str(opening_stock or 0)})
    return api_success(InventoryItemSerializer(item).data, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def item_detail(request, pk):
    """Retrieve, update or delete an inventory item"""
    company = get_request_company(request)
    item = get_company_object(InventoryItem.objects.select_related('warehouse'), company, pk=pk)

    if request.method == 'GET':
        data = InventoryItemSerializer(item).data
        data['recent_movements'] = StockMovementSerializer(item.movements.all()[:10], many=True).data
        return api_success(data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = InventoryItemSerializer(item, data=request.data, partial=request.method == 'PATCH',
                                             context={'request': request, 'company': company})
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'InventoryItem', item.pk, company=company,
                             object_reference=item.item_code,
                             changes={key: str(value) for key, value in serializer.validated_data.items()})
            return api_success(serializer.data)
        return validation_error(serializer.errors)
    else:  # DELETE
        item.delete()
        create_audit_log(request, 'delete', 'InventoryItem', pk, company=company, object_reference=item.item_code)
        return api_success(None, message='Inventory item deleted.')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def item_low_stock(request):
    """Items at or below their reorder level"""
    company = get_request_company(request)
    items = low_stock_queryset(InventoryItem.objects.filter(company=company, is_active=True))
    serializer = InventoryItemSerializer(items.select_related('warehouse').order_by('current_stock'), many=True)
    return api_success(serializer.data)


# Stock movement views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def movement_list_create(request):
    """List stock movements or post a new one"""
    company = get_request_company(request)
    if request.method == 'GET':
        queryset = StockMovement.objects.filter(company=company).select_related('item', 'created_by')
        movement_filter = StockMovementFilter(request.query_params, queryset=queryset)
        if not movement_filter.is_valid():
            return validation_error(movement_filter.errors)
        data, pagination = paginate(request, movement_filter.qs.order_by('-created_at'), StockMovementSerializer)
        return api_success(data, pagination=pagination)

    serializer = StockMovementCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer.errors)
    data = serializer.validated_data

    item = get_company_object(InventoryItem.objects.all(), company, pk=data['item'])
    to_warehouse = None
    if data.get('to_warehouse'):
        try:
            to_warehouse = Warehouse.objects.get(pk=data['to_warehouse'], company=company)
        except Warehouse.DoesNotExist:
            raise NotFoundError('Warehouse not found.')

    movement = post_stock_movement(
        item, data['movement_type'], data['quantity'], user=request.user,
        to_warehouse=to_warehouse, reference=data['reference'], notes=data['notes'],
    )
    create_audit_log(request, 'stock_movement', 'StockMovement', movement.pk, company=company,
                     object_reference=item.item_code,
                     changes={
                         'movement_type': movement.movement_type,
                         'quantity': str(movement.quantity),
                         'stock_before': str(movement.stock_before),
                         'stock_after': str(movement.stock_after),
                     })
    return api_success(StockMovementSerializer(movement).data, status_code=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def movement_detail(request, pk):
    """Retrieve a stock movement"""
    company = get_request_company(request)
    movement = get_company_object(StockMovement.objects.select_related('item', 'created_by'), company, pk=pk)
    return api_success(StockMovementSerializer(movement).data)
