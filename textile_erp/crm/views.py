import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Q, Sum, Count, ProtectedError
from decimal import Decimal

from textile_erp.core.permissions import get_request_company, get_company_object
from textile_erp.core.responses import api_success, validation_error, paginate
from textile_erp.core.utils import create_audit_log
from .models import Customer, Supplier
from .serializers import CustomerSerializer, SupplierSerializer

logger = logging.getLogger(__name__)


def _active_filter(queryset, request):
    is_active = request.query_params.get('is_active')
    if is_active is not None:
        queryset = queryset.filter(is_active=is_active.lower() == 'true')
    return queryset


# Customer views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def customer_list_create(request):
    """List customers of the company or create a new customer"""
    company = get_request_company(request)

    if request.method == 'GET':
        customers = _active_filter(Customer.objects.filter(company=company), request)
        search = request.query_params.get('search', '').strip()
        if search:
            customers = customers.filter(
                Q(name__icontains=search) |
                Q(phone__icontains=search) |
                Q(customer_code__icontains=search) |
                Q(email__icontains=search)
            )
        data, pagination = paginate(request, customers.order_by('name'), CustomerSerializer)
        return api_success(data, pagination=pagination)

    serializer = CustomerSerializer(data=request.data, context={'request': request, 'company': company})
    if serializer.is_valid():
        with transaction.atomic():
            customer = serializer.save()
        create_audit_log(request, 'create', 'Customer', customer.pk, company=company,
                         object_reference=customer.customer_code, changes={'name': customer.name})
        logger.info(f"Customer {customer.customer_code} created for company {company.code}")
        return api_success(CustomerSerializer(customer).data, status_code=status.HTTP_201_CREATED)
    return validation_error(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    company = get_request_company(request)
    customer = get_company_object(Customer.objects.all(), company, pk=pk)

    if request.method == 'GET':
        return api_success(CustomerSerializer(customer).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CustomerSerializer(customer, data=request.data, partial=request.method == 'PATCH',
                                        context={'request': request, 'company': company})
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'Customer', customer.pk, company=company,
                             object_reference=customer.customer_code,
                             changes={key: str(value) for key, value in serializer.validated_data.items()})
            return api_success(serializer.data)
        return validation_error(serializer.errors)
    else:  # DELETE
        try:
            customer.delete()
        except ProtectedError:
            # Referenced by orders or dispatches: keep history, deactivate instead
            customer.is_active = False
            customer.save(update_fields=['is_active', 'updated_at'])
            create_audit_log(request, 'status_change', 'Customer', customer.pk, company=company,
                             object_reference=customer.customer_code, changes={'is_active': False})
            return api_success(CustomerSerializer(customer).data,
                               message='Customer has production orders or dispatches and was deactivated.')
        create_audit_log(request, 'delete', 'Customer', pk, company=company,
                         object_reference=customer.customer_code)
        return api_success(None, message='Customer deleted.')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_summary(request, pk):
    """Production and dispatch totals for one customer"""
    from textile_erp.production.models import ProductionOrder
    from textile_erp.dispatch.models import Dispatch

    company = get_request_company(request)
    customer = get_company_object(Customer.objects.all(), company, pk=pk)

    orders = ProductionOrder.objects.filter(company=company, customer=customer)
    orders_by_status = {
        row['status']: row['count']
        for row in orders.values('status').annotate(count=Count('id')).order_by('status')
    }
    dispatches = Dispatch.objects.filter(company=company, customer=customer).exclude(status='cancelled')
    dispatched_quantity = dispatches.filter(
        status__in=['dispatched', 'delivered']
    ).aggregate(total=Sum('quantity'))['total'] or Decimal('0')

    return api_success({
        'customer': CustomerSerializer(customer).data,
        'total_orders': orders.count(),
        'orders_by_status': orders_by_status,
        'total_planned_quantity': str(orders.aggregate(total=Sum('planned_quantity'))['total'] or Decimal('0')),
        'total_dispatches': dispatches.count(),
        'total_dispatched_quantity': str(dispatched_quantity),
    })


# Supplier views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def supplier_list_create(request):
    """List suppliers of the company or create a new supplier"""
    company = get_request_company(request)

    if request.method == 'GET':
        suppliers = _active_filter(Supplier.objects.filter(company=company), request)
        category = request.query_params.get('supply_category')
        if category:
            suppliers = suppliers.filter(supply_category=category)
        search = request.query_params.get('search', '').strip()
        if search:
            suppliers = suppliers.filter(
                Q(name__icontains=search) |
                Q(supplier_code__icontains=search) |
                Q(phone__icontains=search) |
                Q(email__icontains=search)
            )
        data, pagination = paginate(request, suppliers.order_by('name'), SupplierSerializer)
        return api_success(data, pagination=pagination)

    serializer = SupplierSerializer(data=request.data, context={'request': request, 'company': company})
    if serializer.is_valid():
        with transaction.atomic():
            supplier = serializer.save()
        create_audit_log(request, 'create', 'Supplier', supplier.pk, company=company,
                         object_reference=supplier.supplier_code, changes={'name': supplier.name})
        return api_success(SupplierSerializer(supplier).data, status_code=status.HTTP_201_CREATED)
    return validation_error(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def supplier_detail(request, pk):
    """Retrieve, update or delete a supplier"""
    company = get_request_company(request)
    supplier = get_company_object(Supplier.objects.all(), company, pk=pk)

    if request.method == 'GET':
        return api_success(SupplierSerializer(supplier).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SupplierSerializer(supplier, data=request.data, partial=request.method == 'PATCH',
                                        context={'request': request, 'company': company})
        if serializer.is_valid():
            serializer.save()
            return api_success(serializer.data)
        return validation_error(serializer.errors)
    else:  # DELETE
        supplier.delete()
        create_audit_log(request, 'delete', 'Supplier', pk, company=company,
                         object_reference=supplier.supplier_code)
        return api_success(None, message='Supplier deleted.')
