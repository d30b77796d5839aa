import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.utils import timezone

from textile_erp.core.permissions import IsCompanyAdmin, CanManageProduction, get_request_company, get_company_object
from textile_erp.core.responses import api_success, api_error, validation_error, paginate
from textile_erp.core.utils import create_audit_log, date_param
from . import services
from .models import Shift, Employee, Attendance
from .serializers import (
    ShiftSerializer, EmployeeSerializer, AttendanceSerializer,
    EmployeeActionSerializer, MarkAttendanceSerializer,
)

logger = logging.getLogger(__name__)


# Shift views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def shift_list_create(request):
    company = get_request_company(request)

    if request.method == 'GET':
        shifts = Shift.objects.filter(company=company)
        return api_success(ShiftSerializer(shifts, many=True).data)

    if not request.user.is_company_admin:
        return api_error('permission_denied', 'Only company owners and managers can manage shifts.',
                         status_code=status.HTTP_403_FORBIDDEN)
    serializer = ShiftSerializer(data=request.data, context={'request': request, 'company': company})
    if serializer.is_valid():
        shift = serializer.save()
        create_audit_log(request, 'create', 'Shift', shift.pk, company=company, object_reference=shift.name)
        return api_success(ShiftSerializer(shift).data, status_code=status.HTTP_201_CREATED)
    return validation_error(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def shift_detail(request, pk):
    company = get_request_company(request)
    shift = get_company_object(Shift.objects.all(), company, pk=pk)

    if request.method == 'GET':
        return api_success(ShiftSerializer(shift).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ShiftSerializer(shift, data=request.data, partial=request.method == 'PATCH',
                                     context={'request': request, 'company': company})
        if serializer.is_valid():
            serializer.save()
            return api_success(serializer.data)
        return validation_error(serializer.errors)
    else:  # DELETE
        create_audit_log(request, 'delete', 'Shift', shift.pk, company=company, object_reference=shift.name)
        shift.delete()
        return api_success(None, message='Shift deleted.')


# Employee views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def employee_list_create(request):
    """List employees of the company or add a new employee"""
    company = get_request_company(request)

    if request.method == 'GET':
        employees = Employee.objects.filter(company=company).select_related('shift')
        department = request.query_params.get('department')
        if department:
            employees = employees.filter(department=department)
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            employees = employees.filter(is_active=is_active.lower() == 'true')
        search = request.query_params.get('search', '').strip()
        if search:
            employees = employees.filter(
                Q(name__icontains=search) |
                Q(employee_code__icontains=search) |
                Q(phone__icontains=search)
            )
        data, pagination = paginate(request, employees.order_by('employee_code'), EmployeeSerializer)
        return api_success(data, pagination=pagination)

    if not request.user.is_company_admin:
        return api_error('permission_denied', 'Only company owners and managers can manage employees.',
                         status_code=status.HTTP_403_FORBIDDEN)
    serializer = EmployeeSerializer(data=request.data, context={'request': request, 'company': company})
    if serializer.is_valid():
        employee = serializer.save()
        create_audit_log(request, 'create', 'Employee', employee.pk, company=company,
                         object_reference=employee.employee_code, changes={'name': employee.name})
        logger.info(f"Employee {employee.employee_code} added to company {company.code}")
        return api_success(EmployeeSerializer(employee).data, status_code=status.HTTP_201_CREATED)
    return validation_error(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def employee_detail(request, pk):
    """Retrieve, update or delete an employee"""
    company = get_request_company(request)
    employee = get_company_object(Employee.objects.select_related('shift'), company, pk=pk)

    if request.method == 'GET':
        data = EmployeeSerializer(employee).data
        recent = employee.attendance.order_by('-date')[:10]
        data['recent_attendance'] = AttendanceSerializer(recent, many=True).data
        return api_success(data)

    if not request.user.is_company_admin:
        return api_error('permission_denied', 'Only company owners and managers can manage employees.',
                         status_code=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = EmployeeSerializer(employee, data=request.data, partial=request.method == 'PATCH',
                                        context={'request': request, 'company': company})
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'Employee', employee.pk, company=company,
                             object_reference=employee.employee_code,
                             changes={key: str(value) for key, value in serializer.validated_data.items()})
            return api_success(serializer.data)
        return validation_error(serializer.errors)

    # DELETE
    employee_code = employee.employee_code
    employee.delete()
    create_audit_log(request, 'delete', 'Employee', pk, company=company, object_reference=employee_code)
    return api_success(None, message='Employee deleted.')


# Attendance views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def attendance_list(request):
    company = get_request_company(request)
    records = Attendance.objects.filter(company=company).select_related('employee')

    day = date_param(request.query_params, 'date')
    if day:
        records = records.filter(date=day)
    date_from = date_param(request.query_params, 'date_from')
    date_to = date_param(request.query_params, 'date_to')
    if date_from:
        records = records.filter(date__gte=date_from)
    if date_to:
        records = records.filter(date__lte=date_to)
    employee = request.query_params.get('employee')
    if employee:
        records = records.filter(employee_id=employee)
    attendance_status = request.query_params.get('status')
    if attendance_status:
        records = records.filter(status=attendance_status)

    data, pagination = paginate(request, records, AttendanceSerializer)
    return api_success(data, pagination=pagination)


def _employee_from(request, company):
    serializer = EmployeeActionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return get_company_object(Employee.objects.all(), company, pk=serializer.validated_data['employee'])


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def attendance_check_in(request):
    company = get_request_company(request)
    employee = _employee_from(request, company)
    attendance = services.check_in(employee, request.user)
    return api_success(AttendanceSerializer(attendance).data, status_code=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def attendance_check_out(request):
    company = get_request_company(request)
    employee = _employee_from(request, company)
    attendance = services.check_out(employee, request.user)
    return api_success(AttendanceSerializer(attendance).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageProduction])
def attendance_mark(request):
    """Record an explicit status (absent, leave, ...) for an employee and date"""
    company = get_request_company(request)
    serializer = MarkAttendanceSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer.errors)
    employee = get_company_object(Employee.objects.all(), company, pk=serializer.validated_data['employee'])
    attendance = services.mark_attendance(
        employee,
        serializer.validated_data['date'],
        serializer.validated_data['status'],
        request.user,
        remarks=serializer.validated_data['remarks'],
    )
    return api_success(AttendanceSerializer(attendance).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def attendance_summary(request):
    company = get_request_company(request)
    day = date_param(request.query_params, 'date') or timezone.localdate()
    return api_success(services.attendance_summary(company, day))
