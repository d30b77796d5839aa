"""Attendance check-in/check-out rules"""
import logging
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.utils import timezone

from textile_erp.core.exceptions import ServiceError
from textile_erp.core.utils import create_audit_log
from .models import Attendance, Employee

logger = logging.getLogger(__name__)


def calculate_working_hours(check_in, check_out):
    seconds = Decimal((check_out - check_in).total_seconds())
    return (seconds / Decimal('3600')).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def check_in(employee, user, when=None):
    if not employee.is_active:
        raise ServiceError(f"Employee {employee.employee_code} is inactive.", error='validation_error')

    when = when or timezone.now()
    day = timezone.localtime(when).date()
    with transaction.atomic():
        attendance, created = Attendance.objects.select_for_update().get_or_create(
            employee=employee, date=day,
            defaults={'company_id': employee.company_id, 'check_in': when, 'status': 'present'},
        )
        if not created:
            if attendance.check_in:
                raise ServiceError(f"{employee.name} already checked in on {day}.", error='validation_error')
            attendance.check_in = when
            attendance.status = 'present'
            attendance.save(update_fields=['check_in', 'status', 'updated_at'])

    create_audit_log(action='attendance', model_name='Attendance', object_id=attendance.pk, user=user,
                     company=employee.company, object_reference=employee.employee_code,
                     changes={'check_in': when.isoformat()})
    logger.info(f"{employee.employee_code} checked in at {when}")
    return attendance


def check_out(employee, user, when=None):
    when = when or timezone.now()
    day = timezone.localtime(when).date()
    with transaction.atomic():
        # Night shifts close the row opened the previous day
        attendance = (
            Attendance.objects.select_for_update()
            .filter(employee=employee, date__in=[day, day - timedelta(days=1)],
                    check_in__isnull=False, check_in__lte=when, check_out__isnull=True)
            .order_by('-check_in')
            .first()
        )
        if attendance is None:
            today = Attendance.objects.filter(employee=employee, date=day).first()
            if today is not None and today.check_out is not None:
                raise ServiceError(f"{employee.name} already checked out on {day}.", error='validation_error')
            if today is not None and today.check_in is not None:
                raise ServiceError('Check-out cannot be before check-in.', error='validation_error')
            raise ServiceError(f"{employee.name} has not checked in on {day}.", error='validation_error')

        attendance.check_out = when
        attendance.working_hours = calculate_working_hours(attendance.check_in, when)
        attendance.status = 'half_day' if attendance.working_hours < Attendance.HALF_DAY_HOURS else 'present'
        attendance.save(update_fields=['check_out', 'working_hours', 'status', 'updated_at'])

    create_audit_log(action='attendance', model_name='Attendance', object_id=attendance.pk, user=user,
                     company=employee.company, object_reference=employee.employee_code,
                     changes={'check_out': when.isoformat(), 'working_hours': str(attendance.working_hours)})
    logger.info(f"{employee.employee_code} checked out, {attendance.working_hours}h")
    return attendance


def mark_attendance(employee, date, status, user, remarks=''):
    """Set an explicit status for a day, e.g. leave or absent"""
    attendance, created = Attendance.objects.update_or_create(
        employee=employee, date=date,
        defaults={'company_id': employee.company_id, 'status': status, 'remarks': remarks},
    )
    create_audit_log(action='attendance', model_name='Attendance', object_id=attendance.pk, user=user,
                     company=employee.company, object_reference=employee.employee_code,
                     changes={'date': str(date), 'status': status})
    return attendance


def attendance_summary(company, date):
    active_employees = Employee.objects.filter(company=company, is_active=True).count()
    counts = {code: 0 for code, _label in Attendance.STATUS_CHOICES}
    for attendance_status in Attendance.objects.filter(company=company, date=date).values_list('status', flat=True):
        counts[attendance_status] += 1

    attended = counts['present'] + counts['half_day']
    rate = Decimal('0.00')
    if active_employees:
        rate = (Decimal(attended) * 100 / Decimal(active_employees)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    return {
        'date': str(date),
        'total_employees': active_employees,
        'present': counts['present'],
        'absent': counts['absent'],
        'half_day': counts['half_day'],
        'leave': counts['leave'],
        'not_marked': max(0, active_employees - sum(counts.values())),
        'attendance_rate': str(rate),
    }
