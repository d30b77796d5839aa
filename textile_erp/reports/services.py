"""
Report builders shared by the report endpoints and the scheduled e-mails
"""
import calendar
import csv
import io
import logging
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.mail import EmailMessage
from django.db.models import Sum, Count, Q
from django.utils import timezone

from textile_erp.core.exceptions import ServiceError
from textile_erp.core.utils import date_param
from textile_erp.crm.models import Customer, Supplier
from textile_erp.dispatch.models import Dispatch
from textile_erp.hr.models import Employee, Attendance
from textile_erp.inventory.filters import low_stock_queryset
from textile_erp.inventory.models import InventoryItem
from textile_erp.production.models import (
    ProductionOrder, ProductionStage, FoldingChecking, RejectionStock, STAGE_TYPE_CHOICES, QC_STATUS_CHOICES,
)
from .models import AutomatedReport

logger = logging.getLogger(__name__)

DEFAULT_RANGE_DAYS = 30
ZERO = Decimal('0')


def _decimal(value):
    return str((value or ZERO).quantize(Decimal('0.01')))


def _rate(part, whole):
    if not whole:
        return '0.00'
    return str((Decimal(part) * 100 / Decimal(whole)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def parse_date_range(params):
    """date_from/date_to as YYYY-MM-DD, defaulting to the last 30 days"""
    date_to = date_param(params, 'date_to') or timezone.localdate()
    date_from = date_param(params, 'date_from') or date_to - timedelta(days=DEFAULT_RANGE_DAYS)
    if date_from > date_to:
        raise ServiceError('date_from cannot be after date_to.', error='validation_error')
    return date_from, date_to


def dashboard_kpis(company):
    orders = ProductionOrder.objects.filter(company=company)
    orders_by_status = {code: 0 for code, _label in ProductionOrder.STATUS_CHOICES}
    for row in orders.values('status').annotate(count=Count('id')).order_by('status'):
        orders_by_status[row['status']] = row['count']

    items = InventoryItem.objects.filter(company=company)
    dispatches = Dispatch.objects.filter(company=company)
    today = timezone.localdate()

    return {
        'total_orders': orders.count(),
        'orders_by_status': orders_by_status,
        'active_production': orders_by_status['in_progress'],
        'total_customers': Customer.objects.filter(company=company).count(),
        'total_suppliers': Supplier.objects.filter(company=company).count(),
        'total_inventory_items': items.count(),
        'low_stock_items': low_stock_queryset(items).count(),
        'total_employees': Employee.objects.filter(company=company).count(),
        'today_attendance': Attendance.objects.filter(
            company=company, date=today, status__in=['present', 'half_day']
        ).count(),
        'pending_dispatches': dispatches.filter(status__in=['pending', 'ready']).count(),
        'total_dispatched_quantity': _decimal(
            dispatches.filter(status__in=['dispatched', 'delivered']).aggregate(total=Sum('quantity'))['total']
        ),
    }


def production_summary(company, date_from, date_to):
    orders = ProductionOrder.objects.filter(
        company=company, created_at__date__gte=date_from, created_at__date__lte=date_to,
    )
    totals = orders.aggregate(
        orders_created=Count('id'),
        orders_completed=Count('id', filter=Q(status='completed')),
        orders_cancelled=Count('id', filter=Q(status='cancelled')),
        planned_quantity=Sum('planned_quantity'),
        completed_quantity=Sum('completed_quantity'),
        rejected_quantity=Sum('rejected_quantity'),
    )

    stage_wise_in_progress = {stage_type: 0 for stage_type, _label in STAGE_TYPE_CHOICES}
    rows = (
        ProductionStage.objects.filter(order__company=company, status='in_progress')
        .values('stage_type').annotate(count=Count('id'))
    )
    for row in rows:
        stage_wise_in_progress[row['stage_type']] = row['count']

    durations = [
        (end - start).total_seconds() / 3600
        for start, end in orders.filter(
            status='completed', actual_start_at__isnull=False, actual_end_at__isnull=False,
        ).values_list('actual_start_at', 'actual_end_at')
    ]
    average_hours = round(sum(durations) / len(durations), 2) if durations else 0

    return {
        'period': {'from': date_from.isoformat(), 'to': date_to.isoformat()},
        'orders_created': totals['orders_created'],
        'orders_completed': totals['orders_completed'],
        'orders_cancelled': totals['orders_cancelled'],
        'planned_quantity': _decimal(totals['planned_quantity']),
        'completed_quantity': _decimal(totals['completed_quantity']),
        'rejected_quantity': _decimal(totals['rejected_quantity']),
        'rejection_rate': _rate(totals['rejected_quantity'] or ZERO, totals['planned_quantity'] or ZERO),
        'stage_wise_in_progress': stage_wise_in_progress,
        'average_completion_hours': average_hours,
    }


def quality_summary(company, date_from, date_to):
    folding = FoldingChecking.objects.filter(company=company, date__gte=date_from, date__lte=date_to)
    totals = folding.aggregate(
        lots=Count('id'),
        input_meter=Sum('input_meter'),
        checked_meter=Sum('checked_meter'),
        rejected_meter=Sum('rejected_meter'),
    )
    input_meter = totals['input_meter'] or ZERO
    checked_meter = totals['checked_meter'] or ZERO
    rejected_meter = totals['rejected_meter'] or ZERO

    by_qc_status = {code: 0 for code, _label in QC_STATUS_CHOICES}
    for row in folding.values('qc_status').annotate(count=Count('id')).order_by('qc_status'):
        by_qc_status[row['qc_status']] = row['count']

    rejections = RejectionStock.objects.filter(company=company, date__gte=date_from, date__lte=date_to)
    by_disposition = {code: '0.00' for code, _label in RejectionStock.DISPOSITION_CHOICES}
    for row in rejections.values('disposition').annotate(meter=Sum('meter')).order_by('disposition'):
        by_disposition[row['disposition']] = _decimal(row['meter'])

    return {
        'period': {'from': date_from.isoformat(), 'to': date_to.isoformat()},
        'lots_inspected': totals['lots'],
        'input_meter': _decimal(input_meter),
        'checked_meter': _decimal(checked_meter),
        'rejected_meter': _decimal(rejected_meter),
        'pending_meter': _decimal(input_meter - checked_meter - rejected_meter),
        'rejection_rate': _rate(rejected_meter, checked_meter + rejected_meter),
        'by_qc_status': by_qc_status,
        'rejection_stock_by_disposition': by_disposition,
    }


def dispatch_summary(company, date_from, date_to):
    dispatches = Dispatch.objects.filter(
        company=company, dispatch_date__gte=date_from, dispatch_date__lte=date_to,
    )
    by_status = {code: 0 for code, _label in Dispatch.STATUS_CHOICES}
    for row in dispatches.values('status').annotate(count=Count('id')).order_by('status'):
        by_status[row['status']] = row['count']

    per_customer = (
        dispatches.exclude(status='cancelled')
        .values('customer_id', 'customer__name')
        .annotate(quantity=Sum('quantity'), dispatch_count=Count('id'))
        .order_by('-quantity')
    )
    return {
        'period': {'from': date_from.isoformat(), 'to': date_to.isoformat()},
        'total_dispatches': dispatches.count(),
        'by_status': by_status,
        'total_quantity': _decimal(dispatches.exclude(status='cancelled').aggregate(total=Sum('quantity'))['total']),
        'by_customer': [
            {
                'customer_id': row['customer_id'],
                'customer_name': row['customer__name'],
                'dispatch_count': row['dispatch_count'],
                'quantity': _decimal(row['quantity']),
            }
            for row in per_customer
        ],
    }


def build_report(report_type, company, date_from=None, date_to=None):
    if report_type == 'dashboard':
        return dashboard_kpis(company)
    if date_from is None or date_to is None:
        date_from, date_to = parse_date_range({})
    builders = {
        'production': production_summary,
        'quality': quality_summary,
        'dispatch': dispatch_summary,
    }
    return builders[report_type](company, date_from, date_to)


def flatten(data, prefix=''):
    """Nested dicts/lists to (key, value) rows for the CSV attachment"""
    rows = []
    if isinstance(data, dict):
        for key, value in data.items():
            rows.extend(flatten(value, f"{prefix}.{key}" if prefix else str(key)))
    elif isinstance(data, list):
        for index, value in enumerate(data):
            rows.extend(flatten(value, f"{prefix}[{index}]"))
    else:
        rows.append((prefix, data))
    return rows


def render_csv(data):
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(['metric', 'value'])
    writer.writerows(flatten(data))
    return buffer.getvalue()


def advance_next_run(frequency, current, anchor_day=None):
    """
    Next slot after current. Monthly runs aim for anchor_day (default: the
    day of current) and clamp to the last day of shorter months.
    """
    if frequency == 'daily':
        return current + timedelta(days=1)
    if frequency == 'weekly':
        return current + timedelta(days=7)
    if timezone.is_aware(current):
        current = timezone.localtime(current)
    year = current.year + current.month // 12
    month = current.month % 12 + 1
    day = min(anchor_day or current.day, calendar.monthrange(year, month)[1])
    return current.replace(year=year, month=month, day=day)


def run_report(report, now=None, reschedule=True):
    """
    Build, e-mail and record one automated report.
    Failures are recorded on the report and re-raised to the caller.
    """
    now = now or timezone.now()
    report.last_run_at = now
    if reschedule:
        next_run = report.next_run_at
        while next_run <= now:
            next_run = advance_next_run(report.frequency, next_run, report.anchor_day)
        report.next_run_at = next_run

    try:
        data = build_report(report.report_type, report.company)
        message = EmailMessage(
            subject=f"[{report.company.code}] {report.name} - {timezone.localtime(now):%d %b %Y}",
            body=f"Attached is the {report.get_report_type_display().lower()} for {report.company.name}.",
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=report.recipient_list,
        )
        message.attach(f"{report.report_type}_{timezone.localtime(now):%Y%m%d}.csv", render_csv(data), 'text/csv')
        message.send(fail_silently=False)
    except Exception as e:
        report.last_status = 'failed'
        report.last_error = str(e)
        report.save(update_fields=['last_run_at', 'next_run_at', 'last_status', 'last_error', 'updated_at'])
        logger.error(f"Automated report {report.pk} ({report.name}) failed: {str(e)}")
        raise

    report.last_status = 'success'
    report.last_error = ''
    report.save(update_fields=['last_run_at', 'next_run_at', 'last_status', 'last_error', 'updated_at'])
    logger.info(f"Automated report {report.pk} ({report.name}) sent to {len(report.recipient_list)} recipient(s)")
    return data


def due_reports(now=None):
    now = now or timezone.now()
    return AutomatedReport.objects.filter(is_active=True, next_run_at__lte=now).select_related('company')
