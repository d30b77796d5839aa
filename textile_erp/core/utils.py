"""Utility functions for audit logging, query dates and document numbering"""
import logging

from django.utils import timezone
from django.utils.dateparse import parse_date

from .exceptions import ServiceError
from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """First address of X-Forwarded-For, else REMOTE_ADDR"""
    meta = getattr(request, 'META', None)
    if not meta:
        return None
    forwarded = meta.get('HTTP_X_FORWARDED_FOR', '')
    address = forwarded.split(',')[0].strip() if forwarded else meta.get('REMOTE_ADDR')
    return address or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, company=None, object_reference=None):
    """
    Record who did what to which company object.

    The acting user is `user` when given, otherwise `request.user`; the
    company falls back to that user's company. Returns the AuditLog or None.
    Errors are logged and swallowed so the calling operation still commits.
    """
    if not (action and model_name and object_id):
        logger.warning(f"Skipping audit entry with incomplete data: {action} {model_name} #{object_id}")
        return None

    actor = user or getattr(request, 'user', None)
    if actor is not None and not actor.is_authenticated:
        actor = None
    if company is None and actor is not None:
        company = actor.company

    try:
        return AuditLog.objects.create(
            company=company,
            user=actor,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_reference=object_reference,
            changes=changes or {},
            ip_address=get_client_ip(request),
        )
    except Exception as e:
        logger.error(f"Audit entry {action} {model_name} #{object_id} not saved: {str(e)}")
        return None


def next_sequence_number(queryset, field, prefix, width=4):
    """
    Next number for codes shaped like <prefix><NNNN> inside a queryset.
    Caller is expected to hold a transaction; uniqueness is enforced by the
    database constraint on the field.
    """
    codes = queryset.filter(**{f'{field}__startswith': prefix}).values_list(field, flat=True)
    # Compared as integers so CUS-10000 sorts after CUS-9999
    numbers = [int(code[len(prefix):]) for code in codes if code[len(prefix):].isdigit()]
    sequence = max(numbers) + 1 if numbers else 1
    return f"{prefix}{sequence:0{width}d}"


def month_prefix(company, kind):
    """<KIND>-<COMPANYCODE>-<YYMM>- prefix used for monthly document numbers"""
    now = timezone.localtime()
    return f"{kind}-{company.code}-{now.strftime('%y%m')}-"


def date_param(params, name):
    """
    Optional YYYY-MM-DD query parameter as a date.
    Malformed or impossible dates (2024-02-30) raise a validation_error.
    """
    raw = (params.get(name) or '').strip()
    if not raw:
        return None
    try:
        parsed = parse_date(raw)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ServiceError(f"Invalid date for '{name}'. Use YYYY-MM-DD.", error='validation_error')
    return parsed
