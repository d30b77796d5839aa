"""Dispatch numbering, validation against production and status changes"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from textile_erp.core.exceptions import ServiceError
from textile_erp.core.utils import create_audit_log, next_sequence_number
from textile_erp.production.models import QC_STAGE_NUMBER, QC_ACCEPTED
from textile_erp.production.services import validate_transition
from .models import Dispatch

logger = logging.getLogger(__name__)

ALLOWED_DISPATCH_TRANSITIONS = {
    'pending': ['ready', 'cancelled'],
    'ready': ['dispatched', 'cancelled'],
    'dispatched': ['delivered'],
    'delivered': [],
    'cancelled': [],
}


def generate_dispatch_number(company):
    """DSP-<YYMMDD>-<NNNN>, sequence restarting every day"""
    prefix = f"DSP-{timezone.localtime().strftime('%y%m%d')}-"
    return next_sequence_number(Dispatch.objects.filter(company=company), 'dispatch_number', prefix)


def check_production_order(order, quantity, exclude_dispatch=None):
    """
    Dispatch against an order needs a passed QC stage and enough produced
    quantity not yet on other dispatches.
    """
    if order.status == 'cancelled':
        raise ServiceError(f"Production order {order.order_number} is cancelled.", error='invalid_transition')

    qc_stage = order.stages.filter(stage_number=QC_STAGE_NUMBER).first()
    if qc_stage is None or qc_stage.status != 'completed' or qc_stage.qc_status not in QC_ACCEPTED:
        raise ServiceError(
            f"Production order {order.order_number} has not passed quality control.",
            error='quality_gate',
        )

    already = Dispatch.objects.filter(production_order=order).exclude(status='cancelled')
    if exclude_dispatch is not None:
        already = already.exclude(pk=exclude_dispatch.pk)
    already_dispatched = already.aggregate(total=Sum('quantity'))['total'] or Decimal('0')
    available = order.completed_quantity - already_dispatched
    if quantity > available:
        raise ServiceError(
            f"Dispatch quantity ({quantity}) exceeds the quantity available for dispatch ({available}).",
            error='meter_limit_exceeded',
        )


def change_dispatch_status(dispatch, target_status, user, remarks=''):
    with transaction.atomic():
        dispatch = Dispatch.objects.select_for_update().get(pk=dispatch.pk)
        previous = dispatch.status
        validate_transition(ALLOWED_DISPATCH_TRANSITIONS, previous, target_status)

        now = timezone.now()
        if target_status == 'dispatched':
            if not dispatch.vehicle_number:
                raise ServiceError('Vehicle number is required before dispatching.', error='validation_error')
            dispatch.dispatched_at = now
            if dispatch.packing_id:
                dispatch.packing.status = 'dispatched'
                dispatch.packing.save(update_fields=['status', 'updated_at'])
        elif target_status == 'delivered':
            dispatch.delivered_at = now

        dispatch.status = target_status
        if remarks:
            dispatch.remarks = remarks
        dispatch.save()

    create_audit_log(action='dispatch_status', model_name='Dispatch', object_id=dispatch.pk,
                     user=user, company=dispatch.company, object_reference=dispatch.dispatch_number,
                     changes={'from': previous, 'to': target_status})
    logger.info(f"Dispatch {dispatch.dispatch_number}: {previous} -> {target_status}")
    return dispatch
