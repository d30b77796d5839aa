"""
Production workflow: order creation, stage transitions with QC gating,
progress recalculation and folding/checking QC.

Every state change runs inside one transaction with the order row locked.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from textile_erp.core.exceptions import ServiceError
from textile_erp.core.utils import create_audit_log, next_sequence_number, month_prefix
from .models import (
    STAGE_SEQUENCE, STAGE_TYPE_CHOICES, QC_STAGE_NUMBER, QC_ACCEPTED,
    ProductionOrder, ProductionStage, ProductionLog,
    FoldingChecking, Packing, RejectionStock,
)

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')

ALLOWED_STAGE_TRANSITIONS = {
    'pending': ['in_progress', 'cancelled'],
    'in_progress': ['completed', 'on_hold', 'rejected', 'cancelled'],
    'on_hold': ['in_progress', 'cancelled'],
    'rejected': ['in_progress', 'cancelled'],
    'completed': [],
    'cancelled': [],
}

ALLOWED_ORDER_TRANSITIONS = {
    'draft': ['approved', 'cancelled'],
    'approved': ['cancelled'],
    'in_progress': ['cancelled'],
    'on_hold': ['cancelled'],
    'quality_hold': ['cancelled'],
    'completed': [],
    'cancelled': [],
}

# Stages that can never be skipped
MANDATORY_STAGE_TYPES = ('grey_fabric_inward', 'quality_control', 'dispatch_invoice')


def validate_transition(allowed, current, target):
    if target not in allowed.get(current, []):
        raise ServiceError(
            f"Invalid status transition from {current} to {target}",
            error='invalid_transition',
        )


def _log(order, user, log_type, from_status='', to_status='', stage=None, reason='', notes='', metadata=None):
    return ProductionLog.objects.create(
        order=order,
        stage=stage,
        log_type=log_type,
        from_status=from_status or '',
        to_status=to_status or '',
        reason=reason or '',
        notes=notes or '',
        metadata=metadata or {},
        user=user if user and user.is_authenticated else None,
    )


def _lock_order(order):
    return ProductionOrder.objects.select_for_update().get(pk=order.pk)


def generate_order_number(company):
    """PO-<COMPANYCODE>-<YYMM>-<NNNN>, sequence restarting every month"""
    return next_sequence_number(
        ProductionOrder.objects.filter(company=company), 'order_number', month_prefix(company, 'PO')
    )


def create_production_order(company, user, **fields):
    """Create an order in draft together with its ten pending stages"""
    planned_quantity = fields['planned_quantity']
    with transaction.atomic():
        order = ProductionOrder.objects.create(
            company=company,
            order_number=generate_order_number(company),
            created_by=user,
            status='draft',
            **fields,
        )
        ProductionStage.objects.bulk_create([
            ProductionStage(
                order=order,
                stage_number=number,
                stage_type=stage_type,
                stage_name=name,
                planned_quantity=planned_quantity,
                planned_duration_minutes=minutes,
            )
            for number, (stage_type, name, minutes) in enumerate(STAGE_SEQUENCE, start=1)
        ])
        _log(order, user, 'status_change', to_status='draft', reason='Production order created',
             metadata={'planned_quantity': str(planned_quantity)})

    logger.info(f"Production order {order.order_number} created with {len(STAGE_SEQUENCE)} stages")
    return order


def update_planned_quantity(order, planned_quantity):
    if order.status not in ('draft', 'approved'):
        raise ServiceError(
            'Planned quantity can only change before production starts.',
            error='invalid_transition',
        )
    order.stages.filter(status='pending').update(planned_quantity=planned_quantity)


def approve_order(order, user, reason=''):
    with transaction.atomic():
        order = _lock_order(order)
        validate_transition(ALLOWED_ORDER_TRANSITIONS, order.status, 'approved')
        previous = order.status
        order.status = 'approved'
        order.save(update_fields=['status', 'updated_at'])
        _log(order, user, 'status_change', previous, 'approved', reason=reason or 'Order approved')
    create_audit_log(action='status_change', model_name='ProductionOrder', object_id=order.pk,
                     user=user, company=order.company, object_reference=order.order_number,
                     changes={'from': previous, 'to': 'approved'})
    logger.info(f"Production order {order.order_number} approved")
    return order


def cancel_order(order, user, reason):
    if not reason:
        raise ServiceError('A cancellation reason is required.', error='validation_error')
    with transaction.atomic():
        order = _lock_order(order)
        validate_transition(ALLOWED_ORDER_TRANSITIONS, order.status, 'cancelled')
        previous = order.status
        open_stages = order.stages.exclude(status__in=['completed', 'cancelled'])
        cancelled_stages = open_stages.count()
        open_stages.update(status='cancelled', updated_by=user, updated_at=timezone.now())
        order.status = 'cancelled'
        order.save(update_fields=['status', 'updated_at'])
        _log(order, user, 'status_change', previous, 'cancelled', reason=reason,
             metadata={'cancelled_stages': cancelled_stages})
    create_audit_log(action='status_change', model_name='ProductionOrder', object_id=order.pk,
                     user=user, company=order.company, object_reference=order.order_number,
                     changes={'from': previous, 'to': 'cancelled', 'reason': reason})
    logger.info(f"Production order {order.order_number} cancelled: {reason}")
    return order


def previous_active_stage(stages, stage):
    """Closest earlier stage that was not skipped"""
    for candidate in reversed(stages[:stage.stage_number - 1]):
        if candidate.status != 'cancelled':
            return candidate
    return None


def stage_input_quantity(order, stages, stage):
    """Material entering a stage: output of the previous worked stage, or the order quantity"""
    previous = previous_active_stage(stages, stage)
    if previous is not None and previous.actual_quantity is not None:
        return previous.actual_quantity
    return order.planned_quantity


def _check_can_start(order, stages, stage):
    for earlier in stages[:stage.stage_number - 1]:
        if earlier.status not in ('completed', 'cancelled'):
            raise ServiceError(
                f"Stage {earlier.stage_number} ({earlier.stage_name}) must be completed before "
                f"starting stage {stage.stage_number} ({stage.stage_name}).",
                error='stage_sequence_error',
            )

    busy = [s for s in stages if s.status == 'in_progress' and s.pk != stage.pk]
    if busy:
        raise ServiceError(
            f"Stage {busy[0].stage_number} ({busy[0].stage_name}) is still in progress.",
            error='stage_sequence_error',
        )

    if stage.stage_number > QC_STAGE_NUMBER:
        qc_stage = stages[QC_STAGE_NUMBER - 1]
        if qc_stage.status != 'completed' or qc_stage.qc_status not in QC_ACCEPTED:
            raise ServiceError(
                f"{stage.stage_name} cannot start until quality control has passed.",
                error='quality_gate',
            )


def _validate_quantities(input_quantity, actual_quantity, defect_quantity):
    if actual_quantity < 0 or defect_quantity < 0:
        raise ServiceError('Quantities cannot be negative.', error='validation_error')
    if actual_quantity + defect_quantity > input_quantity:
        raise ServiceError(
            f"Total output ({actual_quantity + defect_quantity}) cannot exceed stage input ({input_quantity})",
            error='meter_limit_exceeded',
        )


def transition_stage(order, stage_number, target_status, user, reason='', actual_quantity=None,
                     defect_quantity=None, quality_grade='', qc_status='', notes=''):
    """
    Move one stage of an order to target_status.

    Validates the allow-list, stage sequencing and the QC gate, stamps
    times and quantities, logs the change and recomputes the order.
    """
    with transaction.atomic():
        order = _lock_order(order)
        if order.status == 'draft':
            raise ServiceError('Production order must be approved before stages can change.',
                               error='invalid_transition')
        if order.status in ProductionOrder.TERMINAL_STATUSES:
            raise ServiceError(f"Production order is {order.status}.", error='invalid_transition')

        stages = list(order.stages.order_by('stage_number'))
        stage = next((s for s in stages if str(s.stage_number) == str(stage_number)), None)
        if stage is None:
            raise ServiceError(f"Stage {stage_number} not found.", error='not_found', status_code=404)

        current = stage.status
        validate_transition(ALLOWED_STAGE_TRANSITIONS, current, target_status)
        now = timezone.now()
        is_qc_stage = stage.stage_number == QC_STAGE_NUMBER
        # Meters rejected in earlier rounds of this stage stay counted
        carried_defect = stage.defect_quantity or ZERO
        new_defect = Decimal(str(defect_quantity)) if defect_quantity is not None else ZERO
        if new_defect < 0:
            raise ServiceError('Quantities cannot be negative.', error='validation_error')

        if target_status == 'in_progress':
            _check_can_start(order, stages, stage)
            if stage.started_at is None:
                stage.started_at = now
            if current == 'rejected':
                # Rework: the stage goes through inspection again
                stage.qc_status = 'pending'
                stage.quality_grade = ''

        elif target_status == 'completed':
            input_quantity = stage_input_quantity(order, stages, stage)
            defect = carried_defect + new_defect
            actual = Decimal(str(actual_quantity)) if actual_quantity is not None else input_quantity - defect
            _validate_quantities(input_quantity, actual, defect)
            if is_qc_stage:
                if qc_status not in QC_ACCEPTED:
                    raise ServiceError(
                        'Quality control can only be completed with a pass or partial result. '
                        'Reject the stage to record a failure.',
                        error='quality_gate',
                    )
                if quality_grade == 'Reject':
                    raise ServiceError('A rejected grade cannot complete quality control.', error='quality_gate')
            stage.actual_quantity = actual
            stage.defect_quantity = defect
            stage.completed_at = now
            started = stage.started_at or now
            stage.actual_duration_minutes = int((now - started).total_seconds() // 60)
            if qc_status:
                stage.qc_status = qc_status
            if quality_grade:
                stage.quality_grade = quality_grade

            # Output of this stage feeds the next worked stage
            for later in stages[stage.stage_number:]:
                if later.status == 'pending':
                    later.planned_quantity = actual
                    later.save(update_fields=['planned_quantity', 'updated_at'])
                    break

        elif target_status == 'rejected':
            defect = carried_defect + new_defect
            _validate_quantities(stage_input_quantity(order, stages, stage), ZERO, defect)
            stage.defect_quantity = defect
            if is_qc_stage:
                stage.qc_status = 'fail'
                stage.quality_grade = 'Reject'
            if not reason:
                raise ServiceError('A reason is required to reject a stage.', error='validation_error')

        elif target_status == 'on_hold':
            if not reason:
                raise ServiceError('A reason is required to put a stage on hold.', error='validation_error')

        elif target_status == 'cancelled':
            if stage.stage_type in MANDATORY_STAGE_TYPES:
                raise ServiceError(f"{stage.stage_name} cannot be skipped.", error='invalid_transition')

        stage.status = target_status
        if notes:
            stage.notes = notes
        stage.updated_by = user
        stage.save()

        if is_qc_stage and target_status == 'rejected' and new_defect > 0:
            RejectionStock.objects.create(
                company=order.company,
                production_order=order,
                lot_number=order.order_number,
                party_name=order.customer.name if order.customer_id else '',
                source_module='quality_control',
                meter=new_defect,
                reason=reason,
                date=timezone.localdate(),
            )

        _log(
            order, user, 'quality_check' if is_qc_stage else 'stage_change',
            current, target_status, stage=stage, reason=reason, notes=notes,
            metadata={
                'stage_number': stage.stage_number,
                'stage_type': stage.stage_type,
                'actual_quantity': str(stage.actual_quantity) if stage.actual_quantity is not None else None,
                'defect_quantity': str(stage.defect_quantity),
                'quality_grade': stage.quality_grade,
                'qc_status': stage.qc_status,
            },
        )
        order = recalculate_order(order, stages, user)

    create_audit_log(action='stage_transition', model_name='ProductionStage', object_id=stage.pk,
                     user=user, company=order.company, object_reference=order.order_number,
                     changes={'stage': stage.stage_number, 'from': current, 'to': target_status,
                              'reason': reason})
    logger.info(f"{order.order_number} stage {stage.stage_number} ({stage.stage_type}): {current} -> {target_status}")
    return order, stage


def derive_order_status(order, stages):
    worked = [s for s in stages if s.status != 'cancelled']
    statuses = {s.status for s in worked}
    if worked and statuses == {'completed'}:
        return 'completed'
    if 'rejected' in statuses:
        return 'quality_hold'
    if 'on_hold' in statuses:
        return 'on_hold'
    if 'in_progress' in statuses or 'completed' in statuses:
        return 'in_progress'
    return order.status


def progress_counts(stages):
    """(completed, total) over stages that were not skipped"""
    worked = [s for s in stages if s.status != 'cancelled']
    completed = sum(1 for s in worked if s.status == 'completed')
    return completed, len(worked)


def recalculate_order(order, stages, user=None):
    """Recompute progress, quantities and the derived order status"""
    completed, total = progress_counts(stages)
    order.progress_percentage = round(completed / total * 100) if total else 0

    completed_stages = [s for s in stages if s.status == 'completed' and s.actual_quantity is not None]
    order.completed_quantity = completed_stages[-1].actual_quantity if completed_stages else ZERO
    order.rejected_quantity = sum((s.defect_quantity for s in stages), ZERO)

    previous = order.status
    status = derive_order_status(order, stages)
    now = timezone.now()
    if status != previous:
        order.status = status
        if status == 'in_progress' and order.actual_start_at is None:
            order.actual_start_at = now
        if status == 'completed':
            order.actual_end_at = now
        _log(order, user, 'status_change', previous, status, reason='Derived from stage progress')
        logger.info(f"Production order {order.order_number}: {previous} -> {status}")

    order.save(update_fields=[
        'progress_percentage', 'completed_quantity', 'rejected_quantity',
        'status', 'actual_start_at', 'actual_end_at', 'updated_at',
    ])
    return order


def _stage_brief(stage):
    if stage is None:
        return None
    return {
        'id': stage.pk,
        'stage_number': stage.stage_number,
        'stage_type': stage.stage_type,
        'stage_name': stage.stage_name,
        'status': stage.status,
        'planned_quantity': str(stage.planned_quantity),
        'started_at': stage.started_at,
    }


def get_flow_status(order):
    stages = list(order.stages.order_by('stage_number'))
    current_stage = next((s for s in stages if s.status in ('in_progress', 'on_hold', 'rejected')), None)
    next_stage = next((s for s in stages if s.status == 'pending'), None)
    completed, total = progress_counts(stages)
    return {
        'order_id': order.pk,
        'order_number': order.order_number,
        'status': order.status,
        'current_stage': _stage_brief(current_stage),
        'next_stage': _stage_brief(next_stage),
        'completed_stages': completed,
        'skipped_stages': len(stages) - total,
        'total_stages': total,
        'progress_percentage': round(completed / total * 100) if total else 0,
        'quantity_completion_percentage': str(order.quantity_completion_percentage),
        'completed_quantity': str(order.completed_quantity),
        'rejected_quantity': str(order.rejected_quantity),
    }


def production_dashboard(company):
    orders = ProductionOrder.objects.filter(company=company)
    today = timezone.localdate()
    totals = orders.aggregate(
        total_orders=Count('id'),
        in_progress_orders=Count('id', filter=Q(status='in_progress')),
        completed_orders=Count('id', filter=Q(status='completed')),
        on_hold_orders=Count('id', filter=Q(status__in=['on_hold', 'quality_hold'])),
        delayed_orders=Count('id', filter=Q(planned_end_date__lt=today) & ~Q(status__in=['completed', 'cancelled'])),
    )

    stage_wise_count = {stage_type: 0 for stage_type, _label in STAGE_TYPE_CHOICES}
    in_progress = (
        ProductionStage.objects.filter(order__company=company, status='in_progress')
        .values('stage_type').annotate(count=Count('id'))
    )
    for row in in_progress:
        stage_wise_count[row['stage_type']] = row['count']

    recent_logs = (
        ProductionLog.objects.filter(order__company=company)
        .select_related('order', 'stage', 'user')
        .order_by('-created_at', '-id')[:10]
    )
    recent_activity = [
        {
            'order_id': log.order_id,
            'order_number': log.order.order_number,
            'stage_name': log.stage.stage_name if log.stage_id else None,
            'log_type': log.log_type,
            'from_status': log.from_status,
            'to_status': log.to_status,
            'reason': log.reason,
            'user': log.user.username if log.user_id else None,
            'created_at': log.created_at,
        }
        for log in recent_logs
    ]

    return {**totals, 'stage_wise_count': stage_wise_count, 'recent_activity': recent_activity}


def record_folding_qc(folding, checked_meter, rejected_meter, qc_status, checker_name, user, remarks=None):
    """
    Record the inspection result of a folding/checking entry.

    Checked meters move to packing and rejected meters to rejection stock;
    a later update replaces the earlier movement.
    """
    checked_meter = Decimal(str(checked_meter))
    rejected_meter = Decimal(str(rejected_meter))
    if checked_meter < 0 or rejected_meter < 0:
        raise ServiceError('Checked and rejected meters cannot be negative.', error='validation_error')
    if not (checker_name or '').strip():
        raise ServiceError('Checker name is required.', error='validation_error')
    if qc_status not in ('pass', 'fail', 'partial'):
        raise ServiceError("QC status must be one of pass, fail, partial.", error='validation_error')

    with transaction.atomic():
        folding = FoldingChecking.objects.select_for_update().get(pk=folding.pk)
        total_output = checked_meter + rejected_meter
        if total_output > folding.input_meter:
            logger.warning(f"Folding QC refused for lot {folding.lot_number}: {total_output}m > {folding.input_meter}m")
            raise ServiceError(
                f"Total output ({total_output}m) cannot exceed input meter ({folding.input_meter}m)",
                error='meter_limit_exceeded',
            )

        folding.checked_meter = checked_meter
        folding.rejected_meter = rejected_meter
        folding.qc_status = qc_status
        folding.checker_name = checker_name.strip()
        folding.checked_at = timezone.now()
        if remarks is not None:
            folding.remarks = remarks
        folding.save()

        shared = {
            'company': folding.company,
            'production_order': folding.production_order,
            'lot_number': folding.lot_number,
            'party_name': folding.party_name,
        }

        packing = Packing.objects.filter(folding_checking=folding).first()
        if checked_meter > 0:
            if packing is None:
                packing = Packing(folding_checking=folding, date=timezone.localdate(),
                                  packing_type='bale', **shared)
            if packing.status == 'dispatched':
                raise ServiceError('Checked fabric of this lot was already dispatched.', error='invalid_transition')
            packing.customer = folding.customer
            packing.quality = folding.quality or 'Standard'
            packing.input_meter = checked_meter
            if packing.packed_meter > checked_meter:
                packing.packed_meter = checked_meter
            packing.save()
        elif packing is not None:
            if packing.status == 'dispatched':
                raise ServiceError('Checked fabric of this lot was already dispatched.', error='invalid_transition')
            packing.delete()

        rejection = RejectionStock.objects.filter(folding_checking=folding).first()
        if rejected_meter > 0:
            if rejection is None:
                rejection = RejectionStock(folding_checking=folding, date=timezone.localdate(),
                                           source_module='folding_checking', reason='QC rejection', **shared)
            rejection.meter = rejected_meter
            rejection.save()
        elif rejection is not None:
            rejection.delete()

    create_audit_log(action='qc_update', model_name='FoldingChecking', object_id=folding.pk,
                     user=user, company=folding.company, object_reference=folding.lot_number,
                     changes={'checked_meter': str(checked_meter), 'rejected_meter': str(rejected_meter),
                              'qc_status': qc_status, 'checker_name': folding.checker_name})
    logger.info(f"Folding QC for lot {folding.lot_number}: checked={checked_meter}m rejected={rejected_meter}m pending={folding.pending_meter}m ({qc_status})")
    return folding
