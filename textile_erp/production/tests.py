"""
Test suite for Production module
Tests: Order lifecycle, stage transitions, quantity limits, QC gating, progress, folding QC, API endpoints
"""
from datetime import timedelta
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from decimal import Decimal
from textile_erp.core.exceptions import ServiceError
from textile_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from textile_erp.production import services
from textile_erp.production.models import (
    ProductionOrder, ProductionLog, Packing, RejectionStock, QC_STAGE_NUMBER, TOTAL_STAGES,
)


def work_stage(order, stage_number, user, **complete_kwargs):
    """Start and complete one stage"""
    services.transition_stage(order, stage_number, 'in_progress', user)
    order, stage = services.transition_stage(order, stage_number, 'completed', user, **complete_kwargs)
    return order, stage


def advance_through_qc(order, user, qc_status='pass'):
    """Approve the order and complete every stage up to and including QC"""
    services.approve_order(order, user)
    for number in range(1, QC_STAGE_NUMBER):
        order, _stage = work_stage(order, number, user)
    order, _stage = work_stage(order, QC_STAGE_NUMBER, user, qc_status=qc_status, quality_grade='A')
    return order


class ProductionOrderServiceTests(TestCase):
    """Test order creation, approval and cancellation"""

    def setUp(self):
        self.company = TestDataFactory.create_company(code='SURAT01')
        self.user = TestDataFactory.create_user(company=self.company)
        self.customer = TestDataFactory.create_customer(self.company)

    def test_create_order_with_stages(self):
        """Test a new order is a draft with ten pending stages"""
        order = TestDataFactory.create_production_order(self.company, self.user, customer=self.customer)
        self.assertEqual(order.status, 'draft')
        self.assertTrue(order.order_number.startswith('PO-SURAT01-'))
        self.assertTrue(order.order_number.endswith('-0001'))
        stages = list(order.stages.order_by('stage_number'))
        self.assertEqual(len(stages), TOTAL_STAGES)
        self.assertEqual(stages[0].stage_type, 'grey_fabric_inward')
        self.assertEqual(stages[QC_STAGE_NUMBER - 1].stage_type, 'quality_control')
        self.assertTrue(all(stage.status == 'pending' for stage in stages))
        self.assertTrue(all(stage.planned_quantity == Decimal('1000') for stage in stages))

    def test_order_numbers_increment(self):
        """Test order numbers are sequential per company"""
        first = TestDataFactory.create_production_order(self.company, self.user)
        second = TestDataFactory.create_production_order(self.company, self.user)
        self.assertEqual(int(second.order_number[-4:]), int(first.order_number[-4:]) + 1)

    def test_approve_order(self):
        """Test approving a draft order"""
        order = TestDataFactory.create_production_order(self.company, self.user)
        order = services.approve_order(order, self.user)
        self.assertEqual(order.status, 'approved')
        self.assertTrue(ProductionLog.objects.filter(order=order, to_status='approved').exists())

    def test_approve_twice(self):
        """Test an approved order cannot be approved again"""
        order = TestDataFactory.create_production_order(self.company, self.user)
        services.approve_order(order, self.user)
        with self.assertRaises(ServiceError) as ctx:
            services.approve_order(order, self.user)
        self.assertEqual(ctx.exception.error, 'invalid_transition')

    def test_cancel_requires_reason(self):
        """Test cancellation needs a reason"""
        order = TestDataFactory.create_production_order(self.company, self.user)
        with self.assertRaises(ServiceError) as ctx:
            services.cancel_order(order, self.user, '')
        self.assertEqual(ctx.exception.error, 'validation_error')

    def test_cancel_closes_open_stages(self):
        """Test cancelling an order cancels its open stages and blocks further work"""
        order = TestDataFactory.create_production_order(self.company, self.user)
        services.approve_order(order, self.user)
        work_stage(order, 1, self.user)
        order = services.cancel_order(order, self.user, 'Buyer withdrew the order')
        self.assertEqual(order.status, 'cancelled')
        self.assertEqual(order.stages.get(stage_number=1).status, 'completed')
        self.assertEqual(order.stages.filter(status='cancelled').count(), TOTAL_STAGES - 1)
        with self.assertRaises(ServiceError):
            services.transition_stage(order, 2, 'in_progress', self.user)


class StageTransitionTests(TestCase):
    """Test the stage state machine"""

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company, role='supervisor')
        self.customer = TestDataFactory.create_customer(self.company)
        self.order = TestDataFactory.create_production_order(self.company, self.user, customer=self.customer)

    def approve(self):
        self.order = services.approve_order(self.order, self.user)

    def test_draft_order_stage_refused(self):
        """Test stages of a draft order cannot move"""
        with self.assertRaises(ServiceError) as ctx:
            services.transition_stage(self.order, 1, 'in_progress', self.user)
        self.assertEqual(ctx.exception.error, 'invalid_transition')
        self.assertIn('approved', ctx.exception.message)

    def test_start_out_of_order(self):
        """Test stages start in sequence"""
        self.approve()
        with self.assertRaises(ServiceError) as ctx:
            services.transition_stage(self.order, 2, 'in_progress', self.user)
        self.assertEqual(ctx.exception.error, 'stage_sequence_error')

    def test_pending_to_completed_not_allowed(self):
        """Test only allow-listed transitions succeed"""
        self.approve()
        with self.assertRaises(ServiceError) as ctx:
            services.transition_stage(self.order, 1, 'completed', self.user)
        self.assertEqual(ctx.exception.error, 'invalid_transition')
        self.assertEqual(ctx.exception.message, 'Invalid status transition from pending to completed')

    def test_start_first_stage(self):
        """Test starting the first stage moves the order into production"""
        self.approve()
        order, stage = services.transition_stage(self.order, 1, 'in_progress', self.user)
        self.assertEqual(stage.status, 'in_progress')
        self.assertIsNotNone(stage.started_at)
        self.assertEqual(order.status, 'in_progress')
        self.assertIsNotNone(order.actual_start_at)

    def test_complete_stage_quantities(self):
        """Test completing a stage records quantities and feeds the next stage"""
        self.approve()
        order, stage = work_stage(self.order, 1, self.user,
                                  actual_quantity=Decimal('950'), defect_quantity=Decimal('30'))
        self.assertEqual(stage.actual_quantity, Decimal('950'))
        self.assertEqual(order.completed_quantity, Decimal('950'))
        self.assertEqual(order.rejected_quantity, Decimal('30'))
        self.assertEqual(order.progress_percentage, 10)
        self.assertEqual(order.stages.get(stage_number=2).planned_quantity, Decimal('950'))

    def test_default_actual_quantity(self):
        """Test the actual quantity defaults to input minus defect"""
        self.approve()
        _order, stage = work_stage(self.order, 1, self.user, defect_quantity=Decimal('20'))
        self.assertEqual(stage.actual_quantity, Decimal('980'))

    def test_output_cannot_exceed_input(self):
        """Test actual + defect never exceeds the stage input"""
        self.approve()
        services.transition_stage(self.order, 1, 'in_progress', self.user)
        with self.assertRaises(ServiceError) as ctx:
            services.transition_stage(self.order, 1, 'completed', self.user,
                                      actual_quantity=Decimal('990'), defect_quantity=Decimal('20'))
        self.assertEqual(ctx.exception.error, 'meter_limit_exceeded')

    def test_next_stage_input_is_previous_output(self):
        """Test a stage's input is the previous stage's output"""
        self.approve()
        work_stage(self.order, 1, self.user, actual_quantity=Decimal('900'))
        services.transition_stage(self.order, 2, 'in_progress', self.user)
        with self.assertRaises(ServiceError) as ctx:
            services.transition_stage(self.order, 2, 'completed', self.user, actual_quantity=Decimal('950'))
        self.assertEqual(ctx.exception.error, 'meter_limit_exceeded')

    def test_hold_requires_reason(self):
        """Test a hold needs a reason"""
        self.approve()
        services.transition_stage(self.order, 1, 'in_progress', self.user)
        with self.assertRaises(ServiceError):
            services.transition_stage(self.order, 1, 'on_hold', self.user)

    def test_hold_and_resume(self):
        """Test hold puts the order on hold and resume brings it back"""
        self.approve()
        services.transition_stage(self.order, 1, 'in_progress', self.user)
        order, _stage = services.transition_stage(self.order, 1, 'on_hold', self.user, reason='Boiler down')
        self.assertEqual(order.status, 'on_hold')
        order, _stage = services.transition_stage(self.order, 1, 'in_progress', self.user)
        self.assertEqual(order.status, 'in_progress')

    def test_skip_optional_stage(self):
        """Test skipped stages leave the progress denominator"""
        self.approve()
        for number in (1, 2, 3):
            work_stage(self.order, number, self.user)
        order, stage = services.transition_stage(self.order, 4, 'cancelled', self.user, reason='No print')
        self.assertEqual(stage.status, 'cancelled')
        self.assertEqual(order.progress_percentage, round(3 / 9 * 100))
        # washing can start right after the skipped printing stage
        order, stage = services.transition_stage(self.order, 5, 'in_progress', self.user)
        self.assertEqual(stage.status, 'in_progress')

    def test_mandatory_stage_cannot_be_skipped(self):
        """Test grey fabric inward, QC and dispatch cannot be skipped"""
        self.approve()
        with self.assertRaises(ServiceError) as ctx:
            services.transition_stage(self.order, 1, 'cancelled', self.user)
        self.assertEqual(ctx.exception.error, 'invalid_transition')

    def test_qc_requires_pass_or_partial(self):
        """Test QC cannot complete without an accepted result"""
        self.approve()
        for number in range(1, QC_STAGE_NUMBER):
            work_stage(self.order, number, self.user)
        services.transition_stage(self.order, QC_STAGE_NUMBER, 'in_progress', self.user)
        with self.assertRaises(ServiceError) as ctx:
            services.transition_stage(self.order, QC_STAGE_NUMBER, 'completed', self.user)
        self.assertEqual(ctx.exception.error, 'quality_gate')
        with self.assertRaises(ServiceError):
            services.transition_stage(self.order, QC_STAGE_NUMBER, 'completed', self.user,
                                      qc_status='pass', quality_grade='Reject')

    def test_qc_reject_creates_rejection_stock(self):
        """Test rejecting QC puts the order on quality hold and books rejection stock"""
        self.approve()
        for number in range(1, QC_STAGE_NUMBER):
            work_stage(self.order, number, self.user)
        services.transition_stage(self.order, QC_STAGE_NUMBER, 'in_progress', self.user)
        order, stage = services.transition_stage(
            self.order, QC_STAGE_NUMBER, 'rejected', self.user,
            reason='Shade variation', defect_quantity=Decimal('50'),
        )
        self.assertEqual(stage.qc_status, 'fail')
        self.assertEqual(stage.quality_grade, 'Reject')
        self.assertEqual(order.status, 'quality_hold')
        rejection = RejectionStock.objects.get(production_order=order)
        self.assertEqual(rejection.source_module, 'quality_control')
        self.assertEqual(rejection.meter, Decimal('50'))

        # Cutting & packing stays blocked while QC is rejected
        with self.assertRaises(ServiceError):
            services.transition_stage(self.order, QC_STAGE_NUMBER + 1, 'in_progress', self.user)

    def test_reject_requires_reason(self):
        """Test a rejection needs a reason"""
        self.approve()
        services.transition_stage(self.order, 1, 'in_progress', self.user)
        with self.assertRaises(ServiceError):
            services.transition_stage(self.order, 1, 'rejected', self.user)

    def test_qc_rework_and_pass(self):
        """Test a rejected QC stage can be reworked and passed"""
        self.approve()
        for number in range(1, QC_STAGE_NUMBER):
            work_stage(self.order, number, self.user)
        services.transition_stage(self.order, QC_STAGE_NUMBER, 'in_progress', self.user)
        services.transition_stage(self.order, QC_STAGE_NUMBER, 'rejected', self.user, reason='Stains')
        order, stage = services.transition_stage(self.order, QC_STAGE_NUMBER, 'in_progress', self.user)
        self.assertEqual(stage.qc_status, 'pending')
        self.assertEqual(stage.quality_grade, '')
        order, stage = services.transition_stage(self.order, QC_STAGE_NUMBER, 'completed', self.user,
                                                 qc_status='partial', quality_grade='B')
        self.assertEqual(stage.status, 'completed')
        order, stage = services.transition_stage(self.order, QC_STAGE_NUMBER + 1, 'in_progress', self.user)
        self.assertEqual(stage.status, 'in_progress')

    def test_qc_rework_keeps_rejected_meters(self):
        """Test meters rejected before a rework stay out of the reworked output"""
        self.approve()
        for number in range(1, QC_STAGE_NUMBER):
            work_stage(self.order, number, self.user)
        services.transition_stage(self.order, QC_STAGE_NUMBER, 'in_progress', self.user)
        services.transition_stage(self.order, QC_STAGE_NUMBER, 'rejected', self.user,
                                  reason='Shade variation', defect_quantity=Decimal('50'))
        services.transition_stage(self.order, QC_STAGE_NUMBER, 'in_progress', self.user)

        with self.assertRaises(ServiceError) as ctx:
            services.transition_stage(self.order, QC_STAGE_NUMBER, 'completed', self.user,
                                      qc_status='pass', actual_quantity=Decimal('1000'))
        self.assertEqual(ctx.exception.error, 'meter_limit_exceeded')

        order, stage = services.transition_stage(self.order, QC_STAGE_NUMBER, 'completed', self.user,
                                                 qc_status='pass', quality_grade='A')
        self.assertEqual(stage.actual_quantity, Decimal('950'))
        self.assertEqual(stage.defect_quantity, Decimal('50'))
        self.assertEqual(order.rejected_quantity, Decimal('50'))
        self.assertEqual(order.completed_quantity, Decimal('950'))
        self.assertEqual(RejectionStock.objects.get(production_order=order).meter, Decimal('50'))

    def test_second_rejection_adds_to_defect(self):
        """Test each rejection round books only its own meters"""
        self.approve()
        for number in range(1, QC_STAGE_NUMBER):
            work_stage(self.order, number, self.user)
        services.transition_stage(self.order, QC_STAGE_NUMBER, 'in_progress', self.user)
        services.transition_stage(self.order, QC_STAGE_NUMBER, 'rejected', self.user,
                                  reason='Stains', defect_quantity=Decimal('30'))
        services.transition_stage(self.order, QC_STAGE_NUMBER, 'in_progress', self.user)
        order, stage = services.transition_stage(self.order, QC_STAGE_NUMBER, 'rejected', self.user,
                                                 reason='Stains again', defect_quantity=Decimal('20'))
        self.assertEqual(stage.defect_quantity, Decimal('50'))
        self.assertEqual(order.rejected_quantity, Decimal('50'))
        meters = sorted(RejectionStock.objects.filter(production_order=order).values_list('meter', flat=True))
        self.assertEqual(meters, [Decimal('20'), Decimal('30')])

    def test_complete_all_stages(self):
        """Test completing every stage completes the order"""
        order = advance_through_qc(self.order, self.user)
        for number in range(QC_STAGE_NUMBER + 1, TOTAL_STAGES + 1):
            order, _stage = work_stage(order, number, self.user)
        self.assertEqual(order.status, 'completed')
        self.assertEqual(order.progress_percentage, 100)
        self.assertIsNotNone(order.actual_end_at)
        self.assertEqual(order.completed_quantity, Decimal('1000'))

    def test_completed_order_is_frozen(self):
        """Test a completed order refuses further stage changes"""
        order = advance_through_qc(self.order, self.user)
        for number in range(QC_STAGE_NUMBER + 1, TOTAL_STAGES + 1):
            order, _stage = work_stage(order, number, self.user)
        with self.assertRaises(ServiceError):
            services.transition_stage(order, TOTAL_STAGES, 'in_progress', self.user)

    def test_flow_status(self):
        """Test the flow summary of an order"""
        self.approve()
        work_stage(self.order, 1, self.user)
        services.transition_stage(self.order, 2, 'in_progress', self.user)
        flow = services.get_flow_status(ProductionOrder.objects.get(pk=self.order.pk))
        self.assertEqual(flow['current_stage']['stage_number'], 2)
        self.assertEqual(flow['next_stage']['stage_number'], 3)
        self.assertEqual(flow['completed_stages'], 1)
        self.assertEqual(flow['progress_percentage'], 10)


class FoldingQCTests(TestCase):
    """Test folding/checking QC and its packing/rejection side effects"""

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company)
        self.customer = TestDataFactory.create_customer(self.company, name='Lakshmi Garments')
        self.order = TestDataFactory.create_production_order(self.company, self.user, customer=self.customer)
        self.folding = TestDataFactory.create_folding(self.company, production_order=self.order,
                                                      input_meter=Decimal('1000'))

    def test_output_exceeds_input(self):
        """Test checked + rejected cannot exceed the input meter"""
        with self.assertRaises(ServiceError) as ctx:
            services.record_folding_qc(self.folding, Decimal('900'), Decimal('150'), 'partial', 'Anita', self.user)
        self.assertEqual(ctx.exception.error, 'meter_limit_exceeded')
        self.assertEqual(ctx.exception.message, 'Total output (1050m) cannot exceed input meter (1000.00m)')

    def test_checker_required(self):
        """Test the checker name is required"""
        with self.assertRaises(ServiceError):
            services.record_folding_qc(self.folding, Decimal('900'), Decimal('100'), 'pass', '  ', self.user)

    def test_invalid_qc_status(self):
        """Test the QC status must be pass, fail or partial"""
        with self.assertRaises(ServiceError):
            services.record_folding_qc(self.folding, Decimal('900'), Decimal('100'), 'pending', 'Anita', self.user)

    def test_qc_creates_packing_and_rejection(self):
        """Test checked meters go to packing and rejected meters to rejection stock"""
        folding = services.record_folding_qc(self.folding, Decimal('940'), Decimal('40'), 'partial', 'Anita', self.user)
        self.assertEqual(folding.pending_meter, Decimal('20'))
        packing = Packing.objects.get(folding_checking=folding)
        self.assertEqual(packing.input_meter, Decimal('940'))
        self.assertEqual(packing.production_order, self.order)
        rejection = RejectionStock.objects.get(folding_checking=folding)
        self.assertEqual(rejection.meter, Decimal('40'))
        self.assertEqual(rejection.reason, 'QC rejection')
        self.assertEqual(rejection.source_module, 'folding_checking')

    def test_qc_update_replaces_previous(self):
        """Test re-recording QC updates packing and removes empty rejection"""
        services.record_folding_qc(self.folding, Decimal('900'), Decimal('100'), 'partial', 'Anita', self.user)
        services.record_folding_qc(self.folding, Decimal('1000'), Decimal('0'), 'pass', 'Anita', self.user)
        self.assertEqual(Packing.objects.filter(folding_checking=self.folding).count(), 1)
        self.assertEqual(Packing.objects.get(folding_checking=self.folding).input_meter, Decimal('1000'))
        self.assertFalse(RejectionStock.objects.filter(folding_checking=self.folding).exists())

    def test_dispatched_packing_blocks_update(self):
        """Test QC cannot change once the packed lot was dispatched"""
        services.record_folding_qc(self.folding, Decimal('900'), Decimal('100'), 'partial', 'Anita', self.user)
        Packing.objects.filter(folding_checking=self.folding).update(status='dispatched')
        with self.assertRaises(ServiceError) as ctx:
            services.record_folding_qc(self.folding, Decimal('800'), Decimal('200'), 'partial', 'Anita', self.user)
        self.assertEqual(ctx.exception.error, 'invalid_transition')


class ProductionAPITests(TestCase):
    """Test production API endpoints"""

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company, role='manager')
        self.customer = TestDataFactory.create_customer(self.company, name='Mehta Textiles')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def create_order(self, **extra):
        data = {
            'customer': self.customer.pk,
            'fabric_type': 'Cotton Cambric',
            'planned_quantity': '2000',
            'priority': 'high',
        }
        data.update(extra)
        return self.client.post('/api/v1/production/orders/', data)

    def test_create_order(self):
        """Test creating an order via API"""
        response = self.create_order()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['status'], 'draft')
        self.assertEqual(len(data['stages']), TOTAL_STAGES)
        self.assertEqual(data['customer_name'], 'Mehta Textiles')

    def test_create_order_invalid_quantity(self):
        """Test planned quantity must be positive"""
        response = self.create_order(planned_quantity='0')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_error')

    def test_create_order_other_company_customer(self):
        """Test orders cannot reference another company's customer"""
        foreign = TestDataFactory.create_customer(TestDataFactory.create_company())
        response = self.create_order(customer=foreign.pk)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_viewer_cannot_create(self):
        """Test viewers can read but not write"""
        viewer = TestDataFactory.create_user(company=self.company, role='viewer')
        self.client.authenticate_user(viewer)
        self.assertEqual(self.client.get('/api/v1/production/orders/').status_code, status.HTTP_200_OK)
        self.assertEqual(self.create_order().status_code, status.HTTP_403_FORBIDDEN)

    def test_stage_start_on_draft(self):
        """Test the stage endpoint refuses draft orders"""
        order_id = self.create_order().data['data']['id']
        response = self.client.post(f'/api/v1/production/orders/{order_id}/stages/1/start/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'invalid_transition')

    def test_stage_endpoints(self):
        """Test approve, start and complete through the API"""
        order_id = self.create_order().data['data']['id']
        self.assertEqual(self.client.post(f'/api/v1/production/orders/{order_id}/approve/').status_code,
                         status.HTTP_200_OK)
        self.client.post(f'/api/v1/production/orders/{order_id}/stages/1/start/')
        response = self.client.post(f'/api/v1/production/orders/{order_id}/stages/1/complete/', {
            'actual_quantity': '1980',
            'defect_quantity': '20',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['order']['progress_percentage'], 10)
        self.assertEqual(data['flow']['next_stage']['stage_number'], 2)

    def test_stage_number_out_of_range(self):
        """Test stage numbers outside 1..10 are not found"""
        order_id = self.create_order().data['data']['id']
        self.client.post(f'/api/v1/production/orders/{order_id}/approve/')
        for number in (0, TOTAL_STAGES + 1):
            response = self.client.post(f'/api/v1/production/orders/{order_id}/stages/{number}/start/')
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
            self.assertEqual(response.data['error'], 'not_found')
        order = ProductionOrder.objects.get(pk=order_id)
        self.assertFalse(order.stages.exclude(status='pending').exists())

    def test_generic_transition_endpoint(self):
        """Test the transition endpoint with an explicit status"""
        order_id = self.create_order().data['data']['id']
        self.client.post(f'/api/v1/production/orders/{order_id}/approve/')
        response = self.client.post(f'/api/v1/production/orders/{order_id}/stages/1/transition/',
                                    {'status': 'completed'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'invalid_transition')

    def test_cancel_requires_reason(self):
        """Test the cancel endpoint needs a reason"""
        order_id = self.create_order().data['data']['id']
        response = self.client.post(f'/api/v1/production/orders/{order_id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f'/api/v1/production/orders/{order_id}/cancel/', {'reason': 'Duplicate'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'cancelled')

    def test_delete_only_draft_or_cancelled(self):
        """Test approved orders cannot be deleted"""
        order_id = self.create_order().data['data']['id']
        self.client.post(f'/api/v1/production/orders/{order_id}/approve/')
        response = self.client.delete(f'/api/v1/production/orders/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(ProductionOrder.objects.filter(pk=order_id).exists())

    def test_edit_planned_quantity_updates_stages(self):
        """Test changing planned quantity before production updates pending stages"""
        order_id = self.create_order().data['data']['id']
        response = self.client.patch(f'/api/v1/production/orders/{order_id}/', {'planned_quantity': '2500'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order = ProductionOrder.objects.get(pk=order_id)
        self.assertFalse(order.stages.exclude(planned_quantity=Decimal('2500')).exists())

    def test_filter_by_status(self):
        """Test filtering orders by a comma separated status list"""
        first = self.create_order().data['data']['id']
        self.create_order()
        self.client.post(f'/api/v1/production/orders/{first}/approve/')
        response = self.client.get('/api/v1/production/orders/?status=approved,completed')
        self.assertEqual(response.data['pagination']['count'], 1)

    def test_order_logs(self):
        """Test the order history"""
        order_id = self.create_order().data['data']['id']
        self.client.post(f'/api/v1/production/orders/{order_id}/approve/')
        response = self.client.get(f'/api/v1/production/orders/{order_id}/logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'][0]['to_status'], 'approved')

    def test_dashboard_delayed_orders(self):
        """Test delayed orders are counted on the dashboard"""
        yesterday = timezone.localdate() - timedelta(days=1)
        self.create_order(planned_start_date=(yesterday - timedelta(days=5)).isoformat(),
                          planned_end_date=yesterday.isoformat())
        self.create_order()
        response = self.client.get('/api/v1/production/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['total_orders'], 2)
        self.assertEqual(response.data['data']['delayed_orders'], 1)

    def test_folding_create_fills_party(self):
        """Test folding entries take customer and party from the order"""
        order_id = self.create_order().data['data']['id']
        response = self.client.post('/api/v1/production/folding-checking/', {
            'production_order': order_id,
            'lot_number': 'LOT-101',
            'date': timezone.localdate().isoformat(),
            'input_meter': '1200',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['customer'], self.customer.pk)
        self.assertEqual(response.data['data']['party_name'], 'Mehta Textiles')

    def test_folding_qc_endpoint(self):
        """Test recording folding QC through the API"""
        folding = TestDataFactory.create_folding(self.company, input_meter=Decimal('500'))
        response = self.client.post(f'/api/v1/production/folding-checking/{folding.pk}/qc/', {
            'checked_meter': '450',
            'rejected_meter': '100',
            'qc_status': 'partial',
            'checker_name': 'Anita',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'meter_limit_exceeded')

        response = self.client.post(f'/api/v1/production/folding-checking/{folding.pk}/qc/', {
            'checked_meter': '450',
            'rejected_meter': '50',
            'qc_status': 'partial',
            'checker_name': 'Anita',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['data']['pending_meter']), Decimal('0'))
        packing_list = self.client.get('/api/v1/production/packing/')
        self.assertEqual(packing_list.data['pagination']['count'], 1)

    def test_packing_status_dispatched_not_settable(self):
        """Test packing cannot be marked dispatched by hand"""
        folding = TestDataFactory.create_folding(self.company, input_meter=Decimal('500'))
        services.record_folding_qc(folding, Decimal('500'), Decimal('0'), 'pass', 'Anita', self.user)
        packing = Packing.objects.get(folding_checking=folding)
        response = self.client.patch(f'/api/v1/production/packing/{packing.pk}/', {'status': 'dispatched'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.patch(f'/api/v1/production/packing/{packing.pk}/', {'packed_meter': '600'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
