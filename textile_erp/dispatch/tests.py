"""
Test suite for Dispatch module
Tests: QC gate, dispatchable quantity, status flow, packing side effects, numbering
"""
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from datetime import timedelta
from decimal import Decimal
from textile_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from textile_erp.dispatch.models import Dispatch
from textile_erp.production import services as production_services
from textile_erp.production.models import Packing, QC_STAGE_NUMBER


def pass_quality_control(order, user):
    production_services.approve_order(order, user)
    for number in range(1, QC_STAGE_NUMBER + 1):
        production_services.transition_stage(order, number, 'in_progress', user)
        extra = {'qc_status': 'pass', 'quality_grade': 'A'} if number == QC_STAGE_NUMBER else {}
        order, _stage = production_services.transition_stage(order, number, 'completed', user, **extra)
    return order


class DispatchAPITests(TestCase):
    """Test Dispatch API endpoints"""

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company, role='supervisor')
        self.customer = TestDataFactory.create_customer(self.company, name='Shree Ganesh Fashions')
        self.order = TestDataFactory.create_production_order(self.company, self.user, customer=self.customer,
                                                             planned_quantity=Decimal('1000'))
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def payload(self, **extra):
        data = {
            'customer': self.customer.pk,
            'production_order': self.order.pk,
            'dispatch_date': timezone.localdate().isoformat(),
            'quantity': '400',
            'number_of_packages': 4,
            'destination': 'Surat',
        }
        data.update(extra)
        return data

    def test_dispatch_requires_quality_control(self):
        """Test an order that has not passed QC cannot be dispatched"""
        response = self.client.post('/api/v1/dispatches/', self.payload())
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'quality_gate')
        self.assertEqual(Dispatch.objects.count(), 0)

    def test_create_dispatch(self):
        """Test creating a dispatch after QC generates a number"""
        pass_quality_control(self.order, self.user)
        response = self.client.post('/api/v1/dispatches/', self.payload())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        today = timezone.localtime().strftime('%y%m%d')
        self.assertEqual(data['dispatch_number'], f'DSP-{today}-0001')
        self.assertEqual(data['status'], 'pending')
        self.assertEqual(data['customer_name'], 'Shree Ganesh Fashions')

    def test_quantity_limited_to_completed(self):
        """Test dispatches cannot exceed the completed quantity not yet dispatched"""
        pass_quality_control(self.order, self.user)
        self.assertEqual(self.client.post('/api/v1/dispatches/', self.payload(quantity='700')).status_code,
                         status.HTTP_201_CREATED)
        response = self.client.post('/api/v1/dispatches/', self.payload(quantity='400'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'meter_limit_exceeded')
        self.assertEqual(self.client.post('/api/v1/dispatches/', self.payload(quantity='300')).status_code,
                         status.HTTP_201_CREATED)

    def test_customer_must_match_order(self):
        """Test the dispatch customer must be the order's customer"""
        pass_quality_control(self.order, self.user)
        other = TestDataFactory.create_customer(self.company)
        response = self.client.post('/api/v1/dispatches/', self.payload(customer=other.pk))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_dispatch_without_order(self):
        """Test a direct dispatch without a production order"""
        response = self.client.post('/api/v1/dispatches/', self.payload(production_order=None))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_status_flow(self):
        """Test pending -> ready -> dispatched -> delivered"""
        pass_quality_control(self.order, self.user)
        dispatch_id = self.client.post('/api/v1/dispatches/', self.payload(vehicle_number='GJ05AB1234')).data['data']['id']

        response = self.client.post(f'/api/v1/dispatches/{dispatch_id}/status/', {'status': 'dispatched'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'invalid_transition')

        for target in ('ready', 'dispatched', 'delivered'):
            response = self.client.post(f'/api/v1/dispatches/{dispatch_id}/status/', {'status': target})
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data['data']['status'], target)

        dispatch = Dispatch.objects.get(pk=dispatch_id)
        self.assertIsNotNone(dispatch.dispatched_at)
        self.assertIsNotNone(dispatch.delivered_at)

    def test_dispatched_needs_vehicle(self):
        """Test a vehicle number is required before dispatching"""
        pass_quality_control(self.order, self.user)
        dispatch_id = self.client.post('/api/v1/dispatches/', self.payload()).data['data']['id']
        self.client.post(f'/api/v1/dispatches/{dispatch_id}/status/', {'status': 'ready'})
        response = self.client.post(f'/api/v1/dispatches/{dispatch_id}/status/', {'status': 'dispatched'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_dispatch_marks_packing(self):
        """Test dispatching marks the linked packing as dispatched"""
        pass_quality_control(self.order, self.user)
        folding = TestDataFactory.create_folding(self.company, production_order=self.order, input_meter=Decimal('500'))
        production_services.record_folding_qc(folding, Decimal('480'), Decimal('20'), 'partial', 'Anita', self.user)
        packing = Packing.objects.get(folding_checking=folding)

        response = self.client.post('/api/v1/dispatches/', self.payload(
            quantity='480', packing=packing.pk, vehicle_number='GJ05AB1234',
        ))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        dispatch_id = response.data['data']['id']
        self.client.post(f'/api/v1/dispatches/{dispatch_id}/status/', {'status': 'ready'})
        self.client.post(f'/api/v1/dispatches/{dispatch_id}/status/', {'status': 'dispatched'})
        packing.refresh_from_db()
        self.assertEqual(packing.status, 'dispatched')

    def test_quantity_above_packing(self):
        """Test a dispatch cannot carry more than its packed lot"""
        folding = TestDataFactory.create_folding(self.company, input_meter=Decimal('300'))
        production_services.record_folding_qc(folding, Decimal('300'), Decimal('0'), 'pass', 'Anita', self.user)
        packing = Packing.objects.get(folding_checking=folding)
        response = self.client.post('/api/v1/dispatches/', self.payload(
            production_order=None, quantity='350', packing=packing.pk,
        ))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_only_pending_editable(self):
        """Test dispatched records cannot be edited or deleted"""
        pass_quality_control(self.order, self.user)
        dispatch_id = self.client.post('/api/v1/dispatches/', self.payload(vehicle_number='GJ05AB1234')).data['data']['id']
        self.client.post(f'/api/v1/dispatches/{dispatch_id}/status/', {'status': 'ready'})
        response = self.client.patch(f'/api/v1/dispatches/{dispatch_id}/', {'destination': 'Mumbai'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.delete(f'/api/v1/dispatches/{dispatch_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_pending(self):
        """Test pending dispatches can be deleted"""
        dispatch_id = self.client.post('/api/v1/dispatches/', self.payload(production_order=None)).data['data']['id']
        response = self.client.delete(f'/api/v1/dispatches/{dispatch_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Dispatch.objects.filter(pk=dispatch_id).exists())

    def test_stats(self):
        """Test dispatch stats count per status"""
        self.client.post('/api/v1/dispatches/', self.payload(production_order=None))
        dispatch_id = self.client.post('/api/v1/dispatches/', self.payload(
            production_order=None, vehicle_number='MH04XY9999', quantity='250',
        )).data['data']['id']
        for target in ('ready', 'dispatched'):
            self.client.post(f'/api/v1/dispatches/{dispatch_id}/status/', {'status': target})
        response = self.client.get('/api/v1/dispatches/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['total_dispatches'], 2)
        self.assertEqual(data['by_status']['pending'], 1)
        self.assertEqual(data['by_status']['dispatched'], 1)
        self.assertEqual(Decimal(data['total_dispatched_quantity']), Decimal('250'))

    def test_list_filter_status(self):
        """Test filtering dispatches by status"""
        self.client.post('/api/v1/dispatches/', self.payload(production_order=None))
        response = self.client.get('/api/v1/dispatches/?status=delivered')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pagination']['count'], 0)

    def test_packing_limit_counts_earlier_dispatches(self):
        """Test several dispatches of one packing cannot exceed the packed lot together"""
        folding = TestDataFactory.create_folding(self.company, input_meter=Decimal('100'))
        production_services.record_folding_qc(folding, Decimal('100'), Decimal('0'), 'pass', 'Anita', self.user)
        packing = Packing.objects.get(folding_checking=folding)

        first = self.client.post('/api/v1/dispatches/', self.payload(
            production_order=None, quantity='100', packing=packing.pk,
        ))
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        second = self.client.post('/api/v1/dispatches/', self.payload(
            production_order=None, quantity='100', packing=packing.pk,
        ))
        self.assertEqual(second.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('quantity', second.data['errors'])
        self.assertEqual(Dispatch.objects.filter(packing=packing).count(), 1)

        # Editing the existing dispatch does not count it twice
        response = self.client.patch(f"/api/v1/dispatches/{first.data['data']['id']}/", {'quantity': '90'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_cancelled_dispatch_frees_packing(self):
        """Test a cancelled dispatch no longer uses up the packed lot"""
        folding = TestDataFactory.create_folding(self.company, input_meter=Decimal('100'))
        production_services.record_folding_qc(folding, Decimal('100'), Decimal('0'), 'pass', 'Anita', self.user)
        packing = Packing.objects.get(folding_checking=folding)
        first_id = self.client.post('/api/v1/dispatches/', self.payload(
            production_order=None, quantity='100', packing=packing.pk,
        )).data['data']['id']
        self.client.post(f'/api/v1/dispatches/{first_id}/status/', {'status': 'cancelled'})

        response = self.client.post('/api/v1/dispatches/', self.payload(
            production_order=None, quantity='100', packing=packing.pk,
        ))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_list_filter_customer_and_dates(self):
        """Test filtering dispatches by customer and dispatch date range"""
        other = TestDataFactory.create_customer(self.company, name='Laxmi Textiles')
        today = timezone.localdate()
        self.client.post('/api/v1/dispatches/', self.payload(production_order=None))
        self.client.post('/api/v1/dispatches/', self.payload(production_order=None, customer=other.pk))
        self.client.post('/api/v1/dispatches/', self.payload(
            production_order=None, dispatch_date=(today - timedelta(days=10)).isoformat(),
        ))

        response = self.client.get(f'/api/v1/dispatches/?customer={other.pk}')
        self.assertEqual(response.data['pagination']['count'], 1)
        response = self.client.get(f'/api/v1/dispatches/?date_from={today.isoformat()}')
        self.assertEqual(response.data['pagination']['count'], 2)
        response = self.client.get('/api/v1/dispatches/?search=laxmi')
        self.assertEqual(response.data['pagination']['count'], 1)

    def test_list_rejects_impossible_date(self):
        """Test an impossible date filter is a validation error, not a server error"""
        response = self.client.get('/api/v1/dispatches/?date_from=2024-02-30')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_error')
