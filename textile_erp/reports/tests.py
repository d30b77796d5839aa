"""
Test suite for Reports module
Tests: Dashboard KPIs and caching, summaries, automated report scheduling and e-mail
"""
from datetime import datetime, timedelta
from io import StringIO
from smtplib import SMTPException
from unittest import mock
from django.core import mail
from django.core.cache import cache
from django.core.mail import EmailMessage
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from decimal import Decimal
from textile_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from textile_erp.dispatch.models import Dispatch
from textile_erp.production import services as production_services
from textile_erp.reports.models import AutomatedReport
from textile_erp.reports.services import advance_next_run, run_report


class DashboardTests(TestCase):
    """Test the cached dashboard"""

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company, role='viewer')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_dashboard_totals(self):
        """Test dashboard counts come from the company's tables"""
        customer = TestDataFactory.create_customer(self.company)
        TestDataFactory.create_supplier(self.company)
        TestDataFactory.create_production_order(self.company, self.user, customer=customer)
        TestDataFactory.create_item(self.company, current_stock=Decimal('2'), reorder_level=Decimal('5'))
        TestDataFactory.create_employee(self.company)
        TestDataFactory.create_customer(TestDataFactory.create_company())

        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['total_customers'], 1)
        self.assertEqual(data['total_suppliers'], 1)
        self.assertEqual(data['total_orders'], 1)
        self.assertEqual(data['orders_by_status']['draft'], 1)
        self.assertEqual(data['active_production'], 0)
        self.assertEqual(data['total_inventory_items'], 1)
        self.assertEqual(data['low_stock_items'], 1)
        self.assertEqual(data['total_employees'], 1)
        self.assertEqual(data['pending_dispatches'], 0)

    def test_dashboard_cache_invalidated(self):
        """Test writes to tracked models refresh the cached dashboard"""
        first = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(first.data['data']['total_customers'], 0)
        TestDataFactory.create_customer(self.company)
        second = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(second.data['data']['total_customers'], 1)

    def test_dashboard_requires_login(self):
        """Test anonymous users are rejected"""
        self.client.logout()
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class SummaryReportTests(TestCase):
    """Test production, quality and dispatch summaries"""

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company, role='supervisor')
        self.customer = TestDataFactory.create_customer(self.company, name='Rajlaxmi Sarees')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_invalid_date(self):
        """Test malformed dates are a validation error"""
        response = self.client.get('/api/v1/reports/production-summary/?date_from=2026/01/01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_error')

    def test_impossible_date(self):
        """Test a well-formed but impossible date is a validation error"""
        response = self.client.get('/api/v1/reports/quality-summary/?date_to=2024-02-30')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_error')

    def test_reversed_range(self):
        """Test date_from after date_to is rejected"""
        response = self.client.get(
            '/api/v1/reports/dispatch-summary/?date_from=2026-03-01&date_to=2026-02-01'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_production_summary(self):
        """Test orders created in the period are counted"""
        TestDataFactory.create_production_order(self.company, self.user, customer=self.customer,
                                                planned_quantity=Decimal('1200'))
        TestDataFactory.create_production_order(self.company, self.user, customer=self.customer,
                                                planned_quantity=Decimal('800'))
        response = self.client.get('/api/v1/reports/production-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['orders_created'], 2)
        self.assertEqual(data['planned_quantity'], '2000.00')
        self.assertEqual(data['orders_completed'], 0)
        self.assertIn('dyeing', data['stage_wise_in_progress'])

    def test_quality_summary(self):
        """Test folding QC meters and rejection rate"""
        folding = TestDataFactory.create_folding(self.company, input_meter=Decimal('1000'))
        production_services.record_folding_qc(folding, Decimal('900'), Decimal('100'), 'partial', 'Meena', self.user)
        TestDataFactory.create_folding(self.company, input_meter=Decimal('500'))

        response = self.client.get('/api/v1/reports/quality-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['lots_inspected'], 2)
        self.assertEqual(data['checked_meter'], '900.00')
        self.assertEqual(data['rejected_meter'], '100.00')
        self.assertEqual(data['pending_meter'], '500.00')
        self.assertEqual(data['rejection_rate'], '10.00')
        self.assertEqual(data['by_qc_status']['partial'], 1)
        self.assertEqual(data['rejection_stock_by_disposition']['pending'], '100.00')

    def test_dispatch_summary(self):
        """Test dispatch totals per customer exclude cancelled dispatches"""
        today = timezone.localdate()
        for number, (quantity, state) in enumerate([('300', 'pending'), ('200', 'delivered'), ('50', 'cancelled')]):
            Dispatch.objects.create(
                company=self.company, customer=self.customer, dispatch_number=f'DSP-T-{number}',
                dispatch_date=today, quantity=Decimal(quantity), status=state,
            )
        response = self.client.get('/api/v1/reports/dispatch-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['total_dispatches'], 3)
        self.assertEqual(data['total_quantity'], '500.00')
        self.assertEqual(data['by_status']['cancelled'], 1)
        self.assertEqual(len(data['by_customer']), 1)
        self.assertEqual(data['by_customer'][0]['customer_name'], 'Rajlaxmi Sarees')
        self.assertEqual(data['by_customer'][0]['dispatch_count'], 2)


class AutomatedReportAPITests(TestCase):
    """Test automated report configuration and manual runs"""

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()
        self.owner = TestDataFactory.create_user(company=self.company, role='owner')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)

    def payload(self, **extra):
        data = {
            'name': 'Daily production',
            'report_type': 'production',
            'frequency': 'daily',
            'recipients': 'plant@example.com, owner@example.com',
            'next_run_at': (timezone.now() + timedelta(hours=2)).isoformat(),
        }
        data.update(extra)
        return data

    def test_create_report(self):
        """Test creating an automated report"""
        response = self.client.post('/api/v1/reports/automated/', self.payload())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['last_status'], 'never_run')
        self.assertEqual(response.data['data']['recipients'], 'plant@example.com, owner@example.com')

    def test_invalid_recipient(self):
        """Test every recipient must be an e-mail address"""
        response = self.client.post('/api/v1/reports/automated/', self.payload(recipients='plant@example.com, nobody'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('recipients', response.data['errors'])

    def test_operator_cannot_configure(self):
        """Test only company admins manage automated reports"""
        operator = TestDataFactory.create_user(company=self.company, role='operator')
        self.client.authenticate_user(operator)
        response = self.client.get('/api/v1/reports/automated/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_run_now_sends_mail(self):
        """Test a manual run e-mails a CSV and keeps the schedule"""
        report_id = self.client.post('/api/v1/reports/automated/', self.payload()).data['data']['id']
        next_run_at = AutomatedReport.objects.get(pk=report_id).next_run_at

        response = self.client.post(f'/api/v1/reports/automated/{report_id}/run/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ['plant@example.com', 'owner@example.com'])
        self.assertEqual(len(message.attachments), 1)
        self.assertTrue(message.attachments[0][0].endswith('.csv'))

        report = AutomatedReport.objects.get(pk=report_id)
        self.assertEqual(report.last_status, 'success')
        self.assertEqual(report.next_run_at, next_run_at)

    def test_run_now_failure(self):
        """Test a failed send is reported and recorded"""
        report_id = self.client.post('/api/v1/reports/automated/', self.payload()).data['data']['id']
        with mock.patch.object(EmailMessage, 'send', side_effect=SMTPException('relay refused')):
            response = self.client.post(f'/api/v1/reports/automated/{report_id}/run/')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data['error'], 'report_failed')
        report = AutomatedReport.objects.get(pk=report_id)
        self.assertEqual(report.last_status, 'failed')
        self.assertIn('relay refused', report.last_error)

    def test_other_company_report(self):
        """Test reports of another company are not reachable"""
        other = TestDataFactory.create_company()
        report = AutomatedReport.objects.create(
            company=other, name='Theirs', report_type='dashboard',
            recipients='a@example.com', next_run_at=timezone.now(),
        )
        response = self.client.post(f'/api/v1/reports/automated/{report.pk}/run/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(len(mail.outbox), 0)


class AutomatedReportScheduleTests(TestCase):
    """Test scheduling and the run_automated_reports command"""

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()

    def create_report(self, next_run_at, **fields):
        fields.setdefault('name', 'Dashboard mail')
        fields.setdefault('report_type', 'dashboard')
        fields.setdefault('frequency', 'daily')
        return AutomatedReport.objects.create(
            company=self.company,
            recipients='owner@example.com',
            next_run_at=next_run_at,
            **fields
        )

    def test_monthly_clamps_to_month_end(self):
        """Test monthly schedules keep to the last day of shorter months"""
        jan_31 = timezone.make_aware(datetime(2027, 1, 31, 7, 0))
        self.assertEqual(advance_next_run('monthly', jan_31).date().isoformat(), '2027-02-28')
        dec_15 = timezone.make_aware(datetime(2026, 12, 15, 7, 0))
        self.assertEqual(advance_next_run('monthly', dec_15).date().isoformat(), '2027-01-15')

    def test_monthly_returns_to_anchor_day(self):
        """Test a clamped monthly run goes back to its day in longer months"""
        feb_28 = advance_next_run('monthly', timezone.make_aware(datetime(2027, 1, 31, 7, 0)), anchor_day=31)
        mar_31 = advance_next_run('monthly', feb_28, anchor_day=31)
        self.assertEqual(mar_31.date().isoformat(), '2027-03-31')
        self.assertEqual(advance_next_run('monthly', mar_31, anchor_day=31).date().isoformat(), '2027-04-30')

    def test_monthly_report_keeps_day_across_runs(self):
        """Test a report scheduled on the 31st keeps that day after February"""
        jan_31 = timezone.make_aware(datetime(2027, 1, 31, 7, 0))
        report = self.create_report(jan_31, frequency='monthly')
        self.assertEqual(report.anchor_day, 31)

        run_report(report, now=jan_31 + timedelta(hours=1))
        report.refresh_from_db()
        self.assertEqual(timezone.localtime(report.next_run_at).date().isoformat(), '2027-02-28')

        run_report(report, now=report.next_run_at + timedelta(hours=1))
        report.refresh_from_db()
        self.assertEqual(timezone.localtime(report.next_run_at).date().isoformat(), '2027-03-31')
        self.assertEqual(timezone.localtime(report.next_run_at).hour, 7)

    def test_weekly(self):
        start = timezone.make_aware(datetime(2026, 10, 5, 7, 0))
        self.assertEqual(advance_next_run('weekly', start) - start, timedelta(days=7))

    def test_missed_runs_are_skipped(self):
        """Test a report overdue by days is moved to its next future slot"""
        now = timezone.now()
        original = now - timedelta(days=3, hours=1)
        report = self.create_report(original)
        run_report(report, now=now)
        report.refresh_from_db()
        self.assertEqual(report.next_run_at, original + timedelta(days=4))
        self.assertEqual(report.last_status, 'success')

    def test_command_runs_due_reports(self):
        """Test the command sends due reports and leaves future ones"""
        due = self.create_report(timezone.now() - timedelta(hours=1))
        future = self.create_report(timezone.now() + timedelta(days=1), name='Later')
        out = StringIO()
        call_command('run_automated_reports', stdout=out)

        self.assertEqual(len(mail.outbox), 1)
        due.refresh_from_db()
        future.refresh_from_db()
        self.assertEqual(due.last_status, 'success')
        self.assertGreater(due.next_run_at, timezone.now())
        self.assertEqual(future.last_status, 'never_run')
        self.assertIn('1 sent, 0 failed', out.getvalue())

    def test_command_dry_run(self):
        """Test dry run sends nothing"""
        self.create_report(timezone.now() - timedelta(hours=1))
        out = StringIO()
        call_command('run_automated_reports', '--dry-run', stdout=out)
        self.assertEqual(len(mail.outbox), 0)
        self.assertIn('would run', out.getvalue())

    def test_command_continues_after_failure(self):
        """Test one failing report does not stop the others"""
        failing = self.create_report(timezone.now() - timedelta(hours=2), name='First')
        passing = self.create_report(timezone.now() - timedelta(hours=1), name='Second')
        out = StringIO()
        with mock.patch.object(EmailMessage, 'send', side_effect=[SMTPException('timeout'), 1]):
            call_command('run_automated_reports', stdout=out)

        failing.refresh_from_db()
        passing.refresh_from_db()
        self.assertEqual(failing.last_status, 'failed')
        self.assertEqual(passing.last_status, 'success')
        self.assertGreater(failing.next_run_at, timezone.now())
        self.assertIn('1 sent, 1 failed', out.getvalue())
