"""
Test suite for HR module
Tests: Employees, shifts, attendance check-in/check-out rules, summary
"""
from datetime import datetime, time, timedelta
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from decimal import Decimal
from textile_erp.core.exceptions import ServiceError
from textile_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from textile_erp.hr import services
from textile_erp.hr.models import Attendance, Employee


def local_time(day, hour, minute=0):
    return timezone.make_aware(datetime.combine(day, time(hour, minute)))


class AttendanceServiceTests(TestCase):
    """Test check-in and check-out rules"""

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company)
        self.employee = TestDataFactory.create_employee(self.company)
        self.today = timezone.localdate()

    def test_full_day(self):
        """Test a nine hour day is present with working hours"""
        services.check_in(self.employee, self.user, when=local_time(self.today, 9))
        attendance = services.check_out(self.employee, self.user, when=local_time(self.today, 18, 30))
        self.assertEqual(attendance.working_hours, Decimal('9.50'))
        self.assertEqual(attendance.status, 'present')

    def test_short_day_is_half_day(self):
        """Test under four hours marks a half day"""
        services.check_in(self.employee, self.user, when=local_time(self.today, 9))
        attendance = services.check_out(self.employee, self.user, when=local_time(self.today, 12, 15))
        self.assertEqual(attendance.working_hours, Decimal('3.25'))
        self.assertEqual(attendance.status, 'half_day')

    def test_double_check_in(self):
        """Test checking in twice on the same day fails"""
        services.check_in(self.employee, self.user, when=local_time(self.today, 9))
        with self.assertRaises(ServiceError):
            services.check_in(self.employee, self.user, when=local_time(self.today, 10))

    def test_check_out_without_check_in(self):
        """Test checking out without checking in fails"""
        with self.assertRaises(ServiceError):
            services.check_out(self.employee, self.user, when=local_time(self.today, 18))

    def test_double_check_out(self):
        """Test checking out twice fails"""
        services.check_in(self.employee, self.user, when=local_time(self.today, 9))
        services.check_out(self.employee, self.user, when=local_time(self.today, 17))
        with self.assertRaises(ServiceError):
            services.check_out(self.employee, self.user, when=local_time(self.today, 18))

    def test_overnight_shift(self):
        """Test a night shift checks out against the previous day's check-in"""
        yesterday = self.today - timedelta(days=1)
        services.check_in(self.employee, self.user, when=local_time(yesterday, 22))
        attendance = services.check_out(self.employee, self.user, when=local_time(self.today, 6))
        self.assertEqual(attendance.date, yesterday)
        self.assertEqual(attendance.working_hours, Decimal('8.00'))
        self.assertEqual(attendance.status, 'present')
        self.assertFalse(Attendance.objects.filter(employee=self.employee, date=self.today).exists())

    def test_check_out_before_check_in(self):
        """Test checking out earlier than the check-in fails"""
        services.check_in(self.employee, self.user, when=local_time(self.today, 9))
        with self.assertRaises(ServiceError):
            services.check_out(self.employee, self.user, when=local_time(self.today, 8))

    def test_inactive_employee_cannot_check_in(self):
        """Test inactive employees cannot check in"""
        employee = TestDataFactory.create_employee(self.company, is_active=False)
        with self.assertRaises(ServiceError):
            services.check_in(employee, self.user)

    def test_mark_then_check_in(self):
        """Test an absence marked in advance is replaced by a check-in"""
        services.mark_attendance(self.employee, self.today, 'absent', self.user)
        attendance = services.check_in(self.employee, self.user, when=local_time(self.today, 9))
        self.assertEqual(attendance.status, 'present')
        self.assertEqual(Attendance.objects.filter(employee=self.employee).count(), 1)


class HRAPITests(TestCase):
    """Test HR API endpoints"""

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()
        self.manager = TestDataFactory.create_user(company=self.company, role='manager')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_create_shift_and_employee(self):
        """Test creating a shift and assigning an employee"""
        shift = self.client.post('/api/v1/shifts/', {'name': 'Morning', 'start_time': '06:00', 'end_time': '14:00'})
        self.assertEqual(shift.status_code, status.HTTP_201_CREATED)
        response = self.client.post('/api/v1/employees/', {
            'employee_code': 'emp001',
            'name': 'Ramesh Patel',
            'department': 'dyeing',
            'shift': shift.data['data']['id'],
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['employee_code'], 'EMP001')
        self.assertEqual(response.data['data']['shift_name'], 'Morning')

    def test_duplicate_employee_code(self):
        """Test employee codes are unique per company"""
        TestDataFactory.create_employee(self.company, employee_code='EMP001')
        response = self.client.post('/api/v1/employees/', {'employee_code': 'EMP001', 'name': 'Other'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_operator_cannot_add_employee(self):
        """Test only owners and managers manage employees"""
        operator = TestDataFactory.create_user(company=self.company, role='operator')
        self.client.authenticate_user(operator)
        response = self.client.post('/api/v1/employees/', {'employee_code': 'EMP009', 'name': 'Nope'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_other_company_employee(self):
        """Test employees of another company are not reachable"""
        employee = TestDataFactory.create_employee(TestDataFactory.create_company())
        response = self.client.get(f'/api/v1/employees/{employee.pk}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.post('/api/v1/attendance/check-in/', {'employee': employee.pk})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_check_in_and_out_endpoints(self):
        """Test the check-in/check-out endpoints"""
        employee = TestDataFactory.create_employee(self.company)
        response = self.client.post('/api/v1/attendance/check-in/', {'employee': employee.pk})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post('/api/v1/attendance/check-in/', {'employee': employee.pk})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/attendance/check-out/', {'employee': employee.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['data']['check_out'])

    def test_mark_leave(self):
        """Test marking leave for a date"""
        employee = TestDataFactory.create_employee(self.company)
        tomorrow = timezone.localdate() + timedelta(days=1)
        response = self.client.post('/api/v1/attendance/mark/', {
            'employee': employee.pk,
            'date': tomorrow.isoformat(),
            'status': 'leave',
            'remarks': 'Family function',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Attendance.objects.get(employee=employee, date=tomorrow).status, 'leave')

    def test_attendance_summary(self):
        """Test attendance summary counts and rate"""
        today = timezone.localdate()
        present = TestDataFactory.create_employee(self.company)
        on_leave = TestDataFactory.create_employee(self.company)
        TestDataFactory.create_employee(self.company)
        TestDataFactory.create_employee(self.company)
        services.mark_attendance(present, today, 'present', self.manager)
        services.mark_attendance(on_leave, today, 'leave', self.manager)

        response = self.client.get(f'/api/v1/attendance/summary/?date={today.isoformat()}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['total_employees'], 4)
        self.assertEqual(data['present'], 1)
        self.assertEqual(data['leave'], 1)
        self.assertEqual(data['not_marked'], 2)
        self.assertEqual(data['attendance_rate'], '25.00')

    def test_attendance_list_invalid_date(self):
        """Test invalid date filters are rejected"""
        response = self.client.get('/api/v1/attendance/?date=18-10-2026')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_error')

    def test_attendance_list_impossible_date(self):
        """Test well-formed but impossible dates are rejected"""
        for query in ('date=2024-02-30', 'date_from=2024-02-30', 'date_to=2023-13-01'):
            response = self.client.get(f'/api/v1/attendance/?{query}')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['error'], 'validation_error')

    def test_employee_list_filter(self):
        """Test filtering employees by department"""
        TestDataFactory.create_employee(self.company, department='dyeing')
        TestDataFactory.create_employee(self.company, department='packing')
        response = self.client.get('/api/v1/employees/?department=dyeing')
        self.assertEqual(response.data['pagination']['count'], 1)
        self.assertEqual(Employee.objects.filter(company=self.company).count(), 2)
