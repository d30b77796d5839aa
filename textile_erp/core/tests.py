"""
Test suite for the core module
Tests: Authentication, company context, users and roles, audit logs, numbering, error envelope
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from textile_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from textile_erp.core.models import Company, User, AuditLog
from textile_erp.core.utils import next_sequence_number, create_audit_log
from textile_erp.crm.models import Customer


class AuthenticationTests(TestCase):
    """Test login, refresh and current user endpoints"""

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company, role='manager', username='mill_manager')
        self.client = AuthenticatedAPIClient()

    def test_login_returns_tokens_and_user(self):
        """Test login returns the JWT pair and user payload"""
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'mill_manager',
            'password': 'testpass123',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertIn('access', response.data['data'])
        self.assertIn('refresh', response.data['data'])
        self.assertEqual(response.data['data']['user']['role'], 'manager')
        self.assertTrue(AuditLog.objects.filter(action='login', user=self.user).exists())

    def test_login_wrong_password(self):
        """Test login with a wrong password is refused"""
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'mill_manager',
            'password': 'wrong-password',
        })
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])

    def test_login_inactive_company(self):
        """Test users of an inactive company cannot log in"""
        self.company.is_active = False
        self.company.save()
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'mill_manager',
            'password': 'testpass123',
        })
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_token(self):
        """Test refreshing an access token"""
        login = self.client.post('/api/v1/auth/login/', {
            'username': 'mill_manager',
            'password': 'testpass123',
        })
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['data']['refresh']})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data['data'])

    def test_me_capability_flags(self):
        """Test the current user endpoint exposes capability flags"""
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['username'], 'mill_manager')
        self.assertTrue(data['is_admin'])
        self.assertTrue(data['can_manage_production'])
        self.assertFalse(data['is_super_admin'])

    def test_unauthenticated_request(self):
        """Test the error envelope for a missing token"""
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['success'], False)
        self.assertEqual(response.data['error'], 'not_authenticated')


class CompanyContextTests(TestCase):
    """Test company resolution for tenant endpoints"""

    def setUp(self):
        cache.clear()
        self.company_a = TestDataFactory.create_company(code='MILLA')
        self.company_b = TestDataFactory.create_company(code='MILLB')
        self.owner_a = TestDataFactory.create_user(company=self.company_a)
        self.super_admin = TestDataFactory.create_user(role='super_admin')
        self.client = AuthenticatedAPIClient()

    def test_super_admin_needs_company_header(self):
        """Test super admins without a company must pick one"""
        self.client.authenticate_user(self.super_admin)
        response = self.client.get('/api/v1/customers/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'company_required')

    def test_super_admin_with_company_header(self):
        """Test super admins select a company with X-Company-ID"""
        TestDataFactory.create_customer(self.company_b, name='B Buyer')
        self.client.authenticate_user(self.super_admin)
        response = self.client.get('/api/v1/customers/', HTTP_X_COMPANY_ID=str(self.company_b.pk))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = [row['name'] for row in response.data['data']]
        self.assertEqual(names, ['B Buyer'])

    def test_header_ignored_for_company_users(self):
        """Test company users always work in their own company"""
        TestDataFactory.create_customer(self.company_b, name='B Buyer')
        self.client.authenticate_user(self.owner_a)
        response = self.client.get('/api/v1/customers/', HTTP_X_COMPANY_ID=str(self.company_b.pk))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'], [])

    def test_other_company_object_is_not_found(self):
        """Test objects of another company are reported as missing"""
        customer = TestDataFactory.create_customer(self.company_b)
        self.client.authenticate_user(self.owner_a)
        response = self.client.get(f'/api/v1/customers/{customer.pk}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'not_found')

    def test_inactive_company_is_refused(self):
        """Test users of a deactivated company get 403"""
        self.company_a.is_active = False
        self.company_a.save()
        self.client.authenticate_user(self.owner_a)
        response = self.client.get('/api/v1/customers/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class CompanyAPITests(TestCase):
    """Test company endpoints (super admin only)"""

    def setUp(self):
        self.super_admin = TestDataFactory.create_user(role='super_admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.super_admin)

    def test_create_company_uppercases_code(self):
        """Test company codes are stored upper-case"""
        response = self.client.post('/api/v1/companies/', {'name': 'Surat Dyeing', 'code': 'srtdye'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['code'], 'SRTDYE')

    def test_create_company_invalid_code(self):
        """Test company codes must be 3-20 letters or digits"""
        response = self.client.post('/api/v1/companies/', {'name': 'Bad', 'code': 'A-1'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_error')

    def test_company_admin_cannot_list_companies(self):
        """Test company owners cannot reach the company endpoints"""
        owner = TestDataFactory.create_user()
        self.client.authenticate_user(owner)
        response = self.client.get('/api/v1/companies/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'permission_denied')


class UserManagementTests(TestCase):
    """Test user administration by company admins"""

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.owner = TestDataFactory.create_user(company=self.company, role='owner')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)

    def _user_payload(self, username, **extra):
        data = {
            'username': username,
            'email': f'{username}@test.com',
            'password': 'Strong-Pass-2024',
            'password_confirm': 'Strong-Pass-2024',
            'role': 'operator',
        }
        data.update(extra)
        return data

    def test_create_user_in_own_company(self):
        """Test created users join the admin's company"""
        other = TestDataFactory.create_company()
        response = self.client.post('/api/v1/users/', self._user_payload('dyer1', company=other.pk))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(username='dyer1')
        self.assertEqual(user.company, self.company)

    def test_duplicate_username(self):
        """Test duplicate usernames are rejected"""
        TestDataFactory.create_user(company=self.company, username='dyer1')
        response = self.client.post('/api/v1/users/', self._user_payload('dyer1'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'duplicate')

    def test_password_mismatch(self):
        """Test password confirmation must match"""
        response = self.client.post('/api/v1/users/', self._user_payload('dyer2', password_confirm='Other-Pass-2024'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_error')

    def test_owner_cannot_create_super_admin(self):
        """Test company admins cannot escalate to super admin"""
        response = self.client.post('/api/v1/users/', self._user_payload('boss', role='super_admin'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(username='boss').exists())

    def test_operator_cannot_manage_users(self):
        """Test non-admin roles cannot list users"""
        operator = TestDataFactory.create_user(company=self.company, role='operator')
        self.client.authenticate_user(operator)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_only_own_company_users(self):
        """Test user list is scoped to the company"""
        TestDataFactory.create_user()
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pagination']['count'], 1)

    def test_toggle_status(self):
        """Test deactivating another user"""
        operator = TestDataFactory.create_user(company=self.company, role='operator')
        response = self.client.post(f'/api/v1/users/{operator.pk}/toggle-status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        operator.refresh_from_db()
        self.assertFalse(operator.is_active)

    def test_cannot_deactivate_self(self):
        """Test admins cannot deactivate their own account"""
        response = self.client.post(f'/api/v1/users/{self.owner.pk}/toggle-status/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.owner.refresh_from_db()
        self.assertTrue(self.owner.is_active)

    def test_set_password(self):
        """Test resetting a user's password"""
        operator = TestDataFactory.create_user(company=self.company, role='operator')
        response = self.client.post(f'/api/v1/users/{operator.pk}/set-password/', {
            'password': 'Another-Pass-2024',
            'password_confirm': 'Another-Pass-2024',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        operator.refresh_from_db()
        self.assertTrue(operator.check_password('Another-Pass-2024'))

    def test_other_company_user_not_found(self):
        """Test users of other companies are not visible"""
        stranger = TestDataFactory.create_user()
        response = self.client.get(f'/api/v1/users/{stranger.pk}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class AuditLogTests(TestCase):
    """Test audit log writing and visibility"""

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()
        self.owner = TestDataFactory.create_user(company=self.company, role='owner')
        self.operator = TestDataFactory.create_user(company=self.company, role='operator')
        self.client = AuthenticatedAPIClient()

    def test_create_writes_audit_log(self):
        """Test creating a customer records an audit entry"""
        self.client.authenticate_user(self.owner)
        self.client.post('/api/v1/customers/', {'name': 'Audit Buyer'})
        log = AuditLog.objects.get(model_name='Customer', action='create')
        self.assertEqual(log.company, self.company)
        self.assertEqual(log.user, self.owner)

    def test_non_admin_sees_own_entries(self):
        """Test non-admins only see their own audit entries"""
        create_audit_log(action='update', model_name='Customer', object_id=1, user=self.owner, company=self.company)
        create_audit_log(action='update', model_name='Customer', object_id=2, user=self.operator, company=self.company)
        self.client.authenticate_user(self.operator)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pagination']['count'], 1)

    def test_audit_log_missing_fields_skipped(self):
        """Test audit logging never raises on bad input"""
        self.assertIsNone(create_audit_log(action='create', model_name=None, object_id=None))

    def test_impossible_date_filter_rejected(self):
        """Test a date filter like 2024-02-30 returns a validation error"""
        self.client.authenticate_user(self.owner)
        response = self.client.get('/api/v1/audit-logs/?date_from=2024-02-30')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_error')


class NumberingTests(TestCase):
    """Test sequential document numbers"""

    def setUp(self):
        self.company = Company.objects.create(name='Numbering Mill', code='NUMMILL')

    def test_first_number(self):
        """Test numbering starts at 0001"""
        number = next_sequence_number(Customer.objects.filter(company=self.company), 'customer_code', 'CUS-')
        self.assertEqual(number, 'CUS-0001')

    def test_next_number_follows_highest(self):
        """Test numbering continues from the highest code"""
        Customer.objects.create(company=self.company, customer_code='CUS-0007', name='Seven')
        number = next_sequence_number(Customer.objects.filter(company=self.company), 'customer_code', 'CUS-')
        self.assertEqual(number, 'CUS-0008')

    def test_number_past_four_digits(self):
        """Test numbering keeps counting after 9999"""
        queryset = Customer.objects.filter(company=self.company)
        Customer.objects.create(company=self.company, customer_code='CUS-9999', name='Last four digit')
        number = next_sequence_number(queryset, 'customer_code', 'CUS-')
        self.assertEqual(number, 'CUS-10000')

        Customer.objects.create(company=self.company, customer_code=number, name='First five digit')
        self.assertEqual(next_sequence_number(queryset, 'customer_code', 'CUS-'), 'CUS-10001')
