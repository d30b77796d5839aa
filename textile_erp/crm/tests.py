"""
Test suite for CRM module
Tests: Customer and supplier CRUD, code generation, tenant isolation, protected deletes
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from textile_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from textile_erp.crm.models import Customer, Supplier


class CustomerAPITests(TestCase):
    """Test Customer API endpoints"""

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company, role='manager')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_customer_generates_code(self):
        """Test customer codes are generated sequentially"""
        first = self.client.post('/api/v1/customers/', {'name': 'Shree Fashions', 'city': 'Surat'})
        second = self.client.post('/api/v1/customers/', {'name': 'Lakshmi Garments'})
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.data['data']['customer_code'], 'CUS-0001')
        self.assertEqual(second.data['data']['customer_code'], 'CUS-0002')

    def test_customer_codes_are_per_company(self):
        """Test another company starts its own sequence"""
        other = TestDataFactory.create_company()
        Customer.objects.create(company=other, customer_code='CUS-0009', name='Elsewhere')
        response = self.client.post('/api/v1/customers/', {'name': 'Local Buyer'})
        self.assertEqual(response.data['data']['customer_code'], 'CUS-0001')

    def test_duplicate_customer_name(self):
        """Test customer names are unique inside a company"""
        TestDataFactory.create_customer(self.company, name='Mehta Textiles')
        response = self.client.post('/api/v1/customers/', {'name': 'mehta textiles'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_error')
        self.assertIn('name', response.data['errors'])

    def test_negative_credit_limit(self):
        """Test credit limit cannot be negative"""
        response = self.client.post('/api/v1/customers/', {'name': 'Buyer', 'credit_limit': '-1'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_search(self):
        """Test searching customers"""
        TestDataFactory.create_customer(self.company, name='Surat Silk House')
        TestDataFactory.create_customer(self.company, name='Delhi Cotton')
        response = self.client.get('/api/v1/customers/?search=silk')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']), 1)
        self.assertEqual(response.data['data'][0]['name'], 'Surat Silk House')

    def test_update_customer(self):
        """Test patching a customer"""
        customer = TestDataFactory.create_customer(self.company)
        response = self.client.patch(f'/api/v1/customers/{customer.pk}/', {'credit_limit': '50000.00'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        customer.refresh_from_db()
        self.assertEqual(customer.credit_limit, Decimal('50000.00'))

    def test_delete_unused_customer(self):
        """Test deleting a customer without history"""
        customer = TestDataFactory.create_customer(self.company)
        response = self.client.delete(f'/api/v1/customers/{customer.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Customer.objects.filter(pk=customer.pk).exists())

    def test_delete_customer_with_orders_deactivates(self):
        """Test customers referenced by production orders are deactivated instead"""
        customer = TestDataFactory.create_customer(self.company)
        TestDataFactory.create_production_order(self.company, self.user, customer=customer)
        response = self.client.delete(f'/api/v1/customers/{customer.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        customer.refresh_from_db()
        self.assertFalse(customer.is_active)

    def test_customer_summary(self):
        """Test customer summary totals"""
        customer = TestDataFactory.create_customer(self.company)
        TestDataFactory.create_production_order(self.company, self.user, customer=customer,
                                                planned_quantity=Decimal('1500'))
        response = self.client.get(f'/api/v1/customers/{customer.pk}/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['total_orders'], 1)
        self.assertEqual(response.data['data']['orders_by_status'], {'draft': 1})
        self.assertEqual(Decimal(response.data['data']['total_planned_quantity']), Decimal('1500'))

    def test_other_company_customer(self):
        """Test customers of another company are not reachable"""
        customer = TestDataFactory.create_customer(TestDataFactory.create_company())
        response = self.client.patch(f'/api/v1/customers/{customer.pk}/', {'city': 'Pune'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class SupplierAPITests(TestCase):
    """Test Supplier API endpoints"""

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_supplier(self):
        """Test creating a supplier"""
        response = self.client.post('/api/v1/suppliers/', {
            'name': 'Colourtex Dyes',
            'supply_category': 'dyes',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['supplier_code'], 'SUP-0001')
        self.assertEqual(Supplier.objects.get().company, self.company)

    def test_filter_by_category(self):
        """Test filtering suppliers by supply category"""
        TestDataFactory.create_supplier(self.company, supply_category='dyes')
        TestDataFactory.create_supplier(self.company, supply_category='chemicals')
        response = self.client.get('/api/v1/suppliers/?supply_category=dyes')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pagination']['count'], 1)

    def test_delete_supplier(self):
        """Test deleting a supplier"""
        supplier = TestDataFactory.create_supplier(self.company)
        response = self.client.delete(f'/api/v1/suppliers/{supplier.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Supplier.objects.count(), 0)
