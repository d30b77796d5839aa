"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from textile_erp.core.models import Company
from textile_erp.crm.models import Customer, Supplier
from textile_erp.hr.models import Employee
from textile_erp.inventory.models import Warehouse, InventoryItem
from textile_erp.production.models import FoldingChecking
from textile_erp.production.services import create_production_order
from decimal import Decimal
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_company(name=None, code=None, is_active=True):
        """Create a test company (tenant)"""
        if not code:
            code = f'CO{TestDataFactory.random_string(6).upper()}'
        return Company.objects.create(
            name=name or f'Mill {code}',
            code=code,
            is_active=is_active,
        )

    @staticmethod
    def create_user(company=None, role='owner', username=None, password='testpass123', is_superuser=False):
        """Create a test user; a company is created unless one is given or the user is a super admin"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if company is None and role != 'super_admin' and not is_superuser:
            company = TestDataFactory.create_company()
        return User.objects.create_user(
            username=username,
            email=f'{username}@test.com',
            password=password,
            company=company,
            role=role,
            is_superuser=is_superuser,
        )

    @staticmethod
    def create_customer(company, name=None):
        """Create a test customer"""
        if not name:
            name = f'Customer_{TestDataFactory.random_string(6)}'
        return Customer.objects.create(
            company=company,
            customer_code=f'CUS-{TestDataFactory.random_string(6).upper()}',
            name=name,
            phone='9876543210',
        )

    @staticmethod
    def create_supplier(company, name=None, supply_category='grey_fabric'):
        """Create a test supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        return Supplier.objects.create(
            company=company,
            supplier_code=f'SUP-{TestDataFactory.random_string(6).upper()}',
            name=name,
            supply_category=supply_category,
        )

    @staticmethod
    def create_warehouse(company, code=None):
        """Create a test warehouse"""
        if not code:
            code = f'WH{TestDataFactory.random_string(4).upper()}'
        return Warehouse.objects.create(company=company, code=code, name=f'Warehouse {code}')

    @staticmethod
    def create_item(company, warehouse=None, current_stock=Decimal('0'), reorder_level=Decimal('0'),
                    category='grey_fabric'):
        """Create a test inventory item"""
        return InventoryItem.objects.create(
            company=company,
            item_code=f'ITM-{TestDataFactory.random_string(6).upper()}',
            name=f'Item_{TestDataFactory.random_string(6)}',
            category=category,
            warehouse=warehouse,
            current_stock=current_stock,
            reorder_level=reorder_level,
        )

    @staticmethod
    def create_production_order(company, user, customer=None, planned_quantity=Decimal('1000'), **fields):
        """Create a draft production order with its ten stages"""
        fields.setdefault('fabric_type', 'Cotton Poplin')
        return create_production_order(
            company, user,
            customer=customer,
            planned_quantity=planned_quantity,
            **fields
        )

    @staticmethod
    def create_folding(company, production_order=None, input_meter=Decimal('1000'), lot_number=None):
        """Create a pending folding/checking record"""
        return FoldingChecking.objects.create(
            company=company,
            production_order=production_order,
            customer=production_order.customer if production_order else None,
            lot_number=lot_number or f'LOT-{TestDataFactory.random_string(5).upper()}',
            date=timezone.localdate(),
            input_meter=input_meter,
        )

    @staticmethod
    def create_employee(company, employee_code=None, is_active=True, department='production'):
        """Create a test employee"""
        if not employee_code:
            employee_code = f'EMP{TestDataFactory.random_string(5).upper()}'
        return Employee.objects.create(
            company=company,
            employee_code=employee_code,
            name=f'Worker {employee_code}',
            department=department,
            is_active=is_active,
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
