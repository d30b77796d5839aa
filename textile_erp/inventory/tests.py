"""
Test suite for Inventory module
Tests: Warehouses, items, opening stock, stock movements, low stock, transfers
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from textile_erp.core.exceptions import ServiceError
from textile_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from textile_erp.inventory.models import InventoryItem, StockMovement, Warehouse
from textile_erp.inventory.services import post_stock_movement


class StockMovementServiceTests(TestCase):
    """Test post_stock_movement balance rules"""

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company)
        self.warehouse = TestDataFactory.create_warehouse(self.company)
        self.item = TestDataFactory.create_item(self.company, warehouse=self.warehouse,
                                                current_stock=Decimal('100'))

    def test_stock_in(self):
        """Test stock in adds to the balance and records before/after"""
        movement = post_stock_movement(self.item, 'in', Decimal('25'), user=self.user)
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_stock, Decimal('125'))
        self.assertEqual(movement.stock_before, Decimal('100'))
        self.assertEqual(movement.stock_after, Decimal('125'))

    def test_stock_out(self):
        """Test stock out subtracts from the balance"""
        post_stock_movement(self.item, 'out', Decimal('40'), user=self.user)
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_stock, Decimal('60'))

    def test_stock_out_insufficient(self):
        """Test stock can never go negative"""
        with self.assertRaises(ServiceError) as ctx:
            post_stock_movement(self.item, 'out', Decimal('150'), user=self.user)
        self.assertEqual(ctx.exception.error, 'insufficient_stock')
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_stock, Decimal('100'))
        self.assertEqual(StockMovement.objects.count(), 0)

    def test_negative_adjustment(self):
        """Test a negative adjustment reduces the balance"""
        post_stock_movement(self.item, 'adjustment', Decimal('-10'), user=self.user)
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_stock, Decimal('90'))

    def test_zero_quantity_rejected(self):
        """Test in/out need a positive quantity"""
        with self.assertRaises(ServiceError):
            post_stock_movement(self.item, 'in', Decimal('0'), user=self.user)

    def test_transfer_moves_item(self):
        """Test a transfer relocates the item and keeps the balance"""
        target = TestDataFactory.create_warehouse(self.company)
        movement = post_stock_movement(self.item, 'transfer', Decimal('0'), user=self.user, to_warehouse=target)
        self.item.refresh_from_db()
        self.assertEqual(self.item.warehouse, target)
        self.assertEqual(self.item.current_stock, Decimal('100'))
        self.assertEqual(movement.from_warehouse, self.warehouse)
        self.assertEqual(movement.quantity, Decimal('100'))

    def test_transfer_to_other_company_warehouse(self):
        """Test transfers cannot target another company's warehouse"""
        foreign = TestDataFactory.create_warehouse(TestDataFactory.create_company())
        with self.assertRaises(ServiceError):
            post_stock_movement(self.item, 'transfer', Decimal('0'), user=self.user, to_warehouse=foreign)


class InventoryAPITests(TestCase):
    """Test inventory API endpoints"""

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company, role='supervisor')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.warehouse = TestDataFactory.create_warehouse(self.company, code='MAIN')

    def test_create_warehouse_duplicate_code(self):
        """Test warehouse codes are unique per company"""
        response = self.client.post('/api/v1/warehouses/', {'name': 'Second', 'code': 'main'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_warehouse_with_items(self):
        """Test a warehouse holding items cannot be deleted"""
        TestDataFactory.create_item(self.company, warehouse=self.warehouse)
        response = self.client.delete(f'/api/v1/warehouses/{self.warehouse.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Warehouse.objects.filter(pk=self.warehouse.pk).exists())

    def test_create_item_with_opening_stock(self):
        """Test opening stock is recorded as a stock-in movement"""
        response = self.client.post('/api/v1/inventory/items/', {
            'item_code': 'gf-cot-60',
            'name': 'Cotton Grey 60x60',
            'category': 'grey_fabric',
            'unit': 'meter',
            'warehouse': self.warehouse.pk,
            'opening_stock': '5000',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['item_code'], 'GF-COT-60')
        self.assertEqual(Decimal(response.data['data']['current_stock']), Decimal('5000'))
        item = InventoryItem.objects.get(item_code='GF-COT-60')
        self.assertEqual(item.movements.get().movement_type, 'in')

    def test_current_stock_not_writable(self):
        """Test current stock only changes through movements"""
        item = TestDataFactory.create_item(self.company, current_stock=Decimal('10'))
        self.client.patch(f'/api/v1/inventory/items/{item.pk}/', {'current_stock': '999'})
        item.refresh_from_db()
        self.assertEqual(item.current_stock, Decimal('10'))

    def test_item_in_other_company_warehouse(self):
        """Test items cannot be placed in another company's warehouse"""
        foreign = TestDataFactory.create_warehouse(TestDataFactory.create_company())
        response = self.client.post('/api/v1/inventory/items/', {
            'item_code': 'X1', 'name': 'X', 'warehouse': foreign.pk,
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_low_stock_list(self):
        """Test low stock endpoint lists items at or below reorder level"""
        low = TestDataFactory.create_item(self.company, current_stock=Decimal('5'), reorder_level=Decimal('10'))
        TestDataFactory.create_item(self.company, current_stock=Decimal('50'), reorder_level=Decimal('10'))
        TestDataFactory.create_item(self.company, current_stock=Decimal('0'), reorder_level=Decimal('0'))
        response = self.client.get('/api/v1/inventory/items/low-stock/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data['data']], [low.pk])

    def test_item_filter_low_stock(self):
        """Test the low_stock filter on the item list"""
        TestDataFactory.create_item(self.company, current_stock=Decimal('5'), reorder_level=Decimal('10'))
        TestDataFactory.create_item(self.company, current_stock=Decimal('50'), reorder_level=Decimal('10'))
        response = self.client.get('/api/v1/inventory/items/?low_stock=true')
        self.assertEqual(response.data['pagination']['count'], 1)

    def test_post_movement(self):
        """Test posting a stock movement through the API"""
        item = TestDataFactory.create_item(self.company, current_stock=Decimal('100'))
        response = self.client.post('/api/v1/inventory/movements/', {
            'item': item.pk,
            'movement_type': 'out',
            'quantity': '30',
            'reference': 'PO-ISSUE',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['data']['stock_after']), Decimal('70'))

    def test_post_movement_insufficient_stock(self):
        """Test the API reports insufficient stock"""
        item = TestDataFactory.create_item(self.company, current_stock=Decimal('10'))
        response = self.client.post('/api/v1/inventory/movements/', {
            'item': item.pk,
            'movement_type': 'out',
            'quantity': '30',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'insufficient_stock')

    def test_movement_for_other_company_item(self):
        """Test movements cannot touch another company's items"""
        item = TestDataFactory.create_item(TestDataFactory.create_company(), current_stock=Decimal('10'))
        response = self.client.post('/api/v1/inventory/movements/', {
            'item': item.pk,
            'movement_type': 'in',
            'quantity': '5',
        })
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
