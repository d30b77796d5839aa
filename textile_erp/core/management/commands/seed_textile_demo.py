from datetime import time, timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from textile_erp.core.cache_signals import suspend_cache_signals
from textile_erp.core.cache_utils import invalidate_dashboard_cache
from textile_erp.core.models import Company, User
from textile_erp.crm.models import Customer, Supplier
from textile_erp.hr.models import Shift, Employee
from textile_erp.inventory.models import Warehouse, InventoryItem
from textile_erp.inventory.services import post_stock_movement
from textile_erp.production.services import create_production_order

CUSTOMERS = [
    ('Shree Ganesh Fashions', 'Surat', 'Gujarat'),
    ('Lakshmi Garments', 'Tiruppur', 'Tamil Nadu'),
    ('Mehta Textiles', 'Mumbai', 'Maharashtra'),
]

SUPPLIERS = [
    ('Arvind Grey Fabrics', 'grey_fabric'),
    ('Colourtex Dyes', 'dyes'),
    ('Sarex Chemicals', 'chemicals'),
]

ITEMS = [
    ('GF-COT-60', 'Cotton Grey 60x60', 'grey_fabric', 'meter', '12000', '2000'),
    ('DY-RED-01', 'Reactive Red', 'dye', 'kg', '150', '50'),
    ('CH-SOD-01', 'Soda Ash', 'chemical', 'kg', '40', '100'),
    ('PK-CTN-01', 'Export Carton', 'packaging', 'piece', '500', '100'),
]

EMPLOYEES = [
    ('EMP001', 'Ramesh Patel', 'dyeing'),
    ('EMP002', 'Suresh Kumar', 'printing'),
    ('EMP003', 'Anita Desai', 'quality'),
    ('EMP004', 'Vikram Singh', 'packing'),
]


class Command(BaseCommand):
    help = 'Create a demo textile company with master data and a production order'

    def add_arguments(self, parser):
        parser.add_argument('--code', default='DEMOTEX', help='Company code for the demo company')
        parser.add_argument('--password', default='demo12345', help='Password of the demo owner account')

    def handle(self, *args, **options):
        code = options['code'].upper()
        if Company.objects.filter(code=code).exists():
            self.stdout.write(self.style.WARNING(f"Company {code} already exists, nothing to do"))
            return

        with suspend_cache_signals(), transaction.atomic():
            company = Company.objects.create(code=code, name='Demo Textile Mills', legal_name='Demo Textile Mills Pvt Ltd')
            owner = User(username=f"{code.lower()}_owner", company=company, role='owner')
            owner.set_password(options['password'])
            owner.save()
            self.stdout.write(f"  ✓ Company {company.code}, owner {owner.username}")

            customers = []
            for number, (name, city, state) in enumerate(CUSTOMERS, start=1):
                customers.append(Customer.objects.create(
                    company=company, customer_code=f"CUS-{number:04d}", name=name, city=city, state=state,
                ))
            for number, (name, category) in enumerate(SUPPLIERS, start=1):
                Supplier.objects.create(
                    company=company, supplier_code=f"SUP-{number:04d}", name=name, supply_category=category,
                )
            self.stdout.write(f"  ✓ {len(CUSTOMERS)} customers, {len(SUPPLIERS)} suppliers")

            warehouse = Warehouse.objects.create(company=company, code='MAIN', name='Main Godown')
            for item_code, name, category, unit, opening, reorder in ITEMS:
                item = InventoryItem.objects.create(
                    company=company, item_code=item_code, name=name, category=category, unit=unit,
                    warehouse=warehouse, reorder_level=Decimal(reorder),
                )
                post_stock_movement(item, 'in', Decimal(opening), user=owner, reference='Opening stock')
            self.stdout.write(f"  ✓ Warehouse {warehouse.code} with {len(ITEMS)} items")

            shift = Shift.objects.create(company=company, name='General', start_time=time(9, 0), end_time=time(18, 0))
            for employee_code, name, department in EMPLOYEES:
                Employee.objects.create(
                    company=company, employee_code=employee_code, name=name, department=department, shift=shift,
                )
            self.stdout.write(f"  ✓ {len(EMPLOYEES)} employees on shift {shift.name}")

            today = timezone.localdate()
            order = create_production_order(
                company, owner,
                customer=customers[0],
                fabric_type='Cotton Poplin',
                fabric_quality='60x60',
                color='Navy Blue',
                planned_quantity=Decimal('5000'),
                planned_start_date=today,
                planned_end_date=today + timedelta(days=10),
            )
            self.stdout.write(f"  ✓ Production order {order.order_number}")

        invalidate_dashboard_cache(company.pk)
        self.stdout.write(self.style.SUCCESS(f"\nDemo company {company.code} is ready"))
