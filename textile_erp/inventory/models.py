from django.db import models
from decimal import Decimal
from textile_erp.core.models import CompanyScopedModel


class Warehouse(CompanyScopedModel):
    """Godowns holding grey fabric, chemicals and finished goods"""
    name = models.CharField(max_length=200)
    code = models.CharField(max_length=50)
    address = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'warehouses'
        ordering = ['name']
        unique_together = [('company', 'code')]


class InventoryItem(CompanyScopedModel):
    """Stock keeping item with a running stock balance"""
    CATEGORY_CHOICES = [
        ('grey_fabric', 'Grey Fabric'),
        ('raw_material', 'Raw Material'),
        ('chemical', 'Chemical'),
        ('dye', 'Dye'),
        ('finished_goods', 'Finished Goods'),
        ('packaging', 'Packaging'),
        ('spare', 'Spare Part'),
        ('other', 'Other'),
    ]

    UNIT_CHOICES = [
        ('meter', 'Meter'),
        ('kg', 'Kilogram'),
        ('litre', 'Litre'),
        ('piece', 'Piece'),
        ('roll', 'Roll'),
        ('bale', 'Bale'),
    ]

    item_code = models.CharField(max_length=50)
    name = models.CharField(max_length=200)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other')
    unit = models.CharField(max_length=10, choices=UNIT_CHOICES, default='meter')
    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, null=True, blank=True, related_name='items')
    current_stock = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal('0.000'))
    reorder_level = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal('0.000'))
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    @property
    def is_low_stock(self):
        return self.reorder_level > 0 and self.current_stock <= self.reorder_level

    def __str__(self):
        return f"{self.item_code} - {self.name}"

    class Meta:
        db_table = 'inventory_items'
        ordering = ['name']
        unique_together = [('company', 'item_code')]


class StockMovement(CompanyScopedModel):
    """Every change of an item's stock balance"""
    MOVEMENT_TYPE_CHOICES = [
        ('in', 'Stock In'),
        ('out', 'Stock Out'),
        ('transfer', 'Transfer'),
        ('adjustment', 'Adjustment'),
    ]

    item = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name='movements')
    movement_type = models.CharField(max_length=20, choices=MOVEMENT_TYPE_CHOICES)
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    from_warehouse = models.ForeignKey(Warehouse, on_delete=models.SET_NULL, null=True, blank=True, related_name='outgoing_movements')
    to_warehouse = models.ForeignKey(Warehouse, on_delete=models.SET_NULL, null=True, blank=True, related_name='incoming_movements')
    reference = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    stock_before = models.DecimalField(max_digits=14, decimal_places=3)
    stock_after = models.DecimalField(max_digits=14, decimal_places=3)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, related_name='stock_movements')

    class Meta:
        db_table = 'stock_movements'
        ordering = ['-created_at']
