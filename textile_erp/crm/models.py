from django.db import models
from decimal import Decimal
from textile_erp.core.models import CompanyScopedModel


class Customer(CompanyScopedModel):
    """Customers (buyers of processed fabric)"""
    customer_code = models.CharField(max_length=20)
    name = models.CharField(max_length=200)
    contact_person = models.CharField(max_length=200, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    gstin = models.CharField(max_length=15, blank=True)
    address = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    credit_limit = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'customers'
        ordering = ['name']
        unique_together = [('company', 'customer_code'), ('company', 'name')]


class Supplier(CompanyScopedModel):
    """Suppliers of grey fabric, chemicals, dyes and packaging"""
    CATEGORY_CHOICES = [
        ('grey_fabric', 'Grey Fabric'),
        ('chemicals', 'Chemicals'),
        ('dyes', 'Dyes'),
        ('packaging', 'Packaging'),
        ('spares', 'Spares'),
        ('other', 'Other'),
    ]

    supplier_code = models.CharField(max_length=20)
    name = models.CharField(max_length=200)
    contact_person = models.CharField(max_length=200, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    gstin = models.CharField(max_length=15, blank=True)
    address = models.TextField(blank=True)
    supply_category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other')
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'suppliers'
        ordering = ['name']
        unique_together = [('company', 'supplier_code')]
