from django.contrib import admin
from .models import Customer, Supplier


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['customer_code', 'name', 'company', 'phone', 'city', 'credit_limit', 'is_active']
    list_filter = ['company', 'is_active', 'state']
    search_fields = ['customer_code', 'name', 'phone', 'email', 'gstin']
    ordering = ['name']


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['supplier_code', 'name', 'company', 'supply_category', 'phone', 'is_active']
    list_filter = ['company', 'supply_category', 'is_active']
    search_fields = ['supplier_code', 'name', 'phone', 'email', 'gstin']
    ordering = ['name']
