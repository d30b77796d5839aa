from django.contrib import admin
from .models import Warehouse, InventoryItem, StockMovement


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'company', 'is_active']
    list_filter = ['company', 'is_active']
    search_fields = ['code', 'name']


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ['item_code', 'name', 'company', 'category', 'warehouse', 'current_stock', 'reorder_level', 'unit']
    list_filter = ['company', 'category', 'unit', 'is_active']
    search_fields = ['item_code', 'name']
    readonly_fields = ['current_stock', 'created_at', 'updated_at']


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ['item', 'movement_type', 'quantity', 'stock_before', 'stock_after', 'created_by', 'created_at']
    list_filter = ['movement_type', 'company', 'created_at']
    search_fields = ['item__item_code', 'item__name', 'reference']
    readonly_fields = ['stock_before', 'stock_after', 'created_at']
