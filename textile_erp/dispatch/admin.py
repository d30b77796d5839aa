from django.contrib import admin
from .models import Dispatch


@admin.register(Dispatch)
class DispatchAdmin(admin.ModelAdmin):
    list_display = ['dispatch_number', 'company', 'customer', 'production_order', 'dispatch_date', 'quantity', 'vehicle_number', 'status']
    list_filter = ['company', 'status', 'dispatch_date']
    search_fields = ['dispatch_number', 'customer__name', 'vehicle_number', 'invoice_number']
    readonly_fields = ['dispatch_number', 'dispatched_at', 'delivered_at', 'created_at', 'updated_at']
