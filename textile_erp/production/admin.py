from django.contrib import admin
from .models import ProductionOrder, ProductionStage, ProductionLog, FoldingChecking, Packing, RejectionStock


class ProductionStageInline(admin.TabularInline):
    model = ProductionStage
    extra = 0
    fields = ['stage_number', 'stage_name', 'status', 'planned_quantity', 'actual_quantity', 'defect_quantity', 'qc_status', 'quality_grade']
    readonly_fields = ['stage_number', 'stage_name']
    can_delete = False


@admin.register(ProductionOrder)
class ProductionOrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'company', 'customer', 'fabric_type', 'planned_quantity', 'completed_quantity', 'progress_percentage', 'priority', 'status', 'planned_end_date']
    list_filter = ['company', 'status', 'priority']
    search_fields = ['order_number', 'fabric_type', 'customer__name']
    readonly_fields = ['order_number', 'progress_percentage', 'completed_quantity', 'rejected_quantity', 'actual_start_at', 'actual_end_at', 'created_at', 'updated_at']
    inlines = [ProductionStageInline]


@admin.register(ProductionLog)
class ProductionLogAdmin(admin.ModelAdmin):
    list_display = ['order', 'stage', 'log_type', 'from_status', 'to_status', 'user', 'created_at']
    list_filter = ['log_type', 'created_at']
    search_fields = ['order__order_number', 'reason']
    readonly_fields = ['order', 'stage', 'log_type', 'from_status', 'to_status', 'reason', 'notes', 'metadata', 'user', 'created_at']


@admin.register(FoldingChecking)
class FoldingCheckingAdmin(admin.ModelAdmin):
    list_display = ['lot_number', 'company', 'party_name', 'date', 'input_meter', 'checked_meter', 'rejected_meter', 'qc_status', 'checker_name']
    list_filter = ['company', 'qc_status', 'date']
    search_fields = ['lot_number', 'party_name', 'checker_name']


@admin.register(Packing)
class PackingAdmin(admin.ModelAdmin):
    list_display = ['lot_number', 'company', 'party_name', 'input_meter', 'packed_meter', 'packing_type', 'status', 'date']
    list_filter = ['company', 'status', 'packing_type']
    search_fields = ['lot_number', 'party_name']


@admin.register(RejectionStock)
class RejectionStockAdmin(admin.ModelAdmin):
    list_display = ['lot_number', 'company', 'source_module', 'meter', 'disposition', 'date']
    list_filter = ['company', 'source_module', 'disposition']
    search_fields = ['lot_number', 'party_name', 'reason']
