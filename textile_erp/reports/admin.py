from django.contrib import admin
from .models import AutomatedReport


@admin.register(AutomatedReport)
class AutomatedReportAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'report_type', 'frequency', 'is_active', 'next_run_at', 'last_status']
    list_filter = ['company', 'report_type', 'frequency', 'is_active', 'last_status']
    search_fields = ['name', 'recipients']
