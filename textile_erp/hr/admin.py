from django.contrib import admin
from .models import Shift, Employee, Attendance


@admin.register(Shift)
class ShiftAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'start_time', 'end_time', 'is_active']
    list_filter = ['company', 'is_active']


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ['employee_code', 'name', 'company', 'department', 'shift', 'is_active']
    list_filter = ['company', 'department', 'is_active']
    search_fields = ['employee_code', 'name', 'phone']


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ['employee', 'date', 'status', 'check_in', 'check_out', 'working_hours']
    list_filter = ['company', 'status', 'date']
    search_fields = ['employee__name', 'employee__employee_code']
