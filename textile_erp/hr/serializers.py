from rest_framework import serializers
from textile_erp.core.serializers import CompanyScopedSerializer
from .models import Shift, Employee, Attendance


class ShiftSerializer(CompanyScopedSerializer):
    class Meta:
        model = Shift
        fields = ['id', 'name', 'start_time', 'end_time', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_name(self, value):
        return self.check_unique_in_company('name', value.strip(), "A shift with this name already exists.")


class EmployeeSerializer(CompanyScopedSerializer):
    shift_name = serializers.CharField(source='shift.name', read_only=True, default=None)

    class Meta:
        model = Employee
        fields = ['id', 'employee_code', 'name', 'department', 'designation', 'shift', 'shift_name',
                  'phone', 'date_of_joining', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_employee_code(self, value):
        return self.check_unique_in_company('employee_code', value.strip().upper(),
                                            "An employee with this code already exists.")

    def validate_shift(self, value):
        return self.check_same_company(value, 'Shift')


class AttendanceSerializer(serializers.ModelSerializer):
    employee_code = serializers.CharField(source='employee.employee_code', read_only=True)
    employee_name = serializers.CharField(source='employee.name', read_only=True)

    class Meta:
        model = Attendance
        fields = ['id', 'employee', 'employee_code', 'employee_name', 'date', 'check_in',
                  'check_out', 'working_hours', 'status', 'remarks', 'created_at', 'updated_at']
        read_only_fields = fields


class EmployeeActionSerializer(serializers.Serializer):
    employee = serializers.IntegerField()


class MarkAttendanceSerializer(serializers.Serializer):
    employee = serializers.IntegerField()
    date = serializers.DateField()
    status = serializers.ChoiceField(choices=Attendance.STATUS_CHOICES)
    remarks = serializers.CharField(required=False, allow_blank=True, default='')
