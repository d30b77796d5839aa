from django.db import models
from decimal import Decimal
from textile_erp.core.models import CompanyScopedModel


class Shift(CompanyScopedModel):
    name = models.CharField(max_length=50)
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.name} ({self.start_time:%H:%M}-{self.end_time:%H:%M})"

    class Meta:
        db_table = 'shifts'
        ordering = ['start_time']
        unique_together = [('company', 'name')]


class Employee(CompanyScopedModel):
    """Mill worker or staff member"""
    DEPARTMENT_CHOICES = [
        ('production', 'Production'),
        ('dyeing', 'Dyeing'),
        ('printing', 'Printing'),
        ('finishing', 'Finishing'),
        ('quality', 'Quality'),
        ('packing', 'Packing'),
        ('dispatch', 'Dispatch'),
        ('store', 'Store'),
        ('admin', 'Admin'),
        ('maintenance', 'Maintenance'),
    ]

    employee_code = models.CharField(max_length=20)
    name = models.CharField(max_length=200)
    department = models.CharField(max_length=20, choices=DEPARTMENT_CHOICES, default='production')
    designation = models.CharField(max_length=100, blank=True)
    shift = models.ForeignKey(Shift, on_delete=models.SET_NULL, null=True, blank=True, related_name='employees')
    phone = models.CharField(max_length=20, blank=True)
    date_of_joining = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.employee_code} - {self.name}"

    class Meta:
        db_table = 'employees'
        ordering = ['employee_code']
        unique_together = [('company', 'employee_code')]


class Attendance(CompanyScopedModel):
    """One attendance row per employee per day"""
    STATUS_CHOICES = [
        ('present', 'Present'),
        ('absent', 'Absent'),
        ('half_day', 'Half Day'),
        ('leave', 'Leave'),
    ]

    HALF_DAY_HOURS = Decimal('4')

    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='attendance')
    date = models.DateField()
    check_in = models.DateTimeField(null=True, blank=True)
    check_out = models.DateTimeField(null=True, blank=True)
    working_hours = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='present')
    remarks = models.TextField(blank=True)

    def __str__(self):
        return f"{self.employee.name} {self.date} {self.status}"

    class Meta:
        db_table = 'attendance'
        ordering = ['-date', 'employee__employee_code']
        unique_together = [('employee', 'date')]
        verbose_name_plural = 'attendance'
