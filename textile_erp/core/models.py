from django.contrib.auth.models import AbstractUser
from django.core.validators import RegexValidator
from django.db import models


company_code_validator = RegexValidator(
    regex=r'^[A-Z0-9]{3,20}$',
    message='Company code must be 3-20 uppercase letters or digits.',
)


class Company(models.Model):
    """Tenant that owns every business record"""
    name = models.CharField(max_length=200)
    code = models.CharField(max_length=20, unique=True, validators=[company_code_validator])
    legal_name = models.CharField(max_length=255, blank=True)
    gstin = models.CharField(max_length=15, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.code})"

    class Meta:
        db_table = 'companies'
        ordering = ['name']
        verbose_name_plural = 'companies'


class User(AbstractUser):
    """Extended user model with company membership and role"""
    ROLE_CHOICES = [
        ('super_admin', 'Super Admin'),
        ('owner', 'Owner'),
        ('manager', 'Manager'),
        ('supervisor', 'Supervisor'),
        ('operator', 'Operator'),
        ('viewer', 'Viewer'),
    ]
    ADMIN_ROLES = ('owner', 'manager')
    PRODUCTION_ROLES = ('owner', 'manager', 'supervisor', 'operator')

    company = models.ForeignKey(Company, on_delete=models.PROTECT, null=True, blank=True, related_name='users')
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='operator')
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_super_admin(self):
        return self.is_superuser or self.role == 'super_admin'

    @property
    def is_company_admin(self):
        return self.is_super_admin or self.role in self.ADMIN_ROLES

    @property
    def can_manage_production(self):
        return self.is_super_admin or self.role in self.PRODUCTION_ROLES

    class Meta:
        db_table = 'users'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('login', 'Login'),
        ('status_change', 'Status Change'),
        ('stage_transition', 'Stage Transition'),
        ('qc_update', 'QC Update'),
        ('stock_movement', 'Stock Movement'),
        ('dispatch_status', 'Dispatch Status'),
        ('attendance', 'Attendance'),
        ('report_run', 'Report Run'),
    ]

    company = models.ForeignKey(Company, on_delete=models.CASCADE, null=True, blank=True, related_name='audit_logs')
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order number, dispatch number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_3c1e2a_idx'),
            models.Index(fields=['action'], name='audit_logs_action_7b9d41_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_5f2c88_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__9a4e10_idx'),
        ]


class CompanyScopedModel(models.Model):
    """Abstract base for records owned by a company"""
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
