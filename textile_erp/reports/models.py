from django.db import models
from django.utils import timezone
from textile_erp.core.models import CompanyScopedModel


class AutomatedReport(CompanyScopedModel):
    """Report e-mailed to a recipient list on a fixed schedule"""
    REPORT_TYPE_CHOICES = [
        ('dashboard', 'Dashboard Overview'),
        ('production', 'Production Summary'),
        ('quality', 'Quality Summary'),
        ('dispatch', 'Dispatch Summary'),
    ]

    FREQUENCY_CHOICES = [
        ('daily', 'Daily'),
        ('weekly', 'Weekly'),
        ('monthly', 'Monthly'),
    ]

    LAST_STATUS_CHOICES = [
        ('never_run', 'Never Run'),
        ('success', 'Success'),
        ('failed', 'Failed'),
    ]

    name = models.CharField(max_length=200)
    report_type = models.CharField(max_length=20, choices=REPORT_TYPE_CHOICES)
    frequency = models.CharField(max_length=10, choices=FREQUENCY_CHOICES, default='daily')
    recipients = models.TextField(help_text='Comma separated e-mail addresses')
    is_active = models.BooleanField(default=True)
    last_run_at = models.DateTimeField(null=True, blank=True)
    next_run_at = models.DateTimeField()
    anchor_day = models.PositiveSmallIntegerField(null=True, blank=True, help_text='Day of month monthly runs return to')
    last_status = models.CharField(max_length=10, choices=LAST_STATUS_CHOICES, default='never_run')
    last_error = models.TextField(blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, related_name='+')

    def save(self, *args, **kwargs):
        if self.anchor_day is None and self.next_run_at:
            self.anchor_day = timezone.localtime(self.next_run_at).day
        super().save(*args, **kwargs)

    @property
    def recipient_list(self):
        return [email.strip() for email in self.recipients.split(',') if email.strip()]

    def __str__(self):
        return f"{self.name} ({self.frequency})"

    class Meta:
        db_table = 'automated_reports'
        ordering = ['next_run_at']
