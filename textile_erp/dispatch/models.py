from django.db import models
from textile_erp.core.models import CompanyScopedModel


class Dispatch(CompanyScopedModel):
    """Outbound shipment of finished fabric to a customer"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('ready', 'Ready'),
        ('dispatched', 'Dispatched'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
    ]

    UNIT_CHOICES = [
        ('meter', 'Meter'),
        ('kg', 'Kilogram'),
        ('piece', 'Piece'),
    ]

    dispatch_number = models.CharField(max_length=50)
    customer = models.ForeignKey('crm.Customer', on_delete=models.PROTECT, related_name='dispatches')
    production_order = models.ForeignKey('production.ProductionOrder', on_delete=models.PROTECT, null=True, blank=True, related_name='dispatches')
    packing = models.ForeignKey('production.Packing', on_delete=models.SET_NULL, null=True, blank=True, related_name='dispatches')
    dispatch_date = models.DateField()
    quantity = models.DecimalField(max_digits=12, decimal_places=2)
    unit = models.CharField(max_length=10, choices=UNIT_CHOICES, default='meter')
    number_of_packages = models.PositiveIntegerField(default=0)
    vehicle_number = models.CharField(max_length=20, blank=True)
    driver_name = models.CharField(max_length=100, blank=True)
    driver_phone = models.CharField(max_length=20, blank=True)
    transporter = models.CharField(max_length=200, blank=True)
    destination = models.CharField(max_length=255, blank=True)
    invoice_number = models.CharField(max_length=50, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    dispatched_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    remarks = models.TextField(blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, related_name='dispatches')

    EDITABLE_STATUSES = ('pending', 'cancelled')

    def __str__(self):
        return self.dispatch_number

    class Meta:
        db_table = 'dispatches'
        ordering = ['-dispatch_date', '-created_at']
        unique_together = [('company', 'dispatch_number')]
        verbose_name_plural = 'dispatches'
