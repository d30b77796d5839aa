from django.db import models
from decimal import Decimal
from textile_erp.core.models import CompanyScopedModel


# Fixed processing route: (stage_type, display name, planned minutes)
STAGE_SEQUENCE = [
    ('grey_fabric_inward', 'Grey Fabric Inward (GRN Entry)', 60),
    ('pre_processing', 'Pre-Processing (Desizing/Bleaching)', 240),
    ('dyeing', 'Dyeing Process', 480),
    ('printing', 'Printing Process', 360),
    ('washing', 'Washing Process', 180),
    ('fixing', 'Color Fixing', 120),
    ('finishing', 'Finishing Process (Stenter, Coating)', 300),
    ('quality_control', 'Quality Control (Pass/Hold/Reject)', 60),
    ('cutting_packing', 'Cutting & Packing (Labels & Cartons)', 120),
    ('dispatch_invoice', 'Dispatch & Invoice (Stock Deduction)', 30),
]

STAGE_TYPE_CHOICES = [(stage_type, name) for stage_type, name, _minutes in STAGE_SEQUENCE]
TOTAL_STAGES = len(STAGE_SEQUENCE)
QC_STAGE_NUMBER = [stage_type for stage_type, _name, _minutes in STAGE_SEQUENCE].index('quality_control') + 1

QC_STATUS_CHOICES = [
    ('pending', 'Pending'),
    ('pass', 'Pass'),
    ('fail', 'Fail'),
    ('partial', 'Partial'),
]
QC_ACCEPTED = ('pass', 'partial')


class ProductionOrder(CompanyScopedModel):
    """Manufacturing work order tracked through the fixed stage route"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('approved', 'Approved'),
        ('in_progress', 'In Progress'),
        ('on_hold', 'On Hold'),
        ('quality_hold', 'Quality Hold'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('urgent', 'Urgent'),
    ]

    UNIT_CHOICES = [
        ('meter', 'Meter'),
        ('kg', 'Kilogram'),
        ('piece', 'Piece'),
    ]

    order_number = models.CharField(max_length=50)
    customer = models.ForeignKey('crm.Customer', on_delete=models.PROTECT, null=True, blank=True, related_name='production_orders')
    fabric_type = models.CharField(max_length=100)
    fabric_quality = models.CharField(max_length=100, blank=True)
    color = models.CharField(max_length=100, blank=True)
    design = models.CharField(max_length=100, blank=True)
    planned_quantity = models.DecimalField(max_digits=12, decimal_places=2)
    unit = models.CharField(max_length=10, choices=UNIT_CHOICES, default='meter')
    completed_quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    rejected_quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    progress_percentage = models.PositiveSmallIntegerField(default=0)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    planned_start_date = models.DateField(null=True, blank=True)
    planned_end_date = models.DateField(null=True, blank=True)
    actual_start_at = models.DateTimeField(null=True, blank=True)
    actual_end_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, related_name='production_orders')

    TERMINAL_STATUSES = ('completed', 'cancelled')

    @property
    def quantity_completion_percentage(self):
        if not self.planned_quantity:
            return Decimal('0.00')
        percentage = self.completed_quantity / self.planned_quantity * 100
        return min(Decimal('100.00'), percentage.quantize(Decimal('0.01')))

    def __str__(self):
        return self.order_number

    class Meta:
        db_table = 'production_orders'
        ordering = ['-created_at']
        unique_together = [('company', 'order_number')]


class ProductionStage(models.Model):
    """One step of an order's route"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('in_progress', 'In Progress'),
        ('completed', 'Completed'),
        ('on_hold', 'On Hold'),
        ('rejected', 'Rejected'),
        ('cancelled', 'Cancelled'),
    ]

    QUALITY_GRADE_CHOICES = [
        ('A+', 'A+'),
        ('A', 'A'),
        ('B+', 'B+'),
        ('B', 'B'),
        ('C', 'C'),
        ('Reject', 'Reject'),
    ]

    order = models.ForeignKey(ProductionOrder, on_delete=models.CASCADE, related_name='stages')
    stage_number = models.PositiveSmallIntegerField()
    stage_type = models.CharField(max_length=30, choices=STAGE_TYPE_CHOICES)
    stage_name = models.CharField(max_length=100)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    planned_quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    actual_quantity = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    defect_quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    quality_grade = models.CharField(max_length=10, choices=QUALITY_GRADE_CHOICES, blank=True)
    qc_status = models.CharField(max_length=10, choices=QC_STATUS_CHOICES, default='pending')
    planned_duration_minutes = models.PositiveIntegerField(default=0)
    actual_duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    updated_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.order.order_number} #{self.stage_number} {self.stage_name}"

    class Meta:
        db_table = 'production_stages'
        ordering = ['order', 'stage_number']
        unique_together = [('order', 'stage_number')]


class ProductionLog(models.Model):
    """Append-only history of an order's status and stage changes"""
    LOG_TYPE_CHOICES = [
        ('status_change', 'Order Status Change'),
        ('stage_change', 'Stage Change'),
        ('quality_check', 'Quality Check'),
        ('quantity_update', 'Quantity Update'),
        ('note', 'Note'),
    ]

    order = models.ForeignKey(ProductionOrder, on_delete=models.CASCADE, related_name='logs')
    stage = models.ForeignKey(ProductionStage, on_delete=models.SET_NULL, null=True, blank=True, related_name='logs')
    log_type = models.CharField(max_length=20, choices=LOG_TYPE_CHOICES)
    from_status = models.CharField(max_length=20, blank=True)
    to_status = models.CharField(max_length=20, blank=True)
    reason = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    user = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, related_name='production_logs')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'production_logs'
        ordering = ['-created_at', '-id']


class FoldingChecking(CompanyScopedModel):
    """Folding/checking inspection of processed fabric"""
    production_order = models.ForeignKey(ProductionOrder, on_delete=models.SET_NULL, null=True, blank=True, related_name='folding_checks')
    customer = models.ForeignKey('crm.Customer', on_delete=models.SET_NULL, null=True, blank=True, related_name='folding_checks')
    lot_number = models.CharField(max_length=50)
    party_name = models.CharField(max_length=200, blank=True)
    quality = models.CharField(max_length=100, blank=True)
    date = models.DateField()
    input_meter = models.DecimalField(max_digits=12, decimal_places=2)
    checked_meter = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    rejected_meter = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    qc_status = models.CharField(max_length=10, choices=QC_STATUS_CHOICES, default='pending')
    checker_name = models.CharField(max_length=100, blank=True)
    checked_at = models.DateTimeField(null=True, blank=True)
    remarks = models.TextField(blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, related_name='+')

    @property
    def pending_meter(self):
        return self.input_meter - self.checked_meter - self.rejected_meter

    def __str__(self):
        return f"Folding {self.lot_number}"

    class Meta:
        db_table = 'folding_checking'
        ordering = ['-date', '-created_at']


class Packing(CompanyScopedModel):
    """Checked fabric waiting to be packed and dispatched"""
    PACKING_TYPE_CHOICES = [
        ('bale', 'Bale'),
        ('roll', 'Roll'),
        ('carton', 'Carton'),
        ('bundle', 'Bundle'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('packed', 'Packed'),
        ('dispatched', 'Dispatched'),
    ]

    folding_checking = models.OneToOneField(FoldingChecking, on_delete=models.SET_NULL, null=True, blank=True, related_name='packing')
    production_order = models.ForeignKey(ProductionOrder, on_delete=models.SET_NULL, null=True, blank=True, related_name='packings')
    customer = models.ForeignKey('crm.Customer', on_delete=models.SET_NULL, null=True, blank=True, related_name='packings')
    lot_number = models.CharField(max_length=50)
    party_name = models.CharField(max_length=200, blank=True)
    quality = models.CharField(max_length=100, blank=True, default='Standard')
    input_meter = models.DecimalField(max_digits=12, decimal_places=2)
    packed_meter = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    packing_type = models.CharField(max_length=10, choices=PACKING_TYPE_CHOICES, default='bale')
    number_of_packages = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    date = models.DateField()
    remarks = models.TextField(blank=True)

    def __str__(self):
        return f"Packing {self.lot_number}"

    class Meta:
        db_table = 'packing'
        ordering = ['-date', '-created_at']


class RejectionStock(CompanyScopedModel):
    """Fabric rejected during inspection"""
    SOURCE_CHOICES = [
        ('folding_checking', 'Folding & Checking'),
        ('quality_control', 'Quality Control'),
        ('manual', 'Manual'),
    ]

    DISPOSITION_CHOICES = [
        ('pending', 'Pending'),
        ('rework', 'Rework'),
        ('seconds', 'Sold as Seconds'),
        ('scrap', 'Scrap'),
    ]

    folding_checking = models.OneToOneField(FoldingChecking, on_delete=models.SET_NULL, null=True, blank=True, related_name='rejection')
    production_order = models.ForeignKey(ProductionOrder, on_delete=models.SET_NULL, null=True, blank=True, related_name='rejections')
    lot_number = models.CharField(max_length=50)
    party_name = models.CharField(max_length=200, blank=True)
    source_module = models.CharField(max_length=20, choices=SOURCE_CHOICES, default='manual')
    meter = models.DecimalField(max_digits=12, decimal_places=2)
    reason = models.CharField(max_length=255, blank=True)
    disposition = models.CharField(max_length=10, choices=DISPOSITION_CHOICES, default='pending')
    date = models.DateField()
    remarks = models.TextField(blank=True)

    def __str__(self):
        return f"Rejection {self.lot_number} ({self.meter}m)"

    class Meta:
        db_table = 'rejection_stock'
        ordering = ['-date', '-created_at']
