# Generated manually for the initial production schema

import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


STAGE_TYPES = [
    ('grey_fabric_inward', 'Grey Fabric Inward (GRN Entry)'),
    ('pre_processing', 'Pre-Processing (Desizing/Bleaching)'),
    ('dyeing', 'Dyeing Process'),
    ('printing', 'Printing Process'),
    ('washing', 'Washing Process'),
    ('fixing', 'Color Fixing'),
    ('finishing', 'Finishing Process (Stenter, Coating)'),
    ('quality_control', 'Quality Control (Pass/Hold/Reject)'),
    ('cutting_packing', 'Cutting & Packing (Labels & Cartons)'),
    ('dispatch_invoice', 'Dispatch & Invoice (Stock Deduction)'),
]

QC_STATUSES = [('pending', 'Pending'), ('pass', 'Pass'), ('fail', 'Fail'), ('partial', 'Partial')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('crm', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ProductionOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order_number', models.CharField(max_length=50)),
                ('fabric_type', models.CharField(max_length=100)),
                ('fabric_quality', models.CharField(blank=True, max_length=100)),
                ('color', models.CharField(blank=True, max_length=100)),
                ('design', models.CharField(blank=True, max_length=100)),
                ('planned_quantity', models.DecimalField(decimal_places=2, max_digits=12)),
                ('unit', models.CharField(choices=[('meter', 'Meter'), ('kg', 'Kilogram'), ('piece', 'Piece')], default='meter', max_length=10)),
                ('completed_quantity', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('rejected_quantity', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('progress_percentage', models.PositiveSmallIntegerField(default=0)),
                ('priority', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('urgent', 'Urgent')], default='medium', max_length=10)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('approved', 'Approved'), ('in_progress', 'In Progress'), ('on_hold', 'On Hold'), ('quality_hold', 'Quality Hold'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='draft', max_length=20)),
                ('planned_start_date', models.DateField(blank=True, null=True)),
                ('planned_end_date', models.DateField(blank=True, null=True)),
                ('actual_start_at', models.DateTimeField(blank=True, null=True)),
                ('actual_end_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to='core.company')),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='production_orders', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='production_orders', to='crm.customer')),
            ],
            options={
                'db_table': 'production_orders',
                'ordering': ['-created_at'],
                'unique_together': {('company', 'order_number')},
            },
        ),
        migrations.CreateModel(
            name='ProductionStage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('stage_number', models.PositiveSmallIntegerField()),
                ('stage_type', models.CharField(choices=STAGE_TYPES, max_length=30)),
                ('stage_name', models.CharField(max_length=100)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('in_progress', 'In Progress'), ('completed', 'Completed'), ('on_hold', 'On Hold'), ('rejected', 'Rejected'), ('cancelled', 'Cancelled')], default='pending', max_length=20)),
                ('planned_quantity', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('actual_quantity', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('defect_quantity', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('quality_grade', models.CharField(blank=True, choices=[('A+', 'A+'), ('A', 'A'), ('B+', 'B+'), ('B', 'B'), ('C', 'C'), ('Reject', 'Reject')], max_length=10)),
                ('qc_status', models.CharField(choices=QC_STATUSES, default='pending', max_length=10)),
                ('planned_duration_minutes', models.PositiveIntegerField(default=0)),
                ('actual_duration_minutes', models.PositiveIntegerField(blank=True, null=True)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stages', to='production.productionorder')),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'production_stages',
                'ordering': ['order', 'stage_number'],
                'unique_together': {('order', 'stage_number')},
            },
        ),
        migrations.CreateModel(
            name='ProductionLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('log_type', models.CharField(choices=[('status_change', 'Order Status Change'), ('stage_change', 'Stage Change'), ('quality_check', 'Quality Check'), ('quantity_update', 'Quantity Update'), ('note', 'Note')], max_length=20)),
                ('from_status', models.CharField(blank=True, max_length=20)),
                ('to_status', models.CharField(blank=True, max_length=20)),
                ('reason', models.TextField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='logs', to='production.productionorder')),
                ('stage', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='logs', to='production.productionstage')),
                ('user', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='production_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'production_logs',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='FoldingChecking',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('lot_number', models.CharField(max_length=50)),
                ('party_name', models.CharField(blank=True, max_length=200)),
                ('quality', models.CharField(blank=True, max_length=100)),
                ('date', models.DateField()),
                ('input_meter', models.DecimalField(decimal_places=2, max_digits=12)),
                ('checked_meter', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('rejected_meter', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('qc_status', models.CharField(choices=QC_STATUSES, default='pending', max_length=10)),
                ('checker_name', models.CharField(blank=True, max_length=100)),
                ('checked_at', models.DateTimeField(blank=True, null=True)),
                ('remarks', models.TextField(blank=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to='core.company')),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='folding_checks', to='crm.customer')),
                ('production_order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='folding_checks', to='production.productionorder')),
            ],
            options={
                'db_table': 'folding_checking',
                'ordering': ['-date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Packing',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('lot_number', models.CharField(max_length=50)),
                ('party_name', models.CharField(blank=True, max_length=200)),
                ('quality', models.CharField(blank=True, default='Standard', max_length=100)),
                ('input_meter', models.DecimalField(decimal_places=2, max_digits=12)),
                ('packed_meter', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('packing_type', models.CharField(choices=[('bale', 'Bale'), ('roll', 'Roll'), ('carton', 'Carton'), ('bundle', 'Bundle')], default='bale', max_length=10)),
                ('number_of_packages', models.PositiveIntegerField(default=0)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('packed', 'Packed'), ('dispatched', 'Dispatched')], default='pending', max_length=20)),
                ('date', models.DateField()),
                ('remarks', models.TextField(blank=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to='core.company')),
                ('customer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='packings', to='crm.customer')),
                ('folding_checking', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='packing', to='production.foldingchecking')),
                ('production_order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='packings', to='production.productionorder')),
            ],
            options={
                'db_table': 'packing',
                'ordering': ['-date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='RejectionStock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('lot_number', models.CharField(max_length=50)),
                ('party_name', models.CharField(blank=True, max_length=200)),
                ('source_module', models.CharField(choices=[('folding_checking', 'Folding & Checking'), ('quality_control', 'Quality Control'), ('manual', 'Manual')], default='manual', max_length=20)),
                ('meter', models.DecimalField(decimal_places=2, max_digits=12)),
                ('reason', models.CharField(blank=True, max_length=255)),
                ('disposition', models.CharField(choices=[('pending', 'Pending'), ('rework', 'Rework'), ('seconds', 'Sold as Seconds'), ('scrap', 'Scrap')], default='pending', max_length=10)),
                ('date', models.DateField()),
                ('remarks', models.TextField(blank=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to='core.company')),
                ('folding_checking', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='rejection', to='production.foldingchecking')),
                ('production_order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='rejections', to='production.productionorder')),
            ],
            options={
                'db_table': 'rejection_stock',
                'ordering': ['-date', '-created_at'],
            },
        ),
    ]
