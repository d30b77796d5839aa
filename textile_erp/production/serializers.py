from rest_framework import serializers
from decimal import Decimal
from textile_erp.core.serializers import CompanyScopedSerializer
from .models import (
    ProductionOrder, ProductionStage, ProductionLog,
    FoldingChecking, Packing, RejectionStock, QC_STATUS_CHOICES,
)


class ProductionStageSerializer(serializers.ModelSerializer):
    updated_by_username = serializers.CharField(source='updated_by.username', read_only=True, default=None)

    class Meta:
        model = ProductionStage
        fields = ['id', 'stage_number', 'stage_type', 'stage_name', 'status', 'planned_quantity',
                  'actual_quantity', 'defect_quantity', 'quality_grade', 'qc_status',
                  'planned_duration_minutes', 'actual_duration_minutes', 'started_at',
                  'completed_at', 'notes', 'updated_by', 'updated_by_username', 'updated_at']
        read_only_fields = fields


class ProductionOrderSerializer(CompanyScopedSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True, default=None)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)
    quantity_completion_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, read_only=True)

    class Meta:
        model = ProductionOrder
        fields = ['id', 'order_number', 'customer', 'customer_name', 'fabric_type', 'fabric_quality',
                  'color', 'design', 'planned_quantity', 'unit', 'completed_quantity',
                  'rejected_quantity', 'progress_percentage', 'quantity_completion_percentage',
                  'priority', 'status', 'planned_start_date', 'planned_end_date',
                  'actual_start_at', 'actual_end_at', 'notes', 'created_by', 'created_by_username',
                  'created_at', 'updated_at']
        read_only_fields = ['order_number', 'completed_quantity', 'rejected_quantity',
                            'progress_percentage', 'status', 'actual_start_at', 'actual_end_at',
                            'created_by', 'created_at', 'updated_at']

    def validate_customer(self, value):
        return self.check_same_company(value, 'Customer')

    def validate_planned_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Planned quantity must be greater than zero.")
        return value

    def validate(self, attrs):
        start = attrs.get('planned_start_date', getattr(self.instance, 'planned_start_date', None))
        end = attrs.get('planned_end_date', getattr(self.instance, 'planned_end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({"planned_end_date": "Planned end date cannot be before the start date."})
        return attrs


class ProductionOrderDetailSerializer(ProductionOrderSerializer):
    stages = ProductionStageSerializer(many=True, read_only=True)

    class Meta(ProductionOrderSerializer.Meta):
        fields = ProductionOrderSerializer.Meta.fields + ['stages']


class StageTransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ProductionStage.STATUS_CHOICES)
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    actual_quantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    defect_quantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    quality_grade = serializers.ChoiceField(choices=ProductionStage.QUALITY_GRADE_CHOICES, required=False, allow_blank=True, default='')
    qc_status = serializers.ChoiceField(choices=QC_STATUS_CHOICES, required=False, allow_blank=True, default='')


class ProductionLogSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, default=None)
    stage_number = serializers.IntegerField(source='stage.stage_number', read_only=True, default=None)
    stage_name = serializers.CharField(source='stage.stage_name', read_only=True, default=None)

    class Meta:
        model = ProductionLog
        fields = ['id', 'log_type', 'stage', 'stage_number', 'stage_name', 'from_status',
                  'to_status', 'reason', 'notes', 'metadata', 'user', 'username', 'created_at']
        read_only_fields = fields


class FoldingCheckingSerializer(CompanyScopedSerializer):
    pending_meter = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    order_number = serializers.CharField(source='production_order.order_number', read_only=True, default=None)

    class Meta:
        model = FoldingChecking
        fields = ['id', 'production_order', 'order_number', 'customer', 'lot_number', 'party_name',
                  'quality', 'date', 'input_meter', 'checked_meter', 'rejected_meter',
                  'pending_meter', 'qc_status', 'checker_name', 'checked_at', 'remarks',
                  'created_at', 'updated_at']
        read_only_fields = ['checked_meter', 'rejected_meter', 'qc_status', 'checker_name',
                            'checked_at', 'created_at', 'updated_at']

    def validate_production_order(self, value):
        return self.check_same_company(value, 'Production order')

    def validate_customer(self, value):
        return self.check_same_company(value, 'Customer')

    def validate_input_meter(self, value):
        if value <= 0:
            raise serializers.ValidationError("Input meter must be greater than zero.")
        if self.instance is not None and value < self.instance.checked_meter + self.instance.rejected_meter:
            raise serializers.ValidationError("Input meter cannot be less than the meters already inspected.")
        return value

    def validate(self, attrs):
        order = attrs.get('production_order')
        if order is not None and not attrs.get('customer') and order.customer_id:
            attrs['customer'] = order.customer
        customer = attrs.get('customer')
        if customer is not None and not attrs.get('party_name'):
            attrs['party_name'] = customer.name
        return attrs


class FoldingQCSerializer(serializers.Serializer):
    checked_meter = serializers.DecimalField(max_digits=12, decimal_places=2)
    rejected_meter = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=Decimal('0'))
    qc_status = serializers.CharField()
    checker_name = serializers.CharField(allow_blank=True)
    remarks = serializers.CharField(required=False, allow_blank=True)


class PackingSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='production_order.order_number', read_only=True, default=None)

    class Meta:
        model = Packing
        fields = ['id', 'folding_checking', 'production_order', 'order_number', 'customer',
                  'lot_number', 'party_name', 'quality', 'input_meter', 'packed_meter',
                  'packing_type', 'number_of_packages', 'status', 'date', 'remarks',
                  'created_at', 'updated_at']
        read_only_fields = ['folding_checking', 'production_order', 'customer', 'lot_number',
                            'party_name', 'input_meter', 'created_at', 'updated_at']

    def validate_packed_meter(self, value):
        if value < 0:
            raise serializers.ValidationError("Packed meter cannot be negative.")
        if self.instance is not None and value > self.instance.input_meter:
            raise serializers.ValidationError(
                f"Packed meter ({value}m) cannot exceed input meter ({self.instance.input_meter}m)."
            )
        return value

    def validate_status(self, value):
        if value == 'dispatched':
            raise serializers.ValidationError("Packing is marked dispatched by the dispatch module.")
        if self.instance is not None and self.instance.status == 'dispatched':
            raise serializers.ValidationError("Dispatched packing cannot be changed.")
        return value


class RejectionStockSerializer(serializers.ModelSerializer):
    class Meta:
        model = RejectionStock
        fields = ['id', 'folding_checking', 'production_order', 'lot_number', 'party_name',
                  'source_module', 'meter', 'reason', 'disposition', 'date', 'remarks',
                  'created_at', 'updated_at']
        read_only_fields = ['folding_checking', 'production_order', 'lot_number', 'party_name',
                            'source_module', 'meter', 'date', 'created_at', 'updated_at']
