from rest_framework import serializers
from decimal import Decimal
from textile_erp.core.serializers import CompanyScopedSerializer
from .models import Warehouse, InventoryItem, StockMovement


class WarehouseSerializer(CompanyScopedSerializer):
    class Meta:
        model = Warehouse
        fields = ['id', 'name', 'code', 'address', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_code(self, value):
        value = value.strip().upper()
        return self.check_unique_in_company('code', value, f"Warehouse code '{value}' already exists.")


class InventoryItemSerializer(CompanyScopedSerializer):
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True, default=None)
    is_low_stock = serializers.BooleanField(read_only=True)
    opening_stock = serializers.DecimalField(max_digits=14, decimal_places=3, write_only=True,
                                             required=False, min_value=Decimal('0'))

    class Meta:
        model = InventoryItem
        fields = ['id', 'item_code', 'name', 'category', 'unit', 'warehouse', 'warehouse_name',
                  'current_stock', 'reorder_level', 'unit_cost', 'description', 'is_active',
                  'is_low_stock', 'opening_stock', 'created_at', 'updated_at']
        read_only_fields = ['current_stock', 'created_at', 'updated_at']

    def validate_item_code(self, value):
        value = value.strip().upper()
        return self.check_unique_in_company('item_code', value, f"Item code '{value}' already exists.")

    def validate_warehouse(self, value):
        return self.check_same_company(value, 'Warehouse')

    def validate_reorder_level(self, value):
        if value < 0:
            raise serializers.ValidationError("Reorder level cannot be negative.")
        return value

    def validate_unit_cost(self, value):
        if value < 0:
            raise serializers.ValidationError("Unit cost cannot be negative.")
        return value

    def create(self, validated_data):
        validated_data.pop('opening_stock', None)
        return super().create(validated_data)

    def update(self, instance, validated_data):
        validated_data.pop('opening_stock', None)
        return super().update(instance, validated_data)


class StockMovementSerializer(serializers.ModelSerializer):
    item_code = serializers.CharField(source='item.item_code', read_only=True)
    item_name = serializers.CharField(source='item.name', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = StockMovement
        fields = ['id', 'item', 'item_code', 'item_name', 'movement_type', 'quantity',
                  'from_warehouse', 'to_warehouse', 'reference', 'notes', 'stock_before',
                  'stock_after', 'created_by', 'created_by_username', 'created_at']
        read_only_fields = fields


class StockMovementCreateSerializer(serializers.Serializer):
    item = serializers.IntegerField()
    movement_type = serializers.ChoiceField(choices=StockMovement.MOVEMENT_TYPE_CHOICES)
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, required=False, default=Decimal('0'))
    to_warehouse = serializers.IntegerField(required=False, allow_null=True)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
