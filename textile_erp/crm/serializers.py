from rest_framework import serializers
from textile_erp.core.serializers import CompanyScopedSerializer
from textile_erp.core.utils import next_sequence_number
from .models import Customer, Supplier


class CustomerSerializer(CompanyScopedSerializer):
    class Meta:
        model = Customer
        fields = ['id', 'customer_code', 'name', 'contact_person', 'phone', 'email', 'gstin',
                  'address', 'city', 'state', 'credit_limit', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['customer_code', 'created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        return self.check_unique_in_company('name', value, f"Customer '{value}' already exists.")

    def validate_credit_limit(self, value):
        if value < 0:
            raise serializers.ValidationError("Credit limit cannot be negative.")
        return value

    def create(self, validated_data):
        validated_data['customer_code'] = next_sequence_number(
            Customer.objects.filter(company=self.company), 'customer_code', 'CUS-'
        )
        return super().create(validated_data)


class SupplierSerializer(CompanyScopedSerializer):
    class Meta:
        model = Supplier
        fields = ['id', 'supplier_code', 'name', 'contact_person', 'phone', 'email', 'gstin',
                  'address', 'supply_category', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['supplier_code', 'created_at', 'updated_at']

    def validate_name(self, value):
        return value.strip()

    def create(self, validated_data):
        validated_data['supplier_code'] = next_sequence_number(
            Supplier.objects.filter(company=self.company), 'supplier_code', 'SUP-'
        )
        return super().create(validated_data)
