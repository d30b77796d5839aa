from decimal import Decimal

from django.db.models import Sum
from rest_framework import serializers
from textile_erp.core.serializers import CompanyScopedSerializer
from .models import Dispatch


class DispatchSerializer(CompanyScopedSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    order_number = serializers.CharField(source='production_order.order_number', read_only=True, default=None)

    class Meta:
        model = Dispatch
        fields = ['id', 'dispatch_number', 'customer', 'customer_name', 'production_order',
                  'order_number', 'packing', 'dispatch_date', 'quantity', 'unit',
                  'number_of_packages', 'vehicle_number', 'driver_name', 'driver_phone',
                  'transporter', 'destination', 'invoice_number', 'status', 'dispatched_at',
                  'delivered_at', 'remarks', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['dispatch_number', 'status', 'dispatched_at', 'delivered_at',
                            'created_by', 'created_at', 'updated_at']

    def validate_customer(self, value):
        return self.check_same_company(value, 'Customer')

    def validate_production_order(self, value):
        return self.check_same_company(value, 'Production order')

    def validate_packing(self, value):
        value = self.check_same_company(value, 'Packing')
        if value is not None and value.status == 'dispatched':
            current = getattr(self.instance, 'packing_id', None)
            if current != value.pk:
                raise serializers.ValidationError("This packing was already dispatched.")
        return value

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Quantity must be greater than zero.")
        return value

    def validate(self, attrs):
        customer = attrs.get('customer', getattr(self.instance, 'customer', None))
        order = attrs.get('production_order', getattr(self.instance, 'production_order', None))
        packing = attrs.get('packing', getattr(self.instance, 'packing', None))
        quantity = attrs.get('quantity', getattr(self.instance, 'quantity', None))

        if order is not None and order.customer_id and customer is not None and order.customer_id != customer.pk:
            raise serializers.ValidationError({"customer": "Customer does not match the production order."})
        if packing is not None and quantity is not None:
            others = packing.dispatches.exclude(status='cancelled')
            if self.instance is not None:
                others = others.exclude(pk=self.instance.pk)
            already = others.aggregate(total=Sum('quantity'))['total'] or Decimal('0')
            if already + quantity > packing.input_meter:
                raise serializers.ValidationError(
                    {"quantity": f"Quantity ({quantity}) exceeds what is left of the packed lot "
                                 f"({packing.input_meter - already}m of {packing.input_meter}m)."}
                )
        if packing is not None and order is None and packing.production_order_id:
            attrs['production_order'] = packing.production_order
        return attrs


class DispatchStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Dispatch.STATUS_CHOICES)
    remarks = serializers.CharField(required=False, allow_blank=True, default='')
