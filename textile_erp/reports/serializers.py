from django.core.validators import validate_email
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers
from textile_erp.core.serializers import CompanyScopedSerializer
from .models import AutomatedReport


class AutomatedReportSerializer(CompanyScopedSerializer):
    class Meta:
        model = AutomatedReport
        fields = ['id', 'name', 'report_type', 'frequency', 'recipients', 'is_active',
                  'last_run_at', 'next_run_at', 'anchor_day', 'last_status', 'last_error', 'created_by',
                  'created_at', 'updated_at']
        read_only_fields = ['anchor_day', 'last_run_at', 'last_status', 'last_error', 'created_by',
                            'created_at', 'updated_at']

    def validate_recipients(self, value):
        emails = [email.strip() for email in value.split(',') if email.strip()]
        if not emails:
            raise serializers.ValidationError("At least one recipient is required.")
        for email in emails:
            try:
                validate_email(email)
            except DjangoValidationError:
                raise serializers.ValidationError(f"'{email}' is not a valid e-mail address.")
        return ', '.join(emails)

    def update(self, instance, validated_data):
        if 'next_run_at' in validated_data:
            # Monthly runs follow the newly chosen day
            instance.anchor_day = None
        return super().update(instance, validated_data)
