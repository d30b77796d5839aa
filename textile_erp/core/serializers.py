from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from .models import Company, User, AuditLog, company_code_validator


class CompanyScopedSerializer(serializers.ModelSerializer):
    """
    ModelSerializer for tenant-owned models.
    The owning company is passed in the serializer context as 'company'.
    """

    @property
    def company(self):
        return self.context.get('company')

    def check_unique_in_company(self, field, value, message=None):
        if value in (None, ''):
            return value
        queryset = self.Meta.model.objects.filter(company=self.company, **{f'{field}__iexact': value})
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError(message or f"'{value}' already exists.")
        return value

    def check_same_company(self, related, label):
        if related is not None and related.company_id != getattr(self.company, 'pk', None):
            raise serializers.ValidationError(f"{label} not found.")
        return related

    def create(self, validated_data):
        validated_data['company'] = self.company
        return super().create(validated_data)


class CompanySerializer(serializers.ModelSerializer):
    code = serializers.CharField(max_length=20)

    class Meta:
        model = Company
        fields = ['id', 'name', 'code', 'legal_name', 'gstin', 'email', 'phone', 'address',
                  'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_code(self, value):
        value = value.strip().upper()
        try:
            company_code_validator(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.messages)
        queryset = Company.objects.filter(code=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError(f"Company code '{value}' is already in use.")
        return value


class CompanyBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Company
        fields = ['id', 'name', 'code']


class UserSerializer(serializers.ModelSerializer):
    company_detail = CompanyBriefSerializer(source='company', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'phone', 'role',
                  'company', 'company_detail', 'is_active', 'is_superuser', 'last_login',
                  'created_at', 'updated_at']
        read_only_fields = ['company', 'is_superuser', 'last_login', 'created_at', 'updated_at']

    def validate_role(self, value):
        request = self.context.get('request')
        if value == 'super_admin' and request and not request.user.is_super_admin:
            raise serializers.ValidationError("Only super admins can grant the super admin role.")
        return value


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'first_name', 'last_name',
                  'phone', 'role', 'company']
        extra_kwargs = {'company': {'required': False}}

    def validate_role(self, value):
        request = self.context.get('request')
        if value == 'super_admin' and request and not request.user.is_super_admin:
            raise serializers.ValidationError("Only super admins can grant the super admin role.")
        return value

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User.objects.create(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class SetPasswordSerializer(serializers.Serializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs


class AuditLogSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = ['id', 'company', 'user', 'username', 'action', 'model_name', 'object_id',
                  'object_reference', 'changes', 'ip_address', 'created_at']
