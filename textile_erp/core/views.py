import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.db.models import ProtectedError, Q

from .exceptions import NotFoundError
from .models import Company, AuditLog
from .permissions import IsSuperAdmin, IsCompanyAdmin, get_request_company
from .responses import api_success, api_error, validation_error, paginate
from .serializers import (
    CompanySerializer, UserSerializer, UserCreateSerializer,
    SetPasswordSerializer, AuditLogSerializer
)
from .utils import create_audit_log, date_param

User = get_user_model()
logger = logging.getLogger(__name__)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        if self.user.company_id and not self.user.company.is_active:
            raise AuthenticationFailed('Company account is disabled.')
        data['user'] = UserSerializer(self.user).data
        create_audit_log(user=self.user, action='login', model_name='User',
                         object_id=self.user.pk, object_reference=self.user.username)
        logger.info(f"User {self.user.username} logged in")
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role
        token['company_id'] = user.company_id
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        return api_success(response.data, status_code=response.status_code)


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        return api_success(response.data, status_code=response.status_code)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user with company and capability flags"""
    user = request.user
    user_data = UserSerializer(user).data
    user_data['is_admin'] = user.is_company_admin
    user_data['is_super_admin'] = user.is_super_admin
    user_data['can_manage_users'] = user.is_company_admin
    user_data['can_manage_production'] = user.can_manage_production
    user_data['can_view_reports'] = user.is_company_admin or user.role == 'supervisor'
    return api_success(user_data)


# Company views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def company_list_create(request):
    """List all companies or create a new one"""
    if request.method == 'GET':
        companies = Company.objects.all()
        search = request.query_params.get('search')
        if search:
            companies = companies.filter(Q(name__icontains=search) | Q(code__icontains=search))
        serializer = CompanySerializer(companies, many=True)
        return api_success(serializer.data)

    serializer = CompanySerializer(data=request.data)
    if serializer.is_valid():
        company = serializer.save()
        create_audit_log(request, 'create', 'Company', company.pk, company=company,
                         object_reference=company.code, changes=serializer.data)
        logger.info(f"Company {company.code} created by {request.user.username}")
        return api_success(CompanySerializer(company).data, status_code=status.HTTP_201_CREATED)
    return validation_error(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def company_detail(request, pk):
    """Retrieve, update or delete a company"""
    try:
        company = Company.objects.get(pk=pk)
    except Company.DoesNotExist:
        raise NotFoundError('Company not found.')

    if request.method == 'GET':
        return api_success(CompanySerializer(company).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CompanySerializer(company, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'Company', company.pk, company=company,
                             object_reference=company.code, changes=request.data)
            return api_success(serializer.data)
        return validation_error(serializer.errors)
    else:  # DELETE
        try:
            company.delete()
        except ProtectedError:
            return api_error('protected', 'Company still has users. Deactivate it instead.')
        logger.info(f"Company {pk} deleted by {request.user.username}")
        return api_success(None, message='Company deleted.')


# User views
def _user_queryset(request):
    if request.user.is_super_admin:
        queryset = User.objects.all()
        company_id = request.META.get('HTTP_X_COMPANY_ID') or request.query_params.get('company')
        if company_id:
            queryset = queryset.filter(company_id=company_id)
        return queryset.select_related('company')
    return User.objects.filter(company=get_request_company(request)).select_related('company')


def _get_user(request, pk):
    try:
        return _user_queryset(request).get(pk=pk)
    except User.DoesNotExist:
        raise NotFoundError('User not found.')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def user_list_create(request):
    """List users of the caller's company or create a new user"""
    if request.method == 'GET':
        users = _user_queryset(request)
        role = request.query_params.get('role')
        if role:
            users = users.filter(role=role)
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            users = users.filter(is_active=is_active.lower() == 'true')
        search = request.query_params.get('search')
        if search:
            users = users.filter(
                Q(username__icontains=search) | Q(email__icontains=search) |
                Q(first_name__icontains=search) | Q(last_name__icontains=search)
            )
        data, pagination = paginate(request, users.order_by('username'), UserSerializer)
        return api_success(data, pagination=pagination)

    username = (request.data.get('username') or '').strip()
    if username and User.objects.filter(username__iexact=username).exists():
        return api_error('duplicate', f"Username '{username}' is already taken.")

    serializer = UserCreateSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return validation_error(serializer.errors)

    if request.user.is_super_admin:
        company = serializer.validated_data.get('company')
        if company is None and serializer.validated_data.get('role') != 'super_admin':
            company = get_request_company(request)
    else:
        company = get_request_company(request)

    user = serializer.save(company=company)
    create_audit_log(request, 'create', 'User', user.pk, company=company,
                     object_reference=user.username, changes={'role': user.role})
    logger.info(f"User {user.username} created by {request.user.username}")
    return api_success(UserSerializer(user).data, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = _get_user(request, pk)

    if request.method == 'GET':
        return api_success(UserSerializer(user).data)
    elif request.method in ('PUT', 'PATCH'):
        if user.pk == request.user.pk and request.data.get('is_active') in (False, 'false'):
            return api_error('validation_error', 'You cannot deactivate your own account.')
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH',
                                    context={'request': request})
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'User', user.pk, company=user.company,
                             object_reference=user.username,
                             changes={key: str(value) for key, value in serializer.validated_data.items()})
            return api_success(serializer.data)
        return validation_error(serializer.errors)
    else:  # DELETE
        if user.pk == request.user.pk:
            return api_error('validation_error', 'You cannot delete your own account.')
        username = user.username
        user.delete()
        create_audit_log(request, 'delete', 'User', pk, object_reference=username)
        return api_success(None, message='User deleted.')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def user_toggle_status(request, pk):
    """Activate or deactivate a user"""
    user = _get_user(request, pk)
    if user.pk == request.user.pk:
        return api_error('validation_error', 'You cannot deactivate your own account.')
    user.is_active = not user.is_active
    user.save(update_fields=['is_active', 'updated_at'])
    create_audit_log(request, 'status_change', 'User', user.pk, company=user.company,
                     object_reference=user.username, changes={'is_active': user.is_active})
    return api_success(UserSerializer(user).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def user_set_password(request, pk):
    """Reset a user's password"""
    user = _get_user(request, pk)
    serializer = SetPasswordSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer.errors)
    user.set_password(serializer.validated_data['password'])
    user.save()
    create_audit_log(request, 'update', 'User', user.pk, company=user.company,
                     object_reference=user.username, changes={'password': 'reset'})
    return api_success(None, message='Password updated.')


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """List audit logs of the caller's company with filtering"""
    queryset = AuditLog.objects.filter(company=get_request_company(request)).select_related('user')

    if not request.user.is_company_admin:
        queryset = queryset.filter(user=request.user)

    action_filter = request.query_params.get('action')
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model')
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    date_from = date_param(request.query_params, 'date_from')
    date_to = date_param(request.query_params, 'date_to')
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    data, pagination = paginate(request, queryset.order_by('-created_at'), AuditLogSerializer)
    return api_success(data, pagination=pagination)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    try:
        audit_log = AuditLog.objects.get(pk=pk, company=get_request_company(request))
    except AuditLog.DoesNotExist:
        raise NotFoundError('Audit log not found.')

    if not request.user.is_company_admin and audit_log.user_id != request.user.pk:
        return api_error('permission_denied', 'Permission denied', status_code=status.HTTP_403_FORBIDDEN)

    return api_success(AuditLogSerializer(audit_log).data)
