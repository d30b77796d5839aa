"""
Company (tenant) resolution and role-based permission classes
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

from .exceptions import ServiceError, NotFoundError
from .models import Company

COMPANY_HEADER = 'HTTP_X_COMPANY_ID'


def get_request_company(request):
    """
    Resolve the company a request operates on.

    Super admins pick a company with the X-Company-ID header; everybody else
    always works inside their own company.
    """
    user = request.user
    if getattr(user, 'is_super_admin', False):
        company_id = request.META.get(COMPANY_HEADER) or request.query_params.get('company')
        if company_id:
            try:
                return Company.objects.get(pk=int(company_id))
            except (Company.DoesNotExist, ValueError):
                raise NotFoundError('Company not found.')
        if user.company_id:
            return user.company
        raise ServiceError('Company context required. Send the X-Company-ID header.', error='company_required')

    if not user.company_id:
        raise ServiceError('User is not assigned to a company.', error='company_required')
    if not user.company.is_active:
        raise ServiceError('Company is inactive.', error='permission_denied', status_code=403)
    return user.company


def get_company_object(queryset, company, **lookup):
    """Fetch one tenant-owned object; other companies' rows are reported as missing"""
    try:
        return queryset.get(company=company, **lookup)
    except queryset.model.DoesNotExist:
        raise NotFoundError(f"{queryset.model._meta.verbose_name.title()} not found.")


class IsSuperAdmin(BasePermission):
    message = 'Only super admins can perform this action.'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_super_admin)


class IsCompanyAdmin(BasePermission):
    """Owners and managers (and super admins)"""
    message = 'Only company owners and managers can perform this action.'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_company_admin)


class CanManageProduction(BasePermission):
    """Viewers may read; writes need a production role"""
    message = 'Your role does not allow changing production data.'

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        if request.method in SAFE_METHODS:
            return True
        return request.user.can_manage_production
