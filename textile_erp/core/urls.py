from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, user_me,
    company_list_create, company_detail,
    user_list_create, user_detail, user_toggle_status, user_set_password,
    audit_log_list, audit_log_detail,
)

urlpatterns = [
    # Auth endpoints
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # Company endpoints
    path('companies/', company_list_create, name='company-list-create'),
    path('companies/<int:pk>/', company_detail, name='company-detail'),

    # User endpoints
    path('users/', user_list_create, name='user-list-create'),
    path('users/<int:pk>/', user_detail, name='user-detail'),
    path('users/<int:pk>/toggle-status/', user_toggle_status, name='user-toggle-status'),
    path('users/<int:pk>/set-password/', user_set_password, name='user-set-password'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
    path('audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),
]
