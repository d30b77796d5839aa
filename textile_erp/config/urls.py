"""
URL configuration for the textile ERP backend.

Every app mounts its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Textile ERP Admin Panel"
admin.site.site_title = "Textile ERP Admin Portal"
admin.site.index_title = "Welcome to the Textile ERP Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('textile_erp.core.urls')),
    path('api/v1/', include('textile_erp.crm.urls')),
    path('api/v1/', include('textile_erp.inventory.urls')),
    path('api/v1/', include('textile_erp.production.urls')),
    path('api/v1/', include('textile_erp.dispatch.urls')),
    path('api/v1/', include('textile_erp.hr.urls')),
    path('api/v1/', include('textile_erp.reports.urls')),
]
