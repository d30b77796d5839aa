from django.urls import path
from . import views

urlpatterns = [
    path('reports/dashboard/', views.dashboard, name='report-dashboard'),
    path('reports/production-summary/', views.production_summary, name='report-production-summary'),
    path('reports/quality-summary/', views.quality_summary, name='report-quality-summary'),
    path('reports/dispatch-summary/', views.dispatch_summary, name='report-dispatch-summary'),
    path('reports/automated/', views.automated_report_list_create, name='automated-report-list-create'),
    path('reports/automated/<int:pk>/', views.automated_report_detail, name='automated-report-detail'),
    path('reports/automated/<int:pk>/run/', views.automated_report_run, name='automated-report-run'),
]
