from django.urls import path
from . import views

urlpatterns = [
    path('dispatches/', views.dispatch_list_create, name='dispatch-list-create'),
    path('dispatches/stats/', views.dispatch_stats, name='dispatch-stats'),
    path('dispatches/<int:pk>/', views.dispatch_detail, name='dispatch-detail'),
    path('dispatches/<int:pk>/status/', views.dispatch_update_status, name='dispatch-update-status'),
]
