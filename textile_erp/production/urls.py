from django.urls import path
from . import views

urlpatterns = [
    path('production/dashboard/', views.production_dashboard, name='production-dashboard'),
    path('production/orders/', views.order_list_create, name='production-order-list-create'),
    path('production/orders/<int:pk>/', views.order_detail, name='production-order-detail'),
    path('production/orders/<int:pk>/approve/', views.order_approve, name='production-order-approve'),
    path('production/orders/<int:pk>/cancel/', views.order_cancel, name='production-order-cancel'),
    path('production/orders/<int:pk>/flow/', views.order_flow, name='production-order-flow'),
    path('production/orders/<int:pk>/logs/', views.order_logs, name='production-order-logs'),
    path('production/orders/<int:pk>/stages/<int:stage_number>/transition/', views.stage_transition, name='production-stage-transition'),
    path('production/orders/<int:pk>/stages/<int:stage_number>/start/', views.stage_start, name='production-stage-start'),
    path('production/orders/<int:pk>/stages/<int:stage_number>/complete/', views.stage_complete, name='production-stage-complete'),
    path('production/orders/<int:pk>/stages/<int:stage_number>/hold/', views.stage_hold, name='production-stage-hold'),
    path('production/orders/<int:pk>/stages/<int:stage_number>/resume/', views.stage_resume, name='production-stage-resume'),
    path('production/orders/<int:pk>/stages/<int:stage_number>/reject/', views.stage_reject, name='production-stage-reject'),
    path('production/folding-checking/', views.folding_list_create, name='folding-list-create'),
    path('production/folding-checking/<int:pk>/', views.folding_detail, name='folding-detail'),
    path('production/folding-checking/<int:pk>/qc/', views.folding_update_qc, name='folding-update-qc'),
    path('production/packing/', views.packing_list, name='packing-list'),
    path('production/packing/<int:pk>/', views.packing_detail, name='packing-detail'),
    path('production/rejection-stock/', views.rejection_list, name='rejection-list'),
    path('production/rejection-stock/<int:pk>/', views.rejection_detail, name='rejection-detail'),
]
