from django.urls import path
from . import views

urlpatterns = [
    path('warehouses/', views.warehouse_list_create, name='warehouse-list-create'),
    path('warehouses/<int:pk>/', views.warehouse_detail, name='warehouse-detail'),
    path('inventory/items/', views.item_list_create, name='inventory-item-list-create'),
    path('inventory/items/low-stock/', views.item_low_stock, name='inventory-item-low-stock'),
    path('inventory/items/<int:pk>/', views.item_detail, name='inventory-item-detail'),
    path('inventory/movements/', views.movement_list_create, name='stock-movement-list-create'),
    path('inventory/movements/<int:pk>/', views.movement_detail, name='stock-movement-detail'),
]
