from django.urls import path
from . import views

urlpatterns = [
    path('shifts/', views.shift_list_create, name='shift-list-create'),
    path('shifts/<int:pk>/', views.shift_detail, name='shift-detail'),
    path('employees/', views.employee_list_create, name='employee-list-create'),
    path('employees/<int:pk>/', views.employee_detail, name='employee-detail'),
    path('attendance/', views.attendance_list, name='attendance-list'),
    path('attendance/check-in/', views.attendance_check_in, name='attendance-check-in'),
    path('attendance/check-out/', views.attendance_check_out, name='attendance-check-out'),
    path('attendance/mark/', views.attendance_mark, name='attendance-mark'),
    path('attendance/summary/', views.attendance_summary, name='attendance-summary'),
]
