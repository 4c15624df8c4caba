from django.urls import path
from .views import (
    supplier_supplies, supplier_supply_detail, supplier_profile, supplier_dashboard,
    admin_supplier_list_create, admin_supplier_detail, admin_supplier_verify, admin_supplier_performance,
    admin_supplier_analytics, admin_supply_list, admin_supply_detail, admin_supply_receive,
    admin_supply_cancel, admin_supply_stats
)

urlpatterns = [
    # Supplier
    path('supplier/supplies/', supplier_supplies, name='supplier-supplies'),
    path('supplier/supplies/<int:pk>/', supplier_supply_detail, name='supplier-supply-detail'),
    path('supplier/profile/', supplier_profile, name='supplier-profile'),
    path('supplier/dashboard/', supplier_dashboard, name='supplier-dashboard'),

    # Admin
    path('admin/suppliers/', admin_supplier_list_create, name='admin-supplier-list'),
    path('admin/suppliers/analytics/', admin_supplier_analytics, name='admin-supplier-analytics'),
    path('admin/suppliers/<int:pk>/', admin_supplier_detail, name='admin-supplier-detail'),
    path('admin/suppliers/<int:pk>/verify/', admin_supplier_verify, name='admin-supplier-verify'),
    path('admin/suppliers/<int:pk>/performance/', admin_supplier_performance, name='admin-supplier-performance'),
    path('admin/supplies/', admin_supply_list, name='admin-supply-list'),
    path('admin/supplies/stats/', admin_supply_stats, name='admin-supply-stats'),
    path('admin/supplies/<int:pk>/', admin_supply_detail, name='admin-supply-detail'),
    path('admin/supplies/<int:pk>/receive/', admin_supply_receive, name='admin-supply-receive'),
    path('admin/supplies/<int:pk>/cancel/', admin_supply_cancel, name='admin-supply-cancel'),
]
