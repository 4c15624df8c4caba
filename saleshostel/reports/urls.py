from django.urls import path
from .views import (
    sales_report, inventory_report, profit_loss_report, customer_report, product_performance_report,
    admin_dashboard, staff_dashboard
)

urlpatterns = [
    path('admin/reports/sales/', sales_report, name='report-sales'),
    path('admin/reports/inventory/', inventory_report, name='report-inventory'),
    path('admin/reports/profit-loss/', profit_loss_report, name='report-profit-loss'),
    path('admin/reports/customers/', customer_report, name='report-customers'),
    path('admin/reports/products/', product_performance_report, name='report-products'),
    path('admin/dashboard/', admin_dashboard, name='admin-dashboard'),
    path('staff/dashboard/', staff_dashboard, name='staff-dashboard'),
]
