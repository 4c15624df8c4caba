from django.urls import path
from .views import (
    movement_list, movement_detail, movement_reverse, stock_adjust, stock_count,
    movement_summary, low_stock_alerts, inventory_overview, inventory_summary
)

urlpatterns = [
    path('inventory/', inventory_overview, name='inventory-overview'),
    path('inventory/summary/', inventory_summary, name='inventory-summary'),
    path('inventory/low-stock/', low_stock_alerts, name='inventory-low-stock'),
    path('inventory/adjust/', stock_adjust, name='inventory-adjust'),
    path('inventory/count/', stock_count, name='inventory-count'),
    path('inventory/movements/', movement_list, name='movement-list'),
    path('inventory/movements/summary/', movement_summary, name='movement-summary'),
    path('inventory/movements/<int:pk>/', movement_detail, name='movement-detail'),
    path('inventory/movements/<int:pk>/reverse/', movement_reverse, name='movement-reverse'),
]
