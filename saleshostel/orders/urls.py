from django.urls import path
from .views import (
    customer_orders, customer_order_detail, customer_order_track, customer_order_cancel, customer_order_rate,
    staff_orders, staff_order_queue, staff_order_detail, order_update_status, staff_order_assign,
    staff_order_payment, staff_walk_in_order, staff_performance,
    admin_orders, admin_order_detail, admin_order_refund, admin_order_analytics
)

urlpatterns = [
    # Customer
    path('orders/', customer_orders, name='customer-orders'),
    path('orders/track/<str:number>/', customer_order_track, name='customer-order-track'),
    path('orders/<int:pk>/', customer_order_detail, name='customer-order-detail'),
    path('orders/<int:pk>/cancel/', customer_order_cancel, name='customer-order-cancel'),
    path('orders/<int:pk>/rate/', customer_order_rate, name='customer-order-rate'),

    # Staff
    path('staff/orders/', staff_orders, name='staff-orders'),
    path('staff/orders/queue/', staff_order_queue, name='staff-order-queue'),
    path('staff/orders/walk-in/', staff_walk_in_order, name='staff-walk-in-order'),
    path('staff/orders/performance/', staff_performance, name='staff-performance'),
    path('staff/orders/<int:pk>/', staff_order_detail, name='staff-order-detail'),
    path('staff/orders/<int:pk>/status/', order_update_status, name='staff-order-status'),
    path('staff/orders/<int:pk>/assign/', staff_order_assign, name='staff-order-assign'),
    path('staff/orders/<int:pk>/payment/', staff_order_payment, name='staff-order-payment'),

    # Admin
    path('admin/orders/', admin_orders, name='admin-orders'),
    path('admin/orders/analytics/', admin_order_analytics, name='admin-order-analytics'),
    path('admin/orders/<int:pk>/', admin_order_detail, name='admin-order-detail'),
    path('admin/orders/<int:pk>/status/', order_update_status, name='admin-order-status'),
    path('admin/orders/<int:pk>/refund/', admin_order_refund, name='admin-order-refund'),
]
