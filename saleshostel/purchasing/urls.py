from django.urls import path
from .views import (
    admin_purchase_orders, admin_purchase_order_detail, admin_purchase_order_send, admin_purchase_order_payment,
    admin_purchase_order_receive, admin_purchase_order_complete, admin_purchase_order_cancel,
    admin_purchase_order_statistics,
    supplier_purchase_orders, supplier_purchase_order_detail, supplier_purchase_order_confirm,
    supplier_purchase_order_reject, supplier_purchase_order_delivery_date, supplier_purchase_order_analytics
)

urlpatterns = [
    # Admin
    path('admin/purchase-orders/', admin_purchase_orders, name='admin-purchase-orders'),
    path('admin/purchase-orders/statistics/', admin_purchase_order_statistics, name='admin-purchase-order-stats'),
    path('admin/purchase-orders/<int:pk>/', admin_purchase_order_detail, name='admin-purchase-order-detail'),
    path('admin/purchase-orders/<int:pk>/send/', admin_purchase_order_send, name='admin-purchase-order-send'),
    path('admin/purchase-orders/<int:pk>/payments/', admin_purchase_order_payment,
         name='admin-purchase-order-payment'),
    path('admin/purchase-orders/<int:pk>/receive/', admin_purchase_order_receive,
         name='admin-purchase-order-receive'),
    path('admin/purchase-orders/<int:pk>/complete/', admin_purchase_order_complete,
         name='admin-purchase-order-complete'),
    path('admin/purchase-orders/<int:pk>/cancel/', admin_purchase_order_cancel, name='admin-purchase-order-cancel'),

    # Supplier
    path('supplier/purchase-orders/', supplier_purchase_orders, name='supplier-purchase-orders'),
    path('supplier/purchase-orders/analytics/', supplier_purchase_order_analytics,
         name='supplier-purchase-order-analytics'),
    path('supplier/purchase-orders/<int:pk>/', supplier_purchase_order_detail,
         name='supplier-purchase-order-detail'),
    path('supplier/purchase-orders/<int:pk>/confirm/', supplier_purchase_order_confirm,
         name='supplier-purchase-order-confirm'),
    path('supplier/purchase-orders/<int:pk>/reject/', supplier_purchase_order_reject,
         name='supplier-purchase-order-reject'),
    path('supplier/purchase-orders/<int:pk>/delivery-date/', supplier_purchase_order_delivery_date,
         name='supplier-purchase-order-delivery-date'),
]
