from django.contrib import admin
from .models import Order, OrderItem, OrderStatusHistory


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product_name', 'unit_type', 'quantity', 'unit_price', 'total_price']


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    readonly_fields = ['status', 'timestamp', 'updated_by', 'notes']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer_name', 'order_type', 'status', 'payment_status',
                    'total_amount', 'handled_by', 'order_date']
    list_filter = ['status', 'payment_status', 'order_type', 'priority', 'source']
    search_fields = ['order_number', 'tracking_number', 'customer_name', 'customer_email']
    readonly_fields = ['order_number', 'tracking_number', 'created_at', 'updated_at']
    inlines = [OrderItemInline, OrderStatusHistoryInline]
