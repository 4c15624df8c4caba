from django.contrib import admin
from .models import PurchaseOrder, PurchaseOrderItem, PurchaseOrderPayment, PurchaseOrderStatusHistory


class PurchaseOrderItemInline(admin.TabularInline):
    model = PurchaseOrderItem
    extra = 0
    readonly_fields = ['total_cost']


class PurchaseOrderPaymentInline(admin.TabularInline):
    model = PurchaseOrderPayment
    extra = 0


class PurchaseOrderStatusHistoryInline(admin.TabularInline):
    model = PurchaseOrderStatusHistory
    extra = 0
    readonly_fields = ['status', 'timestamp', 'updated_by', 'notes']


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'supplier_company_name', 'status', 'total_amount', 'amount_paid',
                    'payment_status', 'expected_delivery_date']
    list_filter = ['status', 'payment_status', 'payment_terms', 'priority']
    search_fields = ['order_number', 'supplier_company_name', 'supplier__email']
    readonly_fields = ['order_number', 'subtotal', 'total_amount', 'payment_due_date', 'payment_status']
    inlines = [PurchaseOrderItemInline, PurchaseOrderPaymentInline, PurchaseOrderStatusHistoryInline]
