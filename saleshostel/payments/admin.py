from django.contrib import admin
from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['reference', 'order', 'provider', 'amount', 'status', 'verified_at', 'created_at']
    list_filter = ['provider', 'status', 'requires_refund']
    search_fields = ['reference', 'transaction_id', 'order__order_number']
    readonly_fields = ['gateway_response', 'created_at', 'updated_at']
