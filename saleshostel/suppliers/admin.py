from django.contrib import admin
from .models import SupplierProfile, Supply


@admin.register(SupplierProfile)
class SupplierProfileAdmin(admin.ModelAdmin):
    list_display = ['company_name', 'user', 'contact_email', 'rating', 'is_active', 'is_verified']
    list_filter = ['is_active', 'is_verified', 'business_type', 'payment_terms']
    search_fields = ['company_name', 'contact_email', 'contact_first_name', 'contact_last_name']


@admin.register(Supply)
class SupplyAdmin(admin.ModelAdmin):
    list_display = ['product_name', 'unit_type', 'number_of_quantity', 'total_price', 'supplier', 'status',
                    'supply_date']
    list_filter = ['status', 'unit_type']
    search_fields = ['product_name', 'supplier__email']
    readonly_fields = ['total_price', 'received_by', 'received_at']
