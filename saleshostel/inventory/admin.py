from django.contrib import admin
from .models import StockMovement


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ['product_name', 'unit_type', 'movement_type', 'quantity_changed', 'quantity_after',
                    'reference', 'performed_by', 'movement_date', 'is_reversed']
    list_filter = ['movement_type', 'reference_type', 'source', 'is_reversed', 'movement_date']
    search_fields = ['product_name', 'reference', 'reason']
    ordering = ['-movement_date']
    readonly_fields = ['quantity_before', 'quantity_changed', 'quantity_after', 'total_cost', 'created_at']
