from django.contrib import admin
from .models import Cart, CartItem, SavedItem


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    readonly_fields = ['product_name', 'unit_type', 'price', 'current_stock']


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ['id', 'customer', 'is_active', 'last_activity', 'expires_at']
    list_filter = ['is_active']
    search_fields = ['customer__email']
    inlines = [CartItemInline]


@admin.register(SavedItem)
class SavedItemAdmin(admin.ModelAdmin):
    list_display = ['cart', 'product', 'unit', 'saved_at']
