from django.contrib import admin
from .models import Category, Product, ProductUnit


class ProductUnitInline(admin.TabularInline):
    model = ProductUnit
    extra = 0


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'description']
    readonly_fields = ['slug']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'is_active', 'featured', 'created_at']
    list_filter = ['is_active', 'featured', 'category']
    search_fields = ['name', 'description']
    inlines = [ProductUnitInline]
