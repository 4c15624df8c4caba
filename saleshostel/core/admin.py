from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Setting, AuditLog, CustomerAddress


class CustomerAddressInline(admin.TabularInline):
    model = CustomerAddress
    extra = 0


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'first_name', 'last_name', 'role', 'is_active', 'total_orders', 'created_at']
    list_filter = ['role', 'is_active', 'is_superuser', 'created_at']
    search_fields = ['username', 'email', 'first_name', 'last_name', 'whatsapp_number']
    ordering = ['-created_at']
    inlines = [CustomerAddressInline]
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Contact', {'fields': ('role', 'whatsapp_number', 'call_number', 'street', 'city', 'state', 'country')}),
        ('Customer stats', {'fields': ('total_orders', 'total_spent', 'last_order_date')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Contact', {'fields': ('email', 'role', 'whatsapp_number', 'call_number')}),
    )


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ['key', 'value', 'updated_at']
    search_fields = ['key', 'description']
    ordering = ['key']
    readonly_fields = ['updated_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['user', 'action', 'model_name', 'object_reference', 'ip_address', 'created_at']
    list_filter = ['action', 'model_name', 'created_at']
    search_fields = ['user__email', 'model_name', 'object_id', 'object_reference', 'object_name']
    ordering = ['-created_at']
    readonly_fields = ['user', 'action', 'model_name', 'object_id', 'object_name', 'object_reference',
                       'changes', 'ip_address', 'created_at']
