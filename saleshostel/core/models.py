from django.contrib.auth.models import AbstractUser
from django.db import models
from decimal import Decimal


class User(AbstractUser):
    """Extended user model with role and contact fields"""
    ROLE_ADMIN = 'admin'
    ROLE_SUPPLIER = 'supplier'
    ROLE_STAFF = 'staff'
    ROLE_CUSTOMER = 'customer'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Admin'),
        (ROLE_SUPPLIER, 'Supplier'),
        (ROLE_STAFF, 'Staff'),
        (ROLE_CUSTOMER, 'Customer'),
    ]

    email = models.EmailField(unique=True)
    whatsapp_number = models.CharField(max_length=20, blank=True)
    call_number = models.CharField(max_length=20, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CUSTOMER, db_index=True)
    is_active = models.BooleanField(default=True)

    street = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    country = models.CharField(max_length=100, blank=True)

    # Customer statistics, maintained on checkout
    total_orders = models.IntegerField(default=0)
    total_spent = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    last_order_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip() or self.username

    @property
    def is_admin_role(self):
        return self.role == self.ROLE_ADMIN or self.is_superuser

    @property
    def is_staff_role(self):
        return self.role == self.ROLE_STAFF or self.is_admin_role

    @property
    def is_supplier_role(self):
        return self.role == self.ROLE_SUPPLIER

    @property
    def is_customer_role(self):
        return self.role == self.ROLE_CUSTOMER

    class Meta:
        db_table = 'users'


class CustomerAddress(models.Model):
    """Saved delivery addresses for a customer"""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='addresses')
    label = models.CharField(max_length=50, default='Home')
    street = models.CharField(max_length=255)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    country = models.CharField(max_length=100, default='Nigeria')
    hostel_room = models.CharField(max_length=50, blank=True)
    landmark = models.CharField(max_length=255, blank=True)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.label}: {self.street}"

    def save(self, *args, **kwargs):
        # Only one default address per user
        if self.is_default:
            CustomerAddress.objects.filter(user=self.user, is_default=True).exclude(pk=self.pk).update(is_default=False)
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'customer_addresses'
        ordering = ['-is_default', '-created_at']


class Setting(models.Model):
    """System settings"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('login', 'Login'),
        ('status_change', 'Status Change'),
        ('stock_adjust', 'Stock Adjustment'),
        ('stock_count', 'Stock Count'),
        ('movement_reverse', 'Movement Reversed'),
        ('order_create', 'Order Created'),
        ('order_status', 'Order Status Changed'),
        ('order_cancel', 'Order Cancelled'),
        ('order_assign', 'Order Assigned'),
        ('payment_add', 'Payment Added'),
        ('payment_verify', 'Payment Verified'),
        ('refund', 'Refund'),
        ('supply_receive', 'Supply Received'),
        ('supply_cancel', 'Supply Cancelled'),
        ('supplier_verify', 'Supplier Verified'),
        ('purchase_receive', 'Purchase Order Received'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., product name)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order number, supply id)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_1b0d47_idx'),
            models.Index(fields=['action'], name='audit_logs_action_a3c2f1_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_7e4b90_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__5d62aa_idx'),
        ]
