from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from decimal import Decimal
from saleshostel.catalog.models import ProductUnit


class SupplierProfile(models.Model):
    """Business details and delivery record for a supplier account"""
    BUSINESS_TYPE_CHOICES = [
        ('individual', 'Individual'),
        ('partnership', 'Partnership'),
        ('corporation', 'Corporation'),
        ('llc', 'LLC'),
        ('other', 'Other'),
    ]
    PAYMENT_TERMS_CHOICES = [
        ('cash-on-delivery', 'Cash on Delivery'),
        ('net-7', 'Net 7'),
        ('net-15', 'Net 15'),
        ('net-30', 'Net 30'),
        ('net-60', 'Net 60'),
        ('custom', 'Custom'),
    ]

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='supplier_profile')
    company_name = models.CharField(max_length=100)

    contact_first_name = models.CharField(max_length=50)
    contact_last_name = models.CharField(max_length=50)
    contact_position = models.CharField(max_length=50, blank=True)

    registration_number = models.CharField(max_length=50, blank=True)
    tax_id = models.CharField(max_length=50, blank=True)
    business_type = models.CharField(max_length=20, choices=BUSINESS_TYPE_CHOICES, default='individual')

    contact_email = models.EmailField()
    contact_phone = models.CharField(max_length=20, blank=True)
    contact_whatsapp = models.CharField(max_length=20, blank=True)
    website = models.URLField(blank=True)

    street = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    country = models.CharField(max_length=100, default='Nigeria')

    supplied_categories = models.JSONField(default=list, blank=True)
    payment_terms = models.CharField(max_length=20, choices=PAYMENT_TERMS_CHOICES, default='cash-on-delivery')
    custom_payment_terms = models.CharField(max_length=200, blank=True)
    credit_limit = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                       validators=[MinValueValidator(Decimal('0'))])
    current_balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    rating = models.PositiveSmallIntegerField(default=5, validators=[MinValueValidator(1), MaxValueValidator(5)])

    # Performance, maintained when supplies and purchase orders are received
    total_supplies = models.IntegerField(default=0)
    total_value = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    on_time_deliveries = models.IntegerField(default=0)
    late_deliveries = models.IntegerField(default=0)
    quality_score = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal('5.00'),
                                        validators=[MinValueValidator(Decimal('1')), MaxValueValidator(Decimal('5'))])

    bank_name = models.CharField(max_length=100, blank=True)
    account_name = models.CharField(max_length=100, blank=True)
    account_number = models.CharField(max_length=20, blank=True)
    routing_number = models.CharField(max_length=20, blank=True)

    is_active = models.BooleanField(default=True)
    is_verified = models.BooleanField(default=False)
    verified_at = models.DateTimeField(null=True, blank=True)
    verified_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='verified_suppliers')
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.company_name

    @property
    def contact_person_name(self):
        return f"{self.contact_first_name} {self.contact_last_name}".strip()

    @property
    def delivery_performance(self):
        """On-time delivery percentage"""
        total = self.on_time_deliveries + self.late_deliveries
        if total == 0:
            return 100
        return round(self.on_time_deliveries / total * 100)

    class Meta:
        db_table = 'supplier_profiles'
        ordering = ['company_name']
        indexes = [
            models.Index(fields=['is_active', 'is_verified'], name='supplier_active_verified_idx'),
        ]


class Supply(models.Model):
    """Goods a supplier reports as delivered, waiting for an admin to receive them"""
    STATUS_PENDING = 'pending'
    STATUS_RECEIVED = 'received'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_RECEIVED, 'Received'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    supplier = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='supplies')
    product_name = models.CharField(max_length=100)
    unit_type = models.CharField(max_length=30, choices=ProductUnit.UNIT_TYPE_CHOICES)
    number_of_quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price_per_unit = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    total_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    supply_date = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    received_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='received_supplies')
    received_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.number_of_quantity} x {self.product_name} ({self.unit_type})"

    def save(self, *args, **kwargs):
        self.total_price = self.price_per_unit * self.number_of_quantity
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'supplies'
        ordering = ['-created_at']
        verbose_name_plural = 'supplies'
        indexes = [
            models.Index(fields=['supplier', 'status'], name='supplies_supplier_status_idx'),
            models.Index(fields=['status', '-created_at'], name='supplies_status_created_idx'),
        ]
