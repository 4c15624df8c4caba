from datetime import timedelta

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from decimal import Decimal
from saleshostel.catalog.models import Product, ProductUnit
from saleshostel.core.utils import save_with_sequence_number

PAYMENT_TERM_DAYS = {
    'cash-on-delivery': 0,
    'net-7': 7,
    'net-15': 15,
    'net-30': 30,
}


class PurchaseOrder(models.Model):
    """Stock ordered from a supplier"""
    STATUS_DRAFT = 'draft'
    STATUS_SENT = 'sent'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_PARTIALLY_RECEIVED = 'partially-received'
    STATUS_RECEIVED = 'received'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_SENT, 'Sent'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_PARTIALLY_RECEIVED, 'Partially Received'),
        (STATUS_RECEIVED, 'Received'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    OPEN_STATUSES = [STATUS_SENT, STATUS_CONFIRMED, STATUS_PARTIALLY_RECEIVED]
    CANCELLABLE_STATUSES = [STATUS_DRAFT, STATUS_SENT, STATUS_CONFIRMED]
    RECEIVABLE_STATUSES = [STATUS_SENT, STATUS_CONFIRMED, STATUS_PARTIALLY_RECEIVED]

    PAYMENT_TERMS_CHOICES = [
        ('cash-on-delivery', 'Cash on Delivery'),
        ('net-7', 'Net 7'),
        ('net-15', 'Net 15'),
        ('net-30', 'Net 30'),
        ('advance-payment', 'Advance Payment'),
    ]
    PAYMENT_PENDING = 'pending'
    PAYMENT_PARTIAL = 'partial'
    PAYMENT_PAID = 'paid'
    PAYMENT_OVERDUE = 'overdue'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PARTIAL, 'Partial'),
        (PAYMENT_PAID, 'Paid'),
        (PAYMENT_OVERDUE, 'Overdue'),
    ]
    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('normal', 'Normal'),
        ('high', 'High'),
        ('urgent', 'Urgent'),
    ]

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    supplier = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='purchase_orders')
    supplier_company_name = models.CharField(max_length=100, blank=True)
    supplier_contact_person = models.CharField(max_length=100, blank=True)
    supplier_email = models.EmailField(blank=True)
    supplier_phone = models.CharField(max_length=20, blank=True)
    supplier_address = models.CharField(max_length=255, blank=True)

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                              validators=[MinValueValidator(Decimal('0'))])
    shipping_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                        validators=[MinValueValidator(Decimal('0'))])
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                   validators=[MinValueValidator(Decimal('0'))])
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True)
    order_date = models.DateTimeField(default=timezone.now)
    expected_delivery_date = models.DateField()
    actual_delivery_date = models.DateField(null=True, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)

    payment_terms = models.CharField(max_length=20, choices=PAYMENT_TERMS_CHOICES, default='cash-on-delivery')
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    payment_due_date = models.DateField(null=True, blank=True)
    amount_paid = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    delivery_address = models.CharField(max_length=255)
    delivery_instructions = models.CharField(max_length=300, blank=True)

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='created_purchase_orders')
    approved_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='approved_purchase_orders')
    received_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='received_purchase_orders')

    notes = models.CharField(max_length=500, blank=True)
    internal_notes = models.CharField(max_length=500, blank=True)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='normal')
    cancellation_reason = models.CharField(max_length=255, blank=True)

    overall_quality_rating = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    delivery_rating = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    supplier_performance_notes = models.CharField(max_length=500, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    @staticmethod
    def generate_order_number():
        """PO + yymmdd + 4-digit daily sequence"""
        prefix = f"PO{timezone.localdate():%y%m%d}"
        last = PurchaseOrder.objects.filter(order_number__startswith=prefix).order_by('-order_number').first()
        sequence = int(last.order_number[-4:]) + 1 if last else 1
        return f"{prefix}{sequence:04d}"

    def calculate_totals(self):
        self.subtotal = sum((item.total_cost for item in self.items.all()), Decimal('0.00'))
        self.total_amount = self.subtotal + self.tax + self.shipping_cost - self.discount

    def compute_payment_due_date(self):
        if self.payment_terms == 'advance-payment':
            return timezone.localdate(self.order_date)
        delivery_date = self.actual_delivery_date or self.expected_delivery_date or timezone.localdate()
        return delivery_date + timedelta(days=PAYMENT_TERM_DAYS.get(self.payment_terms, 0))

    def compute_payment_status(self, today=None):
        today = today or timezone.localdate()
        if self.amount_paid <= 0:
            payment_status = self.PAYMENT_PENDING
        elif self.amount_paid >= self.total_amount:
            payment_status = self.PAYMENT_PAID
        else:
            payment_status = self.PAYMENT_PARTIAL
        if payment_status != self.PAYMENT_PAID and self.payment_due_date and today > self.payment_due_date:
            payment_status = self.PAYMENT_OVERDUE
        return payment_status

    def save(self, *args, **kwargs):
        self.payment_due_date = self.compute_payment_due_date()
        self.payment_status = self.compute_payment_status()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            kwargs['update_fields'] = set(update_fields) | {'payment_due_date', 'payment_status'}
        if self.order_number:
            super().save(*args, **kwargs)
        else:
            save_with_sequence_number(self, lambda: super(PurchaseOrder, self).save(*args, **kwargs))

    @property
    def total_items(self):
        return sum(item.quantity_ordered for item in self.items.all())

    @property
    def total_received(self):
        return sum(item.quantity_received for item in self.items.all())

    @property
    def completion_percentage(self):
        ordered = self.total_items
        return round(self.total_received / ordered * 100) if ordered else 0

    @property
    def outstanding_balance(self):
        return max(Decimal('0.00'), self.total_amount - self.amount_paid)

    @property
    def days_until_delivery(self):
        if not self.expected_delivery_date:
            return None
        return (self.expected_delivery_date - timezone.localdate()).days

    class Meta:
        db_table = 'purchase_orders'
        ordering = ['-order_date']
        indexes = [
            models.Index(fields=['supplier', 'status'], name='po_supplier_status_idx'),
            models.Index(fields=['status', '-order_date'], name='po_status_date_idx'),
            models.Index(fields=['payment_status', 'payment_due_date'], name='po_payment_due_idx'),
        ]


class PurchaseOrderItem(models.Model):
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='purchase_order_items')
    unit = models.ForeignKey(ProductUnit, on_delete=models.SET_NULL, null=True, blank=True,
                             related_name='purchase_order_items')
    product_name = models.CharField(max_length=100)
    unit_type = models.CharField(max_length=30)
    quantity_ordered = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    quantity_received = models.PositiveIntegerField(default=0)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    total_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    quality_rating = models.PositiveSmallIntegerField(null=True, blank=True,
                                                      validators=[MinValueValidator(1), MaxValueValidator(5)])
    quality_notes = models.CharField(max_length=300, blank=True)
    damaged_quantity = models.PositiveIntegerField(default=0)
    damage_reason = models.CharField(max_length=200, blank=True)
    batch_number = models.CharField(max_length=100, blank=True)
    expiry_date = models.DateField(null=True, blank=True)

    def __str__(self):
        return f"{self.quantity_ordered} x {self.product_name} ({self.unit_type})"

    @property
    def quantity_outstanding(self):
        return max(0, self.quantity_ordered - self.quantity_received)

    def save(self, *args, **kwargs):
        self.total_cost = self.unit_cost * self.quantity_ordered
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'purchase_order_items'
        ordering = ['id']


class PurchaseOrderPayment(models.Model):
    PAYMENT_METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('bank-transfer', 'Bank Transfer'),
        ('cheque', 'Cheque'),
        ('mobile-money', 'Mobile Money'),
    ]

    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name='payments')
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_date = models.DateTimeField(default=timezone.now)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES)
    reference = models.CharField(max_length=100, blank=True)
    notes = models.CharField(max_length=300, blank=True)
    recorded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='purchase_order_payments')

    class Meta:
        db_table = 'purchase_order_payments'
        ordering = ['-payment_date']


class PurchaseOrderStatusHistory(models.Model):
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name='status_history')
    status = models.CharField(max_length=20, choices=PurchaseOrder.STATUS_CHOICES)
    timestamp = models.DateTimeField(default=timezone.now)
    updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='purchase_order_status_updates')
    notes = models.CharField(max_length=500, blank=True)

    class Meta:
        db_table = 'purchase_order_status_history'
        ordering = ['timestamp', 'id']
        verbose_name_plural = 'purchase order status history'
