import random
import string
import time
from datetime import timedelta

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from decimal import Decimal
from saleshostel.catalog.models import Product, ProductUnit
from saleshostel.core.utils import save_with_sequence_number


class Order(models.Model):
    """Customer or walk-in order"""
    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_PREPARING = 'preparing'
    STATUS_READY = 'ready'
    STATUS_OUT_FOR_DELIVERY = 'out-for-delivery'
    STATUS_DELIVERED = 'delivered'
    STATUS_CANCELLED = 'cancelled'
    STATUS_REFUNDED = 'refunded'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_PREPARING, 'Preparing'),
        (STATUS_READY, 'Ready'),
        (STATUS_OUT_FOR_DELIVERY, 'Out for Delivery'),
        (STATUS_DELIVERED, 'Delivered'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_REFUNDED, 'Refunded'),
    ]
    ACTIVE_STATUSES = [STATUS_PENDING, STATUS_CONFIRMED, STATUS_PREPARING, STATUS_READY, STATUS_OUT_FOR_DELIVERY]

    TYPE_PICKUP = 'pickup'
    TYPE_DELIVERY = 'delivery'
    TYPE_WALK_IN = 'walk-in'
    ORDER_TYPE_CHOICES = [
        (TYPE_PICKUP, 'Pickup'),
        (TYPE_DELIVERY, 'Delivery'),
        (TYPE_WALK_IN, 'Walk-in'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('transfer', 'Bank Transfer'),
        ('pos', 'POS'),
        ('card', 'Card'),
        ('mobile-money', 'Mobile Money'),
    ]
    PAYMENT_PENDING = 'pending'
    PAYMENT_PAID = 'paid'
    PAYMENT_FAILED = 'failed'
    PAYMENT_REFUNDED = 'refunded'
    PAYMENT_PARTIALLY_REFUNDED = 'partially-refunded'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PAID, 'Paid'),
        (PAYMENT_FAILED, 'Failed'),
        (PAYMENT_REFUNDED, 'Refunded'),
        (PAYMENT_PARTIALLY_REFUNDED, 'Partially Refunded'),
    ]

    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('normal', 'Normal'),
        ('high', 'High'),
        ('urgent', 'Urgent'),
    ]
    SOURCE_CHOICES = [
        ('web', 'Web'),
        ('mobile', 'Mobile'),
        ('whatsapp', 'WhatsApp'),
        ('phone', 'Phone'),
        ('walk-in', 'Walk-in'),
    ]

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                 related_name='orders')
    customer_name = models.CharField(max_length=100)
    customer_whatsapp = models.CharField(max_length=20, blank=True)
    customer_call = models.CharField(max_length=20, blank=True)
    customer_email = models.EmailField(blank=True)

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    tax = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    order_type = models.CharField(max_length=20, choices=ORDER_TYPE_CHOICES, default=TYPE_PICKUP)
    delivery_street = models.CharField(max_length=255, blank=True)
    delivery_city = models.CharField(max_length=100, blank=True)
    delivery_state = models.CharField(max_length=100, blank=True)
    hostel_room = models.CharField(max_length=50, blank=True)
    landmark = models.CharField(max_length=255, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default='cash')
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING,
                                      db_index=True)
    payment_reference = models.CharField(max_length=100, blank=True)
    payment_date = models.DateTimeField(null=True, blank=True)

    order_date = models.DateTimeField(default=timezone.now, db_index=True)
    estimated_ready = models.DateTimeField(null=True, blank=True)
    actual_ready = models.DateTimeField(null=True, blank=True)
    estimated_delivery = models.DateTimeField(null=True, blank=True)
    actual_delivery = models.DateTimeField(null=True, blank=True)

    handled_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='handled_orders')
    delivered_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                     related_name='delivered_orders')

    notes = models.CharField(max_length=500, blank=True)
    special_instructions = models.CharField(max_length=300, blank=True)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='normal')
    is_urgent = models.BooleanField(default=False)

    rating = models.PositiveSmallIntegerField(null=True, blank=True,
                                              validators=[MinValueValidator(1), MaxValueValidator(5)])
    review = models.CharField(max_length=500, blank=True)
    review_date = models.DateTimeField(null=True, blank=True)

    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    refund_reason = models.CharField(max_length=255, blank=True)
    refund_date = models.DateTimeField(null=True, blank=True)
    refunded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='refunded_orders')

    tracking_number = models.CharField(max_length=20, unique=True, null=True, blank=True)
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default='web')

    cancellation_reason = models.CharField(max_length=255, blank=True)
    cancelled_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                     related_name='cancelled_orders')
    cancellation_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    @staticmethod
    def generate_order_number():
        """SH + yymmdd + 4-digit daily sequence"""
        prefix = f"SH{timezone.localdate():%y%m%d}"
        last = Order.objects.filter(order_number__startswith=prefix).order_by('-order_number').first()
        sequence = int(last.order_number[-4:]) + 1 if last else 1
        return f"{prefix}{sequence:04d}"

    @staticmethod
    def generate_tracking_number():
        suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=4))
        return f"TRK{str(int(time.time() * 1000))[-8:]}{suffix}"

    def calculate_totals(self):
        self.subtotal = sum((item.total_price for item in self.items.all()), Decimal('0.00'))
        self.total_amount = self.subtotal + self.delivery_fee + self.tax - self.discount

    def save(self, *args, **kwargs):
        if self._state.adding and self.order_type == self.TYPE_DELIVERY and not self.tracking_number:
            self.tracking_number = self.generate_tracking_number()
        if self.order_number:
            super().save(*args, **kwargs)
        else:
            save_with_sequence_number(self, lambda: super(Order, self).save(*args, **kwargs))

    @property
    def total_items(self):
        return sum(item.quantity for item in self.items.all())

    @property
    def estimated_prep_time(self):
        """Minutes: two per item, never under fifteen"""
        return max(15, self.total_items * 2)

    @property
    def delivery_time_window(self):
        if self.order_type != self.TYPE_DELIVERY:
            return None
        base = self.estimated_ready or (self.order_date + timedelta(minutes=self.estimated_prep_time))
        return {
            'earliest': base + timedelta(minutes=15),
            'latest': base + timedelta(minutes=45),
        }

    @property
    def age_in_hours(self):
        return int((timezone.now() - self.order_date).total_seconds() // 3600)

    @property
    def can_be_cancelled(self):
        return self.status not in (self.STATUS_DELIVERED, self.STATUS_CANCELLED, self.STATUS_REFUNDED)

    @property
    def can_be_refunded(self):
        return self.status == self.STATUS_DELIVERED and self.payment_status in (
            self.PAYMENT_PAID, self.PAYMENT_PARTIALLY_REFUNDED
        )

    class Meta:
        db_table = 'orders'
        ordering = ['-order_date']
        indexes = [
            models.Index(fields=['customer', '-order_date'], name='orders_customer_date_idx'),
            models.Index(fields=['status', '-order_date'], name='orders_status_date_idx'),
            models.Index(fields=['handled_by', 'status'], name='orders_handler_status_idx'),
        ]


class OrderItem(models.Model):
    """Order line; product name and unit are copied at checkout"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    unit = models.ForeignKey(ProductUnit, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    product_name = models.CharField(max_length=100)
    unit_type = models.CharField(max_length=30)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    total_price = models.DecimalField(max_digits=14, decimal_places=2)

    def __str__(self):
        return f"{self.quantity} x {self.product_name} ({self.unit_type})"

    def save(self, *args, **kwargs):
        self.total_price = self.unit_price * self.quantity
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'order_items'
        ordering = ['id']


class OrderStatusHistory(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='status_history')
    status = models.CharField(max_length=20, choices=Order.STATUS_CHOICES)
    timestamp = models.DateTimeField(default=timezone.now)
    updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='order_status_updates')
    notes = models.CharField(max_length=500, blank=True)

    class Meta:
        db_table = 'order_status_history'
        ordering = ['timestamp', 'id']
        verbose_name_plural = 'order status history'
