from datetime import timedelta

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from decimal import Decimal
from saleshostel.catalog.models import Product, ProductUnit


def default_expiry():
    return timezone.now() + timedelta(days=settings.SALESHOSTEL['CART_LIFETIME_DAYS'])


def delivery_fee_for(subtotal):
    """Flat delivery fee, waived above the free-delivery threshold"""
    store = settings.SALESHOSTEL
    if subtotal <= 0:
        return Decimal('0.00')
    if subtotal >= Decimal(str(store['FREE_DELIVERY_THRESHOLD'])):
        return Decimal('0.00')
    return Decimal(str(store['DELIVERY_FEE']))


class Cart(models.Model):
    """A customer's shopping cart"""
    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='carts')
    is_active = models.BooleanField(default=True, db_index=True)
    expires_at = models.DateTimeField(default=default_expiry, db_index=True)
    last_activity = models.DateTimeField(default=timezone.now, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Cart {self.id} ({self.customer_id})"

    def touch(self):
        """Record activity and push the expiry forward"""
        self.last_activity = timezone.now()
        self.expires_at = default_expiry()
        self.save(update_fields=['last_activity', 'expires_at', 'updated_at'])

    @property
    def summary(self):
        items = list(self.items.all())
        subtotal = sum((item.line_total for item in items), Decimal('0.00'))
        delivery_fee = delivery_fee_for(subtotal)
        discount = Decimal('0.00')
        return {
            'subtotal': subtotal,
            'delivery_fee': delivery_fee,
            'discount': discount,
            'total': subtotal + delivery_fee - discount,
            'item_count': sum(item.quantity for item in items),
            'unique_products': len(items),
        }

    class Meta:
        db_table = 'shopping_carts'
        ordering = ['-last_activity']


class CartItem(models.Model):
    """Cart line with a snapshot of the product as it was last refreshed"""
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='cart_items')
    unit = models.ForeignKey(ProductUnit, on_delete=models.CASCADE, related_name='cart_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1), MaxValueValidator(100)])

    product_name = models.CharField(max_length=100)
    unit_type = models.CharField(max_length=30)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    image = models.URLField(max_length=500, blank=True)
    is_available = models.BooleanField(default=True)
    current_stock = models.IntegerField(default=0)

    added_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.quantity} x {self.product_name} ({self.unit_type})"

    @property
    def line_total(self):
        return self.price * self.quantity

    def refresh_snapshot(self, unit=None):
        unit = unit or self.unit
        self.product_name = unit.product.name
        self.unit_type = unit.unit_type
        self.price = unit.price
        self.image = unit.product.primary_image or ''
        self.is_available = unit.is_available
        self.current_stock = unit.stock_quantity

    class Meta:
        db_table = 'shopping_cart_items'
        ordering = ['added_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['cart', 'unit'], name='unique_cart_unit'),
        ]


class SavedItem(models.Model):
    """Item moved out of the cart to buy later"""
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name='saved_items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='saved_items')
    unit = models.ForeignKey(ProductUnit, on_delete=models.CASCADE, related_name='saved_items')
    saved_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'shopping_cart_saved_items'
        ordering = ['-saved_at']
