from django.conf import settings
from django.db import models
from django.utils import timezone
from decimal import Decimal
from saleshostel.catalog.models import Product, ProductUnit


def default_location():
    return settings.SALESHOSTEL['DEFAULT_LOCATION']


class StockMovement(models.Model):
    """Ledger entry for every change to a unit's stock level"""
    MOVEMENT_TYPE_CHOICES = [
        ('purchase', 'Purchase'),
        ('sale', 'Sale'),
        ('adjustment', 'Adjustment'),
        ('return', 'Return'),
        ('damage', 'Damage'),
        ('expired', 'Expired'),
        ('transfer', 'Transfer'),
        ('audit', 'Audit'),
        ('promotion', 'Promotion'),
        ('sample', 'Sample'),
    ]
    REFERENCE_TYPE_CHOICES = [
        ('order', 'Order'),
        ('purchase-order', 'Purchase Order'),
        ('supply', 'Supply'),
        ('manual', 'Manual'),
        ('system', 'System'),
        ('return', 'Return'),
        ('audit', 'Audit'),
    ]
    QUALITY_STATUS_CHOICES = [
        ('good', 'Good'),
        ('damaged', 'Damaged'),
        ('expired', 'Expired'),
        ('returned', 'Returned'),
    ]
    SOURCE_CHOICES = [
        ('manual', 'Manual'),
        ('order', 'Order'),
        ('purchase', 'Purchase'),
        ('audit', 'Audit'),
        ('system', 'System'),
    ]

    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='movements')
    unit = models.ForeignKey(ProductUnit, on_delete=models.SET_NULL, null=True, blank=True, related_name='movements')
    movement_type = models.CharField(max_length=20, choices=MOVEMENT_TYPE_CHOICES)
    quantity_before = models.IntegerField()
    quantity_changed = models.IntegerField()
    quantity_after = models.IntegerField()

    reference = models.CharField(max_length=100, blank=True)
    reference_type = models.CharField(max_length=20, choices=REFERENCE_TYPE_CHOICES, default='manual')
    reason = models.CharField(max_length=200, blank=True)
    notes = models.TextField(blank=True)

    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    total_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    performed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                     related_name='stock_movements')
    approved_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='approved_stock_movements')
    movement_date = models.DateTimeField(default=timezone.now, db_index=True)
    location = models.CharField(max_length=100, default=default_location)
    batch_number = models.CharField(max_length=100, blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    quality_status = models.CharField(max_length=20, choices=QUALITY_STATUS_CHOICES, default='good')
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default='manual')
    is_system_generated = models.BooleanField(default=False)

    is_reversed = models.BooleanField(default=False)
    reversed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='reversed_stock_movements')
    reversal_reason = models.CharField(max_length=200, blank=True)
    reversal_date = models.DateTimeField(null=True, blank=True)
    reversal_of = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='reversals')

    # Snapshot so history survives product edits and deletion
    product_name = models.CharField(max_length=100, blank=True)
    unit_type = models.CharField(max_length=30, blank=True)
    category_name = models.CharField(max_length=50, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.description

    def save(self, *args, **kwargs):
        if self.unit_cost is not None and self.quantity_changed:
            self.total_cost = abs(self.quantity_changed) * self.unit_cost
        if self._state.adding and self.unit_id and not self.product_name:
            unit = self.unit
            self.product_id = self.product_id or unit.product_id
            self.product_name = unit.product.name
            self.unit_type = unit.unit_type
            self.category_name = unit.product.category.name if unit.product.category_id else ''
        super().save(*args, **kwargs)

    @property
    def direction(self):
        return 'in' if self.quantity_changed > 0 else 'out'

    @property
    def absolute_quantity(self):
        return abs(self.quantity_changed)

    @property
    def description(self):
        verb = 'Added' if self.direction == 'in' else 'Removed'
        return f"{verb} {self.absolute_quantity} {self.unit_type} of {self.product_name}"

    @property
    def financial_impact(self):
        if not self.unit_cost:
            return Decimal('0.00')
        return self.quantity_changed * self.unit_cost

    class Meta:
        db_table = 'stock_movements'
        ordering = ['-movement_date', '-id']
        indexes = [
            models.Index(fields=['unit', '-movement_date'], name='stock_mov_unit_date_idx'),
            models.Index(fields=['movement_type', '-movement_date'], name='stock_mov_type_date_idx'),
            models.Index(fields=['reference_type', 'reference'], name='stock_mov_reference_idx'),
        ]
