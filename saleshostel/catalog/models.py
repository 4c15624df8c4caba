import re

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from decimal import Decimal


def slugify_name(name):
    """Lowercase, drop non-word characters and join words with single dashes"""
    slug = (name or '').lower().strip()
    slug = re.sub(r'[^\w\s-]', '', slug)
    slug = re.sub(r'[\s_-]+', '-', slug)
    return slug.strip('-')


class Category(models.Model):
    """Product categories"""
    name = models.CharField(max_length=50, unique=True)
    slug = models.SlugField(max_length=60, unique=True, blank=True)
    description = models.CharField(max_length=200, blank=True)
    image = models.URLField(blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.slug = slugify_name(self.name)
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['name']


class Product(models.Model):
    """Catalog product; prices and stock live on its units"""
    name = models.CharField(max_length=100, db_index=True)
    description = models.TextField()
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')
    images = models.JSONField(default=list, blank=True)
    tags = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    featured = models.BooleanField(default=False, db_index=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='created_products')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def primary_image(self):
        return self.images[0] if self.images else None

    @property
    def min_price(self):
        prices = [unit.price for unit in self.units.all()]
        return min(prices) if prices else Decimal('0.00')

    @property
    def total_stock(self):
        return sum(unit.stock_quantity for unit in self.units.all())

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']


class ProductUnit(models.Model):
    """A sellable unit of a product (e.g. a Bag of rice) with its own price and stock"""
    UNIT_TYPE_CHOICES = [
        ('Cup', 'Cup'),
        ('Half Rubber', 'Half Rubber'),
        ('Black Rubber', 'Black Rubber'),
        ('Paint Rubber', 'Paint Rubber'),
        ('Big Black Rubber', 'Big Black Rubber'),
        ('Bag', 'Bag'),
        ('Piece', 'Piece'),
        ('Pack', 'Pack'),
        ('Bottle', 'Bottle'),
        ('Sachet', 'Sachet'),
        ('Carton', 'Carton'),
        ('Tin', 'Tin'),
        ('Tube', 'Tube'),
        ('Kg', 'Kg'),
        ('Gram', 'Gram'),
        ('Liter', 'Liter'),
    ]

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='units')
    unit_type = models.CharField(max_length=30, choices=UNIT_TYPE_CHOICES)
    price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    stock_quantity = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    min_stock_level = models.IntegerField(default=5, validators=[MinValueValidator(0)])
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True,
                                     validators=[MinValueValidator(Decimal('0'))])
    is_available = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} ({self.unit_type})"

    @property
    def is_low_stock(self):
        return self.stock_quantity <= self.min_stock_level

    @property
    def is_in_stock(self):
        return self.is_available and self.stock_quantity > 0

    class Meta:
        db_table = 'product_units'
        ordering = ['price']
        constraints = [
            models.UniqueConstraint(fields=['product', 'unit_type'], name='unique_product_unit_type'),
        ]
