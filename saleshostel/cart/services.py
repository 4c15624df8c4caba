import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import Count
from django.utils import timezone
from saleshostel.core.exceptions import BusinessRuleError, InsufficientStockError
from .models import Cart, CartItem, SavedItem

logger = logging.getLogger(__name__)


def max_item_quantity():
    return settings.SALESHOSTEL['MAX_CART_ITEM_QUANTITY']


def get_or_create_cart(customer):
    cart = Cart.objects.filter(customer=customer, is_active=True).order_by('-last_activity').first()
    if cart is None:
        cart = Cart.objects.create(customer=customer)
        logger.debug(f"Created cart {cart.id} for customer {customer.id}")
    return cart


def _check_purchasable(product, unit):
    if not product.is_active:
        raise BusinessRuleError('Product not found or inactive', code='product_unavailable')
    if unit.product_id != product.id or not unit.is_available:
        raise BusinessRuleError('Product unit not found or unavailable', code='unit_unavailable')


@transaction.atomic
def add_item(cart, product, unit, quantity=1):
    _check_purchasable(product, unit)
    if unit.stock_quantity < quantity:
        raise InsufficientStockError(
            f'Insufficient stock. Only {unit.stock_quantity} items available',
            extra={'available': unit.stock_quantity}
        )

    item = CartItem.objects.filter(cart=cart, unit=unit).first()
    if item:
        new_quantity = item.quantity + quantity
        if new_quantity > unit.stock_quantity:
            remaining = max(0, unit.stock_quantity - item.quantity)
            raise InsufficientStockError(
                f'Cannot add {quantity} more items. Only {remaining} more available',
                extra={'available': remaining}
            )
        if new_quantity > max_item_quantity():
            raise BusinessRuleError(
                f'Maximum quantity per item is {max_item_quantity()}', code='quantity_limit'
            )
        item.quantity = new_quantity
    else:
        item = CartItem(cart=cart, product=product, unit=unit, quantity=quantity)

    item.refresh_snapshot(unit)
    item.save()
    cart.touch()
    return item


@transaction.atomic
def update_item_quantity(cart, item_id, quantity):
    """Set a line's quantity; zero or less removes the line"""
    item = CartItem.objects.select_related('unit', 'unit__product').filter(cart=cart, pk=item_id).first()
    if item is None:
        raise BusinessRuleError('Cart item not found', code='item_not_found')

    if quantity <= 0:
        item.delete()
        cart.touch()
        return None

    unit = item.unit
    if quantity > unit.stock_quantity:
        raise InsufficientStockError(
            f'Insufficient stock. Only {unit.stock_quantity} items available',
            extra={'available': unit.stock_quantity}
        )
    if quantity > max_item_quantity():
        raise BusinessRuleError(f'Maximum quantity per item is {max_item_quantity()}', code='quantity_limit')

    item.quantity = quantity
    item.price = unit.price
    item.is_available = unit.is_available
    item.current_stock = unit.stock_quantity
    item.save()
    cart.touch()
    return item


def remove_item(cart, item_id):
    deleted, _ = CartItem.objects.filter(cart=cart, pk=item_id).delete()
    if not deleted:
        raise BusinessRuleError('Cart item not found', code='item_not_found')
    cart.touch()


def clear_cart(cart):
    cart.items.all().delete()
    cart.touch()


@transaction.atomic
def save_for_later(cart, item_id):
    item = CartItem.objects.filter(cart=cart, pk=item_id).first()
    if item is None:
        raise BusinessRuleError('Cart item not found', code='item_not_found')
    saved = SavedItem.objects.create(cart=cart, product_id=item.product_id, unit_id=item.unit_id)
    item.delete()
    cart.touch()
    return saved


@transaction.atomic
def move_to_cart(cart, saved_item_id, quantity=1):
    saved = SavedItem.objects.select_related('product', 'unit').filter(cart=cart, pk=saved_item_id).first()
    if saved is None:
        raise BusinessRuleError('Saved item not found', code='item_not_found')
    item = add_item(cart, saved.product, saved.unit, quantity)
    saved.delete()
    return item


@transaction.atomic
def validate_cart(cart):
    """
    Re-check every line against the live catalog.

    Unavailable or out-of-stock lines are removed, quantities are clamped to
    stock and snapshots are refreshed. Returns ``{'is_valid', 'issues'}``.
    """
    issues = []
    for item in cart.items.select_related('product', 'unit').all():
        product, unit = item.product, item.unit
        line = {'item_id': item.id, 'product_name': item.product_name, 'unit_type': item.unit_type}

        if not product.is_active:
            issues.append({**line, 'type': 'product_unavailable', 'message': 'Product is no longer available'})
            item.delete()
            continue
        if not unit.is_available:
            issues.append({**line, 'type': 'unit_unavailable', 'message': 'Product unit is no longer available'})
            item.delete()
            continue

        if unit.stock_quantity < item.quantity:
            if unit.stock_quantity == 0:
                issues.append({**line, 'type': 'out_of_stock', 'message': 'Product is out of stock'})
                item.delete()
                continue
            issues.append({
                **line,
                'type': 'insufficient_stock',
                'available_stock': unit.stock_quantity,
                'message': f'Only {unit.stock_quantity} items available',
            })
            item.quantity = unit.stock_quantity

        if unit.price != item.price:
            issues.append({
                **line,
                'type': 'price_changed',
                'old_price': float(item.price),
                'new_price': float(unit.price),
                'message': 'Product price has changed',
            })

        item.refresh_snapshot(unit)
        item.save()

    if issues:
        logger.info(f"Cart {cart.id} validation found {len(issues)} issue(s)")
        cart.touch()
    return {'is_valid': not issues, 'issues': issues}


def abandoned_carts(hours=None):
    """Active carts with items and no activity for ``hours``"""
    hours = hours or settings.SALESHOSTEL['ABANDONED_CART_HOURS']
    cutoff = timezone.now() - timedelta(hours=hours)
    return Cart.objects.select_related('customer').annotate(
        line_count=Count('items')
    ).filter(is_active=True, last_activity__lt=cutoff, line_count__gt=0).order_by('last_activity')


def cleanup_expired_carts():
    _, per_model = Cart.objects.filter(expires_at__lt=timezone.now(), is_active=False).delete()
    deleted = per_model.get('cart.Cart', 0)
    logger.info(f"Deleted {deleted} expired carts")
    return deleted
