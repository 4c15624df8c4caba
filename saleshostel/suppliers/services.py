import logging

from django.db import transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone
from decimal import Decimal
from saleshostel.catalog.models import Product, ProductUnit
from saleshostel.core.exceptions import BusinessRuleError
from saleshostel.inventory.services import record_movement
from .models import SupplierProfile, Supply

logger = logging.getLogger(__name__)


def get_or_create_profile(user):
    """Supplier profiles are created from the account details on first access"""
    profile, created = SupplierProfile.objects.get_or_create(
        user=user,
        defaults={
            'company_name': user.full_name,
            'contact_first_name': user.first_name or user.username,
            'contact_last_name': user.last_name,
            'contact_email': user.email,
            'contact_phone': user.call_number,
            'contact_whatsapp': user.whatsapp_number,
            'street': user.street,
            'city': user.city,
            'state': user.state,
        }
    )
    if created:
        logger.info(f"Created supplier profile for user {user.id}")
    return profile


def record_delivery(supplier_user, value, on_time=None):
    """Add a delivery to the supplier's performance counters"""
    updates = {
        'total_supplies': F('total_supplies') + 1,
        'total_value': F('total_value') + value,
    }
    if on_time is True:
        updates['on_time_deliveries'] = F('on_time_deliveries') + 1
    elif on_time is False:
        updates['late_deliveries'] = F('late_deliveries') + 1
    get_or_create_profile(supplier_user)
    SupplierProfile.objects.filter(user=supplier_user).update(**updates)


def find_unit_for_supply(supply):
    """Match the supplied product by name (case-insensitive) and unit type"""
    units = ProductUnit.objects.select_related('product').filter(unit_type=supply.unit_type)
    unit = units.filter(product__name__iexact=supply.product_name.strip()).first()
    if unit is None:
        unit = units.filter(product__name__icontains=supply.product_name.strip()).first()
    if unit is not None:
        return unit

    product = Product.objects.filter(name__iexact=supply.product_name.strip()).prefetch_related('units').first()
    if product is None:
        raise BusinessRuleError(
            'Product not found. Please create the product first or check the product name.',
            code='product_not_found'
        )
    available = ', '.join(unit.unit_type for unit in product.units.all())
    raise BusinessRuleError(
        f'Unit type "{supply.unit_type}" not found for product "{product.name}". Available units: {available}',
        code='unit_not_found'
    )


def receive_supply(supply, user):
    """Put a pending supply into stock as a purchase movement"""
    with transaction.atomic():
        supply = Supply.objects.select_for_update().get(pk=supply.pk)
        if supply.status != Supply.STATUS_PENDING:
            raise BusinessRuleError('Supply has already been processed', code='supply_processed')

        unit = find_unit_for_supply(supply)
        movement = record_movement(
            unit,
            supply.number_of_quantity,
            'purchase',
            performed_by=user,
            reference=f"SUP-{supply.id}",
            reference_type='supply',
            reason=f"Supply received from {supply.supplier.full_name}",
            notes=supply.notes,
            unit_cost=supply.price_per_unit,
            source='purchase',
        )
        if supply.price_per_unit > 0:
            ProductUnit.objects.filter(pk=unit.pk).update(cost_price=supply.price_per_unit)

        supply.status = Supply.STATUS_RECEIVED
        supply.received_by = user
        supply.received_at = timezone.now()
        supply.save()

        record_delivery(supply.supplier, supply.total_price)

    logger.info(f"Supply {supply.id} received: +{supply.number_of_quantity} {unit}")
    return supply, movement


def cancel_supply(supply, user):
    if supply.status == Supply.STATUS_RECEIVED:
        raise BusinessRuleError('Cannot cancel supply that has been received', code='supply_received')
    if supply.status == Supply.STATUS_CANCELLED:
        raise BusinessRuleError('Supply is already cancelled', code='supply_cancelled')
    supply.status = Supply.STATUS_CANCELLED
    supply.received_by = user
    supply.save(update_fields=['status', 'received_by', 'updated_at'])
    return supply


def verify_supplier(profile, user):
    profile.is_verified = True
    profile.verified_at = timezone.now()
    profile.verified_by = user
    profile.save(update_fields=['is_verified', 'verified_at', 'verified_by', 'updated_at'])
    return profile


def supply_stats():
    counts = Supply.objects.aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(status=Supply.STATUS_PENDING)),
        received=Count('id', filter=Q(status=Supply.STATUS_RECEIVED)),
        cancelled=Count('id', filter=Q(status=Supply.STATUS_CANCELLED)),
    )
    received = Supply.objects.filter(status=Supply.STATUS_RECEIVED)
    start_of_month = timezone.localtime().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    this_month = received.filter(received_at__gte=start_of_month).aggregate(
        count=Count('id'), value=Sum('total_price')
    )
    top = received.values(
        'supplier', 'supplier__first_name', 'supplier__last_name'
    ).annotate(
        total_supplies=Count('id'), total_value=Sum('total_price')
    ).order_by('-total_value')[:5]

    return {
        'total_supplies': counts['total'],
        'pending_supplies': counts['pending'],
        'received_supplies': counts['received'],
        'cancelled_supplies': counts['cancelled'],
        'total_value': float(received.aggregate(total=Sum('total_price'))['total'] or Decimal('0')),
        'this_month_value': float(this_month['value'] or 0),
        'this_month_count': this_month['count'],
        'top_suppliers': [
            {
                'supplier_id': row['supplier'],
                'supplier_name': f"{row['supplier__first_name']} {row['supplier__last_name']}".strip(),
                'total_supplies': row['total_supplies'],
                'total_value': float(row['total_value'] or 0),
            }
            for row in top
        ],
    }
