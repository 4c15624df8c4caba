"""
Stock ledger operations.

Every change to ``ProductUnit.stock_quantity`` goes through ``record_movement``
so that the unit row is locked and a ``StockMovement`` is written in the same
transaction.
"""
import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import Case, Count, F, IntegerField, Max, Q, Sum, When, DecimalField
from django.db.models.functions import Coalesce
from django.utils import timezone
from decimal import Decimal
from saleshostel.catalog.models import ProductUnit
from saleshostel.core.exceptions import BusinessRuleError, InsufficientStockError
from .models import StockMovement

logger = logging.getLogger(__name__)


def record_movement(unit, quantity_changed, movement_type, performed_by=None, reference='',
                    reference_type='manual', reason='', notes='', unit_cost=None, source='manual',
                    is_system_generated=False, quality_status='good', batch_number='',
                    expiry_date=None, approved_by=None, reversal_of=None):
    """
    Apply a stock change to a unit and write the ledger entry.

    The resulting level never drops below zero. The caller's ``unit`` instance
    is updated with the new level.
    """
    with transaction.atomic():
        locked = ProductUnit.objects.select_for_update().select_related('product__category').get(pk=unit.pk)
        before = locked.stock_quantity
        after = max(0, before + quantity_changed)
        locked.stock_quantity = after
        locked.save(update_fields=['stock_quantity', 'updated_at'])

        movement = StockMovement.objects.create(
            product=locked.product,
            unit=locked,
            movement_type=movement_type,
            quantity_before=before,
            quantity_changed=quantity_changed,
            quantity_after=after,
            reference=reference or '',
            reference_type=reference_type,
            reason=reason or '',
            notes=notes or '',
            unit_cost=unit_cost,
            performed_by=performed_by if performed_by and performed_by.is_authenticated else None,
            approved_by=approved_by,
            source=source,
            is_system_generated=is_system_generated,
            quality_status=quality_status,
            batch_number=batch_number or '',
            expiry_date=expiry_date,
            reversal_of=reversal_of,
        )

    unit.stock_quantity = after
    logger.debug(f"Stock movement {movement.id}: unit {locked.id} {before} -> {after} ({movement_type})")
    return movement


def reverse_movement(movement, user, reason):
    """Undo a movement with a compensating adjustment"""
    if movement.is_reversed:
        raise BusinessRuleError('Movement has already been reversed', code='already_reversed')
    if movement.unit_id is None:
        raise BusinessRuleError('Movement unit no longer exists', code='unit_missing')

    with transaction.atomic():
        reversal = record_movement(
            movement.unit,
            -movement.quantity_changed,
            'adjustment',
            performed_by=user,
            reference=f"REV-{movement.reference or movement.id}",
            reference_type='manual',
            reason=f"Reversal: {reason}"[:200],
            notes=f"Reversal of movement {movement.id}",
            unit_cost=movement.unit_cost,
            source='manual',
            reversal_of=movement,
        )
        movement.is_reversed = True
        movement.reversed_by = user
        movement.reversal_reason = reason[:200]
        movement.reversal_date = timezone.now()
        movement.save(update_fields=['is_reversed', 'reversed_by', 'reversal_reason', 'reversal_date'])

    logger.info(f"Movement {movement.id} reversed by movement {reversal.id}")
    return reversal


def adjust_stock(unit, adjustment_type, quantity, reason, user, notes=''):
    """
    Manual stock adjustment.

    ``add`` and ``remove`` change the level by ``quantity``; ``set`` moves it to
    exactly ``quantity``.
    """
    if adjustment_type == 'add':
        change = quantity
    elif adjustment_type == 'remove':
        if quantity > unit.stock_quantity:
            raise InsufficientStockError(
                f'Cannot remove {quantity}; only {unit.stock_quantity} in stock',
                extra={'available': unit.stock_quantity}
            )
        change = -quantity
    elif adjustment_type == 'set':
        change = quantity - unit.stock_quantity
    else:
        raise BusinessRuleError(f'Unknown adjustment type: {adjustment_type}', code='invalid_adjustment')

    if change == 0:
        raise BusinessRuleError('Adjustment does not change the stock level', code='no_change')

    return record_movement(
        unit,
        change,
        'adjustment',
        performed_by=user,
        reference=f"ADJ-{timezone.now():%Y%m%d%H%M%S}",
        reference_type='manual',
        reason=reason,
        notes=notes,
        unit_cost=unit.cost_price,
        source='manual',
    )


def perform_stock_count(counts, user, notes=''):
    """
    Reconcile physical counts with recorded stock.

    ``counts`` is a list of ``{'unit': ProductUnit, 'counted_quantity': int}``.
    An ``audit`` movement is written for every unit whose count differs.
    """
    reference = f"COUNT-{timezone.now():%Y%m%d%H%M}"
    report = []
    with transaction.atomic():
        for entry in counts:
            unit = entry['unit']
            unit.refresh_from_db(fields=['stock_quantity'])
            system_quantity = unit.stock_quantity
            counted = entry['counted_quantity']
            difference = counted - system_quantity
            movement_id = None
            if difference:
                movement = record_movement(
                    unit,
                    difference,
                    'audit',
                    performed_by=user,
                    reference=reference,
                    reference_type='audit',
                    reason='Stock count discrepancy',
                    notes=notes,
                    unit_cost=unit.cost_price,
                    source='audit',
                )
                movement_id = movement.id
            report.append({
                'unit_id': unit.id,
                'product_name': unit.product.name,
                'unit_type': unit.unit_type,
                'system_quantity': system_quantity,
                'counted_quantity': counted,
                'difference': difference,
                'movement_id': movement_id,
            })

    discrepancies = [row for row in report if row['difference']]
    return {
        'reference': reference,
        'items_counted': len(report),
        'discrepancies': len(discrepancies),
        'total_difference': sum(row['difference'] for row in report),
        'items': report,
    }


def movement_summary(date_from=None, date_to=None, product_id=None, movement_type=None, performed_by=None):
    """Per movement type: count, quantity in, quantity out and value"""
    movements = StockMovement.objects.all()
    if date_from:
        movements = movements.filter(movement_date__date__gte=date_from)
    if date_to:
        movements = movements.filter(movement_date__date__lte=date_to)
    if product_id:
        movements = movements.filter(product_id=product_id)
    if movement_type:
        movements = movements.filter(movement_type=movement_type)
    if performed_by:
        movements = movements.filter(performed_by_id=performed_by)

    rows = movements.values('movement_type').annotate(
        total_movements=Count('id'),
        total_quantity_in=Coalesce(Sum(Case(
            When(quantity_changed__gt=0, then=F('quantity_changed')),
            default=0, output_field=IntegerField()
        )), 0),
        total_quantity_out=Coalesce(Sum(Case(
            When(quantity_changed__lt=0, then=F('quantity_changed') * -1),
            default=0, output_field=IntegerField()
        )), 0),
        total_value=Coalesce(Sum('total_cost'), Decimal('0.00'), output_field=DecimalField()),
    ).order_by('movement_type')

    return [
        {
            'movement_type': row['movement_type'],
            'total_movements': row['total_movements'],
            'total_quantity_in': row['total_quantity_in'],
            'total_quantity_out': row['total_quantity_out'],
            'total_value': float(row['total_value']),
        }
        for row in rows
    ]


def low_stock_units():
    """Available units of active products at or below their minimum level"""
    return ProductUnit.objects.select_related('product', 'product__category').filter(
        product__is_active=True,
        is_available=True,
        stock_quantity__lte=F('min_stock_level'),
    ).annotate(last_movement=Max('movements__movement_date')).order_by('stock_quantity', 'product__name')


def low_stock_alerts():
    return [
        {
            'unit_id': unit.id,
            'product_id': unit.product_id,
            'product_name': unit.product.name,
            'category': unit.product.category.name,
            'unit_type': unit.unit_type,
            'current_stock': unit.stock_quantity,
            'min_stock_level': unit.min_stock_level,
            'is_out_of_stock': unit.stock_quantity == 0,
            'last_movement': unit.last_movement,
        }
        for unit in low_stock_units()
    ]


def inventory_overview_queryset(search=None, category=None, stock_status=None):
    units = ProductUnit.objects.select_related('product', 'product__category').annotate(
        last_movement=Max('movements__movement_date')
    )
    if search:
        units = units.filter(Q(product__name__icontains=search) | Q(unit_type__icontains=search))
    if category:
        if str(category).isdigit():
            units = units.filter(product__category_id=int(category))
        else:
            units = units.filter(product__category__slug=category)
    if stock_status == 'in_stock':
        units = units.filter(stock_quantity__gt=F('min_stock_level'))
    elif stock_status == 'low_stock':
        units = units.filter(stock_quantity__gt=0, stock_quantity__lte=F('min_stock_level'))
    elif stock_status == 'out_of_stock':
        units = units.filter(stock_quantity=0)
    return units.order_by('product__name', 'unit_type')


def inventory_summary():
    units = ProductUnit.objects.filter(product__is_active=True)
    value_expression = F('stock_quantity') * Coalesce(F('cost_price'), F('price'))
    totals = units.aggregate(
        total_units=Count('id'),
        total_products=Count('product', distinct=True),
        total_stock=Coalesce(Sum('stock_quantity'), 0),
        stock_value=Coalesce(
            Sum(value_expression, output_field=DecimalField(max_digits=16, decimal_places=2)),
            Decimal('0.00'), output_field=DecimalField(max_digits=16, decimal_places=2)
        ),
        retail_value=Coalesce(
            Sum(F('stock_quantity') * F('price'), output_field=DecimalField(max_digits=16, decimal_places=2)),
            Decimal('0.00'), output_field=DecimalField(max_digits=16, decimal_places=2)
        ),
    )
    return {
        'total_products': totals['total_products'],
        'total_units': totals['total_units'],
        'total_stock': totals['total_stock'],
        'stock_value': float(totals['stock_value']),
        'retail_value': float(totals['retail_value']),
        'low_stock_count': units.filter(stock_quantity__gt=0, stock_quantity__lte=F('min_stock_level')).count(),
        'out_of_stock_count': units.filter(stock_quantity=0).count(),
    }


def cleanup_old_movements(retention_days=365):
    """Delete non-reversed audit/adjustment movements older than the retention window"""
    cutoff = timezone.now() - timedelta(days=retention_days)
    deleted, _ = StockMovement.objects.filter(
        movement_date__lt=cutoff,
        movement_type__in=['audit', 'adjustment'],
        is_reversed=False,
    ).delete()
    logger.info(f"Deleted {deleted} stock movements older than {retention_days} days")
    return deleted
