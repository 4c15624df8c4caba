"""
Purchase order lifecycle.

draft -> sent -> confirmed -> partially-received -> received -> completed,
with cancellation allowed up to confirmation.
"""
import logging

from django.db import transaction
from django.db.models import Avg, Count, Q, Sum
from django.utils import timezone
from decimal import Decimal
from saleshostel.catalog.models import ProductUnit
from saleshostel.core.exceptions import BusinessRuleError, InvalidStatusTransition
from saleshostel.inventory.services import record_movement
from saleshostel.suppliers.services import get_or_create_profile, record_delivery
from .models import PurchaseOrder, PurchaseOrderItem, PurchaseOrderPayment, PurchaseOrderStatusHistory

logger = logging.getLogger(__name__)


def _add_history(purchase_order, status, user=None, notes=''):
    return PurchaseOrderStatusHistory.objects.create(
        purchase_order=purchase_order,
        status=status,
        updated_by=user if user and user.is_authenticated else None,
        notes=notes or '',
    )


def _set_status(purchase_order, allowed_from, new_status, user, notes='', **fields):
    if purchase_order.status not in allowed_from:
        raise InvalidStatusTransition(
            f"Cannot change purchase order status from {purchase_order.status} to {new_status}"
        )
    purchase_order.status = new_status
    for name, value in fields.items():
        setattr(purchase_order, name, value)
    purchase_order.save()
    _add_history(purchase_order, new_status, user, notes)
    logger.info(f"Purchase order {purchase_order.order_number} -> {new_status}")
    return purchase_order


def _replace_items(purchase_order, items):
    purchase_order.items.all().delete()
    for line in items:
        unit = line['unit']
        PurchaseOrderItem.objects.create(
            purchase_order=purchase_order,
            product=unit.product,
            unit=unit,
            product_name=unit.product.name,
            unit_type=unit.unit_type,
            quantity_ordered=line['quantity_ordered'],
            unit_cost=line['unit_cost'],
        )
    purchase_order.calculate_totals()
    purchase_order.save()


def create_purchase_order(supplier, items, created_by, **fields):
    """
    Create a draft purchase order.

    ``items`` is a list of dicts with ``unit``, ``quantity_ordered`` and
    ``unit_cost``; the supplier's details are copied from their profile.
    """
    if not items:
        raise BusinessRuleError('At least one item is required', code='no_items')
    if supplier.role != supplier.ROLE_SUPPLIER:
        raise BusinessRuleError('Purchase orders can only be raised against suppliers', code='invalid_supplier')

    profile = get_or_create_profile(supplier)
    if not fields.get('payment_terms') and profile.payment_terms in dict(PurchaseOrder.PAYMENT_TERMS_CHOICES):
        fields['payment_terms'] = profile.payment_terms

    with transaction.atomic():
        purchase_order = PurchaseOrder.objects.create(
            supplier=supplier,
            supplier_company_name=profile.company_name,
            supplier_contact_person=profile.contact_person_name,
            supplier_email=profile.contact_email,
            supplier_phone=profile.contact_phone,
            supplier_address=', '.join(part for part in (profile.street, profile.city, profile.state) if part),
            created_by=created_by,
            **fields
        )
        _replace_items(purchase_order, items)
        _add_history(purchase_order, PurchaseOrder.STATUS_DRAFT, created_by, 'Purchase order created')

    logger.info(f"Purchase order {purchase_order.order_number} created for supplier {supplier.id}")
    return purchase_order


def update_purchase_order(purchase_order, user, items=None, **fields):
    if purchase_order.status != PurchaseOrder.STATUS_DRAFT:
        raise BusinessRuleError('Only draft purchase orders can be edited', code='not_draft')

    with transaction.atomic():
        for name, value in fields.items():
            setattr(purchase_order, name, value)
        if items is not None:
            if not items:
                raise BusinessRuleError('At least one item is required', code='no_items')
            _replace_items(purchase_order, items)
        else:
            purchase_order.calculate_totals()
            purchase_order.save()
    return purchase_order


def send_purchase_order(purchase_order, user):
    return _set_status(purchase_order, [PurchaseOrder.STATUS_DRAFT], PurchaseOrder.STATUS_SENT, user,
                       'Sent to supplier', approved_by=user)


def confirm_purchase_order(purchase_order, user, notes=''):
    """Supplier accepts a sent order"""
    return _set_status(purchase_order, [PurchaseOrder.STATUS_SENT], PurchaseOrder.STATUS_CONFIRMED, user,
                       notes or 'Confirmed by supplier', confirmed_at=timezone.now())


def reject_purchase_order(purchase_order, user, reason):
    return _set_status(purchase_order, [PurchaseOrder.STATUS_SENT], PurchaseOrder.STATUS_CANCELLED, user,
                       f"Rejected by supplier: {reason}", cancellation_reason=reason)


def cancel_purchase_order(purchase_order, user, reason=''):
    return _set_status(purchase_order, PurchaseOrder.CANCELLABLE_STATUSES, PurchaseOrder.STATUS_CANCELLED, user,
                       reason, cancellation_reason=reason)


def complete_purchase_order(purchase_order, user, notes=''):
    return _set_status(purchase_order, [PurchaseOrder.STATUS_RECEIVED], PurchaseOrder.STATUS_COMPLETED, user, notes)


def update_expected_delivery(purchase_order, expected_date, user, notes=''):
    if purchase_order.status not in (PurchaseOrder.STATUS_SENT, PurchaseOrder.STATUS_CONFIRMED):
        raise BusinessRuleError('Delivery date can only change before goods are received', code='order_locked')
    if expected_date < timezone.localdate():
        raise BusinessRuleError('Expected delivery date cannot be in the past', code='invalid_date')

    purchase_order.expected_delivery_date = expected_date
    purchase_order.save()
    _add_history(purchase_order, purchase_order.status, user,
                 notes or f"Expected delivery moved to {expected_date.isoformat()}")
    return purchase_order


def add_payment(purchase_order, amount, payment_method, user, reference='', notes=''):
    if purchase_order.status in (PurchaseOrder.STATUS_DRAFT, PurchaseOrder.STATUS_CANCELLED):
        raise BusinessRuleError(f'Cannot pay a {purchase_order.status} purchase order', code='order_closed')
    if amount <= 0:
        raise BusinessRuleError('Payment amount must be greater than 0', code='invalid_amount')
    outstanding = purchase_order.outstanding_balance
    if amount > outstanding:
        raise BusinessRuleError(
            f'Payment amount cannot exceed the outstanding balance of {outstanding}',
            code='overpayment',
            extra={'outstanding_balance': float(outstanding)}
        )

    with transaction.atomic():
        payment = PurchaseOrderPayment.objects.create(
            purchase_order=purchase_order,
            amount=amount,
            payment_method=payment_method,
            reference=reference or '',
            notes=notes or '',
            recorded_by=user,
        )
        purchase_order.amount_paid += amount
        purchase_order.save()

    logger.info(f"Payment of {amount} recorded on purchase order {purchase_order.order_number}")
    return payment


def receive_items(purchase_order, receipts, user, notes=''):
    """
    Record a delivery against the order.

    Each receipt names an item and the quantity delivered this time, of which
    ``damaged_quantity`` is rejected; only the good quantity goes into stock.
    """
    if purchase_order.status not in PurchaseOrder.RECEIVABLE_STATUSES:
        raise BusinessRuleError(
            f'Cannot receive items for a {purchase_order.status} purchase order', code='not_receivable'
        )
    if not receipts:
        raise BusinessRuleError('At least one item must be received', code='no_items')

    movements = []
    with transaction.atomic():
        items = {item.id: item for item in purchase_order.items.select_for_update()}
        for receipt in receipts:
            item = items.get(receipt['item_id'])
            if item is None:
                raise BusinessRuleError(f"Item {receipt['item_id']} is not on this purchase order", code='invalid_item')

            received = receipt['quantity_received']
            damaged = receipt.get('damaged_quantity', 0)
            if damaged > received:
                raise BusinessRuleError('Damaged quantity cannot exceed quantity received', code='invalid_quantity')
            if received > item.quantity_outstanding:
                raise BusinessRuleError(
                    f'Only {item.quantity_outstanding} of {item.product_name} ({item.unit_type}) outstanding',
                    code='over_receipt'
                )

            good = received - damaged
            if good > 0 and item.unit_id:
                movements.append(record_movement(
                    item.unit,
                    good,
                    'purchase',
                    performed_by=user,
                    reference=purchase_order.order_number,
                    reference_type='purchase-order',
                    reason=f"Received on purchase order {purchase_order.order_number}",
                    unit_cost=item.unit_cost,
                    source='purchase',
                    batch_number=receipt.get('batch_number', ''),
                    expiry_date=receipt.get('expiry_date'),
                ))
                ProductUnit.objects.filter(pk=item.unit_id).update(cost_price=item.unit_cost)
            elif good > 0:
                logger.warning(f"{purchase_order.order_number}: unit for '{item.product_name}' no longer exists")

            item.quantity_received += received
            item.damaged_quantity += damaged
            for field in ('damage_reason', 'quality_rating', 'quality_notes', 'batch_number', 'expiry_date'):
                if receipt.get(field):
                    setattr(item, field, receipt[field])
            item.save()

        fully_received = all(item.quantity_outstanding == 0 for item in purchase_order.items.all())
        purchase_order.received_by = user
        if fully_received:
            purchase_order.actual_delivery_date = timezone.localdate()
            _set_status(purchase_order, PurchaseOrder.RECEIVABLE_STATUSES, PurchaseOrder.STATUS_RECEIVED, user,
                        notes or 'All items received')
            record_delivery(
                purchase_order.supplier,
                purchase_order.total_amount,
                on_time=purchase_order.actual_delivery_date <= purchase_order.expected_delivery_date,
            )
        else:
            _set_status(purchase_order, PurchaseOrder.RECEIVABLE_STATUSES, PurchaseOrder.STATUS_PARTIALLY_RECEIVED,
                        user, notes or 'Partial delivery received')

    return purchase_order, movements


def statistics(date_from=None, date_to=None, supplier=None):
    orders = PurchaseOrder.objects.all()
    if supplier is not None:
        orders = orders.filter(supplier=supplier)
    if date_from:
        orders = orders.filter(order_date__date__gte=date_from)
    if date_to:
        orders = orders.filter(order_date__date__lte=date_to)

    totals = orders.aggregate(
        total_orders=Count('id'),
        total_value=Sum('total_amount'),
        average_order_value=Avg('total_amount'),
        total_paid=Sum('amount_paid'),
        pending_orders=Count('id', filter=Q(status__in=[PurchaseOrder.STATUS_DRAFT, PurchaseOrder.STATUS_SENT])),
        open_orders=Count('id', filter=Q(status__in=PurchaseOrder.OPEN_STATUSES)),
        completed_orders=Count('id', filter=Q(status__in=[PurchaseOrder.STATUS_RECEIVED,
                                                           PurchaseOrder.STATUS_COMPLETED])),
        cancelled_orders=Count('id', filter=Q(status=PurchaseOrder.STATUS_CANCELLED)),
    )
    status_counts = dict(orders.values_list('status').annotate(count=Count('id')).values_list('status', 'count'))
    payment_counts = dict(
        orders.values_list('payment_status').annotate(count=Count('id')).values_list('payment_status', 'count')
    )
    total_value = totals['total_value'] or Decimal('0')
    total_paid = totals['total_paid'] or Decimal('0')

    return {
        'total_orders': totals['total_orders'],
        'total_value': float(total_value),
        'average_order_value': float(totals['average_order_value'] or 0),
        'total_paid': float(total_paid),
        'outstanding': float(max(Decimal('0'), total_value - total_paid)),
        'pending_orders': totals['pending_orders'],
        'open_orders': totals['open_orders'],
        'completed_orders': totals['completed_orders'],
        'cancelled_orders': totals['cancelled_orders'],
        'by_status': {value: status_counts.get(value, 0) for value, _ in PurchaseOrder.STATUS_CHOICES},
        'by_payment_status': {value: payment_counts.get(value, 0) for value, _ in PurchaseOrder.PAYMENT_STATUS_CHOICES},
    }
