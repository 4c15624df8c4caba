"""
Order workflow: checkout, status transitions, cancellation and refunds.

Stock leaves the shelf at checkout (``sale`` movements) and comes back on
cancellation (``return`` movements).
"""
import logging
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F
from django.utils import timezone
from decimal import Decimal
from saleshostel.cart.models import delivery_fee_for
from saleshostel.cart.services import get_or_create_cart, validate_cart
from saleshostel.catalog.models import ProductUnit
from saleshostel.core import notifications
from saleshostel.core.exceptions import BusinessRuleError, InsufficientStockError, InvalidStatusTransition
from saleshostel.inventory.services import record_movement
from .models import Order, OrderItem, OrderStatusHistory

logger = logging.getLogger(__name__)

User = get_user_model()

TRANSITIONS = {
    Order.STATUS_PENDING: (Order.STATUS_CONFIRMED, Order.STATUS_CANCELLED),
    Order.STATUS_CONFIRMED: (Order.STATUS_PREPARING, Order.STATUS_CANCELLED),
    Order.STATUS_PREPARING: (Order.STATUS_READY, Order.STATUS_CANCELLED),
    Order.STATUS_READY: (Order.STATUS_OUT_FOR_DELIVERY, Order.STATUS_DELIVERED, Order.STATUS_CANCELLED),
    Order.STATUS_OUT_FOR_DELIVERY: (Order.STATUS_DELIVERED, Order.STATUS_CANCELLED),
    Order.STATUS_DELIVERED: (Order.STATUS_REFUNDED,),
}

# Customers may only cancel before preparation starts
CUSTOMER_CANCELLABLE = (Order.STATUS_PENDING, Order.STATUS_CONFIRMED)


def allowed_transitions(order):
    allowed = list(TRANSITIONS.get(order.status, ()))
    if order.order_type != Order.TYPE_DELIVERY and Order.STATUS_OUT_FOR_DELIVERY in allowed:
        allowed.remove(Order.STATUS_OUT_FOR_DELIVERY)
    return allowed


def _lock_order(order):
    """Lock the order row and reload it; must run inside a transaction"""
    Order.objects.select_for_update().only('pk').get(pk=order.pk)
    order.refresh_from_db()
    return order


def _add_history(order, status, user=None, notes=''):
    return OrderStatusHistory.objects.create(
        order=order,
        status=status,
        updated_by=user if user and user.is_authenticated else None,
        notes=notes or '',
    )


def _sell_lines(order, lines, user):
    """
    Create order items and take their stock.

    ``lines`` is a list of ``(unit, quantity)``. Units are locked before the
    stock check so concurrent checkouts cannot oversell.
    """
    low_stock = []
    for unit, quantity in lines:
        locked = ProductUnit.objects.select_for_update().select_related('product').get(pk=unit.pk)
        if not locked.product.is_active or not locked.is_available:
            raise BusinessRuleError(f'{locked.product.name} ({locked.unit_type}) is no longer available',
                                    code='unit_unavailable')
        if locked.stock_quantity < quantity:
            raise InsufficientStockError(
                f'Insufficient stock for {locked.product.name} ({locked.unit_type}). '
                f'Only {locked.stock_quantity} available',
                extra={'unit': locked.id, 'available': locked.stock_quantity}
            )
        OrderItem.objects.create(
            order=order,
            product=locked.product,
            unit=locked,
            product_name=locked.product.name,
            unit_type=locked.unit_type,
            quantity=quantity,
            unit_price=locked.price,
            unit_cost=locked.cost_price,
        )
        record_movement(
            locked,
            -quantity,
            'sale',
            performed_by=user,
            reference=order.order_number,
            reference_type='order',
            reason=f'Order {order.order_number}',
            unit_cost=locked.cost_price,
            source='order',
            is_system_generated=True,
        )
        if locked.is_low_stock:
            low_stock.append(locked)
    return low_stock


def _finalize_totals(order):
    order.calculate_totals()
    if order.order_type == Order.TYPE_DELIVERY:
        order.delivery_fee = delivery_fee_for(order.subtotal)
    else:
        order.delivery_fee = Decimal('0.00')
    order.total_amount = order.subtotal + order.delivery_fee + order.tax - order.discount
    order.save(update_fields=['subtotal', 'delivery_fee', 'total_amount', 'updated_at'])


def _after_commit_notifications(order, low_stock):
    def send():
        notifications.send_order_confirmation(order)
        if low_stock:
            notifications.notify_low_stock(low_stock)
    transaction.on_commit(send)


def checkout(customer, order_type, payment_method='cash', address=None, notes='', special_instructions='',
             source='web'):
    """
    Turn the customer's cart into an order.

    ``address`` is a dict with ``street``, ``city``, ``state``, ``hostel_room``
    and ``landmark``; it is required for delivery orders.
    """
    cart = get_or_create_cart(customer)
    if not cart.items.exists():
        raise BusinessRuleError('Cart is empty', code='cart_empty')

    validation = validate_cart(cart)
    if not validation['is_valid']:
        raise BusinessRuleError(
            'Your cart changed since you last viewed it. Please review it and try again',
            code='cart_invalid',
            extra={'issues': validation['issues']}
        )

    address = address or {}
    if order_type == Order.TYPE_DELIVERY and not address.get('street'):
        raise BusinessRuleError('Delivery address is required for delivery orders', code='address_required')

    with transaction.atomic():
        order = Order.objects.create(
            customer=customer,
            customer_name=customer.full_name,
            customer_whatsapp=customer.whatsapp_number,
            customer_call=customer.call_number,
            customer_email=customer.email,
            order_type=order_type,
            payment_method=payment_method,
            delivery_street=address.get('street', ''),
            delivery_city=address.get('city', ''),
            delivery_state=address.get('state', ''),
            hostel_room=address.get('hostel_room', ''),
            landmark=address.get('landmark', ''),
            notes=notes or '',
            special_instructions=special_instructions or '',
            source=source,
        )
        lines = [(item.unit, item.quantity) for item in cart.items.select_related('unit')]
        low_stock = _sell_lines(order, lines, customer)
        _finalize_totals(order)
        _add_history(order, Order.STATUS_PENDING, customer, 'Order placed')

        cart.items.all().delete()
        cart.touch()

        User.objects.filter(pk=customer.pk).update(
            total_orders=F('total_orders') + 1,
            total_spent=F('total_spent') + order.total_amount,
            last_order_date=timezone.now(),
        )

    logger.info(f"Order {order.order_number} placed by customer {customer.id} for {order.total_amount}")
    _after_commit_notifications(order, low_stock)
    return order


def create_walk_in_order(staff_user, customer_name, lines, payment_method='cash', customer_whatsapp='',
                         customer_call='', customer_email='', notes='', payment_reference=''):
    """Counter sale: stock is taken and payment recorded immediately"""
    if not lines:
        raise BusinessRuleError('At least one item is required', code='no_items')

    with transaction.atomic():
        now = timezone.now()
        order = Order.objects.create(
            customer=None,
            customer_name=customer_name,
            customer_whatsapp=customer_whatsapp or '',
            customer_call=customer_call or '',
            customer_email=customer_email or '',
            order_type=Order.TYPE_WALK_IN,
            source='walk-in',
            status=Order.STATUS_CONFIRMED,
            payment_method=payment_method,
            payment_status=Order.PAYMENT_PAID,
            payment_date=now,
            payment_reference=payment_reference or '',
            handled_by=staff_user,
            notes=notes or '',
        )
        low_stock = _sell_lines(order, lines, staff_user)
        _finalize_totals(order)
        order.estimated_ready = now + timedelta(minutes=order.estimated_prep_time)
        order.save(update_fields=['estimated_ready'])
        _add_history(order, Order.STATUS_CONFIRMED, staff_user, 'Walk-in order')

    logger.info(f"Walk-in order {order.order_number} created by staff {staff_user.id}")
    if low_stock:
        transaction.on_commit(lambda: notifications.notify_low_stock(low_stock))
    return order


def change_status(order, new_status, user, notes=''):
    """Move an order along the workflow and apply the side effects of the new status"""
    if new_status == Order.STATUS_CANCELLED:
        return cancel_order(order, user, notes)
    if new_status == Order.STATUS_REFUNDED:
        raise InvalidStatusTransition('Use the refund operation to refund an order')

    allowed = allowed_transitions(order)
    if new_status not in allowed:
        if new_status == Order.STATUS_OUT_FOR_DELIVERY and order.order_type != Order.TYPE_DELIVERY:
            message = 'Only delivery orders can go out for delivery'
        else:
            message = f"Cannot change order status from {order.status} to {new_status}"
        raise InvalidStatusTransition(message, extra={'allowed_statuses': allowed})

    now = timezone.now()
    with transaction.atomic():
        old_status = order.status
        order.status = new_status
        if user and user.is_staff_role:
            order.handled_by = user

        if new_status == Order.STATUS_CONFIRMED:
            if not order.estimated_ready:
                order.estimated_ready = now + timedelta(minutes=order.estimated_prep_time)
        elif new_status == Order.STATUS_READY:
            order.actual_ready = now
            if order.order_type == Order.TYPE_DELIVERY and not order.estimated_delivery:
                order.estimated_delivery = now + timedelta(minutes=30)
        elif new_status == Order.STATUS_OUT_FOR_DELIVERY:
            order.delivered_by = order.delivered_by or user
        elif new_status == Order.STATUS_DELIVERED:
            order.actual_delivery = now
            if order.order_type == Order.TYPE_DELIVERY:
                order.delivered_by = order.delivered_by or user
            if order.payment_method == 'cash' and order.payment_status == Order.PAYMENT_PENDING:
                order.payment_status = Order.PAYMENT_PAID
                order.payment_date = now

        order.save()
        _add_history(order, new_status, user, notes)

    logger.info(f"Order {order.order_number} status {old_status} -> {new_status}")
    transaction.on_commit(lambda: notifications.notify_order_status(order, notes))
    return order


def cancel_order(order, user, reason=''):
    """Cancel an order and put its stock back"""
    with transaction.atomic():
        _lock_order(order)
        if not order.can_be_cancelled:
            raise InvalidStatusTransition(f'Order cannot be cancelled in status {order.status}')

        for item in order.items.select_related('unit'):
            if item.unit is None:
                logger.warning(f"Order {order.order_number}: unit for '{item.product_name}' no longer exists, not restocked")
                continue
            record_movement(
                item.unit,
                item.quantity,
                'return',
                performed_by=user,
                reference=order.order_number,
                reference_type='order',
                reason=f'Order {order.order_number} cancelled',
                unit_cost=item.unit_cost,
                source='order',
                is_system_generated=True,
                quality_status='returned',
            )

        order.status = Order.STATUS_CANCELLED
        order.cancellation_date = timezone.now()
        order.cancelled_by = user if user and user.is_authenticated else None
        order.cancellation_reason = reason or ''
        order.save()
        _add_history(order, Order.STATUS_CANCELLED, user, reason)

    logger.info(f"Order {order.order_number} cancelled by user {user.id if user else None}")
    transaction.on_commit(lambda: notifications.notify_order_status(order, reason))
    return order


def assign_order(order, staff_user, assigned_by):
    if not staff_user.is_active or not staff_user.is_staff_role:
        raise BusinessRuleError('Orders can only be assigned to active staff', code='invalid_assignee')
    if order.status not in Order.ACTIVE_STATUSES:
        raise BusinessRuleError(f'Cannot assign an order in status {order.status}', code='order_closed')

    order.handled_by = staff_user
    order.save(update_fields=['handled_by', 'updated_at'])
    _add_history(order, order.status, assigned_by, f'Assigned to {staff_user.full_name}')
    transaction.on_commit(lambda: notifications.notify_staff_assignment(order, staff_user))
    return order


def record_payment(order, amount, payment_method=None, reference='', user=None):
    """Staff-side payment capture; the amount must cover the order total"""
    if order.payment_status == Order.PAYMENT_PAID:
        raise BusinessRuleError('Order is already paid', code='already_paid')
    if order.status in (Order.STATUS_CANCELLED, Order.STATUS_REFUNDED):
        raise BusinessRuleError(f'Cannot take payment for a {order.status} order', code='order_closed')
    if amount < order.total_amount:
        raise BusinessRuleError(
            f'Amount {amount} does not cover the order total {order.total_amount}',
            code='insufficient_amount'
        )

    order.payment_status = Order.PAYMENT_PAID
    order.payment_date = timezone.now()
    if payment_method:
        order.payment_method = payment_method
    if reference:
        order.payment_reference = reference
    if user and user.is_staff_role and not order.handled_by_id:
        order.handled_by = user
    order.save()
    _add_history(order, order.status, user, f'Payment of {amount} received')
    logger.info(f"Payment recorded for order {order.order_number}: {amount}")
    return order


def refund_order(order, amount, reason, user):
    """
    Refund all or part of a delivered, paid order.

    A refund that brings the refunded total up to the order total moves the
    order to ``refunded``; anything less marks it partially refunded.
    """
    if amount <= 0:
        raise BusinessRuleError('Refund amount must be greater than 0', code='invalid_amount')

    with transaction.atomic():
        _lock_order(order)
        if not order.can_be_refunded:
            raise BusinessRuleError('Only delivered, paid orders can be refunded', code='not_refundable')
        refundable = order.total_amount - order.refund_amount
        if amount > refundable:
            raise BusinessRuleError(
                f'Refund amount cannot exceed {refundable}',
                code='refund_exceeds_total',
                extra={'refundable': float(refundable)}
            )

        order.refund_amount += amount
        order.refund_reason = reason
        order.refund_date = timezone.now()
        order.refunded_by = user
        if order.refund_amount >= order.total_amount:
            order.status = Order.STATUS_REFUNDED
            order.payment_status = Order.PAYMENT_REFUNDED
        else:
            order.payment_status = Order.PAYMENT_PARTIALLY_REFUNDED
        order.save()
        _add_history(order, order.status, user, f'Refund of {amount}: {reason}')

    logger.info(f"Order {order.order_number} refunded {amount} (total refunded {order.refund_amount})")
    return order


def rate_order(order, rating, review=''):
    if order.status != Order.STATUS_DELIVERED:
        raise BusinessRuleError('Only delivered orders can be rated', code='not_delivered')
    if order.rating:
        raise BusinessRuleError('Order has already been rated', code='already_rated')
    order.rating = rating
    order.review = review or ''
    order.review_date = timezone.now()
    order.save(update_fields=['rating', 'review', 'review_date', 'updated_at'])
    return order
