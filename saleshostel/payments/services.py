import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from saleshostel.core.exceptions import BusinessRuleError
from saleshostel.orders.models import Order
from saleshostel.orders.services import record_payment
from .gateways import get_gateway, generate_reference, calculate_fees
from .models import Payment

logger = logging.getLogger(__name__)


def initialize_payment(order, provider, redirect_url=''):
    """Open a hosted checkout for an unpaid order"""
    if order.payment_status == Order.PAYMENT_PAID:
        raise BusinessRuleError('Order is already paid', code='already_paid')
    if order.status in (Order.STATUS_CANCELLED, Order.STATUS_REFUNDED):
        raise BusinessRuleError(f'Cannot pay for a {order.status} order', code='order_closed')

    gateway = get_gateway(provider)
    reference = generate_reference(order.id)
    redirect_url = redirect_url or f"{settings.FRONTEND_URL}/orders/{order.id}/payment-callback"
    options = {
        'reference': reference,
        'amount': order.total_amount,
        'customer_email': order.customer_email,
        'customer_name': order.customer_name,
        'customer_phone': order.customer_whatsapp or order.customer_call,
        'redirect_url': redirect_url,
        'currency': settings.SALESHOSTEL['CURRENCY'],
        'description': f"Payment for order {order.order_number}",
    }
    if provider == Payment.PROVIDER_PAYSTACK:
        options['order_id'] = order.id
    result = gateway.initialize(**options)

    payment = Payment.objects.create(
        order=order,
        provider=provider,
        reference=reference,
        amount=order.total_amount,
        currency=settings.SALESHOSTEL['CURRENCY'],
        fee=calculate_fees(order.total_amount, provider),
        checkout_url=result['checkout_url'],
        gateway_response=result['data'],
    )
    logger.info(f"Payment {reference} initialized with {provider} for order {order.order_number}")
    return payment


def apply_verification(payment, result, user=None):
    """
    Record a gateway verification result against a payment.

    A verified payment that covers the order total marks the order paid.
    Money captured for an order that was cancelled or refunded in the meantime
    is still recorded, and the payment is flagged for refund instead.
    Already-successful payments are returned unchanged.
    """
    if payment.status == Payment.STATUS_SUCCESSFUL:
        return payment

    with transaction.atomic():
        payment = Payment.objects.select_for_update().select_related('order').get(pk=payment.pk)
        if payment.status == Payment.STATUS_SUCCESSFUL:
            return payment

        payment.gateway_response = result.get('data') or {}
        if result.get('transaction_id'):
            payment.transaction_id = result['transaction_id']

        order = payment.order
        if not result['verified'] or result['amount'] < order.total_amount:
            payment.status = Payment.STATUS_FAILED
            payment.save()
            logger.warning(
                f"Payment {payment.reference} not verified: status={result.get('status')} amount={result['amount']}"
            )
            return payment

        payment.status = Payment.STATUS_SUCCESSFUL
        payment.verified_at = timezone.now()
        if order.status in (Order.STATUS_CANCELLED, Order.STATUS_REFUNDED):
            payment.requires_refund = True
            payment.save()
            logger.error(
                f"Payment {payment.reference} captured {result['amount']} for {order.status} "
                f"order {order.order_number}; flagged for refund"
            )
            return payment
        payment.save()

        if order.payment_status != Order.PAYMENT_PAID:
            record_payment(order, result['amount'], 'card', payment.reference, user)

    logger.info(f"Payment {payment.reference} verified for order {payment.order.order_number}")
    return payment


def verify_payment(payment, transaction_id=None, user=None):
    gateway = get_gateway(payment.provider)
    if payment.provider == Payment.PROVIDER_FLUTTERWAVE:
        identifier = transaction_id or payment.transaction_id
        if not identifier:
            raise BusinessRuleError('transaction_id is required for Flutterwave payments', code='transaction_id_required')
    else:
        identifier = payment.reference
    result = gateway.verify(identifier)
    return apply_verification(payment, result, user)


def handle_webhook(provider, event):
    """Apply a signed gateway event; unknown references and events are ignored"""
    data = event.get('data') or {}
    name = event.get('event')

    if provider == Payment.PROVIDER_PAYSTACK and name == 'charge.success':
        reference = data.get('reference')
        result = {
            'verified': data.get('status') == 'success',
            'amount': _to_decimal(data.get('amount')) / 100,
            'status': data.get('status'),
            'transaction_id': str(data.get('id') or ''),
            'data': data,
        }
    elif provider == Payment.PROVIDER_FLUTTERWAVE and name == 'charge.completed':
        reference = data.get('tx_ref')
        result = {
            'verified': data.get('status') == 'successful',
            'amount': _to_decimal(data.get('amount')),
            'status': data.get('status'),
            'transaction_id': str(data.get('id') or ''),
            'data': data,
        }
    else:
        logger.info(f"Ignoring {provider} webhook event {name}")
        return None

    payment = Payment.objects.filter(reference=reference, provider=provider).first()
    if payment is None:
        logger.warning(f"{provider} webhook for unknown reference {reference}")
        return None
    return apply_verification(payment, result)


def refund_gateway_payment(order, amount, reason=''):
    """Refund through the gateway that took the payment; offline payments need no call"""
    if amount <= 0:
        raise BusinessRuleError('Refund amount must be greater than 0', code='invalid_amount')

    payment = (
        order.payments.select_for_update()
        .filter(status=Payment.STATUS_SUCCESSFUL)
        .order_by('-verified_at')
        .first()
    )
    if payment is None:
        return None

    gateway = get_gateway(payment.provider)
    identifier = payment.transaction_id if payment.provider == Payment.PROVIDER_FLUTTERWAVE else payment.reference
    gateway.refund(identifier, amount, reason)

    payment.refunded_amount += amount
    if payment.refunded_amount >= payment.amount:
        payment.status = Payment.STATUS_REFUNDED
    payment.save(update_fields=['refunded_amount', 'status', 'updated_at'])
    logger.info(f"Gateway refund of {amount} issued for payment {payment.reference}")
    return payment


def _to_decimal(value):
    try:
        return Decimal(str(value or 0))
    except InvalidOperation:
        return Decimal('0')
