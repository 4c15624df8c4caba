import json
import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.shortcuts import get_object_or_404
from saleshostel.core.exceptions import BusinessRuleError
from saleshostel.core.permissions import IsAdminRole, IsCustomerRole
from saleshostel.core.utils import create_audit_log, paginate
from saleshostel.orders.models import Order
from . import services
from .gateways import get_gateway, calculate_fees
from .models import Payment
from .serializers import PaymentSerializer, InitializePaymentSerializer, VerifyPaymentSerializer

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCustomerRole])
def payment_initialize(request):
    serializer = InitializePaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    order = get_object_or_404(Order, pk=data['order_id'], customer=request.user)
    payment = services.initialize_payment(order, data['provider'], data['redirect_url'])
    return Response({
        'payment': PaymentSerializer(payment).data,
        'checkout_url': payment.checkout_url,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCustomerRole])
def payment_verify(request):
    serializer = VerifyPaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    payment = get_object_or_404(
        Payment.objects.select_related('order'),
        reference=serializer.validated_data['reference'],
        order__customer=request.user
    )
    payment = services.verify_payment(payment, serializer.validated_data['transaction_id'], request.user)
    if payment.status != Payment.STATUS_SUCCESSFUL:
        raise BusinessRuleError('Payment could not be verified', code='payment_not_verified')

    create_audit_log(request, 'payment_verify', 'Payment', payment.id,
                     {'amount': str(payment.amount), 'provider': payment.provider},
                     object_reference=payment.order.order_number)
    return Response(PaymentSerializer(payment).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def payment_fees(request):
    """Fee estimate for an amount under each provider"""
    try:
        amount = float(request.query_params.get('amount', 0))
    except ValueError:
        raise BusinessRuleError('amount must be a number', code='invalid_amount')
    return Response({
        provider: float(calculate_fees(amount, provider)) for provider, _ in Payment.PROVIDER_CHOICES
    })


def _webhook(request, provider):
    gateway = get_gateway(provider)
    signature = request.META.get(gateway.signature_header, '')
    if not gateway.validate_webhook(signature, request.body):
        logger.warning(f"Rejected {provider} webhook with invalid signature")
        return Response({'success': False, 'message': 'Invalid signature'}, status=status.HTTP_401_UNAUTHORIZED)

    try:
        event = json.loads(request.body or b'{}')
    except ValueError:
        return Response({'success': False, 'message': 'Invalid payload'}, status=status.HTTP_400_BAD_REQUEST)

    services.handle_webhook(provider, event)
    return Response({'success': True})


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def paystack_webhook(request):
    return _webhook(request, Payment.PROVIDER_PAYSTACK)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def flutterwave_webhook(request):
    return _webhook(request, Payment.PROVIDER_FLUTTERWAVE)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_payment_list(request):
    payments = Payment.objects.select_related('order')
    for param in ('status', 'provider'):
        value = request.query_params.get(param)
        if value:
            payments = payments.filter(**{param: value})
    order_number = request.query_params.get('order')
    if order_number:
        payments = payments.filter(order__order_number=order_number)
    if request.query_params.get('requires_refund') == 'true':
        payments = payments.filter(requires_refund=True)
    return Response(paginate(payments, request, PaymentSerializer, default_limit=20))
