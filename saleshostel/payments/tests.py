"""
Test suite for the payments module
Tests: fee estimates, gateway initialization and verification, webhooks, gateway refunds
"""
import hashlib
import hmac
import json
from unittest.mock import patch, MagicMock

import requests
from django.test import TestCase, override_settings
from rest_framework import status
from decimal import Decimal
from saleshostel.core.exceptions import BusinessRuleError, PaymentGatewayError
from saleshostel.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from saleshostel.orders.models import Order
from saleshostel.orders.services import refund_order
from saleshostel.payments import services
from saleshostel.payments.gateways import calculate_fees, FlutterwaveGateway, PaystackGateway
from saleshostel.payments.models import Payment

GATEWAY_SETTINGS = {
    'FLUTTERWAVE': {
        'SECRET_KEY': 'FLWSECK_TEST',
        'WEBHOOK_SECRET': 'flw-hook-secret',
        'BASE_URL': 'https://api.flutterwave.test/v3',
    },
    'PAYSTACK': {
        'SECRET_KEY': 'sk_test_paystack',
        'BASE_URL': 'https://api.paystack.test',
    },
    'TIMEOUT': 5,
}


def gateway_response(data, ok=True, status_code=200, message='Approved'):
    response = MagicMock()
    response.ok = ok
    response.status_code = status_code
    response.reason = 'OK' if ok else 'Bad Request'
    response.json.return_value = {'status': 'success' if ok else 'error', 'message': message, 'data': data}
    return response


class FeeTests(TestCase):

    def test_paystack_fee_is_capped(self):
        self.assertEqual(calculate_fees(1000, 'paystack'), Decimal('115.00'))
        self.assertEqual(calculate_fees(500000, 'paystack'), Decimal('2000.00'))

    def test_flutterwave_fee(self):
        self.assertEqual(calculate_fees(1000, 'flutterwave'), Decimal('14.00'))

    def test_fees_endpoint_is_public(self):
        response = AuthenticatedAPIClient().get('/api/v1/payments/fees/?amount=1000')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'flutterwave': 14.0, 'paystack': 115.0})


@override_settings(PAYMENT_GATEWAYS=GATEWAY_SETTINGS)
@patch('saleshostel.payments.gateways.requests.request')
class GatewayTests(TestCase):

    def test_paystack_initialize_sends_kobo(self, mock_request):
        mock_request.return_value = gateway_response({'authorization_url': 'https://checkout.paystack.test/x'})
        result = PaystackGateway().initialize('SH_1_1', Decimal('1500.50'), 'buyer@example.com')

        self.assertEqual(result['checkout_url'], 'https://checkout.paystack.test/x')
        args, kwargs = mock_request.call_args
        self.assertEqual(args, ('POST', 'https://api.paystack.test/transaction/initialize'))
        self.assertEqual(kwargs['json']['amount'], 150050)
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer sk_test_paystack')
        self.assertEqual(kwargs['timeout'], 5)

    def test_flutterwave_verify(self, mock_request):
        mock_request.return_value = gateway_response({
            'id': 991, 'tx_ref': 'SH_1_1', 'status': 'successful', 'amount': 1500, 'currency': 'NGN'
        })
        result = FlutterwaveGateway().verify('991')
        self.assertTrue(result['verified'])
        self.assertEqual(result['amount'], Decimal('1500'))
        self.assertEqual(result['transaction_id'], '991')

    def test_rejection_raises_gateway_error(self, mock_request):
        mock_request.return_value = gateway_response({}, ok=False, status_code=400, message='Invalid key')
        with self.assertRaises(PaymentGatewayError) as ctx:
            PaystackGateway().verify('SH_1_1')
        self.assertIn('Invalid key', str(ctx.exception.detail))

    def test_network_error_raises_gateway_error(self, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError('connection refused')
        with self.assertRaises(PaymentGatewayError):
            PaystackGateway().verify('SH_1_1')


@override_settings(PAYMENT_GATEWAYS=GATEWAY_SETTINGS)
@patch('saleshostel.payments.gateways.requests.request')
class PaymentFlowTests(TestCase):

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.customer)
        self.order = TestDataFactory.create_order(
            self.customer, [(TestDataFactory.create_unit(price=Decimal('750.00')), 2)], payment_method='card'
        )

    def initialize(self, mock_request, provider='paystack'):
        mock_request.return_value = gateway_response({
            'authorization_url': 'https://checkout.paystack.test/abc',
            'link': 'https://checkout.flutterwave.test/abc',
        })
        response = self.client.post('/api/v1/payments/initialize/',
                                    {'order_id': self.order.id, 'provider': provider}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        return Payment.objects.get(reference=response.data['payment']['reference'])

    def test_initialize_creates_pending_payment(self, mock_request):
        payment = self.initialize(mock_request)
        self.assertEqual(payment.status, Payment.STATUS_PENDING)
        self.assertEqual(payment.amount, Decimal('1500.00'))
        self.assertEqual(payment.checkout_url, 'https://checkout.paystack.test/abc')
        self.assertTrue(payment.reference.startswith(f'SH_{self.order.id}_'))

    def test_cannot_pay_other_customers_order(self, mock_request):
        other = TestDataFactory.create_order(TestDataFactory.create_customer())
        response = self.client.post('/api/v1/payments/initialize/', {'order_id': other.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        mock_request.assert_not_called()

    def test_cannot_pay_paid_order(self, mock_request):
        self.order.payment_status = Order.PAYMENT_PAID
        self.order.save()
        response = self.client.post('/api/v1/payments/initialize/', {'order_id': self.order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'already_paid')

    def test_verify_marks_order_paid(self, mock_request):
        payment = self.initialize(mock_request)
        mock_request.return_value = gateway_response({
            'id': 5521, 'reference': payment.reference, 'status': 'success', 'amount': 150000, 'currency': 'NGN'
        })
        response = self.client.post('/api/v1/payments/verify/', {'reference': payment.reference}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'successful')

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PAID)
        self.assertEqual(self.order.payment_reference, payment.reference)

    def test_short_amount_fails_payment(self, mock_request):
        payment = self.initialize(mock_request)
        mock_request.return_value = gateway_response({
            'id': 5521, 'reference': payment.reference, 'status': 'success', 'amount': 100000
        })
        response = self.client.post('/api/v1/payments/verify/', {'reference': payment.reference}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'payment_not_verified')
        payment.refresh_from_db()
        self.assertEqual(payment.status, Payment.STATUS_FAILED)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PENDING)

    def test_flutterwave_verify_needs_transaction_id(self, mock_request):
        payment = self.initialize(mock_request, provider='flutterwave')
        response = self.client.post('/api/v1/payments/verify/', {'reference': payment.reference}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'transaction_id_required')

    def test_gateway_outage_is_502(self, mock_request):
        mock_request.side_effect = requests.exceptions.Timeout('timed out')
        response = self.client.post('/api/v1/payments/initialize/', {'order_id': self.order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertFalse(response.data['success'])
        self.assertFalse(Payment.objects.exists())

    def test_gateway_refund_after_verification(self, mock_request):
        payment = self.initialize(mock_request)
        mock_request.return_value = gateway_response({
            'id': 5521, 'reference': payment.reference, 'status': 'success', 'amount': 150000
        })
        services.verify_payment(payment)
        self.order.refresh_from_db()
        self.order.status = Order.STATUS_DELIVERED
        self.order.save()

        mock_request.return_value = gateway_response({'status': 'pending'})
        payment = services.refund_gateway_payment(self.order, Decimal('1500.00'), 'Spoilt')
        self.assertEqual(payment.status, Payment.STATUS_REFUNDED)
        self.assertEqual(mock_request.call_args[1]['json']['amount'], 150000)
        refund_order(self.order, Decimal('1500.00'), 'Spoilt', TestDataFactory.create_admin())
        self.assertEqual(self.order.status, Order.STATUS_REFUNDED)

    def test_customer_verification_leaves_order_for_staff(self, mock_request):
        payment = self.initialize(mock_request)
        mock_request.return_value = gateway_response({
            'id': 5521, 'reference': payment.reference, 'status': 'success', 'amount': 150000
        })
        response = self.client.post('/api/v1/payments/verify/', {'reference': payment.reference}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PAID)
        self.assertIsNone(self.order.handled_by)

        staff_client = AuthenticatedAPIClient()
        staff_client.authenticate_user(TestDataFactory.create_staff())
        response = staff_client.get('/api/v1/staff/orders/queue/')
        self.assertEqual([o['id'] for o in response.data['pending_orders']], [self.order.id])

    def test_verification_after_cancellation_is_flagged_for_refund(self, mock_request):
        payment = self.initialize(mock_request)
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_CANCELLED)
        mock_request.return_value = gateway_response({
            'id': 5521, 'reference': payment.reference, 'status': 'success', 'amount': 150000
        })
        response = self.client.post('/api/v1/payments/verify/', {'reference': payment.reference}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['requires_refund'])

        payment.refresh_from_db()
        self.assertEqual(payment.status, Payment.STATUS_SUCCESSFUL)
        self.assertEqual(payment.transaction_id, '5521')
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PENDING)

    def test_gateway_refund_rejects_non_positive_amount(self, mock_request):
        Payment.objects.create(order=self.order, provider='paystack', reference='SH_1_900',
                               amount=Decimal('1500.00'), status=Payment.STATUS_SUCCESSFUL)
        for amount in (Decimal('0.00'), Decimal('-100.00')):
            with self.assertRaises(BusinessRuleError) as ctx:
                services.refund_gateway_payment(self.order, amount, 'Spoilt')
            self.assertEqual(ctx.exception.get_codes(), 'invalid_amount')
        mock_request.assert_not_called()
        self.assertEqual(Payment.objects.get(reference='SH_1_900').refunded_amount, Decimal('0.00'))


@override_settings(PAYMENT_GATEWAYS=GATEWAY_SETTINGS)
class WebhookTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.order = TestDataFactory.create_order(
            TestDataFactory.create_customer(), [(TestDataFactory.create_unit(price=Decimal('500.00')), 1)]
        )
        self.payment = Payment.objects.create(order=self.order, provider='paystack', reference='SH_9_123',
                                              amount=Decimal('500.00'))

    def post_paystack(self, event, secret='sk_test_paystack'):
        body = json.dumps(event)
        signature = hmac.new(secret.encode(), body.encode(), hashlib.sha512).hexdigest()
        return self.client.post('/api/v1/payments/webhooks/paystack/', body, content_type='application/json',
                                HTTP_X_PAYSTACK_SIGNATURE=signature)

    def test_valid_paystack_webhook_marks_paid(self):
        response = self.post_paystack({
            'event': 'charge.success',
            'data': {'reference': 'SH_9_123', 'status': 'success', 'amount': 50000, 'id': 77},
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_SUCCESSFUL)
        self.assertEqual(self.payment.transaction_id, '77')
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PAID)

    def test_webhook_payment_leaves_order_unassigned(self):
        self.post_paystack({
            'event': 'charge.success',
            'data': {'reference': 'SH_9_123', 'status': 'success', 'amount': 50000, 'id': 77},
        })
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PAID)
        self.assertIsNone(self.order.handled_by)

    def test_charge_for_cancelled_order_is_recorded(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_CANCELLED)
        response = self.post_paystack({
            'event': 'charge.success',
            'data': {'reference': 'SH_9_123', 'status': 'success', 'amount': 50000, 'id': 77},
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_SUCCESSFUL)
        self.assertEqual(self.payment.transaction_id, '77')
        self.assertTrue(self.payment.requires_refund)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_CANCELLED)
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PENDING)

        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.get('/api/v1/admin/payments/?requires_refund=true')
        self.assertEqual([p['reference'] for p in response.data['results']], ['SH_9_123'])

    def test_bad_signature_rejected(self):
        response = self.post_paystack({'event': 'charge.success', 'data': {'reference': 'SH_9_123'}},
                                      secret='wrong')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_PENDING)

    def test_unknown_reference_ignored(self):
        response = self.post_paystack({
            'event': 'charge.success',
            'data': {'reference': 'SH_NOPE', 'status': 'success', 'amount': 50000},
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_flutterwave_webhook(self):
        Payment.objects.filter(pk=self.payment.pk).update(provider='flutterwave')
        body = json.dumps({
            'event': 'charge.completed',
            'data': {'tx_ref': 'SH_9_123', 'status': 'successful', 'amount': 500, 'id': 88},
        })
        signature = hmac.new(b'flw-hook-secret', body.encode(), hashlib.sha256).hexdigest()
        response = self.client.post('/api/v1/payments/webhooks/flutterwave/', body,
                                    content_type='application/json', HTTP_VERIF_HASH=signature)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_SUCCESSFUL)

    def test_admin_payment_list(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.get(f'/api/v1/admin/payments/?order={self.order.order_number}')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['reference'], 'SH_9_123')
