"""
Thin wrappers around the Flutterwave and Paystack hosted-checkout APIs.

Each operation is a single HTTP call through ``requests``; any transport
error or gateway rejection surfaces as ``PaymentGatewayError``.
"""
import hashlib
import hmac
import logging
import time
from decimal import Decimal, ROUND_HALF_UP

import requests
from django.conf import settings
from saleshostel.core.exceptions import PaymentGatewayError

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')


def generate_reference(order_id):
    return f"SH_{order_id}_{int(time.time() * 1000)}"


def calculate_fees(amount, provider='paystack'):
    """Estimated processing fee for local cards"""
    amount = Decimal(str(amount))
    if provider == 'paystack':
        fee = min(amount * Decimal('0.015') + Decimal('100'), Decimal('2000'))
    elif provider == 'flutterwave':
        fee = amount * Decimal('0.014')
    else:
        fee = Decimal('0')
    return fee.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class BaseGateway:
    name = None
    signature_header = None

    def __init__(self, config=None, timeout=None):
        gateways = getattr(settings, 'PAYMENT_GATEWAYS', {})
        self.config = config if config is not None else gateways.get(self.name.upper(), {})
        self.timeout = timeout or gateways.get('TIMEOUT', 30)
        self.base_url = self.config.get('BASE_URL', '').rstrip('/')
        self.secret_key = self.config.get('SECRET_KEY', '')

    def _headers(self):
        return {
            'Authorization': f"Bearer {self.secret_key}",
            'Content-Type': 'application/json',
        }

    def _request(self, method, path, action, payload=None):
        url = f"{self.base_url}{path}"
        try:
            response = requests.request(method, url, json=payload, headers=self._headers(), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"{self.name} {action} failed: {str(e)}")
            raise PaymentGatewayError(f"{self.name.capitalize()} {action} failed: {str(e)}")

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not response.ok:
            message = body.get('message') or response.reason or f"HTTP {response.status_code}"
            logger.error(f"{self.name} {action} rejected ({response.status_code}): {message}")
            raise PaymentGatewayError(f"{self.name.capitalize()} {action} failed: {message}")
        return body.get('data') or {}

    def _hmac(self, secret, payload, digestmod):
        if isinstance(payload, str):
            payload = payload.encode()
        return hmac.new((secret or '').encode(), payload, digestmod).hexdigest()


class FlutterwaveGateway(BaseGateway):
    name = 'flutterwave'
    signature_header = 'HTTP_VERIF_HASH'

    def initialize(self, reference, amount, customer_email, customer_name='', customer_phone='',
                   redirect_url='', currency='NGN', description='Payment for order'):
        data = self._request('POST', '/payments', 'payment initialization', {
            'tx_ref': reference,
            'amount': float(amount),
            'currency': currency,
            'redirect_url': redirect_url,
            'customer': {
                'email': customer_email,
                'phonenumber': customer_phone,
                'name': customer_name,
            },
            'customizations': {
                'title': 'SalesHostel Payment',
                'description': description,
            },
        })
        return {'checkout_url': data.get('link', ''), 'data': data}

    def verify(self, transaction_id):
        data = self._request('GET', f'/transactions/{transaction_id}/verify', 'payment verification')
        return {
            'verified': data.get('status') == 'successful',
            'reference': data.get('tx_ref'),
            'amount': Decimal(str(data.get('amount') or 0)),
            'currency': data.get('currency'),
            'status': data.get('status'),
            'transaction_id': str(data.get('id') or transaction_id),
            'data': data,
        }

    def refund(self, transaction_id, amount, reason=''):
        return self._request('POST', f'/transactions/{transaction_id}/refund', 'refund', {
            'amount': float(amount),
            'comments': reason,
        })

    def validate_webhook(self, signature, raw_body):
        expected = self._hmac(self.config.get('WEBHOOK_SECRET'), raw_body, hashlib.sha256)
        return bool(signature) and hmac.compare_digest(expected, signature)


class PaystackGateway(BaseGateway):
    name = 'paystack'
    signature_header = 'HTTP_X_PAYSTACK_SIGNATURE'

    def initialize(self, reference, amount, customer_email, customer_name='', customer_phone='',
                   redirect_url='', currency='NGN', description='Payment for order', order_id=None):
        # Paystack amounts are in kobo
        data = self._request('POST', '/transaction/initialize', 'payment initialization', {
            'reference': reference,
            'amount': int(Decimal(str(amount)) * 100),
            'email': customer_email,
            'currency': currency,
            'callback_url': redirect_url,
            'metadata': {
                'custom_fields': [
                    {'display_name': 'Customer Name', 'variable_name': 'customer_name', 'value': customer_name},
                    {'display_name': 'Order ID', 'variable_name': 'order_id', 'value': order_id},
                ]
            },
        })
        return {'checkout_url': data.get('authorization_url', ''), 'data': data}

    def verify(self, reference):
        data = self._request('GET', f'/transaction/verify/{reference}', 'payment verification')
        return {
            'verified': data.get('status') == 'success',
            'reference': data.get('reference') or reference,
            'amount': Decimal(str(data.get('amount') or 0)) / 100,
            'currency': data.get('currency'),
            'status': data.get('status'),
            'transaction_id': str(data.get('id') or ''),
            'data': data,
        }

    def refund(self, reference, amount, reason=''):
        return self._request('POST', '/refund', 'refund', {
            'transaction': reference,
            'amount': int(Decimal(str(amount)) * 100),
            'currency': 'NGN',
            'customer_note': reason,
            'merchant_note': reason,
        })

    def validate_webhook(self, signature, raw_body):
        expected = self._hmac(self.secret_key, raw_body, hashlib.sha512)
        return bool(signature) and hmac.compare_digest(expected, signature)


GATEWAYS = {
    FlutterwaveGateway.name: FlutterwaveGateway,
    PaystackGateway.name: PaystackGateway,
}


def get_gateway(provider):
    try:
        return GATEWAYS[provider]()
    except KeyError:
        raise PaymentGatewayError(f"Unsupported payment provider: {provider}")
