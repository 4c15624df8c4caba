"""
API error types and the project-wide DRF exception handler.

Every error response carries ``success: False`` and a human readable
``message`` so the storefront and back-office clients can render it directly.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class BusinessRuleError(APIException):
    """A request that is well-formed but violates a domain rule"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The requested operation is not allowed.'
    default_code = 'business_rule'

    def __init__(self, detail=None, code=None, extra=None):
        super().__init__(detail=detail, code=code)
        self.extra = extra or {}


class InsufficientStockError(BusinessRuleError):
    default_detail = 'Insufficient stock.'
    default_code = 'insufficient_stock'


class InvalidStatusTransition(BusinessRuleError):
    default_detail = 'Status change is not allowed.'
    default_code = 'invalid_status_transition'


class PaymentGatewayError(APIException):
    """The payment provider rejected the call or could not be reached"""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'Payment provider request failed.'
    default_code = 'payment_gateway_error'


def _first_message(detail):
    if isinstance(detail, list) and detail:
        return _first_message(detail[0])
    if isinstance(detail, dict) and detail:
        key, value = next(iter(detail.items()))
        message = _first_message(value)
        if key in ('non_field_errors', 'detail'):
            return message
        return f"{key}: {message}"
    return str(detail)


def api_exception_handler(exc, context):
    """Wrap DRF's handler so every error body has the same envelope"""
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}")
        return None

    detail = response.data
    body = {'success': False}
    if isinstance(detail, dict) and set(detail.keys()) == {'detail'}:
        body['message'] = str(detail['detail'])
    else:
        body['message'] = _first_message(detail)
        body['errors'] = detail

    code = getattr(exc, 'default_code', None)
    if isinstance(exc, APIException):
        codes = exc.get_codes()
        code = codes if isinstance(codes, str) else code
    if code:
        body['code'] = code
    if isinstance(exc, BusinessRuleError) and exc.extra:
        body.update(exc.extra)

    response.data = body
    return response
