"""Utility functions for audit logging and request helpers"""
import logging
import re
from datetime import datetime, timedelta

from django.db import IntegrityError, transaction
from django.utils import timezone
from .exceptions import BusinessRuleError
from .models import AuditLog

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r'^\+?[1-9]\d{1,14}$')
EMAIL_PATTERN = re.compile(r'^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$')


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def validate_phone(value):
    """Phone numbers are E.164-like; spaces, dashes and brackets are ignored"""
    if not value:
        return False
    cleaned = re.sub(r'[\s\-()]', '', str(value))
    return bool(PHONE_PATTERN.match(cleaned))


def validate_email_format(value):
    if not value:
        return False
    return bool(EMAIL_PATTERN.match(str(value).strip().lower()))


def parse_int(value, default):
    """Parse a query parameter as a positive int, falling back to default"""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def parse_id_param(request, name):
    """Optional numeric id query param; anything else is a 400"""
    value = (request.query_params.get(name) or '').strip()
    if not value:
        return None
    if not value.isdigit():
        raise BusinessRuleError(f'{name} must be a numeric id', code='invalid_parameter')
    return int(value)


def parse_date_param(request, name):
    """Optional YYYY-MM-DD query param"""
    value = (request.query_params.get(name) or '').strip()
    if not value:
        return None
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise BusinessRuleError(f'{name} must use the YYYY-MM-DD format', code='invalid_date')


def parse_date_range(request, default_days=None):
    """
    date_from/date_to query params as dates.

    With ``default_days`` a missing date_from falls back to that many days ago
    and a missing date_to to today; without it missing bounds stay None.
    """
    date_from = parse_date_param(request, 'date_from')
    date_to = parse_date_param(request, 'date_to')
    if default_days is not None:
        today = timezone.localdate()
        date_from = date_from or today - timedelta(days=default_days)
        date_to = date_to or today
    if date_from and date_to and date_from > date_to:
        raise BusinessRuleError('date_from must not be after date_to', code='invalid_date_range')
    return date_from, date_to


def save_with_sequence_number(instance, save, attempts=5):
    """
    Insert a row whose ``order_number`` comes from a daily sequence.

    Two writers can draw the same number at once; the unique constraint
    rejects the second insert, which then draws again.
    """
    for attempt in range(attempts):
        instance.order_number = instance.generate_order_number()
        try:
            with transaction.atomic():
                save()
            return
        except IntegrityError:
            if attempt == attempts - 1:
                raise
            logger.warning(f"{type(instance).__name__} number {instance.order_number} already taken, retrying")


def paginate(queryset, request, serializer_class, default_limit=15, context=None):
    """
    Paginate a queryset with page/limit query params and serialize the page.

    Returns the response envelope used by all list endpoints.
    """
    from django.core.paginator import Paginator

    page = parse_int(request.query_params.get('page'), 1)
    limit = min(parse_int(request.query_params.get('limit'), default_limit), 100)

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return {
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    }


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, order_status, supply_receive, etc.)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object
        object_reference: Reference identifier (e.g., order number)
    """
    try:
        audit_user = None
        if user:
            audit_user = user
        elif request and hasattr(request, 'user'):
            audit_user = request.user

        ip_address = get_client_ip(request) if request else None

        if not action or not model_name or not object_id:
            logger.warning(
                f"Audit log creation skipped: missing required fields "
                f"(action={action}, model_name={model_name}, object_id={object_id})"
            )
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=ip_address
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None
