"""Outbound customer/staff notifications over Django's mail backend"""
import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


def send_email(to, subject, body):
    """Send a plain-text email; delivery failures are logged, never raised"""
    recipients = [to] if isinstance(to, str) else [address for address in to if address]
    if not recipients:
        logger.debug(f"Email '{subject}' skipped: no recipients")
        return False
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, recipients, fail_silently=False)
        logger.info(f"Email '{subject}' sent to {', '.join(recipients)}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email '{subject}' to {recipients}: {str(e)}")
        return False


def send_registration_email(user):
    return send_email(
        user.email,
        'Welcome to SalesHostel',
        f"Hi {user.first_name},\n\nYour {user.get_role_display().lower()} account has been created.",
    )


def send_password_reset(user, uid, token):
    reset_url = f"{settings.FRONTEND_URL}/reset-password?uid={uid}&token={token}"
    return send_email(
        user.email,
        'Reset your SalesHostel password',
        f"Hi {user.first_name},\n\nUse the link below to choose a new password:\n{reset_url}\n",
    )


def send_order_confirmation(order):
    return send_email(
        order.customer_email,
        f"Order {order.order_number} received",
        f"Hi {order.customer_name},\n\nWe received your order {order.order_number} "
        f"totalling {order.total_amount} {settings.SALESHOSTEL['CURRENCY']}.",
    )


def notify_order_status(order, notes=''):
    body = f"Your order {order.order_number} is now {order.get_status_display()}."
    if notes:
        body += f"\n\n{notes}"
    return send_email(order.customer_email, f"Order {order.order_number} update", body)


def notify_staff_assignment(order, staff_user):
    return send_email(
        staff_user.email,
        f"Order {order.order_number} assigned to you",
        f"Order {order.order_number} ({order.get_order_type_display()}) has been assigned to you.",
    )


def notify_low_stock(units):
    """Alert admins about units at or below their minimum level"""
    from .models import User

    if not units:
        return False
    admins = list(User.objects.filter(role=User.ROLE_ADMIN, is_active=True).values_list('email', flat=True))
    lines = [
        f"- {unit.product.name} ({unit.unit_type}): {unit.stock_quantity} left, minimum {unit.min_stock_level}"
        for unit in units
    ]
    return send_email(admins, 'Low stock alert', 'The following items need restocking:\n' + '\n'.join(lines))
