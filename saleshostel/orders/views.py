import logging
from datetime import timedelta

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Avg, Case, Count, IntegerField, Q, Sum, Value, When
from django.db.models.functions import TruncDate
from django.shortcuts import get_object_or_404
from django.utils import timezone
from saleshostel.core.exceptions import BusinessRuleError
from saleshostel.core.permissions import IsAdminRole, IsCustomerRole, IsStaffRole
from saleshostel.core.utils import create_audit_log, paginate, parse_date_range
from . import services
from .filters import OrderFilter
from .models import Order
from .serializers import (
    OrderSerializer, OrderListSerializer, TrackingSerializer, CheckoutSerializer, StatusUpdateSerializer,
    CancelOrderSerializer, RateOrderSerializer, AssignOrderSerializer, RecordPaymentSerializer,
    RefundSerializer, WalkInOrderSerializer
)

logger = logging.getLogger(__name__)

User = get_user_model()

PRIORITY_RANK = Case(
    When(priority='urgent', then=Value(0)),
    When(priority='high', then=Value(1)),
    When(priority='normal', then=Value(2)),
    default=Value(3),
    output_field=IntegerField(),
)

PERIOD_DAYS = {'7d': 7, '30d': 30, '90d': 90}


def _order_queryset():
    return Order.objects.select_related('customer', 'handled_by').prefetch_related('items', 'status_history')


def _order_response(order, status_code=status.HTTP_200_OK):
    return Response(OrderSerializer(_order_queryset().get(pk=order.pk)).data, status=status_code)


def _status_counts(queryset):
    counts = dict(queryset.values_list('status').annotate(count=Count('id')).values_list('status', 'count'))
    return {value: counts.get(value, 0) for value, _ in Order.STATUS_CHOICES}


# Customer
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsCustomerRole])
def customer_orders(request):
    """List the customer's orders or check out the current cart"""
    if request.method == 'GET':
        orders = Order.objects.filter(customer=request.user).prefetch_related('items').order_by('-order_date')
        order_status = request.query_params.get('status')
        if order_status:
            orders = orders.filter(status=order_status)
        return Response(paginate(orders, request, OrderListSerializer, default_limit=10))

    serializer = CheckoutSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    order = services.checkout(
        request.user,
        order_type=data['order_type'],
        payment_method=data['payment_method'],
        address=data['address'],
        notes=data['notes'],
        special_instructions=data['special_instructions'],
        source=data['source'],
    )
    create_audit_log(
        request=request,
        action='order_create',
        model_name='Order',
        object_id=str(order.id),
        object_reference=order.order_number,
        changes={'total_amount': str(order.total_amount), 'order_type': order.order_type}
    )
    return _order_response(order, status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsCustomerRole])
def customer_order_detail(request, pk):
    order = get_object_or_404(_order_queryset(), pk=pk, customer=request.user)
    return Response(OrderSerializer(order).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsCustomerRole])
def customer_order_track(request, number):
    """Look up one of the customer's orders by order number or tracking number"""
    order = Order.objects.filter(
        Q(order_number=number) | Q(tracking_number=number), customer=request.user
    ).prefetch_related('status_history', 'items').first()
    if order is None:
        return Response({'success': False, 'message': 'Order not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(TrackingSerializer(order).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCustomerRole])
def customer_order_cancel(request, pk):
    order = get_object_or_404(Order, pk=pk, customer=request.user)
    serializer = CancelOrderSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if order.status not in services.CUSTOMER_CANCELLABLE:
        raise BusinessRuleError(
            'Orders can only be cancelled before preparation starts', code='not_cancellable'
        )
    services.cancel_order(order, request.user, serializer.validated_data['reason'] or 'Cancelled by customer')
    create_audit_log(request, 'order_cancel', 'Order', order.id,
                     {'reason': serializer.validated_data['reason']}, object_reference=order.order_number)
    return _order_response(order)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCustomerRole])
def customer_order_rate(request, pk):
    order = get_object_or_404(Order, pk=pk, customer=request.user)
    serializer = RateOrderSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    services.rate_order(order, serializer.validated_data['rating'], serializer.validated_data['review'])
    return _order_response(order)


# Staff
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def staff_orders(request):
    """Orders needing staff attention, most urgent first, with queue stats"""
    orders = Order.objects.select_related('handled_by').prefetch_related('items')
    if not request.query_params.get('status'):
        orders = orders.filter(status__in=Order.ACTIVE_STATUSES)
    orders = OrderFilter(request.query_params, queryset=orders).qs

    if request.query_params.get('assigned_to_me') == 'true':
        orders = orders.filter(handled_by=request.user)

    orders = orders.annotate(priority_rank=PRIORITY_RANK).order_by('priority_rank', 'order_date')
    data = paginate(orders, request, OrderListSerializer, default_limit=10)

    counts = _status_counts(Order.objects.all())
    data['stats'] = {
        'total_orders': sum(counts.values()),
        'pending_orders': counts[Order.STATUS_PENDING],
        'processing_orders': counts[Order.STATUS_PREPARING],
        'ready_orders': counts[Order.STATUS_READY],
        'urgent_orders': Order.objects.filter(priority='urgent', status__in=Order.ACTIVE_STATUSES).count(),
    }
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def staff_order_queue(request):
    active = Order.objects.select_related('customer').prefetch_related('items')
    urgent = active.filter(
        status__in=[Order.STATUS_PENDING, Order.STATUS_CONFIRMED]
    ).filter(Q(priority='urgent') | Q(is_urgent=True)).order_by('order_date')[:10]
    unassigned = active.filter(status=Order.STATUS_PENDING, handled_by__isnull=True).order_by('order_date')[:10]
    preparing = active.filter(status=Order.STATUS_PREPARING, handled_by=request.user).order_by('order_date')[:10]
    return Response({
        'urgent_orders': OrderListSerializer(urgent, many=True).data,
        'pending_orders': OrderListSerializer(unassigned, many=True).data,
        'preparing_orders': OrderListSerializer(preparing, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def staff_order_detail(request, pk):
    order = get_object_or_404(_order_queryset(), pk=pk)
    data = OrderSerializer(order).data
    data['allowed_statuses'] = services.allowed_transitions(order)
    return Response(data)


@api_view(['PATCH', 'POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def order_update_status(request, pk):
    """Shared by staff and admin back-office"""
    order = get_object_or_404(Order, pk=pk)
    serializer = StatusUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_status = order.status
    new_status = serializer.validated_data['status']
    services.change_status(order, new_status, request.user, serializer.validated_data['notes'])
    create_audit_log(
        request=request,
        action='order_cancel' if new_status == Order.STATUS_CANCELLED else 'order_status',
        model_name='Order',
        object_id=str(order.id),
        object_reference=order.order_number,
        changes={'status': {'old': old_status, 'new': new_status}}
    )
    return _order_response(order)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def staff_order_assign(request, pk):
    order = get_object_or_404(Order, pk=pk)
    serializer = AssignOrderSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    staff_id = serializer.validated_data.get('staff_id')
    assignee = get_object_or_404(User, pk=staff_id) if staff_id else request.user
    services.assign_order(order, assignee, request.user)
    create_audit_log(request, 'order_assign', 'Order', order.id,
                     {'handled_by': assignee.id}, object_reference=order.order_number)
    return _order_response(order)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def staff_order_payment(request, pk):
    order = get_object_or_404(Order, pk=pk)
    serializer = RecordPaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    services.record_payment(order, data['amount'], data.get('payment_method'), data['reference'], request.user)
    create_audit_log(request, 'payment_add', 'Order', order.id,
                     {'amount': str(data['amount']), 'payment_method': order.payment_method},
                     object_reference=order.order_number)
    return _order_response(order)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def staff_walk_in_order(request):
    serializer = WalkInOrderSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    order = services.create_walk_in_order(
        request.user,
        customer_name=data['customer_name'],
        lines=[(line['unit'], line['quantity']) for line in data['items']],
        payment_method=data['payment_method'],
        customer_whatsapp=data['customer_whatsapp'],
        customer_call=data['customer_call'],
        customer_email=data['customer_email'],
        notes=data['notes'],
        payment_reference=data['payment_reference'],
    )
    create_audit_log(request, 'order_create', 'Order', order.id,
                     {'total_amount': str(order.total_amount), 'order_type': order.order_type},
                     object_reference=order.order_number)
    return _order_response(order, status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def staff_performance(request):
    period = request.query_params.get('period', '30d')
    days = PERIOD_DAYS.get(period, 30)
    end = timezone.now()
    start = end - timedelta(days=days)

    orders = Order.objects.filter(handled_by=request.user, order_date__gte=start, order_date__lte=end)
    totals = orders.aggregate(
        total_orders=Count('id'),
        total_revenue=Sum('total_amount'),
        average_order_value=Avg('total_amount'),
        completed_orders=Count('id', filter=Q(status=Order.STATUS_DELIVERED)),
        cancelled_orders=Count('id', filter=Q(status=Order.STATUS_CANCELLED)),
    )
    total_orders = totals['total_orders']
    daily = orders.annotate(day=TruncDate('order_date')).values('day').annotate(
        orders=Count('id'), revenue=Sum('total_amount')
    ).order_by('day')

    return Response({
        'period': period,
        'performance': {
            'total_orders': total_orders,
            'total_revenue': float(totals['total_revenue'] or 0),
            'average_order_value': float(totals['average_order_value'] or 0),
            'completed_orders': totals['completed_orders'],
            'cancelled_orders': totals['cancelled_orders'],
            'completion_rate': round(totals['completed_orders'] / total_orders * 100, 2) if total_orders else 0,
        },
        'daily_trend': [
            {'date': row['day'].isoformat(), 'orders': row['orders'], 'revenue': float(row['revenue'] or 0)}
            for row in daily
        ],
    })


# Admin
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_orders(request):
    orders = OrderFilter(
        request.query_params,
        queryset=Order.objects.select_related('handled_by').prefetch_related('items')
    ).qs.order_by('-order_date')
    return Response(paginate(orders, request, OrderListSerializer, default_limit=20))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_order_detail(request, pk):
    order = get_object_or_404(_order_queryset(), pk=pk)
    data = OrderSerializer(order).data
    data['allowed_statuses'] = services.allowed_transitions(order)
    data['payments'] = [
        {'reference': p.reference, 'provider': p.provider, 'status': p.status, 'amount': float(p.amount)}
        for p in order.payments.all()
    ]
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_order_refund(request, pk):
    from saleshostel.payments.services import refund_gateway_payment

    order = get_object_or_404(Order, pk=pk)
    serializer = RefundSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    amount = serializer.validated_data['amount']
    reason = serializer.validated_data['reason']
    # The order is validated and locked before the gateway is called; a gateway
    # failure rolls the order back
    with transaction.atomic():
        services.refund_order(order, amount, reason, request.user)
        refund_gateway_payment(order, amount, reason)
    create_audit_log(request, 'refund', 'Order', order.id,
                     {'amount': str(amount), 'reason': reason}, object_reference=order.order_number)
    return _order_response(order)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_order_analytics(request):
    """Order counts, revenue and breakdowns for a date range (default last 30 days)"""
    date_from, date_to = parse_date_range(request, default_days=30)

    orders = Order.objects.filter(order_date__date__gte=date_from, order_date__date__lte=date_to)
    revenue_orders = orders.exclude(status__in=[Order.STATUS_CANCELLED, Order.STATUS_REFUNDED])
    totals = revenue_orders.aggregate(revenue=Sum('total_amount'), average=Avg('total_amount'))

    by_type = revenue_orders.values('order_type').annotate(count=Count('id'), revenue=Sum('total_amount'))
    by_payment = revenue_orders.values('payment_method').annotate(count=Count('id'), revenue=Sum('total_amount'))

    return Response({
        'date_from': date_from.isoformat(),
        'date_to': date_to.isoformat(),
        'total_orders': orders.count(),
        'status_counts': _status_counts(orders),
        'total_revenue': float(totals['revenue'] or 0),
        'average_order_value': float(totals['average'] or 0),
        'total_refunded': float(orders.aggregate(total=Sum('refund_amount'))['total'] or 0),
        'by_order_type': [
            {'order_type': row['order_type'], 'count': row['count'], 'revenue': float(row['revenue'] or 0)}
            for row in by_type
        ],
        'by_payment_method': [
            {'payment_method': row['payment_method'], 'count': row['count'], 'revenue': float(row['revenue'] or 0)}
            for row in by_payment
        ],
    })
