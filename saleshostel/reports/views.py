import logging
from datetime import timedelta
from decimal import Decimal

from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.contrib.auth import get_user_model
from django.db.models import Avg, Count, DecimalField, F, Q, Sum
from django.db.models.functions import Coalesce, TruncDate
from django.utils import timezone
from saleshostel.catalog.models import Category, ProductUnit
from saleshostel.core.cache_utils import get_cached_dashboard_kpis, cache_dashboard_kpis
from saleshostel.core.permissions import IsAdminRole, IsStaffRole
from saleshostel.core.utils import parse_date_range, parse_int
from saleshostel.inventory.models import StockMovement
from saleshostel.inventory.services import inventory_summary, low_stock_alerts, low_stock_units
from saleshostel.orders.models import Order, OrderItem
from saleshostel.orders.serializers import OrderListSerializer
from saleshostel.suppliers.models import Supply

logger = logging.getLogger('saleshostel.reports')

User = get_user_model()

MONEY = DecimalField(max_digits=16, decimal_places=2)
ZERO = Decimal('0.00')


def _period(date_from, date_to):
    return {'from': date_from.isoformat(), 'to': date_to.isoformat()}


def _delivered_orders(date_from, date_to):
    return Order.objects.filter(
        status=Order.STATUS_DELIVERED,
        order_date__date__gte=date_from,
        order_date__date__lte=date_to,
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def sales_report(request):
    """Delivered-order sales for a date range"""
    date_from, date_to = parse_date_range(request, default_days=30)
    orders = _delivered_orders(date_from, date_to)
    items = OrderItem.objects.filter(order__in=orders)

    totals = orders.aggregate(
        total_orders=Count('id'),
        total_revenue=Coalesce(Sum('total_amount'), ZERO, output_field=MONEY),
        average_order_value=Coalesce(Avg('total_amount'), ZERO, output_field=MONEY),
    )
    total_items = items.aggregate(total=Coalesce(Sum('quantity'), 0))['total']

    daily = orders.annotate(date=TruncDate('order_date')).values('date').annotate(
        orders=Count('id'), revenue=Sum('total_amount')
    ).order_by('date')
    top_products = items.values('product_id', 'product_name').annotate(
        quantity_sold=Sum('quantity'), revenue=Sum('total_price')
    ).order_by('-revenue')[:10]
    by_payment = orders.values('payment_method').annotate(
        count=Count('id'), revenue=Sum('total_amount')
    ).order_by('-revenue')

    return Response({
        'period': _period(date_from, date_to),
        'summary': {
            'total_orders': totals['total_orders'],
            'total_revenue': float(totals['total_revenue']),
            'total_items_sold': total_items,
            'average_order_value': float(totals['average_order_value']),
        },
        'daily_trend': [
            {'date': row['date'].isoformat(), 'orders': row['orders'], 'revenue': float(row['revenue'] or 0)}
            for row in daily
        ],
        'top_products': [
            {
                'product_id': row['product_id'],
                'product_name': row['product_name'],
                'quantity_sold': row['quantity_sold'],
                'revenue': float(row['revenue'] or 0),
            }
            for row in top_products
        ],
        'payment_methods': [
            {'payment_method': row['payment_method'], 'count': row['count'], 'revenue': float(row['revenue'] or 0)}
            for row in by_payment
        ],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def inventory_report(request):
    categories = Category.objects.filter(products__is_active=True).annotate(
        product_count=Count('products', distinct=True),
        total_stock=Coalesce(Sum('products__units__stock_quantity'), 0),
    ).order_by('name')
    category_values = dict(
        ProductUnit.objects.filter(product__is_active=True).values('product__category_id').annotate(
            value=Sum(F('stock_quantity') * Coalesce(F('cost_price'), F('price')), output_field=MONEY)
        ).values_list('product__category_id', 'value')
    )
    since = timezone.now() - timedelta(days=30)
    movements = StockMovement.objects.filter(movement_date__gte=since).values('movement_type').annotate(
        count=Count('id'), quantity=Sum('quantity_changed')
    ).order_by('movement_type')

    return Response({
        'summary': inventory_summary(),
        'categories': [
            {
                'category_id': category.id,
                'category_name': category.name,
                'product_count': category.product_count,
                'total_stock': category.total_stock,
                'stock_value': float(category_values.get(category.id) or 0),
            }
            for category in categories
        ],
        'low_stock': low_stock_alerts(),
        'movements_last_30_days': [
            {'movement_type': row['movement_type'], 'count': row['count'], 'quantity': row['quantity']}
            for row in movements
        ],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def profit_loss_report(request):
    date_from, date_to = parse_date_range(request, default_days=30)
    orders = _delivered_orders(date_from, date_to)

    revenue = orders.aggregate(total=Coalesce(Sum('total_amount'), ZERO, output_field=MONEY))['total']
    cost_of_goods = OrderItem.objects.filter(order__in=orders).aggregate(
        total=Coalesce(
            Sum(F('quantity') * Coalesce(F('unit_cost'), F('unit__cost_price'), ZERO), output_field=MONEY),
            ZERO, output_field=MONEY
        )
    )['total']
    refunds = Order.objects.filter(
        refund_date__date__gte=date_from, refund_date__date__lte=date_to
    ).aggregate(total=Coalesce(Sum('refund_amount'), ZERO, output_field=MONEY))['total']
    supply_spend = Supply.objects.filter(
        status=Supply.STATUS_RECEIVED, received_at__date__gte=date_from, received_at__date__lte=date_to
    ).aggregate(total=Coalesce(Sum('total_price'), ZERO, output_field=MONEY))['total']

    gross_profit = revenue - cost_of_goods
    margin = round(float(gross_profit / revenue * 100), 2) if revenue else 0

    return Response({
        'period': _period(date_from, date_to),
        'revenue': float(revenue),
        'cost_of_goods_sold': float(cost_of_goods),
        'gross_profit': float(gross_profit),
        'gross_margin': margin,
        'refunds': float(refunds),
        'net_profit': float(gross_profit - refunds),
        'supply_spend': float(supply_spend),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def customer_report(request):
    date_from, date_to = parse_date_range(request, default_days=30)
    customers = User.objects.filter(role=User.ROLE_CUSTOMER)
    new_customers = customers.filter(date_joined__date__gte=date_from, date_joined__date__lte=date_to)

    top = _delivered_orders(date_from, date_to).filter(customer__isnull=False).values(
        'customer_id', 'customer__first_name', 'customer__last_name', 'customer__email'
    ).annotate(
        orders=Count('id'), total_spent=Sum('total_amount')
    ).order_by('-total_spent')[:10]

    return Response({
        'period': _period(date_from, date_to),
        'total_customers': customers.count(),
        'active_customers': customers.filter(is_active=True).count(),
        'new_customers': new_customers.count(),
        'repeat_customers': customers.filter(total_orders__gt=1).count(),
        'top_customers': [
            {
                'customer_id': row['customer_id'],
                'name': f"{row['customer__first_name']} {row['customer__last_name']}".strip(),
                'email': row['customer__email'],
                'orders': row['orders'],
                'total_spent': float(row['total_spent'] or 0),
            }
            for row in top
        ],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def product_performance_report(request):
    date_from, date_to = parse_date_range(request, default_days=30)
    limit = min(parse_int(request.query_params.get('limit'), 20), 100)
    rows = OrderItem.objects.filter(order__in=_delivered_orders(date_from, date_to)).values(
        'product_id', 'product_name'
    ).annotate(
        quantity_sold=Sum('quantity'),
        revenue=Sum('total_price'),
        order_count=Count('order', distinct=True),
    ).order_by('-revenue')[:limit]

    return Response({
        'period': _period(date_from, date_to),
        'products': [
            {
                'product_id': row['product_id'],
                'product_name': row['product_name'],
                'quantity_sold': row['quantity_sold'],
                'revenue': float(row['revenue'] or 0),
                'order_count': row['order_count'],
            }
            for row in rows
        ],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_dashboard(request):
    today = timezone.localdate()
    cached, cache_key = get_cached_dashboard_kpis(today)
    if cached is not None:
        return Response(cached)

    todays_orders = Order.objects.filter(order_date__date=today)
    revenue = todays_orders.exclude(
        status__in=[Order.STATUS_CANCELLED, Order.STATUS_REFUNDED]
    ).aggregate(total=Coalesce(Sum('total_amount'), ZERO, output_field=MONEY))['total']
    recent = Order.objects.prefetch_related('items').order_by('-order_date')[:5]

    data = {
        'date': today.isoformat(),
        'today_orders': todays_orders.count(),
        'today_revenue': float(revenue),
        'pending_orders': Order.objects.filter(status=Order.STATUS_PENDING).count(),
        'active_orders': Order.objects.filter(status__in=Order.ACTIVE_STATUSES).count(),
        'low_stock_count': low_stock_units().count(),
        'total_customers': User.objects.filter(role=User.ROLE_CUSTOMER, is_active=True).count(),
        'pending_supplies': Supply.objects.filter(status=Supply.STATUS_PENDING).count(),
        'recent_orders': OrderListSerializer(recent, many=True).data,
    }
    cache_dashboard_kpis(cache_key, data)
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def staff_dashboard(request):
    today = timezone.localdate()
    mine = Order.objects.filter(handled_by=request.user)
    queue = dict(
        Order.objects.filter(status__in=Order.ACTIVE_STATUSES).values_list('status').annotate(
            count=Count('id')
        ).values_list('status', 'count')
    )
    my_active = mine.filter(status__in=Order.ACTIVE_STATUSES).prefetch_related('items').order_by('order_date')[:10]

    return Response({
        'date': today.isoformat(),
        'my_orders_today': mine.filter(order_date__date=today).count(),
        'my_delivered_today': mine.filter(status=Order.STATUS_DELIVERED, actual_delivery__date=today).count(),
        'queue': {status: queue.get(status, 0) for status in Order.ACTIVE_STATUSES},
        'unassigned_orders': Order.objects.filter(
            status__in=Order.ACTIVE_STATUSES, handled_by__isnull=True
        ).count(),
        'low_stock_count': low_stock_units().count(),
        'my_active_orders': OrderListSerializer(my_active, many=True).data,
    })
