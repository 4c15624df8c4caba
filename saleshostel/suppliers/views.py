import logging
from datetime import timedelta

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Avg, Count, Q, Sum
from django.shortcuts import get_object_or_404
from django.utils import timezone
from saleshostel.core.exceptions import BusinessRuleError
from saleshostel.core.permissions import IsAdminRole, IsSupplierRole
from saleshostel.core.utils import create_audit_log, paginate, parse_id_param
from . import services
from .models import SupplierProfile, Supply
from .serializers import (
    SupplierProfileSerializer, SupplierSelfProfileSerializer, SupplierProfileCreateSerializer, SupplySerializer
)

logger = logging.getLogger(__name__)

PERIOD_DAYS = {'7d': 7, '30d': 30, '90d': 90, '1y': 365}


def _period_start(request):
    period = request.query_params.get('period', '30d')
    if period not in PERIOD_DAYS:
        period = '30d'
    return period, timezone.now() - timedelta(days=PERIOD_DAYS[period])


# Supplier
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsSupplierRole])
def supplier_supplies(request):
    if request.method == 'GET':
        supplies = Supply.objects.filter(supplier=request.user).select_related('received_by')
        supply_status = request.query_params.get('status')
        if supply_status:
            supplies = supplies.filter(status=supply_status)
        return Response(paginate(supplies, request, SupplySerializer, default_limit=10))

    serializer = SupplySerializer(data=request.data)
    if serializer.is_valid():
        supply = serializer.save(supplier=request.user)
        logger.info(f"Supply {supply.id} submitted by supplier {request.user.id}")
        return Response(SupplySerializer(supply).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated, IsSupplierRole])
def supplier_supply_detail(request, pk):
    supply = get_object_or_404(Supply, pk=pk, supplier=request.user)

    if request.method == 'GET':
        return Response(SupplySerializer(supply).data)

    if supply.status != Supply.STATUS_PENDING:
        raise BusinessRuleError('Only pending supplies can be updated', code='supply_processed')
    serializer = SupplySerializer(supply, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated, IsSupplierRole])
def supplier_profile(request):
    profile = services.get_or_create_profile(request.user)

    if request.method == 'GET':
        return Response(SupplierSelfProfileSerializer(profile).data)

    serializer = SupplierSelfProfileSerializer(profile, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSupplierRole])
def supplier_dashboard(request):
    from saleshostel.purchasing.models import PurchaseOrder

    supplies = Supply.objects.filter(supplier=request.user)
    supply_stats = supplies.aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(status=Supply.STATUS_PENDING)),
        received=Count('id', filter=Q(status=Supply.STATUS_RECEIVED)),
        cancelled=Count('id', filter=Q(status=Supply.STATUS_CANCELLED)),
        received_value=Sum('total_price', filter=Q(status=Supply.STATUS_RECEIVED)),
    )
    orders = PurchaseOrder.objects.filter(supplier=request.user)
    order_stats = orders.aggregate(
        total=Count('id'),
        awaiting_confirmation=Count('id', filter=Q(status=PurchaseOrder.STATUS_SENT)),
        open=Count('id', filter=Q(status__in=PurchaseOrder.OPEN_STATUSES)),
        total_value=Sum('total_amount', filter=~Q(status=PurchaseOrder.STATUS_CANCELLED)),
    )
    profile = services.get_or_create_profile(request.user)

    return Response({
        'profile': {
            'company_name': profile.company_name,
            'is_verified': profile.is_verified,
            'rating': profile.rating,
            'delivery_performance': profile.delivery_performance,
        },
        'supplies': {
            'total_supplies': supply_stats['total'],
            'pending_supplies': supply_stats['pending'],
            'received_supplies': supply_stats['received'],
            'cancelled_supplies': supply_stats['cancelled'],
            'total_earnings': float(supply_stats['received_value'] or 0),
        },
        'purchase_orders': {
            'total_orders': order_stats['total'],
            'awaiting_confirmation': order_stats['awaiting_confirmation'],
            'open_orders': order_stats['open'],
            'total_value': float(order_stats['total_value'] or 0),
        },
        'recent_supplies': SupplySerializer(supplies.order_by('-created_at')[:5], many=True).data,
        'recent_purchase_orders': [
            {
                'id': order.id,
                'order_number': order.order_number,
                'status': order.status,
                'total_amount': float(order.total_amount),
                'order_date': order.order_date,
            }
            for order in orders.order_by('-order_date')[:5]
        ],
    })


# Admin: supplier profiles
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_supplier_list_create(request):
    if request.method == 'GET':
        suppliers = SupplierProfile.objects.select_related('user', 'verified_by')
        search = request.query_params.get('search', '').strip()
        if search:
            suppliers = suppliers.filter(
                Q(company_name__icontains=search) |
                Q(contact_first_name__icontains=search) |
                Q(contact_last_name__icontains=search) |
                Q(contact_email__icontains=search)
            )
        verified = request.query_params.get('is_verified')
        if verified in ('true', 'false'):
            suppliers = suppliers.filter(is_verified=verified == 'true')
        active = request.query_params.get('status')
        if active in ('active', 'inactive'):
            suppliers = suppliers.filter(is_active=active == 'active')
        category = request.query_params.get('category')
        if category:
            suppliers = [s for s in suppliers if category in (s.supplied_categories or [])]

        data = paginate(suppliers, request, SupplierProfileSerializer, default_limit=10)
        data['stats'] = SupplierProfile.objects.aggregate(
            total_suppliers=Count('id'),
            active_suppliers=Count('id', filter=Q(is_active=True)),
            verified_suppliers=Count('id', filter=Q(is_verified=True)),
            average_rating=Avg('rating'),
        )
        return Response(data)

    serializer = SupplierProfileCreateSerializer(data=request.data)
    if serializer.is_valid():
        profile = serializer.save()
        create_audit_log(request, 'create', 'SupplierProfile', profile.id, object_name=profile.company_name)
        return Response(SupplierProfileSerializer(profile).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_supplier_detail(request, pk):
    profile = get_object_or_404(SupplierProfile.objects.select_related('user', 'verified_by'), pk=pk)

    if request.method == 'GET':
        data = SupplierProfileSerializer(profile).data
        data['recent_supplies'] = SupplySerializer(profile.user.supplies.all()[:10], many=True).data
        return Response(data)

    if request.method == 'DELETE':
        if profile.user.supplies.filter(status=Supply.STATUS_PENDING).exists():
            raise BusinessRuleError('Supplier has pending supplies', code='supplier_in_use')
        create_audit_log(request, 'delete', 'SupplierProfile', profile.id, object_name=profile.company_name)
        profile.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = SupplierProfileSerializer(profile, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        create_audit_log(request, 'update', 'SupplierProfile', profile.id, request.data,
                         object_name=profile.company_name)
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_supplier_verify(request, pk):
    profile = get_object_or_404(SupplierProfile, pk=pk)
    services.verify_supplier(profile, request.user)
    create_audit_log(request, 'supplier_verify', 'SupplierProfile', profile.id, object_name=profile.company_name)
    return Response(SupplierProfileSerializer(profile).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_supplier_performance(request, pk):
    profile = get_object_or_404(SupplierProfile, pk=pk)
    period, start = _period_start(request)

    supplies = Supply.objects.filter(supplier=profile.user, supply_date__gte=start)
    totals = supplies.aggregate(
        total_supplies=Count('id'),
        received_supplies=Count('id', filter=Q(status=Supply.STATUS_RECEIVED)),
        total_value=Sum('total_price', filter=Q(status=Supply.STATUS_RECEIVED)),
        average_supply_value=Avg('total_price'),
    )
    top_products = supplies.filter(status=Supply.STATUS_RECEIVED).values('product_name').annotate(
        total_quantity=Sum('number_of_quantity'), total_value=Sum('total_price')
    ).order_by('-total_value')[:5]

    return Response({
        'supplier': {
            'id': profile.id,
            'company_name': profile.company_name,
            'rating': profile.rating,
            'delivery_performance': profile.delivery_performance,
        },
        'performance': {
            'total_supplies': totals['total_supplies'],
            'received_supplies': totals['received_supplies'],
            'total_value': float(totals['total_value'] or 0),
            'average_supply_value': float(totals['average_supply_value'] or 0),
        },
        'top_products': [
            {
                'product_name': row['product_name'],
                'total_quantity': row['total_quantity'],
                'total_value': float(row['total_value'] or 0),
            }
            for row in top_products
        ],
        'period': period,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_supplier_analytics(request):
    period, start = _period_start(request)
    overview = SupplierProfile.objects.aggregate(
        total_suppliers=Count('id'),
        active_suppliers=Count('id', filter=Q(is_active=True)),
        verified_suppliers=Count('id', filter=Q(is_verified=True)),
        average_rating=Avg('rating'),
    )
    supplies = Supply.objects.filter(supply_date__gte=start)
    supply_totals = supplies.aggregate(total_supplies=Count('id'), total_value=Sum('total_price'))
    top_suppliers = supplies.values('supplier', 'supplier__supplier_profile__company_name').annotate(
        total_supplies=Count('id'), total_value=Sum('total_price')
    ).order_by('-total_value')[:10]

    return Response({
        'period': period,
        'overview': {
            **overview,
            'average_rating': float(overview['average_rating'] or 0),
            'total_supplies': supply_totals['total_supplies'],
            'total_supply_value': float(supply_totals['total_value'] or 0),
        },
        'top_suppliers': [
            {
                'supplier_id': row['supplier'],
                'company_name': row['supplier__supplier_profile__company_name'],
                'total_supplies': row['total_supplies'],
                'total_value': float(row['total_value'] or 0),
            }
            for row in top_suppliers
        ],
    })


# Admin: supplies
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_supply_list(request):
    supplies = Supply.objects.select_related('supplier', 'received_by')
    supply_status = request.query_params.get('status')
    if supply_status:
        supplies = supplies.filter(status=supply_status)
    supplier = parse_id_param(request, 'supplier')
    if supplier:
        supplies = supplies.filter(supplier_id=supplier)
    return Response(paginate(supplies, request, SupplySerializer, default_limit=10))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_supply_detail(request, pk):
    supply = get_object_or_404(Supply.objects.select_related('supplier', 'received_by'), pk=pk)
    return Response(SupplySerializer(supply).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_supply_receive(request, pk):
    supply = get_object_or_404(Supply, pk=pk)
    supply, movement = services.receive_supply(supply, request.user)
    create_audit_log(
        request=request,
        action='supply_receive',
        model_name='Supply',
        object_id=str(supply.id),
        object_name=supply.product_name,
        object_reference=f"SUP-{supply.id}",
        changes={'quantity': supply.number_of_quantity, 'unit_type': supply.unit_type}
    )
    return Response({
        'supply': SupplySerializer(supply).data,
        'stock': {
            'unit_id': movement.unit_id,
            'product_name': movement.product_name,
            'unit_type': movement.unit_type,
            'previous_stock': movement.quantity_before,
            'new_stock': movement.quantity_after,
        },
        'movement_id': movement.id,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_supply_cancel(request, pk):
    supply = get_object_or_404(Supply, pk=pk)
    services.cancel_supply(supply, request.user)
    create_audit_log(request, 'supply_cancel', 'Supply', supply.id, object_name=supply.product_name,
                     object_reference=f"SUP-{supply.id}")
    return Response(SupplySerializer(supply).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_supply_stats(request):
    return Response(services.supply_stats())
