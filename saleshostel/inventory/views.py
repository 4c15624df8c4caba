import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from saleshostel.core.permissions import IsAdminRole, IsStaffRole
from saleshostel.core.utils import create_audit_log, paginate, parse_date_range, parse_id_param
from . import services
from .models import StockMovement
from .serializers import (
    StockMovementSerializer, StockAdjustSerializer, StockCountSerializer,
    ReverseMovementSerializer, InventoryUnitSerializer
)

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def movement_list(request):
    """Stock movement history with product, unit, type, reference and date filters"""
    movements = StockMovement.objects.select_related('performed_by').all()

    params = request.query_params
    product_id = parse_id_param(request, 'product')
    if product_id:
        movements = movements.filter(product_id=product_id)
    unit_id = parse_id_param(request, 'unit')
    if unit_id:
        movements = movements.filter(unit_id=unit_id)
    if params.get('movement_type'):
        movements = movements.filter(movement_type=params['movement_type'])
    if params.get('reference_type'):
        movements = movements.filter(reference_type=params['reference_type'])
    if params.get('reference'):
        movements = movements.filter(reference__icontains=params['reference'])
    performed_by = parse_id_param(request, 'performed_by')
    if performed_by:
        movements = movements.filter(performed_by_id=performed_by)
    date_from, date_to = parse_date_range(request)
    if date_from:
        movements = movements.filter(movement_date__date__gte=date_from)
    if date_to:
        movements = movements.filter(movement_date__date__lte=date_to)

    return Response(paginate(movements, request, StockMovementSerializer, default_limit=20))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def movement_detail(request, pk):
    movement = get_object_or_404(StockMovement, pk=pk)
    return Response(StockMovementSerializer(movement).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def movement_reverse(request, pk):
    movement = get_object_or_404(StockMovement.objects.select_related('unit'), pk=pk)
    serializer = ReverseMovementSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    reversal = services.reverse_movement(movement, request.user, serializer.validated_data['reason'])
    create_audit_log(
        request=request,
        action='movement_reverse',
        model_name='StockMovement',
        object_id=str(movement.id),
        object_name=movement.product_name,
        object_reference=reversal.reference,
        changes={'reversal_id': reversal.id, 'reason': serializer.validated_data['reason']}
    )
    return Response(StockMovementSerializer(reversal).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def stock_adjust(request):
    """Add, remove or set the stock level of a unit"""
    serializer = StockAdjustSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    unit = data['unit']
    movement = services.adjust_stock(
        unit, data['adjustment_type'], data['quantity'], data['reason'], request.user, data['notes']
    )
    create_audit_log(
        request=request,
        action='stock_adjust',
        model_name='ProductUnit',
        object_id=str(unit.id),
        object_name=f"{unit.product.name} ({unit.unit_type})",
        object_reference=movement.reference,
        changes={
            'adjustment_type': data['adjustment_type'],
            'quantity': data['quantity'],
            'reason': data['reason'],
            'before': movement.quantity_before,
            'after': movement.quantity_after,
        }
    )
    return Response(StockMovementSerializer(movement).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def stock_count(request):
    serializer = StockCountSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    report = services.perform_stock_count(
        serializer.validated_data['counts'], request.user, serializer.validated_data['notes']
    )
    create_audit_log(
        request=request,
        action='stock_count',
        model_name='StockMovement',
        object_id=report['reference'],
        object_reference=report['reference'],
        changes={'items_counted': report['items_counted'], 'discrepancies': report['discrepancies']}
    )
    return Response(report)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def movement_summary(request):
    date_from, date_to = parse_date_range(request)
    summary = services.movement_summary(
        date_from=date_from,
        date_to=date_to,
        product_id=parse_id_param(request, 'product'),
        movement_type=request.query_params.get('movement_type'),
        performed_by=parse_id_param(request, 'performed_by'),
    )
    return Response({'summary': summary})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def low_stock_alerts(request):
    alerts = services.low_stock_alerts()
    return Response({'count': len(alerts), 'results': alerts})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def inventory_overview(request):
    units = services.inventory_overview_queryset(
        search=request.query_params.get('search'),
        category=request.query_params.get('category'),
        stock_status=request.query_params.get('stock_status'),
    )
    data = paginate(units, request, InventoryUnitSerializer, default_limit=20)
    data['summary'] = services.inventory_summary()
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def inventory_summary(request):
    return Response(services.inventory_summary())
