import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404
from saleshostel.core.exceptions import BusinessRuleError
from saleshostel.core.permissions import IsAdminRole, IsSupplierRole
from saleshostel.core.utils import create_audit_log, paginate, parse_date_range, parse_id_param
from . import services
from .models import PurchaseOrder
from .serializers import (
    PurchaseOrderSerializer, PurchaseOrderListSerializer, SupplierPurchaseOrderSerializer,
    PurchaseOrderWriteSerializer, AddPaymentSerializer, ReceiveItemsSerializer, ReasonSerializer,
    ExpectedDeliverySerializer
)

logger = logging.getLogger(__name__)


def _purchase_order_queryset():
    return PurchaseOrder.objects.select_related('supplier').prefetch_related('items', 'payments', 'status_history')


def _detail(purchase_order, serializer_class=PurchaseOrderSerializer, status_code=status.HTTP_200_OK):
    purchase_order = _purchase_order_queryset().get(pk=purchase_order.pk)
    return Response(serializer_class(purchase_order).data, status=status_code)


def _filter_purchase_orders(queryset, request):
    params = request.query_params
    po_status = params.get('status')
    if po_status:
        queryset = queryset.filter(status__in=[s.strip() for s in po_status.split(',') if s.strip()])
    payment_status = params.get('payment_status')
    if payment_status:
        queryset = queryset.filter(payment_status=payment_status)
    date_from, date_to = parse_date_range(request)
    if date_from:
        queryset = queryset.filter(order_date__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(order_date__date__lte=date_to)
    search = params.get('search', '').strip()
    if search:
        queryset = queryset.filter(Q(order_number__icontains=search) | Q(supplier_company_name__icontains=search))
    return queryset


# Admin
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_purchase_orders(request):
    if request.method == 'GET':
        orders = _filter_purchase_orders(PurchaseOrder.objects.prefetch_related('items'), request)
        supplier = parse_id_param(request, 'supplier')
        if supplier:
            orders = orders.filter(supplier_id=supplier)
        return Response(paginate(orders, request, PurchaseOrderListSerializer, default_limit=10))

    serializer = PurchaseOrderWriteSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = dict(serializer.validated_data)
    supplier = data.pop('supplier')
    items = data.pop('items')
    purchase_order = services.create_purchase_order(supplier, items, request.user, **data)
    create_audit_log(request, 'create', 'PurchaseOrder', purchase_order.id,
                     {'total_amount': str(purchase_order.total_amount)},
                     object_reference=purchase_order.order_number)
    return _detail(purchase_order, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_purchase_order_detail(request, pk):
    purchase_order = get_object_or_404(_purchase_order_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(PurchaseOrderSerializer(purchase_order).data)

    if request.method == 'DELETE':
        if purchase_order.status != PurchaseOrder.STATUS_DRAFT:
            raise BusinessRuleError('Only draft purchase orders can be deleted', code='not_draft')
        create_audit_log(request, 'delete', 'PurchaseOrder', purchase_order.id,
                         object_reference=purchase_order.order_number)
        purchase_order.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = PurchaseOrderWriteSerializer(purchase_order, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = dict(serializer.validated_data)
    items = data.pop('items', None)
    services.update_purchase_order(purchase_order, request.user, items=items, **data)
    create_audit_log(request, 'update', 'PurchaseOrder', purchase_order.id,
                     object_reference=purchase_order.order_number)
    return _detail(purchase_order)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_purchase_order_send(request, pk):
    purchase_order = get_object_or_404(PurchaseOrder, pk=pk)
    services.send_purchase_order(purchase_order, request.user)
    create_audit_log(request, 'status_change', 'PurchaseOrder', purchase_order.id,
                     {'status': PurchaseOrder.STATUS_SENT}, object_reference=purchase_order.order_number)
    return _detail(purchase_order)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_purchase_order_payment(request, pk):
    purchase_order = get_object_or_404(PurchaseOrder, pk=pk)
    serializer = AddPaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    services.add_payment(purchase_order, data['amount'], data['payment_method'], request.user,
                         data['reference'], data['notes'])
    create_audit_log(request, 'payment_add', 'PurchaseOrder', purchase_order.id,
                     {'amount': str(data['amount']), 'payment_method': data['payment_method']},
                     object_reference=purchase_order.order_number)
    return _detail(purchase_order)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_purchase_order_receive(request, pk):
    purchase_order = get_object_or_404(PurchaseOrder, pk=pk)
    serializer = ReceiveItemsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    purchase_order, movements = services.receive_items(
        purchase_order, serializer.validated_data['items'], request.user, serializer.validated_data['notes']
    )
    create_audit_log(request, 'purchase_receive', 'PurchaseOrder', purchase_order.id,
                     {'status': purchase_order.status, 'movements': [m.id for m in movements]},
                     object_reference=purchase_order.order_number)
    return _detail(purchase_order)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_purchase_order_complete(request, pk):
    purchase_order = get_object_or_404(PurchaseOrder, pk=pk)
    services.complete_purchase_order(purchase_order, request.user, request.data.get('notes', ''))
    create_audit_log(request, 'status_change', 'PurchaseOrder', purchase_order.id,
                     {'status': PurchaseOrder.STATUS_COMPLETED}, object_reference=purchase_order.order_number)
    return _detail(purchase_order)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_purchase_order_cancel(request, pk):
    purchase_order = get_object_or_404(PurchaseOrder, pk=pk)
    serializer = ReasonSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    services.cancel_purchase_order(purchase_order, request.user, serializer.validated_data['reason'])
    create_audit_log(request, 'status_change', 'PurchaseOrder', purchase_order.id,
                     {'status': PurchaseOrder.STATUS_CANCELLED, 'reason': serializer.validated_data['reason']},
                     object_reference=purchase_order.order_number)
    return _detail(purchase_order)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_purchase_order_statistics(request):
    date_from, date_to = parse_date_range(request)
    return Response(services.statistics(date_from, date_to))


# Supplier
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSupplierRole])
def supplier_purchase_orders(request):
    # Drafts are not visible to the supplier until sent
    orders = PurchaseOrder.objects.filter(supplier=request.user).exclude(status=PurchaseOrder.STATUS_DRAFT)
    orders = _filter_purchase_orders(orders.prefetch_related('items'), request)
    return Response(paginate(orders, request, PurchaseOrderListSerializer, default_limit=10))


def _supplier_order(request, pk):
    return get_object_or_404(
        PurchaseOrder.objects.exclude(status=PurchaseOrder.STATUS_DRAFT), pk=pk, supplier=request.user
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSupplierRole])
def supplier_purchase_order_detail(request, pk):
    return _detail(_supplier_order(request, pk), SupplierPurchaseOrderSerializer)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSupplierRole])
def supplier_purchase_order_confirm(request, pk):
    purchase_order = _supplier_order(request, pk)
    services.confirm_purchase_order(purchase_order, request.user, request.data.get('notes', ''))
    return _detail(purchase_order, SupplierPurchaseOrderSerializer)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSupplierRole])
def supplier_purchase_order_reject(request, pk):
    purchase_order = _supplier_order(request, pk)
    serializer = ReasonSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    reason = serializer.validated_data['reason']
    if not reason:
        return Response({'reason': ['A reason is required to reject an order']}, status=status.HTTP_400_BAD_REQUEST)
    services.reject_purchase_order(purchase_order, request.user, reason)
    return _detail(purchase_order, SupplierPurchaseOrderSerializer)


@api_view(['PATCH', 'POST'])
@permission_classes([IsAuthenticated, IsSupplierRole])
def supplier_purchase_order_delivery_date(request, pk):
    purchase_order = _supplier_order(request, pk)
    serializer = ExpectedDeliverySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    services.update_expected_delivery(
        purchase_order, serializer.validated_data['expected_delivery_date'], request.user,
        serializer.validated_data['notes']
    )
    return _detail(purchase_order, SupplierPurchaseOrderSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSupplierRole])
def supplier_purchase_order_analytics(request):
    date_from, date_to = parse_date_range(request)
    return Response(services.statistics(date_from, date_to, supplier=request.user))
