from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Prefetch
from saleshostel.core.permissions import IsAdminRole, IsCustomerRole
from saleshostel.core.utils import paginate, parse_int
from . import services
from .models import Cart, CartItem, SavedItem
from .serializers import (
    CartSerializer, AbandonedCartSerializer, AddCartItemSerializer,
    UpdateCartItemSerializer, MoveToCartSerializer
)


def _cart_response(cart, status_code=status.HTTP_200_OK, **extra):
    cart = Cart.objects.prefetch_related(
        Prefetch('items', queryset=CartItem.objects.order_by('added_at', 'id')),
        Prefetch('saved_items', queryset=SavedItem.objects.select_related('product', 'unit')),
    ).get(pk=cart.pk)
    data = CartSerializer(cart).data
    data.update(extra)
    return Response(data, status=status_code)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, IsCustomerRole])
def cart_detail(request):
    """Get the customer's cart (created on first access) or clear it"""
    cart = services.get_or_create_cart(request.user)
    if request.method == 'DELETE':
        services.clear_cart(cart)
    return _cart_response(cart)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCustomerRole])
def cart_add_item(request):
    serializer = AddCartItemSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    cart = services.get_or_create_cart(request.user)
    services.add_item(cart, data['product'], data['unit'], data['quantity'])
    return _cart_response(cart, status.HTTP_201_CREATED)


@api_view(['PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsCustomerRole])
def cart_item_detail(request, item_id):
    """Change a line's quantity or remove it"""
    cart = services.get_or_create_cart(request.user)
    if request.method == 'DELETE':
        services.remove_item(cart, item_id)
        return _cart_response(cart)

    serializer = UpdateCartItemSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    services.update_item_quantity(cart, item_id, serializer.validated_data['quantity'])
    return _cart_response(cart)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCustomerRole])
def cart_save_for_later(request, item_id):
    cart = services.get_or_create_cart(request.user)
    services.save_for_later(cart, item_id)
    return _cart_response(cart)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCustomerRole])
def cart_move_to_cart(request, saved_item_id):
    serializer = MoveToCartSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    cart = services.get_or_create_cart(request.user)
    services.move_to_cart(cart, saved_item_id, serializer.validated_data['quantity'])
    return _cart_response(cart)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsCustomerRole])
def cart_saved_item_delete(request, saved_item_id):
    cart = services.get_or_create_cart(request.user)
    SavedItem.objects.filter(cart=cart, pk=saved_item_id).delete()
    return _cart_response(cart)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCustomerRole])
def cart_validate(request):
    cart = services.get_or_create_cart(request.user)
    result = services.validate_cart(cart)
    return _cart_response(cart, **result)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def abandoned_carts(request):
    hours = parse_int(request.query_params.get('hours'), None)
    carts = services.abandoned_carts(hours).prefetch_related('items')
    return Response(paginate(carts, request, AbandonedCartSerializer, default_limit=20))
