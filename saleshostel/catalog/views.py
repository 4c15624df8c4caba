import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.shortcuts import get_object_or_404
from django.db.models import Count, Min, Q, Prefetch
from saleshostel.core.cache_utils import (
    get_cached_products_list, cache_products_list, get_cached_categories, cache_categories
)
from saleshostel.core.exceptions import BusinessRuleError
from saleshostel.core.permissions import IsAdminRole, IsSupplierRole
from saleshostel.core.utils import create_audit_log, paginate, parse_int
from .filters import ProductFilter
from .models import Category, Product, ProductUnit
from .serializers import (
    CategorySerializer, ProductSerializer, ProductListSerializer, PublicProductSerializer
)

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    'name': 'name',
    'price': 'lowest_price',
    'created_at': 'created_at',
}


def _product_queryset(active_only=True):
    queryset = Product.objects.select_related('category').prefetch_related(
        Prefetch('units', queryset=ProductUnit.objects.order_by('price'))
    )
    if active_only:
        queryset = queryset.filter(is_active=True)
    return queryset


def _apply_sort(queryset, request):
    sort_by = request.query_params.get('sort_by', 'created_at')
    sort_order = request.query_params.get('sort_order', 'desc')
    field = SORT_FIELDS.get(sort_by, 'created_at')
    if field == 'lowest_price':
        queryset = queryset.annotate(lowest_price=Min('units__price'))
    prefix = '' if sort_order == 'asc' else '-'
    return queryset.order_by(f'{prefix}{field}', 'id')


def _filtered_products(request, queryset):
    filterset = ProductFilter(request.query_params, queryset=queryset)
    return _apply_sort(filterset.qs, request)


# Public storefront
@api_view(['GET'])
@permission_classes([AllowAny])
def product_list(request):
    """List active products with search, category, price and featured filters"""
    filters_dict = request.query_params.dict()
    cached_data, cache_key = get_cached_products_list(filters_dict)
    if cached_data is not None:
        return Response(cached_data)

    queryset = _filtered_products(request, _product_queryset())
    data = paginate(queryset, request, ProductListSerializer, default_limit=12)
    cache_products_list(cache_key, data)

    response = Response(data)
    response['Cache-Control'] = 'public, max-age=120'
    return response


@api_view(['GET'])
@permission_classes([AllowAny])
def product_detail(request, pk):
    product = get_object_or_404(_product_queryset(), pk=pk)
    return Response(PublicProductSerializer(product).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def products_by_category(request, slug):
    category = get_object_or_404(Category, slug=slug, is_active=True)
    queryset = _apply_sort(_product_queryset().filter(category=category), request)
    data = paginate(queryset, request, ProductListSerializer, default_limit=12)
    data['category'] = CategorySerializer(category).data
    return Response(data)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_search(request):
    query = (request.query_params.get('q') or '').strip()
    if len(query) < 2:
        raise BusinessRuleError('Search query must be at least 2 characters', code='invalid_query')

    queryset = _product_queryset().filter(
        Q(name__icontains=query) |
        Q(description__icontains=query) |
        Q(tags__icontains=query) |
        Q(category__name__icontains=query)
    ).distinct()
    queryset = _apply_sort(queryset, request)
    data = paginate(queryset, request, ProductListSerializer, default_limit=12)
    data['query'] = query
    return Response(data)


@api_view(['GET'])
@permission_classes([AllowAny])
def featured_products(request):
    limit = min(parse_int(request.query_params.get('limit'), 8), 50)
    products = _product_queryset().filter(featured=True).order_by('-created_at')[:limit]
    return Response(ProductListSerializer(products, many=True).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def category_list(request):
    """Active categories with their active product counts"""
    cached_data, cache_key = get_cached_categories()
    if cached_data is not None:
        return Response(cached_data)

    categories = Category.objects.filter(is_active=True).annotate(
        active_product_count=Count('products', filter=Q(products__is_active=True))
    ).order_by('name')
    data = CategorySerializer(categories, many=True).data
    cache_categories(cache_key, data)
    return Response(data)


@api_view(['GET'])
@permission_classes([AllowAny])
def category_by_slug(request, slug):
    category = get_object_or_404(Category, slug=slug, is_active=True)
    return Response(CategorySerializer(category).data)


# Admin catalog management
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_product_list_create(request):
    if request.method == 'GET':
        queryset = _filtered_products(request, _product_queryset(active_only=False))
        return Response(paginate(queryset, request, ProductSerializer, default_limit=20))

    serializer = ProductSerializer(data=request.data)
    if serializer.is_valid():
        product = serializer.save(created_by=request.user)
        create_audit_log(
            request=request,
            action='create',
            model_name='Product',
            object_id=str(product.id),
            object_name=product.name,
            changes={'name': product.name, 'units': [u.unit_type for u in product.units.all()]}
        )
        logger.info(f"Product {product.id} '{product.name}' created by user {request.user.id}")
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_product_detail(request, pk):
    product = get_object_or_404(_product_queryset(active_only=False), pk=pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH',
                                       context={'request': request})
        if serializer.is_valid():
            product = serializer.save()
            create_audit_log(request, 'update', 'Product', product.id,
                             {key: str(value) for key, value in request.data.items() if key != 'units'},
                             object_name=product.name)
            return Response(ProductSerializer(Product.objects.get(pk=product.pk)).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        create_audit_log(request, 'delete', 'Product', product.id, object_name=product.name)
        product.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_product_toggle_active(request, pk):
    product = get_object_or_404(Product, pk=pk)
    product.is_active = not product.is_active
    product.save(update_fields=['is_active', 'updated_at'])
    create_audit_log(request, 'status_change', 'Product', product.id,
                     {'is_active': product.is_active}, object_name=product.name)
    return Response(ProductSerializer(product).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_category_list_create(request):
    if request.method == 'GET':
        categories = Category.objects.annotate(
            active_product_count=Count('products', filter=Q(products__is_active=True))
        ).order_by('name')
        return Response(CategorySerializer(categories, many=True).data)

    serializer = CategorySerializer(data=request.data)
    if serializer.is_valid():
        category = serializer.save()
        create_audit_log(request, 'create', 'Category', category.id, object_name=category.name)
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_category_detail(request, pk):
    category = get_object_or_404(Category, pk=pk)

    if request.method == 'GET':
        return Response(CategorySerializer(category).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        product_count = category.products.count()
        if product_count:
            raise BusinessRuleError(
                f'Cannot delete category with {product_count} product(s)',
                code='category_in_use'
            )
        create_audit_log(request, 'delete', 'Category', category.id, object_name=category.name)
        category.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSupplierRole])
def supplier_products(request):
    """Catalog products matching names the supplier has delivered"""
    from saleshostel.suppliers.models import Supply

    names = set(Supply.objects.filter(
        supplier=request.user, status=Supply.STATUS_RECEIVED
    ).values_list('product_name', flat=True))
    if not names:
        return Response(paginate(Product.objects.none(), request, ProductListSerializer, default_limit=20))

    name_query = Q()
    for name in names:
        name_query |= Q(name__iexact=name)

    queryset = _product_queryset(active_only=False).filter(name_query).order_by('name')
    return Response(paginate(queryset, request, ProductListSerializer, default_limit=20))
