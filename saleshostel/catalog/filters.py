import django_filters
from django.db.models import Q
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Storefront/admin product filter using django-filter"""

    # Searches name, description and tags
    search = django_filters.CharFilter(method='filter_search', label='Search')

    # Category id or slug
    category = django_filters.CharFilter(method='filter_category', label='Category')

    # Price bounds apply to any unit of the product
    min_price = django_filters.NumberFilter(method='filter_min_price', label='Minimum price')
    max_price = django_filters.NumberFilter(method='filter_max_price', label='Maximum price')

    featured = django_filters.BooleanFilter(field_name='featured')
    active = django_filters.BooleanFilter(field_name='is_active')
    in_stock = django_filters.CharFilter(method='filter_in_stock', label='In Stock')

    class Meta:
        model = Product
        fields = ['search', 'category', 'min_price', 'max_price', 'featured', 'active', 'in_stock']

    def filter_search(self, queryset, name, value):
        search = (value or '').strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(name__icontains=search) |
            Q(description__icontains=search) |
            Q(tags__icontains=search)
        ).distinct()

    def filter_category(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        if value.isdigit():
            return queryset.filter(category_id=int(value))
        return queryset.filter(category__slug=value)

    def filter_min_price(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(units__price__gte=value).distinct()

    def filter_max_price(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(units__price__lte=value).distinct()

    def filter_in_stock(self, queryset, name, value):
        if value == 'true':
            return queryset.filter(units__stock_quantity__gt=0, units__is_available=True).distinct()
        if value == 'false':
            return queryset.exclude(units__stock_quantity__gt=0)
        return queryset
