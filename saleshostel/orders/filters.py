import django_filters
from django.db.models import Q
from .models import Order


class OrderFilter(django_filters.FilterSet):
    """Back-office order filter"""
    status = django_filters.CharFilter(method='filter_status', label='Status (comma separated)')
    payment_status = django_filters.CharFilter(field_name='payment_status')
    payment_method = django_filters.CharFilter(field_name='payment_method')
    order_type = django_filters.CharFilter(field_name='order_type')
    priority = django_filters.CharFilter(field_name='priority')
    source = django_filters.CharFilter(field_name='source')
    date_from = django_filters.DateFilter(field_name='order_date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='order_date', lookup_expr='date__lte')
    search = django_filters.CharFilter(method='filter_search', label='Search')

    class Meta:
        model = Order
        fields = ['status', 'payment_status', 'payment_method', 'order_type', 'priority', 'source',
                  'date_from', 'date_to', 'search']

    def filter_status(self, queryset, name, value):
        statuses = [status.strip() for status in (value or '').split(',') if status.strip()]
        if not statuses:
            return queryset
        return queryset.filter(status__in=statuses)

    def filter_search(self, queryset, name, value):
        search = (value or '').strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(order_number__icontains=search) |
            Q(tracking_number__icontains=search) |
            Q(customer_name__icontains=search) |
            Q(customer_whatsapp__icontains=search) |
            Q(customer_email__icontains=search)
        )
