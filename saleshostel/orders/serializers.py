from decimal import Decimal

from rest_framework import serializers
from django.contrib.auth import get_user_model
from saleshostel.catalog.models import ProductUnit
from saleshostel.core.models import CustomerAddress
from saleshostel.core.serializers import UserSummarySerializer
from .models import Order, OrderItem, OrderStatusHistory

User = get_user_model()


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'unit', 'product_name', 'unit_type', 'quantity', 'unit_price', 'total_price']


class OrderStatusHistorySerializer(serializers.ModelSerializer):
    updated_by_name = serializers.SerializerMethodField()

    class Meta:
        model = OrderStatusHistory
        fields = ['id', 'status', 'timestamp', 'updated_by', 'updated_by_name', 'notes']

    def get_updated_by_name(self, obj):
        return obj.updated_by.full_name if obj.updated_by else None


class OrderListSerializer(serializers.ModelSerializer):
    total_items = serializers.IntegerField(read_only=True)
    handled_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'customer', 'customer_name', 'order_type', 'status', 'payment_status',
                  'payment_method', 'total_amount', 'total_items', 'priority', 'is_urgent', 'tracking_number',
                  'handled_by', 'handled_by_name', 'order_date']

    def get_handled_by_name(self, obj):
        return obj.handled_by.full_name if obj.handled_by else None


class OrderSerializer(serializers.ModelSerializer):
    """Full order with items, history and derived timing"""
    items = OrderItemSerializer(many=True, read_only=True)
    status_history = OrderStatusHistorySerializer(many=True, read_only=True)
    customer = UserSummarySerializer(read_only=True)
    handled_by = UserSummarySerializer(read_only=True)
    total_items = serializers.IntegerField(read_only=True)
    estimated_prep_time = serializers.IntegerField(read_only=True)
    delivery_time_window = serializers.DictField(read_only=True, allow_null=True)
    age_in_hours = serializers.IntegerField(read_only=True)
    can_be_cancelled = serializers.BooleanField(read_only=True)
    can_be_refunded = serializers.BooleanField(read_only=True)

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'customer', 'customer_name', 'customer_whatsapp', 'customer_call',
                  'customer_email', 'items', 'subtotal', 'delivery_fee', 'discount', 'tax', 'total_amount',
                  'order_type', 'delivery_street', 'delivery_city', 'delivery_state', 'hostel_room', 'landmark',
                  'status', 'payment_method', 'payment_status', 'payment_reference', 'payment_date',
                  'order_date', 'estimated_ready', 'actual_ready', 'estimated_delivery', 'actual_delivery',
                  'handled_by', 'delivered_by', 'notes', 'special_instructions', 'priority', 'is_urgent',
                  'rating', 'review', 'review_date', 'refund_amount', 'refund_reason', 'refund_date',
                  'tracking_number', 'source', 'cancellation_reason', 'cancellation_date',
                  'total_items', 'estimated_prep_time', 'delivery_time_window', 'age_in_hours',
                  'can_be_cancelled', 'can_be_refunded', 'status_history', 'created_at', 'updated_at']
        read_only_fields = fields


class TrackingSerializer(serializers.ModelSerializer):
    """What a customer sees when tracking an order"""
    status_history = OrderStatusHistorySerializer(many=True, read_only=True)
    delivery_time_window = serializers.DictField(read_only=True, allow_null=True)

    class Meta:
        model = Order
        fields = ['order_number', 'tracking_number', 'status', 'order_type', 'payment_status', 'order_date',
                  'estimated_ready', 'actual_ready', 'estimated_delivery', 'actual_delivery',
                  'delivery_time_window', 'status_history']


class CheckoutSerializer(serializers.Serializer):
    order_type = serializers.ChoiceField(choices=[Order.TYPE_PICKUP, Order.TYPE_DELIVERY], default=Order.TYPE_PICKUP)
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, default='cash')
    address_id = serializers.IntegerField(required=False)
    delivery_street = serializers.CharField(max_length=255, required=False, allow_blank=True)
    delivery_city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    delivery_state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    hostel_room = serializers.CharField(max_length=50, required=False, allow_blank=True)
    landmark = serializers.CharField(max_length=255, required=False, allow_blank=True)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    special_instructions = serializers.CharField(max_length=300, required=False, allow_blank=True, default='')
    source = serializers.ChoiceField(choices=['web', 'mobile', 'whatsapp', 'phone'], default='web')

    def validate(self, attrs):
        address_id = attrs.pop('address_id', None)
        if address_id is not None:
            user = self.context['request'].user
            address = CustomerAddress.objects.filter(pk=address_id, user=user).first()
            if address is None:
                raise serializers.ValidationError({'address_id': 'Address not found'})
            attrs['address'] = {
                'street': address.street,
                'city': address.city,
                'state': address.state,
                'hostel_room': address.hostel_room,
                'landmark': address.landmark,
            }
        else:
            attrs['address'] = {
                'street': attrs.pop('delivery_street', ''),
                'city': attrs.pop('delivery_city', ''),
                'state': attrs.pop('delivery_state', ''),
                'hostel_room': attrs.pop('hostel_room', ''),
                'landmark': attrs.pop('landmark', ''),
            }
        for key in ('delivery_street', 'delivery_city', 'delivery_state', 'hostel_room', 'landmark'):
            attrs.pop(key, None)
        return attrs


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class RateOrderSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    review = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class AssignOrderSerializer(serializers.Serializer):
    staff_id = serializers.IntegerField(required=False)


class RecordPaymentSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, required=False)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')


class RefundSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    reason = serializers.CharField(max_length=255)


class WalkInItemSerializer(serializers.Serializer):
    unit = serializers.PrimaryKeyRelatedField(queryset=ProductUnit.objects.select_related('product'))
    quantity = serializers.IntegerField(min_value=1, max_value=100)


class WalkInOrderSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=100)
    customer_whatsapp = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    customer_call = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    customer_email = serializers.EmailField(required=False, allow_blank=True, default='')
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, default='cash')
    payment_reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    items = WalkInItemSerializer(many=True, allow_empty=False)
