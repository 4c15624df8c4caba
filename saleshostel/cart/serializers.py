from rest_framework import serializers
from saleshostel.catalog.models import Product, ProductUnit
from saleshostel.core.serializers import UserSummarySerializer
from .models import Cart, CartItem, SavedItem


class CartItemSerializer(serializers.ModelSerializer):
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = CartItem
        fields = ['id', 'product', 'unit', 'quantity', 'product_name', 'unit_type', 'price', 'image',
                  'is_available', 'current_stock', 'line_total', 'added_at', 'updated_at']
        read_only_fields = fields


class SavedItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    unit_type = serializers.CharField(source='unit.unit_type', read_only=True)
    price = serializers.DecimalField(source='unit.price', max_digits=12, decimal_places=2, read_only=True)
    is_in_stock = serializers.BooleanField(source='unit.is_in_stock', read_only=True)

    class Meta:
        model = SavedItem
        fields = ['id', 'product', 'unit', 'product_name', 'unit_type', 'price', 'is_in_stock', 'saved_at']


class CartSerializer(serializers.ModelSerializer):
    items = CartItemSerializer(many=True, read_only=True)
    saved_items = SavedItemSerializer(many=True, read_only=True)
    summary = serializers.SerializerMethodField()

    class Meta:
        model = Cart
        fields = ['id', 'items', 'saved_items', 'summary', 'expires_at', 'last_activity', 'created_at']

    def get_summary(self, obj):
        summary = obj.summary
        return {
            key: float(value) if key in ('subtotal', 'delivery_fee', 'discount', 'total') else value
            for key, value in summary.items()
        }


class AbandonedCartSerializer(CartSerializer):
    customer = UserSummarySerializer(read_only=True)

    class Meta(CartSerializer.Meta):
        fields = ['id', 'customer', 'items', 'summary', 'last_activity', 'expires_at']


class AddCartItemSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    unit = serializers.PrimaryKeyRelatedField(queryset=ProductUnit.objects.select_related('product'))
    quantity = serializers.IntegerField(min_value=1, max_value=100, default=1)

    def validate(self, attrs):
        if attrs['unit'].product_id != attrs['product'].id:
            raise serializers.ValidationError({'unit': 'Unit does not belong to this product'})
        return attrs


class UpdateCartItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(max_value=100)


class MoveToCartSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, max_value=100, default=1)
