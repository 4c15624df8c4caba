from rest_framework import serializers
from saleshostel.catalog.models import ProductUnit
from .models import StockMovement


class StockMovementSerializer(serializers.ModelSerializer):
    direction = serializers.CharField(read_only=True)
    absolute_quantity = serializers.IntegerField(read_only=True)
    description = serializers.CharField(read_only=True)
    financial_impact = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    performed_by_name = serializers.SerializerMethodField()

    class Meta:
        model = StockMovement
        fields = ['id', 'product', 'unit', 'product_name', 'unit_type', 'category_name',
                  'movement_type', 'quantity_before', 'quantity_changed', 'quantity_after',
                  'direction', 'absolute_quantity', 'description',
                  'reference', 'reference_type', 'reason', 'notes', 'unit_cost', 'total_cost',
                  'financial_impact', 'performed_by', 'performed_by_name', 'approved_by',
                  'movement_date', 'location', 'batch_number', 'expiry_date', 'quality_status',
                  'source', 'is_system_generated', 'is_reversed', 'reversed_by', 'reversal_reason',
                  'reversal_date', 'reversal_of', 'created_at']
        read_only_fields = fields

    def get_performed_by_name(self, obj):
        return obj.performed_by.full_name if obj.performed_by else None


class StockAdjustSerializer(serializers.Serializer):
    ADJUSTMENT_TYPES = ['add', 'remove', 'set']

    unit = serializers.PrimaryKeyRelatedField(queryset=ProductUnit.objects.select_related('product'))
    adjustment_type = serializers.ChoiceField(choices=ADJUSTMENT_TYPES)
    quantity = serializers.IntegerField(min_value=0)
    reason = serializers.CharField(max_length=200)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['adjustment_type'] != 'set' and attrs['quantity'] == 0:
            raise serializers.ValidationError({'quantity': 'Quantity must be greater than 0'})
        return attrs


class StockCountEntrySerializer(serializers.Serializer):
    unit = serializers.PrimaryKeyRelatedField(queryset=ProductUnit.objects.select_related('product'))
    counted_quantity = serializers.IntegerField(min_value=0)


class StockCountSerializer(serializers.Serializer):
    counts = StockCountEntrySerializer(many=True, allow_empty=False)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class ReverseMovementSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=180)


class InventoryUnitSerializer(serializers.ModelSerializer):
    """Unit row for the inventory overview"""
    product_name = serializers.CharField(source='product.name', read_only=True)
    category_name = serializers.CharField(source='product.category.name', read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)
    stock_status = serializers.SerializerMethodField()
    stock_value = serializers.SerializerMethodField()
    last_movement = serializers.DateTimeField(read_only=True)

    class Meta:
        model = ProductUnit
        fields = ['id', 'product', 'product_name', 'category_name', 'unit_type', 'price', 'cost_price',
                  'stock_quantity', 'min_stock_level', 'is_available', 'is_low_stock', 'stock_status',
                  'stock_value', 'last_movement']

    def get_stock_status(self, obj):
        if obj.stock_quantity == 0:
            return 'out_of_stock'
        if obj.is_low_stock:
            return 'low_stock'
        return 'in_stock'

    def get_stock_value(self, obj):
        cost = obj.cost_price if obj.cost_price is not None else obj.price
        return float(cost * obj.stock_quantity)
