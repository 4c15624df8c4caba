from rest_framework import serializers
from django.contrib.auth import get_user_model
from saleshostel.catalog.models import ProductUnit
from .models import PurchaseOrder, PurchaseOrderItem, PurchaseOrderPayment, PurchaseOrderStatusHistory

User = get_user_model()


class PurchaseOrderItemSerializer(serializers.ModelSerializer):
    quantity_outstanding = serializers.IntegerField(read_only=True)

    class Meta:
        model = PurchaseOrderItem
        fields = ['id', 'product', 'unit', 'product_name', 'unit_type', 'quantity_ordered', 'quantity_received',
                  'quantity_outstanding', 'unit_cost', 'total_cost', 'quality_rating', 'quality_notes',
                  'damaged_quantity', 'damage_reason', 'batch_number', 'expiry_date']
        read_only_fields = fields


class PurchaseOrderPaymentSerializer(serializers.ModelSerializer):
    recorded_by_name = serializers.SerializerMethodField()

    class Meta:
        model = PurchaseOrderPayment
        fields = ['id', 'amount', 'payment_date', 'payment_method', 'reference', 'notes', 'recorded_by_name']

    def get_recorded_by_name(self, obj):
        return obj.recorded_by.full_name if obj.recorded_by else None


class PurchaseOrderStatusHistorySerializer(serializers.ModelSerializer):
    updated_by_name = serializers.SerializerMethodField()

    class Meta:
        model = PurchaseOrderStatusHistory
        fields = ['status', 'timestamp', 'updated_by_name', 'notes']

    def get_updated_by_name(self, obj):
        return obj.updated_by.full_name if obj.updated_by else None


class PurchaseOrderListSerializer(serializers.ModelSerializer):
    total_items = serializers.IntegerField(read_only=True)
    outstanding_balance = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = PurchaseOrder
        fields = ['id', 'order_number', 'supplier', 'supplier_company_name', 'status', 'priority',
                  'total_amount', 'amount_paid', 'outstanding_balance', 'payment_status', 'payment_due_date',
                  'total_items', 'order_date', 'expected_delivery_date', 'actual_delivery_date']


class PurchaseOrderSerializer(serializers.ModelSerializer):
    items = PurchaseOrderItemSerializer(many=True, read_only=True)
    payments = PurchaseOrderPaymentSerializer(many=True, read_only=True)
    status_history = PurchaseOrderStatusHistorySerializer(many=True, read_only=True)
    total_items = serializers.IntegerField(read_only=True)
    total_received = serializers.IntegerField(read_only=True)
    completion_percentage = serializers.IntegerField(read_only=True)
    outstanding_balance = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    days_until_delivery = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = PurchaseOrder
        fields = ['id', 'order_number', 'supplier', 'supplier_company_name', 'supplier_contact_person',
                  'supplier_email', 'supplier_phone', 'supplier_address',
                  'items', 'subtotal', 'tax', 'shipping_cost', 'discount', 'total_amount',
                  'status', 'status_history', 'order_date', 'expected_delivery_date', 'actual_delivery_date',
                  'confirmed_at', 'days_until_delivery',
                  'payment_terms', 'payment_status', 'payment_due_date', 'amount_paid', 'outstanding_balance',
                  'payments', 'delivery_address', 'delivery_instructions', 'notes', 'internal_notes',
                  'priority', 'cancellation_reason', 'overall_quality_rating', 'delivery_rating',
                  'supplier_performance_notes', 'total_items', 'total_received', 'completion_percentage',
                  'created_by', 'approved_by', 'received_by', 'created_at', 'updated_at']
        read_only_fields = fields


class SupplierPurchaseOrderSerializer(PurchaseOrderSerializer):
    """Supplier view of an order; internal notes stay private"""

    class Meta(PurchaseOrderSerializer.Meta):
        fields = [f for f in PurchaseOrderSerializer.Meta.fields if f not in ('internal_notes', 'created_by')]
        read_only_fields = fields


class PurchaseOrderItemInputSerializer(serializers.Serializer):
    unit = serializers.PrimaryKeyRelatedField(queryset=ProductUnit.objects.select_related('product'))
    quantity_ordered = serializers.IntegerField(min_value=1)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class PurchaseOrderWriteSerializer(serializers.ModelSerializer):
    supplier_id = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(role=User.ROLE_SUPPLIER), source='supplier'
    )
    items = PurchaseOrderItemInputSerializer(many=True)

    class Meta:
        model = PurchaseOrder
        fields = ['supplier_id', 'items', 'tax', 'shipping_cost', 'discount', 'expected_delivery_date',
                  'payment_terms', 'delivery_address', 'delivery_instructions', 'notes', 'internal_notes',
                  'priority']
        extra_kwargs = {'payment_terms': {'required': False}}

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('At least one item is required')
        unit_ids = [line['unit'].id for line in value]
        if len(unit_ids) != len(set(unit_ids)):
            raise serializers.ValidationError('Each unit may only appear once')
        return value


class AddPaymentSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    payment_method = serializers.ChoiceField(choices=PurchaseOrderPayment.PAYMENT_METHOD_CHOICES)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    notes = serializers.CharField(max_length=300, required=False, allow_blank=True, default='')


class ReceiptSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    quantity_received = serializers.IntegerField(min_value=0)
    damaged_quantity = serializers.IntegerField(min_value=0, required=False, default=0)
    damage_reason = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    quality_rating = serializers.IntegerField(min_value=1, max_value=5, required=False)
    quality_notes = serializers.CharField(max_length=300, required=False, allow_blank=True, default='')
    batch_number = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    expiry_date = serializers.DateField(required=False, allow_null=True, default=None)


class ReceiveItemsSerializer(serializers.Serializer):
    items = ReceiptSerializer(many=True)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class ExpectedDeliverySerializer(serializers.Serializer):
    expected_delivery_date = serializers.DateField()
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
