from rest_framework import serializers
from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True)

    class Meta:
        model = Payment
        fields = ['id', 'order', 'order_number', 'provider', 'reference', 'amount', 'currency', 'status',
                  'fee', 'transaction_id', 'checkout_url', 'refunded_amount', 'requires_refund', 'verified_at',
                  'created_at']
        read_only_fields = fields


class InitializePaymentSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    provider = serializers.ChoiceField(choices=Payment.PROVIDER_CHOICES, default=Payment.PROVIDER_PAYSTACK)
    redirect_url = serializers.URLField(required=False, allow_blank=True, default='')


class VerifyPaymentSerializer(serializers.Serializer):
    reference = serializers.CharField(max_length=64)
    transaction_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default='')
