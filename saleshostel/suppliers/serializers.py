from rest_framework import serializers
from django.contrib.auth import get_user_model
from saleshostel.core.serializers import UserSummarySerializer
from .models import SupplierProfile, Supply

User = get_user_model()

PERFORMANCE_FIELDS = ['total_supplies', 'total_value', 'on_time_deliveries', 'late_deliveries', 'quality_score']


class SupplierProfileSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    contact_person_name = serializers.CharField(read_only=True)
    delivery_performance = serializers.IntegerField(read_only=True)
    verified_by_name = serializers.SerializerMethodField()

    class Meta:
        model = SupplierProfile
        fields = ['id', 'user', 'company_name', 'contact_first_name', 'contact_last_name', 'contact_position',
                  'contact_person_name', 'registration_number', 'tax_id', 'business_type',
                  'contact_email', 'contact_phone', 'contact_whatsapp', 'website',
                  'street', 'city', 'state', 'zip_code', 'country', 'supplied_categories',
                  'payment_terms', 'custom_payment_terms', 'credit_limit', 'current_balance', 'rating',
                  *PERFORMANCE_FIELDS, 'delivery_performance',
                  'bank_name', 'account_name', 'account_number', 'routing_number',
                  'is_active', 'is_verified', 'verified_at', 'verified_by_name', 'notes',
                  'created_at', 'updated_at']
        read_only_fields = ['is_verified', 'verified_at', 'current_balance', *PERFORMANCE_FIELDS,
                            'created_at', 'updated_at']

    def get_verified_by_name(self, obj):
        return obj.verified_by.full_name if obj.verified_by else None

    def validate_supplied_categories(self, value):
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError('supplied_categories must be a list of category names')
        return value


class SupplierSelfProfileSerializer(SupplierProfileSerializer):
    """What a supplier may edit on their own profile"""

    class Meta(SupplierProfileSerializer.Meta):
        read_only_fields = SupplierProfileSerializer.Meta.read_only_fields + [
            'credit_limit', 'rating', 'is_active', 'notes'
        ]


class SupplierProfileCreateSerializer(SupplierProfileSerializer):
    """Admin-side creation, for an existing supplier account or a new one"""
    user_id = serializers.IntegerField(required=False, write_only=True)
    email = serializers.EmailField(required=False, write_only=True)
    password = serializers.CharField(required=False, write_only=True, min_length=6)

    class Meta(SupplierProfileSerializer.Meta):
        fields = SupplierProfileSerializer.Meta.fields + ['user_id', 'email', 'password']

    def validate(self, attrs):
        user_id = attrs.pop('user_id', None)
        email = attrs.pop('email', None)
        password = attrs.pop('password', None)

        if user_id:
            user = User.objects.filter(pk=user_id).first()
            if user is None:
                raise serializers.ValidationError({'user_id': 'User not found'})
            if user.role != User.ROLE_SUPPLIER:
                raise serializers.ValidationError({'user_id': 'User is not a supplier'})
            if SupplierProfile.objects.filter(user=user).exists():
                raise serializers.ValidationError({'user_id': 'Supplier profile already exists for this user'})
            attrs['user'] = user
        elif email and password:
            email = email.lower().strip()
            if User.objects.filter(email__iexact=email).exists():
                raise serializers.ValidationError({'email': 'User with this email already exists'})
            attrs['new_account'] = {'email': email, 'password': password}
        else:
            raise serializers.ValidationError('Provide user_id or email and password for the supplier account')
        return attrs

    def create(self, validated_data):
        account = validated_data.pop('new_account', None)
        if account:
            user = User(
                username=account['email'],
                email=account['email'],
                first_name=validated_data.get('contact_first_name', ''),
                last_name=validated_data.get('contact_last_name', ''),
                whatsapp_number=validated_data.get('contact_whatsapp', ''),
                call_number=validated_data.get('contact_phone', ''),
                role=User.ROLE_SUPPLIER,
            )
            user.set_password(account['password'])
            user.save()
            validated_data['user'] = user
        validated_data.setdefault('contact_email', validated_data['user'].email)
        return super().create(validated_data)


class SupplySerializer(serializers.ModelSerializer):
    supplier = UserSummarySerializer(read_only=True)
    received_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Supply
        fields = ['id', 'supplier', 'product_name', 'unit_type', 'number_of_quantity', 'price_per_unit',
                  'total_price', 'supply_date', 'notes', 'status', 'received_by_name', 'received_at',
                  'created_at', 'updated_at']
        read_only_fields = ['total_price', 'status', 'received_at', 'created_at', 'updated_at']

    def get_received_by_name(self, obj):
        return obj.received_by.full_name if obj.received_by else None

    def validate_product_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Product name is required')
        return value
