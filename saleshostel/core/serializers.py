from rest_framework import serializers
from django.contrib.auth import get_user_model
from .models import Setting, AuditLog, CustomerAddress
from .utils import validate_phone, validate_email_format

User = get_user_model()

PUBLIC_ROLES = (User.ROLE_CUSTOMER, User.ROLE_SUPPLIER)


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'full_name', 'role',
                  'whatsapp_number', 'call_number', 'street', 'city', 'state', 'country',
                  'total_orders', 'total_spent', 'last_order_date',
                  'is_active', 'created_at', 'updated_at']
        read_only_fields = ['username', 'role', 'total_orders', 'total_spent', 'last_order_date',
                            'is_active', 'created_at', 'updated_at']


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user representation embedded in other resources"""
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'first_name', 'last_name', 'full_name', 'email', 'whatsapp_number']


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=6)
    role = serializers.CharField(required=False, default=User.ROLE_CUSTOMER)

    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'email', 'password', 'whatsapp_number', 'call_number', 'role']
        extra_kwargs = {
            'first_name': {'required': True, 'allow_blank': False, 'max_length': 50},
            'last_name': {'required': True, 'allow_blank': False, 'max_length': 50},
            'whatsapp_number': {'required': True, 'allow_blank': False},
            'call_number': {'required': True, 'allow_blank': False},
            # Uniqueness is checked case-insensitively in validate_email
            'email': {'validators': []},
        }

    def validate_email(self, value):
        value = value.lower().strip()
        if not validate_email_format(value):
            raise serializers.ValidationError('Please provide a valid email address')
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('User with this email already exists')
        return value

    def validate_whatsapp_number(self, value):
        if not validate_phone(value):
            raise serializers.ValidationError('Please provide a valid WhatsApp number')
        return value.strip()

    def validate_call_number(self, value):
        if not validate_phone(value):
            raise serializers.ValidationError('Please provide a valid call number')
        return value.strip()

    def validate_role(self, value):
        # Admin and staff accounts are only created by admins
        return value if value in PUBLIC_ROLES else User.ROLE_CUSTOMER

    def create(self, validated_data):
        password = validated_data.pop('password')
        email = validated_data['email']
        user = User(
            username=email,
            first_name=validated_data['first_name'].strip(),
            last_name=validated_data['last_name'].strip(),
            email=email,
            whatsapp_number=validated_data['whatsapp_number'],
            call_number=validated_data['call_number'],
            role=validated_data.get('role', User.ROLE_CUSTOMER),
            is_active=True,
        )
        user.set_password(password)
        user.save()
        return user


class AdminUserCreateSerializer(RegisterSerializer):
    """Admin-side user creation; any role may be assigned"""
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, default=User.ROLE_CUSTOMER)

    class Meta(RegisterSerializer.Meta):
        extra_kwargs = {
            **RegisterSerializer.Meta.extra_kwargs,
            'whatsapp_number': {'required': False, 'allow_blank': True},
            'call_number': {'required': False, 'allow_blank': True},
        }

    def validate_whatsapp_number(self, value):
        if value and not validate_phone(value):
            raise serializers.ValidationError('Please provide a valid WhatsApp number')
        return value.strip()

    def validate_call_number(self, value):
        if value and not validate_phone(value):
            raise serializers.ValidationError('Please provide a valid call number')
        return value.strip()

    def validate_role(self, value):
        return value

    def create(self, validated_data):
        validated_data.setdefault('whatsapp_number', '')
        validated_data.setdefault('call_number', '')
        user = super().create(validated_data)
        if user.role == User.ROLE_ADMIN:
            user.is_staff = True
            user.save(update_fields=['is_staff'])
        return user


class AdminUserUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'email', 'role', 'whatsapp_number', 'call_number',
                  'street', 'city', 'state', 'country', 'is_active']


class ProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'whatsapp_number', 'call_number',
                  'street', 'city', 'state', 'country']

    def validate_whatsapp_number(self, value):
        if value and not validate_phone(value):
            raise serializers.ValidationError('Please provide a valid WhatsApp number')
        return value

    def validate_call_number(self, value):
        if value and not validate_phone(value):
            raise serializers.ValidationError('Please provide a valid call number')
        return value


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, min_length=6)

    def validate_current_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError('Current password is incorrect')
        return value


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    uid = serializers.CharField()
    token = serializers.CharField()
    new_password = serializers.CharField(write_only=True, min_length=6)


class CustomerAddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomerAddress
        fields = ['id', 'label', 'street', 'city', 'state', 'country', 'hostel_room', 'landmark',
                  'is_default', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class SettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Setting
        fields = ['id', 'key', 'value', 'description', 'updated_at']


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']
