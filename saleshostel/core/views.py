import logging

from rest_framework import status, serializers as drf_serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_encode, urlsafe_base64_decode
from django.db.models import Q
from .models import Setting, AuditLog, CustomerAddress
from .permissions import IsAdminRole
from .serializers import (
    UserSerializer, RegisterSerializer, AdminUserCreateSerializer, AdminUserUpdateSerializer,
    ProfileUpdateSerializer, ChangePasswordSerializer, ForgotPasswordSerializer,
    ResetPasswordSerializer, CustomerAddressSerializer, SettingSerializer, AuditLogSerializer
)
from .utils import create_audit_log, paginate, parse_date_range, parse_id_param
from . import notifications

logger = logging.getLogger(__name__)

User = get_user_model()


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Accepts either ``email`` or ``username`` together with the password"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields[self.username_field] = drf_serializers.CharField(write_only=True, required=False)
        self.fields['email'] = drf_serializers.CharField(write_only=True, required=False)

    def validate(self, attrs):
        email = attrs.pop('email', None)
        if email and not attrs.get(self.username_field):
            user = User.objects.filter(email__iexact=email.strip()).first()
            attrs[self.username_field] = user.username if user else email
        if not attrs.get(self.username_field):
            raise drf_serializers.ValidationError({'email': 'Email is required.'})

        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['email'] = user.email
        token['role'] = user.role
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        if response.status_code == status.HTTP_200_OK:
            user = User.objects.get(pk=response.data['user']['id'])
            create_audit_log(request, 'login', 'User', user.id, user=user, object_name=user.email)
            logger.info(f"User {user.id} logged in")
        return response


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


def _tokens_for(user):
    token = CustomTokenObtainPairSerializer.get_token(user)
    return {'access': str(token.access_token), 'refresh': str(token)}


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = RegisterSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        logger.info(f"Registered {user.role} account {user.email}")
        notifications.send_registration_email(user)
        return Response({
            'user': UserSerializer(user).data,
            **_tokens_for(user),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get or update the current user's profile"""
    user = request.user
    if request.method == 'GET':
        return Response(UserSerializer(user).data)

    serializer = ProfileUpdateSerializer(user, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        return Response(UserSerializer(user).data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request):
    serializer = ChangePasswordSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = request.user
    user.set_password(serializer.validated_data['new_password'])
    user.save(update_fields=['password'])
    create_audit_log(request, 'update', 'User', user.id, {'password': 'changed'}, object_name=user.email)
    return Response({'success': True, 'message': 'Password changed successfully'})


@api_view(['POST'])
@permission_classes([AllowAny])
def forgot_password(request):
    """
    Email a password reset link.

    The response is the same whether or not the address is registered.
    """
    serializer = ForgotPasswordSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = User.objects.filter(email__iexact=serializer.validated_data['email'], is_active=True).first()
    if user:
        uid = urlsafe_base64_encode(force_bytes(user.pk))
        token = default_token_generator.make_token(user)
        notifications.send_password_reset(user, uid, token)
    return Response({
        'success': True,
        'message': 'If an account exists for this email, a reset link has been sent',
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def reset_password(request):
    serializer = ResetPasswordSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        user = User.objects.get(pk=force_str(urlsafe_base64_decode(data['uid'])))
    except (TypeError, ValueError, OverflowError, User.DoesNotExist):
        user = None

    if user is None or not default_token_generator.check_token(user, data['token']):
        return Response(
            {'success': False, 'message': 'Reset link is invalid or has expired'},
            status=status.HTTP_400_BAD_REQUEST
        )

    user.set_password(data['new_password'])
    user.save(update_fields=['password'])
    logger.info(f"Password reset for user {user.id}")
    return Response({'success': True, 'message': 'Password has been reset'})


# Address book
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def address_list_create(request):
    if request.method == 'GET':
        addresses = CustomerAddress.objects.filter(user=request.user)
        return Response(CustomerAddressSerializer(addresses, many=True).data)

    serializer = CustomerAddressSerializer(data=request.data)
    if serializer.is_valid():
        # The first address becomes the default
        is_first = not CustomerAddress.objects.filter(user=request.user).exists()
        address = serializer.save(user=request.user, is_default=serializer.validated_data.get('is_default') or is_first)
        return Response(CustomerAddressSerializer(address).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def address_detail(request, pk):
    address = get_object_or_404(CustomerAddress, pk=pk, user=request.user)

    if request.method == 'GET':
        return Response(CustomerAddressSerializer(address).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CustomerAddressSerializer(address, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        was_default = address.is_default
        address.delete()
        if was_default:
            replacement = CustomerAddress.objects.filter(user=request.user).first()
            if replacement:
                replacement.is_default = True
                replacement.save()
        return Response(status=status.HTTP_204_NO_CONTENT)


# User management
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list_create(request):
    """List users (filterable by role, status and search) or create one"""
    if request.method == 'GET':
        users = User.objects.all().order_by('-created_at')

        role = request.query_params.get('role')
        if role:
            users = users.filter(role=role)

        is_active = request.query_params.get('is_active')
        if is_active is not None and is_active != '':
            users = users.filter(is_active=is_active.lower() == 'true')

        search = request.query_params.get('search')
        if search:
            users = users.filter(
                Q(first_name__icontains=search) |
                Q(last_name__icontains=search) |
                Q(email__icontains=search) |
                Q(whatsapp_number__icontains=search)
            )

        return Response(paginate(users, request, UserSerializer, default_limit=20))

    serializer = AdminUserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        create_audit_log(request, 'create', 'User', user.id, {'role': user.role}, object_name=user.email)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        return Response(UserSerializer(user).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = AdminUserUpdateSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            old_role = user.role
            serializer.save()
            if old_role != user.role:
                create_audit_log(request, 'update', 'User', user.id,
                                 {'role': {'old': old_role, 'new': user.role}}, object_name=user.email)
            return Response(UserSerializer(user).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response(
                {'success': False, 'message': 'You cannot delete your own account'},
                status=status.HTTP_400_BAD_REQUEST
            )
        create_audit_log(request, 'delete', 'User', user.id, object_name=user.email)
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_toggle_status(request, pk):
    """Activate or deactivate an account"""
    user = get_object_or_404(User, pk=pk)
    if user.pk == request.user.pk:
        return Response(
            {'success': False, 'message': 'You cannot deactivate your own account'},
            status=status.HTTP_400_BAD_REQUEST
        )
    user.is_active = not user.is_active
    user.save(update_fields=['is_active'])
    create_audit_log(request, 'status_change', 'User', user.id,
                     {'is_active': user.is_active}, object_name=user.email)
    return Response(UserSerializer(user).data)


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def setting_list_create(request):
    if request.method == 'GET':
        settings_qs = Setting.objects.all().order_by('key')
        return Response(SettingSerializer(settings_qs, many=True).data)

    serializer = SettingSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def setting_detail(request, key):
    setting = get_object_or_404(Setting, key=key)

    if request.method == 'GET':
        return Response(SettingSerializer(setting).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SettingSerializer(setting, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        setting.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Audit log views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_log_list(request):
    """List audit logs with optional action, model, user and date filters"""
    logs = AuditLog.objects.select_related('user').all()

    action = request.query_params.get('action')
    if action:
        logs = logs.filter(action=action)

    model_name = request.query_params.get('model_name')
    if model_name:
        logs = logs.filter(model_name=model_name)

    user_id = parse_id_param(request, 'user')
    if user_id:
        logs = logs.filter(user_id=user_id)

    reference = request.query_params.get('reference')
    if reference:
        logs = logs.filter(object_reference__icontains=reference)

    date_from, date_to = parse_date_range(request)
    if date_from:
        logs = logs.filter(created_at__date__gte=date_from)
    if date_to:
        logs = logs.filter(created_at__date__lte=date_to)

    return Response(paginate(logs, request, AuditLogSerializer, default_limit=50))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_log_detail(request, pk):
    log = get_object_or_404(AuditLog.objects.select_related('user'), pk=pk)
    return Response(AuditLogSerializer(log).data)
