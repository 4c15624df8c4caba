"""
Test suite for the core module
Tests: registration, login, profile, password reset, user admin, audit logs, error envelope
"""
from datetime import date

from django.contrib.auth.tokens import default_token_generator
from django.core import mail
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode
from rest_framework import status
from io import StringIO
from saleshostel.core.models import AuditLog, CustomerAddress, User
from saleshostel.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from saleshostel.core.utils import create_audit_log, paginate, parse_date_range, parse_int
from saleshostel.core.serializers import UserSerializer
from saleshostel.catalog.models import Category, Product


class RegistrationTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.payload = {
            'first_name': 'Ada',
            'last_name': 'Obi',
            'email': 'Ada@Example.com',
            'password': 'secret123',
            'whatsapp_number': '+2348012345678',
            'call_number': '08012345678',
        }

    def test_register_customer(self):
        response = self.client.post('/api/v1/auth/register/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['email'], 'ada@example.com')
        self.assertEqual(response.data['user']['role'], User.ROLE_CUSTOMER)
        self.assertEqual(len(mail.outbox), 1)

    def test_register_cannot_request_admin_role(self):
        """Public registration downgrades admin to customer"""
        response = self.client.post('/api/v1/auth/register/', {**self.payload, 'role': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], User.ROLE_CUSTOMER)

    def test_register_supplier_role_allowed(self):
        response = self.client.post('/api/v1/auth/register/', {**self.payload, 'role': 'supplier'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], User.ROLE_SUPPLIER)

    def test_register_duplicate_email_case_insensitive(self):
        TestDataFactory.create_customer(email='ada@example.com')
        response = self.client.post('/api/v1/auth/register/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_register_invalid_phone(self):
        response = self.client.post('/api/v1/auth/register/', {**self.payload, 'whatsapp_number': 'abc'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('whatsapp_number', response.data)

    def test_register_missing_fields(self):
        response = self.client.post('/api/v1/auth/register/', {'email': 'x@test.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class LoginTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_customer(email='login@test.com', password='secret123')

    def test_login_with_email(self):
        response = self.client.post('/api/v1/auth/login/', {'email': 'LOGIN@test.com', 'password': 'secret123'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['id'], self.user.id)
        self.assertTrue(AuditLog.objects.filter(action='login', object_id=str(self.user.id)).exists())

    def test_login_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {'email': 'login@test.com', 'password': 'nope'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])

    def test_login_inactive_user(self):
        self.user.is_active = False
        self.user.save()
        response = self.client.post('/api/v1/auth/login/', {'email': 'login@test.com', 'password': 'secret123'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_token(self):
        login = self.client.post('/api/v1/auth/login/', {'email': 'login@test.com', 'password': 'secret123'},
                                 format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_refresh_invalid_token(self):
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': 'garbage'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ProfileTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_customer(password='secret123')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_me_requires_auth(self):
        self.client.logout()
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_get_and_update_profile(self):
        response = self.client.patch('/api/v1/auth/me/', {'city': 'Lagos', 'role': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.city, 'Lagos')
        self.assertEqual(self.user.role, User.ROLE_CUSTOMER)

    def test_change_password(self):
        response = self.client.post('/api/v1/auth/change-password/',
                                    {'current_password': 'secret123', 'new_password': 'newsecret1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('newsecret1'))

    def test_change_password_wrong_current(self):
        response = self.client.post('/api/v1/auth/change-password/',
                                    {'current_password': 'bad', 'new_password': 'newsecret1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_forgot_and_reset_password(self):
        response = self.client.post('/api/v1/auth/forgot-password/', {'email': self.user.email}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 1)

        uid = urlsafe_base64_encode(force_bytes(self.user.pk))
        token = default_token_generator.make_token(self.user)
        response = self.client.post('/api/v1/auth/reset-password/',
                                    {'uid': uid, 'token': token, 'new_password': 'reset1234'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('reset1234'))

    def test_forgot_password_unknown_email_same_response(self):
        response = self.client.post('/api/v1/auth/forgot-password/', {'email': 'ghost@test.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 0)

    def test_reset_password_bad_token(self):
        uid = urlsafe_base64_encode(force_bytes(self.user.pk))
        response = self.client.post('/api/v1/auth/reset-password/',
                                    {'uid': uid, 'token': 'bad-token', 'new_password': 'reset1234'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_first_address_becomes_default(self):
        response = self.client.post('/api/v1/auth/addresses/', {'street': 'Hall 3', 'hostel_room': 'B12'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['is_default'])

        self.client.post('/api/v1/auth/addresses/', {'street': 'Hall 5', 'is_default': True}, format='json')
        self.assertEqual(CustomerAddress.objects.filter(user=self.user, is_default=True).count(), 1)
        self.assertEqual(CustomerAddress.objects.get(user=self.user, is_default=True).street, 'Hall 5')


class UserAdminTests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_non_admin_forbidden(self):
        customer = TestDataFactory.create_customer()
        self.client.authenticate_user(customer)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(response.data['success'])

    def test_list_users_filtered_by_role(self):
        TestDataFactory.create_staff()
        TestDataFactory.create_customer()
        response = self.client.get('/api/v1/users/?role=staff')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['role'], 'staff')

    def test_admin_creates_staff(self):
        response = self.client.post('/api/v1/users/', {
            'first_name': 'Sam', 'last_name': 'Staff', 'email': 'sam@test.com',
            'password': 'secret123', 'role': 'staff',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['role'], 'staff')
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='User').exists())

    def test_toggle_status(self):
        customer = TestDataFactory.create_customer()
        response = self.client.post(f'/api/v1/users/{customer.id}/toggle-status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])

    def test_cannot_deactivate_self(self):
        response = self.client.post(f'/api/v1/users/{self.admin.id}/toggle-status/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_settings_crud(self):
        response = self.client.post('/api/v1/settings/', {'key': 'store_name', 'value': 'SalesHostel'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.patch('/api/v1/settings/store_name/', {'value': 'SH'}, format='json')
        self.assertEqual(response.data['value'], 'SH')

    def test_audit_log_list_and_detail(self):
        log = create_audit_log(action='update', model_name='Product', object_id=1, user=self.admin,
                               object_name='Rice', object_reference='P-1')
        response = self.client.get('/api/v1/audit-logs/?model_name=Product')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

        response = self.client.get(f'/api/v1/audit-logs/{log.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['object_name'], 'Rice')

    def test_audit_log_rejects_malformed_filters(self):
        response = self.client.get('/api/v1/audit-logs/?user=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_parameter')

        response = self.client.get('/api/v1/audit-logs/?date_from=notadate')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_date')

        response = self.client.get('/api/v1/audit-logs/?date_from=2024-02-01&date_to=2024-01-01')
        self.assertEqual(response.data['code'], 'invalid_date_range')

        response = self.client.get(f'/api/v1/audit-logs/?user={self.admin.id}&date_from=2024-01-01')
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class UtilsTests(TestCase):

    def test_parse_int(self):
        self.assertEqual(parse_int('5', 1), 5)
        self.assertEqual(parse_int('x', 1), 1)
        self.assertEqual(parse_int(None, 3), 3)

    def test_parse_date_range_defaults(self):
        class FakeRequest:
            query_params = {'date_from': '2024-03-01'}

        self.assertEqual(parse_date_range(FakeRequest()), (date(2024, 3, 1), None))
        self.assertEqual(parse_date_range(FakeRequest(), default_days=30), (date(2024, 3, 1), timezone.localdate()))

    def test_paginate_envelope(self):
        for _ in range(5):
            TestDataFactory.create_customer()

        class FakeRequest:
            query_params = {'page': '2', 'limit': '2'}

            def build_absolute_uri(self, *args):
                return 'http://testserver/api/v1/users/'

        data = paginate(User.objects.order_by('id'), FakeRequest(), UserSerializer, default_limit=2)
        self.assertEqual(data['count'], 5)
        self.assertEqual(data['page'], 2)
        self.assertEqual(data['total_pages'], 3)
        self.assertEqual(len(data['results']), 2)

    def test_user_role_properties(self):
        admin = TestDataFactory.create_admin()
        staff = TestDataFactory.create_staff()
        self.assertTrue(admin.is_staff_role)
        self.assertTrue(staff.is_staff_role)
        self.assertFalse(staff.is_admin_role)


class ManagementCommandTests(TestCase):

    def test_seed_data_is_idempotent(self):
        call_command('seed_data', stdout=StringIO())
        products = Product.objects.count()
        self.assertGreater(products, 0)
        self.assertTrue(User.objects.filter(role=User.ROLE_ADMIN).exists())

        call_command('seed_data', stdout=StringIO())
        self.assertEqual(Product.objects.count(), products)
        self.assertEqual(Category.objects.filter(name='Staple Foods').count(), 1)
