"""
Test suite for the suppliers module
Tests: supplier profiles, supply submission, receiving supplies into stock, admin supplier management
"""
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from saleshostel.core.exceptions import BusinessRuleError
from saleshostel.core.models import AuditLog
from saleshostel.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from saleshostel.inventory.models import StockMovement
from saleshostel.suppliers import services
from saleshostel.suppliers.models import SupplierProfile, Supply


class SupplyServiceTests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.supplier = TestDataFactory.create_supplier()
        product = TestDataFactory.create_product(name='Golden Penny Spaghetti')
        self.unit = TestDataFactory.create_unit(product, unit_type='Pack', stock=5, cost_price=Decimal('600.00'))

    def test_profile_created_on_first_access(self):
        profile = services.get_or_create_profile(self.supplier)
        self.assertEqual(profile.contact_email, self.supplier.email)
        self.assertEqual(profile.delivery_performance, 100)
        self.assertEqual(services.get_or_create_profile(self.supplier).pk, profile.pk)

    def test_total_price_computed(self):
        supply = TestDataFactory.create_supply(self.supplier, 'Golden Penny Spaghetti', 'Pack', 12, Decimal('550.00'))
        self.assertEqual(supply.total_price, Decimal('6600.00'))

    def test_receive_supply_adds_stock(self):
        supply = TestDataFactory.create_supply(self.supplier, 'golden penny spaghetti', 'Pack', 12, Decimal('550.00'))
        supply, movement = services.receive_supply(supply, self.admin)

        self.assertEqual(supply.status, Supply.STATUS_RECEIVED)
        self.assertEqual(supply.received_by, self.admin)
        self.unit.refresh_from_db()
        self.assertEqual(self.unit.stock_quantity, 17)
        self.assertEqual(self.unit.cost_price, Decimal('550.00'))
        self.assertEqual(movement.movement_type, 'purchase')
        self.assertEqual(movement.reference, f'SUP-{supply.id}')
        self.assertEqual((movement.quantity_before, movement.quantity_after), (5, 17))

        profile = SupplierProfile.objects.get(user=self.supplier)
        self.assertEqual(profile.total_supplies, 1)
        self.assertEqual(profile.total_value, Decimal('6600.00'))

    def test_receive_matches_partial_name(self):
        supply = TestDataFactory.create_supply(self.supplier, 'Spaghetti', 'Pack', 2)
        services.receive_supply(supply, self.admin)
        self.unit.refresh_from_db()
        self.assertEqual(self.unit.stock_quantity, 7)

    def test_receive_twice_rejected(self):
        supply = TestDataFactory.create_supply(self.supplier, 'Golden Penny Spaghetti', 'Pack')
        services.receive_supply(supply, self.admin)
        with self.assertRaises(BusinessRuleError) as ctx:
            services.receive_supply(supply, self.admin)
        self.assertEqual(ctx.exception.get_codes(), 'supply_processed')

    def test_unknown_product(self):
        supply = TestDataFactory.create_supply(self.supplier, 'Indomie', 'Pack')
        with self.assertRaises(BusinessRuleError) as ctx:
            services.receive_supply(supply, self.admin)
        self.assertEqual(ctx.exception.get_codes(), 'product_not_found')
        supply.refresh_from_db()
        self.assertEqual(supply.status, Supply.STATUS_PENDING)

    def test_unknown_unit_type_lists_available(self):
        supply = TestDataFactory.create_supply(self.supplier, 'Golden Penny Spaghetti', 'Carton')
        with self.assertRaises(BusinessRuleError) as ctx:
            services.receive_supply(supply, self.admin)
        self.assertEqual(ctx.exception.get_codes(), 'unit_not_found')
        self.assertIn('Pack', str(ctx.exception.detail))

    def test_cancel_rules(self):
        supply = TestDataFactory.create_supply(self.supplier, 'Golden Penny Spaghetti', 'Pack')
        services.cancel_supply(supply, self.admin)
        self.assertEqual(supply.status, Supply.STATUS_CANCELLED)
        with self.assertRaises(BusinessRuleError):
            services.cancel_supply(supply, self.admin)

        received = TestDataFactory.create_supply(self.supplier, 'Golden Penny Spaghetti', 'Pack')
        services.receive_supply(received, self.admin)
        received.refresh_from_db()
        with self.assertRaises(BusinessRuleError) as ctx:
            services.cancel_supply(received, self.admin)
        self.assertEqual(ctx.exception.get_codes(), 'supply_received')

    def test_supply_stats(self):
        TestDataFactory.create_supply(self.supplier, 'Golden Penny Spaghetti', 'Pack', 2, Decimal('100.00'))
        received = TestDataFactory.create_supply(self.supplier, 'Golden Penny Spaghetti', 'Pack', 4,
                                                 Decimal('100.00'))
        services.receive_supply(received, self.admin)

        stats = services.supply_stats()
        self.assertEqual(stats['total_supplies'], 2)
        self.assertEqual(stats['pending_supplies'], 1)
        self.assertEqual(stats['received_supplies'], 1)
        self.assertEqual(stats['total_value'], 400.0)
        self.assertEqual(stats['this_month_count'], 1)
        self.assertEqual(stats['top_suppliers'][0]['supplier_id'], self.supplier.id)


class SupplierPortalTests(TestCase):

    def setUp(self):
        self.supplier = TestDataFactory.create_supplier()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.supplier)

    def test_customer_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_customer())
        response = self.client.get('/api/v1/supplier/supplies/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_submit_supply(self):
        response = self.client.post('/api/v1/supplier/supplies/', {
            'product_name': '  Peak Milk  ',
            'unit_type': 'Tin',
            'number_of_quantity': 24,
            'price_per_unit': '350.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['product_name'], 'Peak Milk')
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(Decimal(response.data['total_price']), Decimal('8400.00'))

    def test_submit_supply_validation(self):
        response = self.client.post('/api/v1/supplier/supplies/', {
            'product_name': 'Peak Milk', 'unit_type': 'Crate', 'number_of_quantity': 0, 'price_per_unit': '1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('unit_type', response.data)
        self.assertIn('number_of_quantity', response.data)

    def test_sees_only_own_supplies(self):
        TestDataFactory.create_supply(self.supplier, 'Peak Milk')
        TestDataFactory.create_supply(TestDataFactory.create_supplier(), 'Peak Milk')
        response = self.client.get('/api/v1/supplier/supplies/')
        self.assertEqual(response.data['count'], 1)

    def test_update_only_pending(self):
        supply = TestDataFactory.create_supply(self.supplier, 'Peak Milk')
        response = self.client.patch(f'/api/v1/supplier/supplies/{supply.id}/', {'number_of_quantity': 30},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['number_of_quantity'], 30)

        Supply.objects.filter(pk=supply.pk).update(status=Supply.STATUS_CANCELLED)
        response = self.client.patch(f'/api/v1/supplier/supplies/{supply.id}/', {'number_of_quantity': 5},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'supply_processed')

    def test_profile_update_cannot_change_rating(self):
        response = self.client.patch('/api/v1/supplier/profile/', {'company_name': 'Mama Put Supplies', 'rating': 1},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['company_name'], 'Mama Put Supplies')
        self.assertEqual(response.data['rating'], 5)

    def test_dashboard(self):
        TestDataFactory.create_supply(self.supplier, 'Peak Milk')
        response = self.client.get('/api/v1/supplier/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['supplies']['pending_supplies'], 1)
        self.assertEqual(response.data['purchase_orders']['total_orders'], 0)
        self.assertEqual(len(response.data['recent_supplies']), 1)


class AdminSupplierTests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.supplier = TestDataFactory.create_supplier()

    def test_create_profile_with_new_account(self):
        response = self.client.post('/api/v1/admin/suppliers/', {
            'company_name': 'Lagos Foods',
            'contact_first_name': 'Ada',
            'contact_last_name': 'Obi',
            'contact_email': 'orders@lagosfoods.ng',
            'email': 'ada@lagosfoods.ng',
            'password': 'secret123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        profile = SupplierProfile.objects.get(company_name='Lagos Foods')
        self.assertEqual(profile.user.role, 'supplier')
        self.assertTrue(profile.user.check_password('secret123'))

    def test_create_profile_for_non_supplier_rejected(self):
        customer = TestDataFactory.create_customer()
        response = self.client.post('/api/v1/admin/suppliers/', {
            'company_name': 'Nope', 'contact_first_name': 'N', 'contact_last_name': 'O',
            'contact_email': 'nope@test.com', 'user_id': customer.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('user_id', response.data)

    def test_verify_supplier(self):
        profile = services.get_or_create_profile(self.supplier)
        response = self.client.post(f'/api/v1/admin/suppliers/{profile.id}/verify/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_verified'])
        self.assertTrue(AuditLog.objects.filter(action='supplier_verify').exists())

    def test_list_filters_and_stats(self):
        services.get_or_create_profile(self.supplier)
        verified = services.get_or_create_profile(TestDataFactory.create_supplier())
        services.verify_supplier(verified, self.admin)
        response = self.client.get('/api/v1/admin/suppliers/?is_verified=true')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['stats']['total_suppliers'], 2)
        self.assertEqual(response.data['stats']['verified_suppliers'], 1)

    def test_delete_blocked_with_pending_supplies(self):
        profile = services.get_or_create_profile(self.supplier)
        TestDataFactory.create_supply(self.supplier, 'Peak Milk')
        response = self.client.delete(f'/api/v1/admin/suppliers/{profile.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'supplier_in_use')

    def test_receive_endpoint(self):
        unit = TestDataFactory.create_unit(TestDataFactory.create_product(name='Peak Milk'), unit_type='Tin',
                                           stock=0)
        supply = TestDataFactory.create_supply(self.supplier, 'Peak Milk', 'Tin', 24)
        response = self.client.post(f'/api/v1/admin/supplies/{supply.id}/receive/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock']['previous_stock'], 0)
        self.assertEqual(response.data['stock']['new_stock'], 24)
        self.assertEqual(response.data['supply']['status'], 'received')
        self.assertTrue(StockMovement.objects.filter(unit=unit, reference_type='supply').exists())

    def test_receive_unknown_product_endpoint(self):
        supply = TestDataFactory.create_supply(self.supplier, 'Unknown Thing')
        response = self.client.post(f'/api/v1/admin/supplies/{supply.id}/receive/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'product_not_found')

    def test_supply_list_filters(self):
        TestDataFactory.create_supply(self.supplier, 'Peak Milk')
        cancelled = TestDataFactory.create_supply(self.supplier, 'Peak Milk')
        services.cancel_supply(cancelled, self.admin)
        response = self.client.get('/api/v1/admin/supplies/?status=cancelled')
        self.assertEqual(response.data['count'], 1)

    def test_performance(self):
        profile = services.get_or_create_profile(self.supplier)
        response = self.client.get(f'/api/v1/admin/suppliers/{profile.id}/performance/?period=7d')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['period'], '7d')
        self.assertEqual(response.data['performance']['total_supplies'], 0)
