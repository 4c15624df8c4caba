"""
Test suite for the inventory module
Tests: movement ledger, adjustments, reversals, stock counts, low stock alerts, retention cleanup
"""
from datetime import timedelta

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from decimal import Decimal
from io import StringIO
from saleshostel.core.exceptions import BusinessRuleError, InsufficientStockError
from saleshostel.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from saleshostel.inventory.models import StockMovement
from saleshostel.inventory import services


class RecordMovementTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_staff()
        self.unit = TestDataFactory.create_unit(stock=10, cost_price=Decimal('40.00'))

    def test_records_before_and_after(self):
        movement = services.record_movement(self.unit, 5, 'purchase', performed_by=self.user, unit_cost=Decimal('40.00'))
        self.assertEqual(movement.quantity_before, 10)
        self.assertEqual(movement.quantity_after, 15)
        self.assertEqual(movement.total_cost, Decimal('200.00'))
        self.assertEqual(movement.product_name, self.unit.product.name)
        self.unit.refresh_from_db()
        self.assertEqual(self.unit.stock_quantity, 15)

    def test_stock_never_negative(self):
        movement = services.record_movement(self.unit, -25, 'damage')
        self.assertEqual(movement.quantity_after, 0)
        self.unit.refresh_from_db()
        self.assertEqual(self.unit.stock_quantity, 0)

    def test_description_and_direction(self):
        movement = services.record_movement(self.unit, -2, 'sale')
        self.assertEqual(movement.direction, 'out')
        self.assertIn('Removed 2', movement.description)

    def test_snapshot_survives_product_delete(self):
        movement = services.record_movement(self.unit, 1, 'purchase')
        self.unit.product.delete()
        movement.refresh_from_db()
        self.assertIsNone(movement.unit_id)
        self.assertTrue(movement.product_name)


class AdjustmentServiceTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_staff()
        self.unit = TestDataFactory.create_unit(stock=10)

    def test_set_adjustment(self):
        movement = services.adjust_stock(self.unit, 'set', 4, 'Recount', self.user)
        self.assertEqual(movement.quantity_changed, -6)
        self.assertEqual(movement.quantity_after, 4)

    def test_remove_more_than_stock(self):
        with self.assertRaises(InsufficientStockError):
            services.adjust_stock(self.unit, 'remove', 11, 'Spoilt', self.user)

    def test_set_to_same_level_rejected(self):
        with self.assertRaises(BusinessRuleError):
            services.adjust_stock(self.unit, 'set', 10, 'No-op', self.user)

    def test_reverse_movement(self):
        movement = services.adjust_stock(self.unit, 'add', 5, 'Found stock', self.user)
        reversal = services.reverse_movement(movement, self.user, 'Counted twice')
        self.assertEqual(reversal.quantity_changed, -5)
        self.assertEqual(reversal.reversal_of, movement)
        movement.refresh_from_db()
        self.assertTrue(movement.is_reversed)
        self.unit.refresh_from_db()
        self.assertEqual(self.unit.stock_quantity, 10)

        with self.assertRaises(BusinessRuleError):
            services.reverse_movement(movement, self.user, 'Again')

    def test_stock_count_report(self):
        other = TestDataFactory.create_unit(stock=3)
        report = services.perform_stock_count(
            [{'unit': self.unit, 'counted_quantity': 8}, {'unit': other, 'counted_quantity': 3}], self.user
        )
        self.assertEqual(report['items_counted'], 2)
        self.assertEqual(report['discrepancies'], 1)
        self.assertEqual(report['total_difference'], -2)
        self.assertEqual(StockMovement.objects.filter(movement_type='audit').count(), 1)

    def test_cleanup_old_movements_keeps_reversed_and_sales(self):
        old = timezone.now() - timedelta(days=400)
        adjustment = services.adjust_stock(self.unit, 'add', 1, 'Old', self.user)
        sale = services.record_movement(self.unit, -1, 'sale')
        reversed_one = services.adjust_stock(self.unit, 'add', 2, 'Old reversed', self.user)
        reversed_one.is_reversed = True
        reversed_one.save()
        StockMovement.objects.filter(pk__in=[adjustment.pk, sale.pk, reversed_one.pk]).update(movement_date=old)

        deleted = services.cleanup_old_movements(365)
        self.assertEqual(deleted, 1)
        self.assertFalse(StockMovement.objects.filter(pk=adjustment.pk).exists())
        self.assertTrue(StockMovement.objects.filter(pk=sale.pk).exists())
        self.assertTrue(StockMovement.objects.filter(pk=reversed_one.pk).exists())

    def test_cleanup_command(self):
        out = StringIO()
        call_command('cleanup_stock_movements', '--days', '30', stdout=out)
        self.assertIn('Deleted 0 stock movements', out.getvalue())


class InventoryAPITests(TestCase):

    def setUp(self):
        self.staff = TestDataFactory.create_staff()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.staff)
        self.unit = TestDataFactory.create_unit(stock=10, min_stock_level=5)

    def test_customer_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_customer())
        response = self.client.get('/api/v1/inventory/movements/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_adjust_stock_creates_movement_and_audit(self):
        response = self.client.post('/api/v1/inventory/adjust/', {
            'unit': self.unit.id, 'adjustment_type': 'add', 'quantity': 5, 'reason': 'Delivery',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['quantity_after'], 15)
        self.assertEqual(response.data['direction'], 'in')

    def test_adjust_zero_quantity_rejected(self):
        response = self.client.post('/api/v1/inventory/adjust/', {
            'unit': self.unit.id, 'adjustment_type': 'add', 'quantity': 0, 'reason': 'Nothing',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_adjust_remove_insufficient(self):
        response = self.client.post('/api/v1/inventory/adjust/', {
            'unit': self.unit.id, 'adjustment_type': 'remove', 'quantity': 50, 'reason': 'Spoilt',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'insufficient_stock')
        self.assertEqual(response.data['available'], 10)

    def test_reverse_requires_admin(self):
        movement = services.adjust_stock(self.unit, 'add', 2, 'Found', self.staff)
        response = self.client.post(f'/api/v1/inventory/movements/{movement.id}/reverse/', {'reason': 'Oops'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.post(f'/api/v1/inventory/movements/{movement.id}/reverse/', {'reason': 'Oops'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_movement_list_filters(self):
        services.adjust_stock(self.unit, 'add', 2, 'Found', self.staff)
        services.record_movement(self.unit, -1, 'sale', reference='SH2401010001', reference_type='order')
        response = self.client.get('/api/v1/inventory/movements/?movement_type=sale')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/inventory/movements/?reference=SH24')
        self.assertEqual(response.data['count'], 1)

    def test_movement_filters_reject_malformed_values(self):
        for query in ('product=abc', 'unit=1.5', 'date_from=notadate', 'date_to=2024-13-01'):
            response = self.client.get(f'/api/v1/inventory/movements/?{query}')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, query)
            self.assertFalse(response.data['success'])

        response = self.client.get('/api/v1/inventory/movements/summary/?performed_by=me')
        self.assertEqual(response.data['code'], 'invalid_parameter')

        response = self.client.get(f'/api/v1/inventory/movements/?product={self.unit.product_id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_stock_count_endpoint(self):
        response = self.client.post('/api/v1/inventory/count/', {
            'counts': [{'unit': self.unit.id, 'counted_quantity': 7}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['discrepancies'], 1)
        self.unit.refresh_from_db()
        self.assertEqual(self.unit.stock_quantity, 7)

    def test_movement_summary(self):
        services.adjust_stock(self.unit, 'add', 4, 'Found', self.staff)
        services.adjust_stock(self.unit, 'remove', 1, 'Spoilt', self.staff)
        response = self.client.get('/api/v1/inventory/movements/summary/')
        row = response.data['summary'][0]
        self.assertEqual(row['movement_type'], 'adjustment')
        self.assertEqual(row['total_quantity_in'], 4)
        self.assertEqual(row['total_quantity_out'], 1)

    def test_low_stock_alerts(self):
        low = TestDataFactory.create_unit(stock=2, min_stock_level=5)
        response = self.client.get('/api/v1/inventory/low-stock/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        unit_ids = [row['unit_id'] for row in response.data['results']]
        self.assertIn(low.id, unit_ids)
        self.assertNotIn(self.unit.id, unit_ids)

    def test_low_stock_skips_unavailable_units(self):
        hidden = TestDataFactory.create_unit(stock=1, min_stock_level=5)
        hidden.is_available = False
        hidden.save()
        self.assertNotIn(hidden, services.low_stock_units())

    def test_overview_stock_status_filter(self):
        TestDataFactory.create_unit(stock=0)
        response = self.client.get('/api/v1/inventory/?stock_status=out_of_stock')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['summary']['out_of_stock_count'], 1)
