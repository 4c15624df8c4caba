"""
Test suite for the purchasing module
Tests: purchase order lifecycle, payment terms, incremental receiving, supplier portal actions
"""
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from decimal import Decimal
from saleshostel.core.exceptions import BusinessRuleError, InvalidStatusTransition
from saleshostel.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from saleshostel.inventory.models import StockMovement
from saleshostel.purchasing import services
from saleshostel.purchasing.models import PurchaseOrder
from saleshostel.suppliers.models import SupplierProfile


class PurchaseOrderTestMixin:

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.supplier = TestDataFactory.create_supplier()
        self.rice = TestDataFactory.create_unit(TestDataFactory.create_product(name='Rice'), unit_type='Bag',
                                                stock=2, cost_price=Decimal('40000.00'))
        self.oil = TestDataFactory.create_unit(TestDataFactory.create_product(name='Groundnut Oil'),
                                               unit_type='Bottle', stock=0)

    def create_order(self, **fields):
        fields.setdefault('expected_delivery_date', timezone.localdate() + timedelta(days=3))
        fields.setdefault('delivery_address', 'Main Store')
        return services.create_purchase_order(self.supplier, [
            {'unit': self.rice, 'quantity_ordered': 10, 'unit_cost': Decimal('42000.00')},
            {'unit': self.oil, 'quantity_ordered': 20, 'unit_cost': Decimal('1500.00')},
        ], self.admin, **fields)

    def receipt(self, purchase_order, unit, quantity, damaged=0):
        item = purchase_order.items.get(unit=unit)
        return {'item_id': item.id, 'quantity_received': quantity, 'damaged_quantity': damaged}


class PurchaseOrderServiceTests(PurchaseOrderTestMixin, TestCase):

    def test_create_draft(self):
        purchase_order = self.create_order(shipping_cost=Decimal('5000.00'))
        self.assertEqual(purchase_order.status, PurchaseOrder.STATUS_DRAFT)
        self.assertTrue(purchase_order.order_number.startswith('PO'))
        self.assertEqual(purchase_order.subtotal, Decimal('450000.00'))
        self.assertEqual(purchase_order.total_amount, Decimal('455000.00'))
        self.assertEqual(purchase_order.supplier_email, self.supplier.email)
        self.assertEqual(purchase_order.payment_status, PurchaseOrder.PAYMENT_PENDING)
        self.assertEqual(purchase_order.total_items, 30)

    def test_only_suppliers(self):
        with self.assertRaises(BusinessRuleError):
            services.create_purchase_order(TestDataFactory.create_customer(), [
                {'unit': self.rice, 'quantity_ordered': 1, 'unit_cost': Decimal('1.00')}
            ], self.admin, expected_delivery_date=timezone.localdate(), delivery_address='Main Store')

    def test_payment_due_date_follows_terms(self):
        expected = timezone.localdate() + timedelta(days=3)
        purchase_order = self.create_order(payment_terms='net-7', expected_delivery_date=expected)
        self.assertEqual(purchase_order.payment_due_date, expected + timedelta(days=7))

        advance = self.create_order(payment_terms='advance-payment')
        self.assertEqual(advance.payment_due_date, timezone.localdate(advance.order_date))

    def test_overdue_status(self):
        purchase_order = self.create_order()
        later = purchase_order.payment_due_date + timedelta(days=1)
        self.assertEqual(purchase_order.compute_payment_status(today=later), PurchaseOrder.PAYMENT_OVERDUE)

    def test_edit_only_draft(self):
        purchase_order = self.create_order()
        services.update_purchase_order(purchase_order, self.admin, discount=Decimal('1000.00'))
        self.assertEqual(purchase_order.total_amount, Decimal('449000.00'))

        services.send_purchase_order(purchase_order, self.admin)
        with self.assertRaises(BusinessRuleError) as ctx:
            services.update_purchase_order(purchase_order, self.admin, notes='late edit')
        self.assertEqual(ctx.exception.get_codes(), 'not_draft')

    def test_lifecycle_transitions(self):
        purchase_order = self.create_order()
        with self.assertRaises(InvalidStatusTransition):
            services.confirm_purchase_order(purchase_order, self.supplier)
        services.send_purchase_order(purchase_order, self.admin)
        self.assertEqual(purchase_order.approved_by, self.admin)
        services.confirm_purchase_order(purchase_order, self.supplier)
        self.assertIsNotNone(purchase_order.confirmed_at)
        with self.assertRaises(InvalidStatusTransition):
            services.complete_purchase_order(purchase_order, self.admin)
        self.assertEqual(purchase_order.status_history.count(), 3)

    def test_reject_records_reason(self):
        purchase_order = self.create_order()
        services.send_purchase_order(purchase_order, self.admin)
        services.reject_purchase_order(purchase_order, self.supplier, 'Out of stock')
        self.assertEqual(purchase_order.status, PurchaseOrder.STATUS_CANCELLED)
        self.assertEqual(purchase_order.cancellation_reason, 'Out of stock')

    def test_incremental_receipts(self):
        purchase_order = self.create_order()
        services.send_purchase_order(purchase_order, self.admin)

        purchase_order, movements = services.receive_items(
            purchase_order, [self.receipt(purchase_order, self.rice, 6, damaged=1)], self.admin
        )
        self.assertEqual(purchase_order.status, PurchaseOrder.STATUS_PARTIALLY_RECEIVED)
        self.assertEqual(len(movements), 1)
        self.rice.refresh_from_db()
        self.assertEqual(self.rice.stock_quantity, 7)
        self.assertEqual(self.rice.cost_price, Decimal('42000.00'))
        self.assertEqual(purchase_order.completion_percentage, 20)

        services.receive_items(purchase_order, [
            self.receipt(purchase_order, self.rice, 4),
            self.receipt(purchase_order, self.oil, 20),
        ], self.admin)
        self.assertEqual(purchase_order.status, PurchaseOrder.STATUS_RECEIVED)
        self.assertEqual(purchase_order.actual_delivery_date, timezone.localdate())
        self.oil.refresh_from_db()
        self.assertEqual(self.oil.stock_quantity, 20)
        self.assertEqual(
            StockMovement.objects.filter(reference=purchase_order.order_number, reference_type='purchase-order').count(),
            3
        )

        profile = SupplierProfile.objects.get(user=self.supplier)
        self.assertEqual(profile.on_time_deliveries, 1)
        self.assertEqual(profile.total_value, purchase_order.total_amount)

        services.complete_purchase_order(purchase_order, self.admin)
        self.assertEqual(purchase_order.status, PurchaseOrder.STATUS_COMPLETED)

    def test_over_receipt_rejected(self):
        purchase_order = self.create_order()
        services.send_purchase_order(purchase_order, self.admin)
        with self.assertRaises(BusinessRuleError) as ctx:
            services.receive_items(purchase_order, [self.receipt(purchase_order, self.rice, 11)], self.admin)
        self.assertEqual(ctx.exception.get_codes(), 'over_receipt')
        self.rice.refresh_from_db()
        self.assertEqual(self.rice.stock_quantity, 2)

    def test_damaged_cannot_exceed_received(self):
        purchase_order = self.create_order()
        services.send_purchase_order(purchase_order, self.admin)
        with self.assertRaises(BusinessRuleError) as ctx:
            services.receive_items(purchase_order, [self.receipt(purchase_order, self.rice, 2, damaged=3)],
                                   self.admin)
        self.assertEqual(ctx.exception.get_codes(), 'invalid_quantity')

    def test_draft_not_receivable(self):
        purchase_order = self.create_order()
        with self.assertRaises(BusinessRuleError) as ctx:
            services.receive_items(purchase_order, [self.receipt(purchase_order, self.rice, 1)], self.admin)
        self.assertEqual(ctx.exception.get_codes(), 'not_receivable')

    def test_payments(self):
        purchase_order = self.create_order()
        with self.assertRaises(BusinessRuleError):
            services.add_payment(purchase_order, Decimal('100.00'), 'cash', self.admin)

        services.send_purchase_order(purchase_order, self.admin)
        services.add_payment(purchase_order, Decimal('200000.00'), 'bank-transfer', self.admin, 'TRF-1')
        self.assertEqual(purchase_order.payment_status, PurchaseOrder.PAYMENT_PARTIAL)
        self.assertEqual(purchase_order.outstanding_balance, Decimal('250000.00'))

        with self.assertRaises(BusinessRuleError) as ctx:
            services.add_payment(purchase_order, Decimal('250000.01'), 'cash', self.admin)
        self.assertEqual(ctx.exception.get_codes(), 'overpayment')

        services.add_payment(purchase_order, Decimal('250000.00'), 'cash', self.admin)
        self.assertEqual(purchase_order.payment_status, PurchaseOrder.PAYMENT_PAID)
        self.assertEqual(purchase_order.payments.count(), 2)

    def test_expected_delivery_rules(self):
        purchase_order = self.create_order()
        next_week = timezone.localdate() + timedelta(days=7)
        with self.assertRaises(BusinessRuleError):
            services.update_expected_delivery(purchase_order, next_week, self.supplier)

        services.send_purchase_order(purchase_order, self.admin)
        with self.assertRaises(BusinessRuleError) as ctx:
            services.update_expected_delivery(purchase_order, timezone.localdate() - timedelta(days=1), self.supplier)
        self.assertEqual(ctx.exception.get_codes(), 'invalid_date')

        services.update_expected_delivery(purchase_order, next_week, self.supplier)
        self.assertEqual(purchase_order.expected_delivery_date, next_week)
        self.assertEqual(purchase_order.payment_due_date, next_week)

    def test_statistics(self):
        self.create_order()
        sent = self.create_order()
        services.send_purchase_order(sent, self.admin)
        stats = services.statistics()
        self.assertEqual(stats['total_orders'], 2)
        self.assertEqual(stats['pending_orders'], 2)
        self.assertEqual(stats['open_orders'], 1)
        self.assertEqual(stats['by_status']['draft'], 1)
        self.assertEqual(stats['outstanding'], 900000.0)


class AdminPurchaseOrderAPITests(PurchaseOrderTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_via_api(self):
        response = self.client.post('/api/v1/admin/purchase-orders/', {
            'supplier_id': self.supplier.id,
            'items': [{'unit': self.rice.id, 'quantity_ordered': 5, 'unit_cost': '41000.00'}],
            'expected_delivery_date': (timezone.localdate() + timedelta(days=2)).isoformat(),
            'delivery_address': 'Main Store',
            'payment_terms': 'net-15',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'draft')
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('205000.00'))
        self.assertEqual(len(response.data['items']), 1)

    def test_create_rejects_duplicate_units(self):
        line = {'unit': self.rice.id, 'quantity_ordered': 1, 'unit_cost': '1.00'}
        response = self.client.post('/api/v1/admin/purchase-orders/', {
            'supplier_id': self.supplier.id,
            'items': [line, line],
            'expected_delivery_date': timezone.localdate().isoformat(),
            'delivery_address': 'Main Store',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)

    def test_create_rejects_non_supplier(self):
        response = self.client.post('/api/v1/admin/purchase-orders/', {
            'supplier_id': TestDataFactory.create_customer().id,
            'items': [{'unit': self.rice.id, 'quantity_ordered': 1, 'unit_cost': '1.00'}],
            'expected_delivery_date': timezone.localdate().isoformat(),
            'delivery_address': 'Main Store',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('supplier_id', response.data)

    def test_send_receive_and_pay(self):
        purchase_order = self.create_order()
        response = self.client.post(f'/api/v1/admin/purchase-orders/{purchase_order.id}/send/')
        self.assertEqual(response.data['status'], 'sent')

        item = purchase_order.items.get(unit=self.oil)
        response = self.client.post(f'/api/v1/admin/purchase-orders/{purchase_order.id}/receive/', {
            'items': [{'item_id': item.id, 'quantity_received': 5, 'batch_number': 'B-77'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'partially-received')
        self.assertEqual(StockMovement.objects.get(unit=self.oil).batch_number, 'B-77')

        response = self.client.post(f'/api/v1/admin/purchase-orders/{purchase_order.id}/payments/', {
            'amount': '10000.00', 'payment_method': 'cheque',
        }, format='json')
        self.assertEqual(response.data['payment_status'], 'partial')

    def test_delete_only_draft(self):
        purchase_order = self.create_order()
        services.send_purchase_order(purchase_order, self.admin)
        response = self.client.delete(f'/api/v1/admin/purchase-orders/{purchase_order.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        draft = self.create_order()
        response = self.client.delete(f'/api/v1/admin/purchase-orders/{draft.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_list_status_filter(self):
        self.create_order()
        cancelled = self.create_order()
        services.cancel_purchase_order(cancelled, self.admin, 'Not needed')
        response = self.client.get('/api/v1/admin/purchase-orders/?status=draft,sent')
        self.assertEqual(response.data['count'], 1)

    def test_list_rejects_malformed_filters(self):
        response = self.client.get('/api/v1/admin/purchase-orders/?date_from=notadate')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_date')

        response = self.client.get('/api/v1/admin/purchase-orders/?supplier=acme')
        self.assertEqual(response.data['code'], 'invalid_parameter')

        response = self.client.get('/api/v1/admin/purchase-orders/statistics/?date_to=31-01-2024')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class SupplierPurchaseOrderAPITests(PurchaseOrderTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.supplier)

    def test_drafts_hidden(self):
        draft = self.create_order()
        sent = self.create_order()
        services.send_purchase_order(sent, self.admin)

        response = self.client.get('/api/v1/supplier/purchase-orders/')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get(f'/api/v1/supplier/purchase-orders/{draft.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_internal_notes_hidden(self):
        purchase_order = self.create_order(internal_notes='Negotiate next time')
        services.send_purchase_order(purchase_order, self.admin)
        response = self.client.get(f'/api/v1/supplier/purchase-orders/{purchase_order.id}/')
        self.assertNotIn('internal_notes', response.data)

    def test_other_suppliers_orders_hidden(self):
        purchase_order = self.create_order()
        services.send_purchase_order(purchase_order, self.admin)
        self.client.authenticate_user(TestDataFactory.create_supplier())
        response = self.client.post(f'/api/v1/supplier/purchase-orders/{purchase_order.id}/confirm/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_confirm(self):
        purchase_order = self.create_order()
        services.send_purchase_order(purchase_order, self.admin)
        response = self.client.post(f'/api/v1/supplier/purchase-orders/{purchase_order.id}/confirm/',
                                    {'notes': 'Will deliver Friday'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'confirmed')

    def test_reject_requires_reason(self):
        purchase_order = self.create_order()
        services.send_purchase_order(purchase_order, self.admin)
        response = self.client.post(f'/api/v1/supplier/purchase-orders/{purchase_order.id}/reject/', {},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f'/api/v1/supplier/purchase-orders/{purchase_order.id}/reject/',
                                    {'reason': 'Prices changed'}, format='json')
        self.assertEqual(response.data['status'], 'cancelled')

    def test_move_delivery_date(self):
        purchase_order = self.create_order()
        services.send_purchase_order(purchase_order, self.admin)
        new_date = timezone.localdate() + timedelta(days=10)
        response = self.client.patch(f'/api/v1/supplier/purchase-orders/{purchase_order.id}/delivery-date/',
                                     {'expected_delivery_date': new_date.isoformat()}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['expected_delivery_date'], new_date.isoformat())

    def test_analytics_scoped_to_supplier(self):
        self.create_order()
        services.create_purchase_order(TestDataFactory.create_supplier(), [
            {'unit': self.rice, 'quantity_ordered': 1, 'unit_cost': Decimal('1.00')}
        ], self.admin, expected_delivery_date=timezone.localdate(), delivery_address='Main Store')
        response = self.client.get('/api/v1/supplier/purchase-orders/analytics/')
        self.assertEqual(response.data['total_orders'], 1)
