"""
Test suite for the orders module
Tests: checkout, stock deduction, status workflow, cancellation restock, payments, refunds, walk-in orders
"""
from unittest.mock import patch

import requests
from django.conf import settings
from django.core import mail
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from saleshostel.cart.services import add_item, get_or_create_cart
from saleshostel.core.exceptions import BusinessRuleError, InsufficientStockError, InvalidStatusTransition
from saleshostel.core.models import CustomerAddress
from saleshostel.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from saleshostel.inventory.models import StockMovement
from saleshostel.orders.models import Order, OrderStatusHistory
from saleshostel.orders import services
from saleshostel.payments.models import Payment


class OrderModelTests(TestCase):

    def test_order_number_sequence(self):
        first = TestDataFactory.create_order()
        second = TestDataFactory.create_order()
        self.assertTrue(first.order_number.startswith('SH'))
        self.assertEqual(len(first.order_number), 12)
        self.assertEqual(int(second.order_number[-4:]), int(first.order_number[-4:]) + 1)

    def test_order_number_drawn_again_when_taken(self):
        taken = TestDataFactory.create_order().order_number
        fresh = f'{taken[:-4]}9999'
        with patch.object(Order, 'generate_order_number', side_effect=[taken, fresh]):
            order = TestDataFactory.create_order()
        self.assertEqual(order.order_number, fresh)
        self.assertEqual(Order.objects.filter(order_number=taken).count(), 1)

    def test_tracking_number_only_for_delivery(self):
        pickup = TestDataFactory.create_order()
        delivery = TestDataFactory.create_order(order_type=Order.TYPE_DELIVERY)
        self.assertIsNone(pickup.tracking_number)
        self.assertTrue(delivery.tracking_number.startswith('TRK'))

    def test_estimated_prep_time_minimum(self):
        order = TestDataFactory.create_order(lines=[(TestDataFactory.create_unit(), 1)])
        self.assertEqual(order.estimated_prep_time, 15)
        big = TestDataFactory.create_order(lines=[(TestDataFactory.create_unit(), 20)])
        self.assertEqual(big.estimated_prep_time, 40)

    def test_delivery_time_window(self):
        self.assertIsNone(TestDataFactory.create_order().delivery_time_window)
        window = TestDataFactory.create_order(order_type=Order.TYPE_DELIVERY).delivery_time_window
        self.assertLess(window['earliest'], window['latest'])


class CheckoutServiceTests(TestCase):

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        self.unit = TestDataFactory.create_unit(price=Decimal('1000.00'), stock=10, min_stock_level=2)
        self.cart = get_or_create_cart(self.customer)

    def test_checkout_pickup(self):
        add_item(self.cart, self.unit.product, self.unit, 3)
        with self.captureOnCommitCallbacks(execute=True):
            order = services.checkout(self.customer, Order.TYPE_PICKUP)

        self.assertEqual(order.status, Order.STATUS_PENDING)
        self.assertEqual(order.subtotal, Decimal('3000.00'))
        self.assertEqual(order.delivery_fee, Decimal('0.00'))
        self.assertEqual(order.total_amount, Decimal('3000.00'))
        self.assertEqual(order.items.get().unit_cost, self.unit.cost_price)
        self.unit.refresh_from_db()
        self.assertEqual(self.unit.stock_quantity, 7)
        self.assertEqual(self.cart.items.count(), 0)

        movement = StockMovement.objects.get(reference=order.order_number)
        self.assertEqual(movement.movement_type, 'sale')
        self.assertEqual(movement.quantity_changed, -3)

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.total_orders, 1)
        self.assertEqual(self.customer.total_spent, Decimal('3000.00'))
        self.assertEqual(len(mail.outbox), 1)

    def test_checkout_delivery_adds_fee_below_threshold(self):
        add_item(self.cart, self.unit.product, self.unit, 2)
        order = services.checkout(self.customer, Order.TYPE_DELIVERY, address={'street': 'Hall 2'})
        self.assertEqual(order.delivery_fee, Decimal(str(settings.SALESHOSTEL['DELIVERY_FEE'])))
        self.assertEqual(order.total_amount, Decimal('2000.00') + order.delivery_fee)
        self.assertIsNotNone(order.tracking_number)

    def test_checkout_delivery_free_above_threshold(self):
        add_item(self.cart, self.unit.product, self.unit, 6)
        order = services.checkout(self.customer, Order.TYPE_DELIVERY, address={'street': 'Hall 2'})
        self.assertEqual(order.delivery_fee, Decimal('0.00'))

    def test_checkout_delivery_requires_address(self):
        add_item(self.cart, self.unit.product, self.unit, 1)
        with self.assertRaises(BusinessRuleError) as ctx:
            services.checkout(self.customer, Order.TYPE_DELIVERY)
        self.assertEqual(ctx.exception.get_codes(), 'address_required')

    def test_checkout_empty_cart(self):
        with self.assertRaises(BusinessRuleError) as ctx:
            services.checkout(self.customer, Order.TYPE_PICKUP)
        self.assertEqual(ctx.exception.get_codes(), 'cart_empty')

    def test_checkout_stale_cart_rejected(self):
        add_item(self.cart, self.unit.product, self.unit, 5)
        self.unit.stock_quantity = 2
        self.unit.save()
        with self.assertRaises(BusinessRuleError) as ctx:
            services.checkout(self.customer, Order.TYPE_PICKUP)
        self.assertEqual(ctx.exception.get_codes(), 'cart_invalid')
        self.assertFalse(Order.objects.exists())

    def test_walk_in_order_is_paid_and_confirmed(self):
        staff = TestDataFactory.create_staff()
        order = services.create_walk_in_order(staff, 'Counter Buyer', [(self.unit, 2)])
        self.assertEqual(order.status, Order.STATUS_CONFIRMED)
        self.assertEqual(order.payment_status, Order.PAYMENT_PAID)
        self.assertEqual(order.handled_by, staff)
        self.assertEqual(order.delivery_fee, Decimal('0.00'))
        self.assertIsNotNone(order.estimated_ready)

    def test_walk_in_insufficient_stock(self):
        staff = TestDataFactory.create_staff()
        with self.assertRaises(InsufficientStockError):
            services.create_walk_in_order(staff, 'Counter Buyer', [(self.unit, 50)])
        self.assertFalse(Order.objects.exists())
        self.unit.refresh_from_db()
        self.assertEqual(self.unit.stock_quantity, 10)


class StatusWorkflowTests(TestCase):

    def setUp(self):
        self.staff = TestDataFactory.create_staff()
        self.customer = TestDataFactory.create_customer()
        self.unit = TestDataFactory.create_unit(stock=10)
        self.order = TestDataFactory.create_order(self.customer, [(self.unit, 2)])

    def advance(self, *statuses):
        for new_status in statuses:
            services.change_status(self.order, new_status, self.staff)

    def test_full_pickup_flow(self):
        self.advance(Order.STATUS_CONFIRMED, Order.STATUS_PREPARING, Order.STATUS_READY, Order.STATUS_DELIVERED)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_DELIVERED)
        self.assertIsNotNone(self.order.actual_ready)
        self.assertIsNotNone(self.order.actual_delivery)
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PAID)
        self.assertEqual(self.order.handled_by, self.staff)
        self.assertEqual(OrderStatusHistory.objects.filter(order=self.order).count(), 4)

    def test_skipping_steps_rejected(self):
        with self.assertRaises(InvalidStatusTransition) as ctx:
            services.change_status(self.order, Order.STATUS_READY, self.staff)
        self.assertEqual(ctx.exception.extra['allowed_statuses'], [Order.STATUS_CONFIRMED, Order.STATUS_CANCELLED])

    def test_pickup_cannot_go_out_for_delivery(self):
        self.advance(Order.STATUS_CONFIRMED, Order.STATUS_PREPARING, Order.STATUS_READY)
        self.assertNotIn(Order.STATUS_OUT_FOR_DELIVERY, services.allowed_transitions(self.order))
        with self.assertRaises(InvalidStatusTransition):
            services.change_status(self.order, Order.STATUS_OUT_FOR_DELIVERY, self.staff)

    def test_delivery_flow_sets_delivered_by(self):
        order = TestDataFactory.create_order(self.customer, [(self.unit, 1)], order_type=Order.TYPE_DELIVERY)
        for new_status in (Order.STATUS_CONFIRMED, Order.STATUS_PREPARING, Order.STATUS_READY,
                           Order.STATUS_OUT_FOR_DELIVERY, Order.STATUS_DELIVERED):
            services.change_status(order, new_status, self.staff)
        self.assertEqual(order.delivered_by, self.staff)
        self.assertIsNotNone(order.estimated_delivery)

    def test_refunded_only_through_refund(self):
        with self.assertRaises(InvalidStatusTransition):
            services.change_status(self.order, Order.STATUS_REFUNDED, self.staff)

    def test_cancel_restocks(self):
        self.unit.stock_quantity = 8
        self.unit.save()
        services.cancel_order(self.order, self.staff, 'Out of packaging')
        self.unit.refresh_from_db()
        self.assertEqual(self.unit.stock_quantity, 10)
        self.assertEqual(self.order.status, Order.STATUS_CANCELLED)
        self.assertEqual(self.order.cancellation_reason, 'Out of packaging')
        movement = StockMovement.objects.get(reference=self.order.order_number, movement_type='return')
        self.assertEqual(movement.quality_status, 'returned')

    def test_second_cancel_of_stale_copy_does_not_restock_again(self):
        stale = Order.objects.get(pk=self.order.pk)
        services.cancel_order(self.order, self.staff, 'Out of packaging')
        with self.assertRaises(InvalidStatusTransition):
            services.cancel_order(stale, self.staff, 'Duplicate click')
        self.assertEqual(
            StockMovement.objects.filter(reference=self.order.order_number, movement_type='return').count(), 1
        )

    def test_cannot_cancel_delivered(self):
        self.advance(Order.STATUS_CONFIRMED, Order.STATUS_PREPARING, Order.STATUS_READY, Order.STATUS_DELIVERED)
        with self.assertRaises(InvalidStatusTransition):
            services.cancel_order(self.order, self.staff)

    def test_assign_requires_staff(self):
        with self.assertRaises(BusinessRuleError):
            services.assign_order(self.order, self.customer, self.staff)
        services.assign_order(self.order, self.staff, self.staff)
        self.assertEqual(self.order.handled_by, self.staff)

    def test_record_payment_must_cover_total(self):
        with self.assertRaises(BusinessRuleError) as ctx:
            services.record_payment(self.order, self.order.total_amount - 1)
        self.assertEqual(ctx.exception.get_codes(), 'insufficient_amount')
        services.record_payment(self.order, self.order.total_amount, 'transfer', 'TRX-1', self.staff)
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PAID)
        with self.assertRaises(BusinessRuleError):
            services.record_payment(self.order, self.order.total_amount)

    def test_customer_payment_does_not_claim_order(self):
        services.record_payment(self.order, self.order.total_amount, 'card', 'SH_1_1', self.customer)
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PAID)
        self.assertIsNone(self.order.handled_by)


class RefundAndRatingTests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_customer()
        self.order = TestDataFactory.create_order(
            self.customer, [(TestDataFactory.create_unit(price=Decimal('500.00')), 2)],
            status=Order.STATUS_DELIVERED, payment_status=Order.PAYMENT_PAID
        )

    def test_partial_then_full_refund(self):
        services.refund_order(self.order, Decimal('400.00'), 'Damaged item', self.admin)
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PARTIALLY_REFUNDED)
        self.assertEqual(self.order.status, Order.STATUS_DELIVERED)

        services.refund_order(self.order, Decimal('600.00'), 'Rest of order', self.admin)
        self.assertEqual(self.order.status, Order.STATUS_REFUNDED)
        self.assertEqual(self.order.payment_status, Order.PAYMENT_REFUNDED)
        self.assertEqual(self.order.refund_amount, Decimal('1000.00'))

    def test_refund_cannot_exceed_total(self):
        with self.assertRaises(BusinessRuleError) as ctx:
            services.refund_order(self.order, Decimal('1000.01'), 'Too much', self.admin)
        self.assertEqual(ctx.exception.get_codes(), 'refund_exceeds_total')

    def test_refund_amount_must_be_positive(self):
        for amount in (Decimal('0.00'), Decimal('-100.00')):
            with self.assertRaises(BusinessRuleError) as ctx:
                services.refund_order(self.order, amount, 'Nothing', self.admin)
            self.assertEqual(ctx.exception.get_codes(), 'invalid_amount')
        self.order.refresh_from_db()
        self.assertEqual(self.order.refund_amount, Decimal('0.00'))

    def test_refunds_from_stale_copies_cannot_exceed_total(self):
        stale = Order.objects.get(pk=self.order.pk)
        services.refund_order(self.order, Decimal('600.00'), 'First', self.admin)
        with self.assertRaises(BusinessRuleError) as ctx:
            services.refund_order(stale, Decimal('600.00'), 'Second', self.admin)
        self.assertEqual(ctx.exception.get_codes(), 'refund_exceeds_total')
        self.order.refresh_from_db()
        self.assertEqual(self.order.refund_amount, Decimal('600.00'))

    def test_unpaid_order_not_refundable(self):
        order = TestDataFactory.create_order(self.customer, status=Order.STATUS_DELIVERED)
        with self.assertRaises(BusinessRuleError):
            services.refund_order(order, Decimal('1.00'), 'No', self.admin)

    def test_rate_once(self):
        services.rate_order(self.order, 5, 'Fast')
        self.assertEqual(self.order.rating, 5)
        with self.assertRaises(BusinessRuleError):
            services.rate_order(self.order, 4)

    def test_rate_requires_delivered(self):
        order = TestDataFactory.create_order(self.customer)
        with self.assertRaises(BusinessRuleError):
            services.rate_order(order, 5)


class CustomerOrderAPITests(TestCase):

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.customer)
        self.unit = TestDataFactory.create_unit(price=Decimal('250.00'), stock=10)
        add_item(get_or_create_cart(self.customer), self.unit.product, self.unit, 2)

    def test_checkout_endpoint(self):
        response = self.client.post('/api/v1/orders/', {'order_type': 'pickup'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(len(response.data['status_history']), 1)

    def test_checkout_with_saved_address(self):
        address = CustomerAddress.objects.create(user=self.customer, street='Hall 4', hostel_room='C3')
        response = self.client.post('/api/v1/orders/', {'order_type': 'delivery', 'address_id': address.id},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['delivery_street'], 'Hall 4')
        self.assertEqual(response.data['hostel_room'], 'C3')

    def test_checkout_with_foreign_address(self):
        other = TestDataFactory.create_customer()
        address = CustomerAddress.objects.create(user=other, street='Elsewhere')
        response = self.client.post('/api/v1/orders/', {'order_type': 'delivery', 'address_id': address.id},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_only_own_orders(self):
        TestDataFactory.create_order(TestDataFactory.create_customer())
        TestDataFactory.create_order(self.customer)
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.data['count'], 1)

    def test_other_customers_order_404(self):
        order = TestDataFactory.create_order(TestDataFactory.create_customer())
        response = self.client.get(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_track_by_tracking_number(self):
        order = TestDataFactory.create_order(self.customer, order_type=Order.TYPE_DELIVERY)
        response = self.client.get(f'/api/v1/orders/track/{order.tracking_number}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order_number'], order.order_number)
        response = self.client.get('/api/v1/orders/track/TRKNOPE/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_customer_cancel_pending(self):
        order = TestDataFactory.create_order(self.customer, [(self.unit, 1)])
        response = self.client.post(f'/api/v1/orders/{order.id}/cancel/', {'reason': 'Changed my mind'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')

    def test_customer_cannot_cancel_preparing(self):
        order = TestDataFactory.create_order(self.customer, status=Order.STATUS_PREPARING)
        response = self.client.post(f'/api/v1/orders/{order.id}/cancel/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'not_cancellable')

    def test_rate_validation(self):
        order = TestDataFactory.create_order(self.customer, status=Order.STATUS_DELIVERED)
        response = self.client.post(f'/api/v1/orders/{order.id}/rate/', {'rating': 6}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f'/api/v1/orders/{order.id}/rate/', {'rating': 4}, format='json')
        self.assertEqual(response.data['rating'], 4)


class StaffOrderAPITests(TestCase):

    def setUp(self):
        self.staff = TestDataFactory.create_staff()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.staff)
        self.customer = TestDataFactory.create_customer()
        self.unit = TestDataFactory.create_unit(price=Decimal('300.00'), stock=20)

    def test_customer_forbidden(self):
        self.client.authenticate_user(self.customer)
        response = self.client.get('/api/v1/staff/orders/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_orders_default_active_and_urgent_first(self):
        normal = TestDataFactory.create_order(self.customer)
        urgent = TestDataFactory.create_order(self.customer)
        urgent.priority = 'urgent'
        urgent.save()
        TestDataFactory.create_order(self.customer, status=Order.STATUS_DELIVERED)

        response = self.client.get('/api/v1/staff/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([o['id'] for o in response.data['results']], [urgent.id, normal.id])
        self.assertEqual(response.data['stats']['urgent_orders'], 1)
        self.assertEqual(response.data['stats']['total_orders'], 3)

    def test_status_filter_comma_separated(self):
        TestDataFactory.create_order(self.customer, status=Order.STATUS_READY)
        TestDataFactory.create_order(self.customer, status=Order.STATUS_DELIVERED)
        TestDataFactory.create_order(self.customer, status=Order.STATUS_CANCELLED)
        response = self.client.get('/api/v1/staff/orders/?status=ready,delivered')
        self.assertEqual(response.data['count'], 2)

    def test_update_status_endpoint(self):
        order = TestDataFactory.create_order(self.customer)
        response = self.client.patch(f'/api/v1/staff/orders/{order.id}/status/', {'status': 'confirmed'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'confirmed')

        response = self.client.patch(f'/api/v1/staff/orders/{order.id}/status/', {'status': 'delivered'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_status_transition')
        self.assertIn('allowed_statuses', response.data)

    def test_detail_includes_allowed_statuses(self):
        order = TestDataFactory.create_order(self.customer)
        response = self.client.get(f'/api/v1/staff/orders/{order.id}/')
        self.assertEqual(response.data['allowed_statuses'], ['confirmed', 'cancelled'])

    def test_assign_to_self(self):
        order = TestDataFactory.create_order(self.customer)
        response = self.client.post(f'/api/v1/staff/orders/{order.id}/assign/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['handled_by']['id'], self.staff.id)

    def test_queue(self):
        TestDataFactory.create_order(self.customer)
        response = self.client.get('/api/v1/staff/orders/queue/')
        self.assertEqual(len(response.data['pending_orders']), 1)
        self.assertEqual(response.data['preparing_orders'], [])

    def test_walk_in_endpoint(self):
        response = self.client.post('/api/v1/staff/orders/walk-in/', {
            'customer_name': 'Counter Buyer',
            'items': [{'unit': self.unit.id, 'quantity': 3}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order_type'], 'walk-in')
        self.assertEqual(response.data['payment_status'], 'paid')
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('900.00'))

    def test_record_payment_endpoint(self):
        order = TestDataFactory.create_order(self.customer, [(self.unit, 1)])
        response = self.client.post(f'/api/v1/staff/orders/{order.id}/payment/', {
            'amount': '300.00', 'payment_method': 'transfer', 'reference': 'BANK-9',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['payment_status'], 'paid')
        self.assertEqual(response.data['payment_reference'], 'BANK-9')

    def test_performance(self):
        order = TestDataFactory.create_order(self.customer, [(self.unit, 1)])
        order.handled_by = self.staff
        order.save()
        response = self.client.get('/api/v1/staff/orders/performance/?period=7d')
        self.assertEqual(response.data['performance']['total_orders'], 1)
        self.assertEqual(len(response.data['daily_trend']), 1)


class AdminOrderAPITests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.customer = TestDataFactory.create_customer()
        self.order = TestDataFactory.create_order(
            self.customer, [(TestDataFactory.create_unit(price=Decimal('1000.00')), 1)],
            status=Order.STATUS_DELIVERED, payment_status=Order.PAYMENT_PAID
        )

    def test_staff_cannot_refund(self):
        self.client.authenticate_user(TestDataFactory.create_staff())
        response = self.client.post(f'/api/v1/admin/orders/{self.order.id}/refund/',
                                    {'amount': '100.00', 'reason': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_offline_refund(self):
        response = self.client.post(f'/api/v1/admin/orders/{self.order.id}/refund/',
                                    {'amount': '1000.00', 'reason': 'Spoilt goods'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'refunded')

    def test_refund_over_total_rejected(self):
        response = self.client.post(f'/api/v1/admin/orders/{self.order.id}/refund/',
                                    {'amount': '1500.00', 'reason': 'Too much'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'refund_exceeds_total')

    def test_non_positive_refund_rejected(self):
        for amount in ('0.00', '-100.00'):
            response = self.client.post(f'/api/v1/admin/orders/{self.order.id}/refund/',
                                        {'amount': amount, 'reason': 'Nothing'}, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn('amount', response.data)
        self.order.refresh_from_db()
        self.assertEqual(self.order.refund_amount, Decimal('0.00'))

    @patch('saleshostel.payments.gateways.requests.request')
    def test_invalid_refund_never_reaches_gateway(self, mock_request):
        payment = Payment.objects.create(order=self.order, provider='paystack', reference='SH_1_500',
                                         amount=Decimal('1000.00'), status=Payment.STATUS_SUCCESSFUL)
        response = self.client.post(f'/api/v1/admin/orders/{self.order.id}/refund/',
                                    {'amount': '1500.00', 'reason': 'Too much'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        mock_request.assert_not_called()
        payment.refresh_from_db()
        self.assertEqual(payment.refunded_amount, Decimal('0.00'))

    @patch('saleshostel.payments.gateways.requests.request')
    def test_gateway_failure_rolls_back_refund(self, mock_request):
        Payment.objects.create(order=self.order, provider='paystack', reference='SH_1_501',
                               amount=Decimal('1000.00'), status=Payment.STATUS_SUCCESSFUL)
        mock_request.side_effect = requests.exceptions.ConnectionError('connection refused')
        response = self.client.post(f'/api/v1/admin/orders/{self.order.id}/refund/',
                                    {'amount': '400.00', 'reason': 'Spoilt'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.order.refresh_from_db()
        self.assertEqual(self.order.refund_amount, Decimal('0.00'))
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PAID)

    def test_admin_detail_includes_payments(self):
        response = self.client.get(f'/api/v1/admin/orders/{self.order.id}/')
        self.assertEqual(response.data['payments'], [])
        self.assertEqual(response.data['allowed_statuses'], ['refunded'])

    def test_admin_list_search(self):
        response = self.client.get(f'/api/v1/admin/orders/?search={self.order.order_number}')
        self.assertEqual(response.data['count'], 1)

    def test_analytics(self):
        TestDataFactory.create_order(self.customer, status=Order.STATUS_CANCELLED)
        response = self.client.get('/api/v1/admin/orders/analytics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_orders'], 2)
        self.assertEqual(response.data['status_counts']['cancelled'], 1)
        self.assertEqual(response.data['total_revenue'], 1000.0)

    def test_analytics_rejects_malformed_dates(self):
        response = self.client.get('/api/v1/admin/orders/analytics/?date_from=notadate')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_date')
