"""
Test suite for the reports module
Tests: sales, inventory, profit and loss, customer and product reports, admin and staff dashboards
"""
from datetime import timedelta

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from decimal import Decimal
from saleshostel.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from saleshostel.orders.models import Order
from saleshostel.suppliers.services import receive_supply


class ReportTestCase(TestCase):

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.customer = TestDataFactory.create_customer()
        self.product = TestDataFactory.create_product(name='Indomie Noodles')
        self.unit = TestDataFactory.create_unit(self.product, unit_type='Pack', price=Decimal('200.00'),
                                                cost_price=Decimal('150.00'), stock=40)

    def delivered(self, quantity, customer=None, payment_method='cash'):
        return TestDataFactory.create_order(customer or self.customer, [(self.unit, quantity)],
                                            status=Order.STATUS_DELIVERED, payment_method=payment_method,
                                            payment_status=Order.PAYMENT_PAID)


class SalesReportTests(ReportTestCase):

    def test_requires_admin(self):
        self.client.authenticate_user(TestDataFactory.create_staff())
        response = self.client.get('/api/v1/admin/reports/sales/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_only_delivered_orders_count(self):
        self.delivered(2)
        self.delivered(3, payment_method='transfer')
        TestDataFactory.create_order(self.customer, [(self.unit, 10)])
        TestDataFactory.create_order(self.customer, [(self.unit, 10)], status=Order.STATUS_CANCELLED)

        response = self.client.get('/api/v1/admin/reports/sales/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        summary = response.data['summary']
        self.assertEqual(summary['total_orders'], 2)
        self.assertEqual(summary['total_revenue'], 1000.0)
        self.assertEqual(summary['total_items_sold'], 5)
        self.assertEqual(summary['average_order_value'], 500.0)
        self.assertEqual(len(response.data['daily_trend']), 1)
        self.assertEqual(response.data['top_products'][0]['product_name'], 'Indomie Noodles')
        self.assertEqual(response.data['top_products'][0]['quantity_sold'], 5)
        self.assertEqual({row['payment_method'] for row in response.data['payment_methods']}, {'cash', 'transfer'})

    def test_date_range_excludes_old_orders(self):
        old = self.delivered(4)
        Order.objects.filter(pk=old.pk).update(order_date=timezone.now() - timedelta(days=60))
        self.delivered(1)
        response = self.client.get('/api/v1/admin/reports/sales/')
        self.assertEqual(response.data['summary']['total_orders'], 1)

        date_from = (timezone.localdate() - timedelta(days=90)).isoformat()
        response = self.client.get(f'/api/v1/admin/reports/sales/?date_from={date_from}')
        self.assertEqual(response.data['summary']['total_orders'], 2)
        self.assertEqual(response.data['period']['from'], date_from)

    def test_invalid_dates(self):
        response = self.client.get('/api/v1/admin/reports/sales/?date_from=19-10-2026')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_date')

        response = self.client.get('/api/v1/admin/reports/sales/?date_from=2026-02-01&date_to=2026-01-01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_date_range')

    def test_empty_period(self):
        response = self.client.get('/api/v1/admin/reports/sales/')
        self.assertEqual(response.data['summary']['total_revenue'], 0.0)
        self.assertEqual(response.data['top_products'], [])


class ProfitLossReportTests(ReportTestCase):

    def test_gross_and_net_profit(self):
        self.delivered(4)
        refunded = self.delivered(1)
        refunded.refund_amount = Decimal('50.00')
        refunded.refund_date = timezone.now()
        refunded.save()

        response = self.client.get('/api/v1/admin/reports/profit-loss/')
        self.assertEqual(response.data['revenue'], 1000.0)
        self.assertEqual(response.data['cost_of_goods_sold'], 750.0)
        self.assertEqual(response.data['gross_profit'], 250.0)
        self.assertEqual(response.data['gross_margin'], 25.0)
        self.assertEqual(response.data['refunds'], 50.0)
        self.assertEqual(response.data['net_profit'], 200.0)

    def test_cost_falls_back_to_current_unit_cost(self):
        order = self.delivered(2)
        order.items.update(unit_cost=None)
        response = self.client.get('/api/v1/admin/reports/profit-loss/')
        self.assertEqual(response.data['cost_of_goods_sold'], 300.0)

    def test_supply_spend(self):
        supplier = TestDataFactory.create_supplier()
        supply = TestDataFactory.create_supply(supplier, 'Indomie Noodles', 'Pack', 10, Decimal('140.00'))
        receive_supply(supply, self.admin)
        TestDataFactory.create_supply(supplier, 'Indomie Noodles', 'Pack', 10, Decimal('140.00'))
        response = self.client.get('/api/v1/admin/reports/profit-loss/')
        self.assertEqual(response.data['supply_spend'], 1400.0)


class InventoryReportTests(ReportTestCase):

    def test_categories_and_low_stock(self):
        TestDataFactory.create_unit(self.product, unit_type='Carton', price=Decimal('4500.00'),
                                    cost_price=Decimal('4000.00'), stock=1, min_stock_level=3)
        response = self.client.get('/api/v1/admin/reports/inventory/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        category = response.data['categories'][0]
        self.assertEqual(category['category_id'], self.product.category_id)
        self.assertEqual(category['total_stock'], 41)
        self.assertEqual(category['stock_value'], 10000.0)
        self.assertEqual(len(response.data['low_stock']), 1)
        self.assertEqual(response.data['low_stock'][0]['unit_type'], 'Carton')
        self.assertEqual(response.data['summary']['total_units'], 2)


class CustomerAndProductReportTests(ReportTestCase):

    def test_customer_report(self):
        big_spender = TestDataFactory.create_customer()
        self.delivered(1)
        self.delivered(10, customer=big_spender)
        response = self.client.get('/api/v1/admin/reports/customers/')
        self.assertEqual(response.data['total_customers'], 2)
        self.assertEqual(response.data['new_customers'], 2)
        self.assertEqual(response.data['top_customers'][0]['customer_id'], big_spender.id)
        self.assertEqual(response.data['top_customers'][0]['total_spent'], 2000.0)

    def test_product_performance_limit(self):
        other = TestDataFactory.create_unit(price=Decimal('1000.00'))
        TestDataFactory.create_order(self.customer, [(other, 1)], status=Order.STATUS_DELIVERED)
        self.delivered(1)
        response = self.client.get('/api/v1/admin/reports/products/?limit=1')
        self.assertEqual(len(response.data['products']), 1)
        self.assertEqual(response.data['products'][0]['product_id'], other.product_id)
        self.assertEqual(response.data['products'][0]['order_count'], 1)


class DashboardTests(ReportTestCase):

    def test_admin_dashboard(self):
        TestDataFactory.create_order(self.customer, [(self.unit, 2)])
        TestDataFactory.create_order(self.customer, [(self.unit, 5)], status=Order.STATUS_CANCELLED)
        TestDataFactory.create_supply(TestDataFactory.create_supplier(), 'Indomie Noodles', 'Pack')

        response = self.client.get('/api/v1/admin/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['today_orders'], 2)
        self.assertEqual(response.data['today_revenue'], 400.0)
        self.assertEqual(response.data['pending_orders'], 1)
        self.assertEqual(response.data['pending_supplies'], 1)
        self.assertEqual(response.data['total_customers'], 1)
        self.assertEqual(len(response.data['recent_orders']), 2)

    def test_admin_dashboard_is_cached(self):
        order = TestDataFactory.create_order(self.customer, [(self.unit, 2)])
        self.client.get('/api/v1/admin/dashboard/')
        # queryset update skips the invalidation signal
        Order.objects.filter(pk=order.pk).update(status=Order.STATUS_CONFIRMED)
        response = self.client.get('/api/v1/admin/dashboard/')
        self.assertEqual(response.data['pending_orders'], 1)

        TestDataFactory.create_order(self.customer)
        response = self.client.get('/api/v1/admin/dashboard/')
        self.assertEqual(response.data['pending_orders'], 1)
        self.assertEqual(response.data['today_orders'], 2)

    def test_staff_dashboard(self):
        staff = TestDataFactory.create_staff()
        self.client.authenticate_user(staff)
        mine = TestDataFactory.create_order(self.customer, status=Order.STATUS_PREPARING)
        mine.handled_by = staff
        mine.save()
        TestDataFactory.create_order(self.customer)

        response = self.client.get('/api/v1/staff/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['my_orders_today'], 1)
        self.assertEqual(response.data['queue']['preparing'], 1)
        self.assertEqual(response.data['queue']['pending'], 1)
        self.assertEqual(response.data['unassigned_orders'], 1)
        self.assertEqual(len(response.data['my_active_orders']), 1)

    def test_customer_cannot_see_staff_dashboard(self):
        self.client.authenticate_user(self.customer)
        response = self.client.get('/api/v1/staff/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
