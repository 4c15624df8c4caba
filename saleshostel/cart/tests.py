"""
Test suite for the cart module
Tests: add/update/remove lines, stock limits, save for later, validation, expiry cleanup
"""
from datetime import timedelta

from django.core.management import call_command
from django.test import TestCase, override_settings
from django.conf import settings
from django.utils import timezone
from rest_framework import status
from decimal import Decimal
from io import StringIO
from saleshostel.cart.models import Cart, CartItem, SavedItem, delivery_fee_for
from saleshostel.cart import services
from saleshostel.core.exceptions import BusinessRuleError, InsufficientStockError
from saleshostel.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class DeliveryFeeTests(TestCase):

    def test_fee_below_threshold(self):
        self.assertEqual(delivery_fee_for(Decimal('1000.00')), Decimal(str(settings.SALESHOSTEL['DELIVERY_FEE'])))

    def test_free_above_threshold(self):
        self.assertEqual(delivery_fee_for(Decimal('5000.00')), Decimal('0.00'))

    def test_empty_cart_has_no_fee(self):
        self.assertEqual(delivery_fee_for(Decimal('0.00')), Decimal('0.00'))


class CartServiceTests(TestCase):

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        self.cart = services.get_or_create_cart(self.customer)
        self.unit = TestDataFactory.create_unit(price=Decimal('100.00'), stock=5)
        self.product = self.unit.product

    def test_get_or_create_returns_same_active_cart(self):
        self.assertEqual(services.get_or_create_cart(self.customer).pk, self.cart.pk)

    def test_add_merges_existing_line(self):
        services.add_item(self.cart, self.product, self.unit, 2)
        item = services.add_item(self.cart, self.product, self.unit, 1)
        self.assertEqual(item.quantity, 3)
        self.assertEqual(self.cart.items.count(), 1)
        self.assertEqual(item.product_name, self.product.name)

    def test_add_beyond_stock(self):
        with self.assertRaises(InsufficientStockError):
            services.add_item(self.cart, self.product, self.unit, 6)

        services.add_item(self.cart, self.product, self.unit, 4)
        with self.assertRaises(InsufficientStockError) as ctx:
            services.add_item(self.cart, self.product, self.unit, 2)
        self.assertEqual(ctx.exception.extra['available'], 1)

    def test_add_inactive_product(self):
        self.product.is_active = False
        self.product.save()
        with self.assertRaises(BusinessRuleError):
            services.add_item(self.cart, self.product, self.unit, 1)

    @override_settings(SALESHOSTEL={**settings.SALESHOSTEL, 'MAX_CART_ITEM_QUANTITY': 3})
    def test_quantity_limit(self):
        self.unit.stock_quantity = 50
        self.unit.save()
        services.add_item(self.cart, self.product, self.unit, 3)
        with self.assertRaises(BusinessRuleError) as ctx:
            services.add_item(self.cart, self.product, self.unit, 1)
        self.assertEqual(ctx.exception.get_codes(), 'quantity_limit')

    def test_update_to_zero_removes_line(self):
        item = services.add_item(self.cart, self.product, self.unit, 2)
        self.assertIsNone(services.update_item_quantity(self.cart, item.id, 0))
        self.assertFalse(CartItem.objects.filter(pk=item.id).exists())

    def test_save_for_later_and_move_back(self):
        item = services.add_item(self.cart, self.product, self.unit, 2)
        saved = services.save_for_later(self.cart, item.id)
        self.assertEqual(self.cart.items.count(), 0)
        services.move_to_cart(self.cart, saved.id, 1)
        self.assertEqual(self.cart.items.count(), 1)
        self.assertFalse(SavedItem.objects.filter(pk=saved.id).exists())

    def test_validate_cart_clamps_and_reports_price_change(self):
        item = services.add_item(self.cart, self.product, self.unit, 4)
        self.unit.stock_quantity = 2
        self.unit.price = Decimal('120.00')
        self.unit.save()

        result = services.validate_cart(self.cart)
        self.assertFalse(result['is_valid'])
        types = {issue['type'] for issue in result['issues']}
        self.assertEqual(types, {'insufficient_stock', 'price_changed'})
        item.refresh_from_db()
        self.assertEqual(item.quantity, 2)
        self.assertEqual(item.price, Decimal('120.00'))

        self.assertTrue(services.validate_cart(self.cart)['is_valid'])

    def test_validate_cart_removes_out_of_stock(self):
        services.add_item(self.cart, self.product, self.unit, 1)
        self.unit.stock_quantity = 0
        self.unit.save()
        result = services.validate_cart(self.cart)
        self.assertEqual(result['issues'][0]['type'], 'out_of_stock')
        self.assertEqual(self.cart.items.count(), 0)

    def test_abandoned_carts(self):
        services.add_item(self.cart, self.product, self.unit, 1)
        Cart.objects.filter(pk=self.cart.pk).update(last_activity=timezone.now() - timedelta(hours=30))
        self.assertIn(self.cart.pk, [cart.pk for cart in services.abandoned_carts(24)])
        self.assertNotIn(self.cart.pk, [cart.pk for cart in services.abandoned_carts(48)])

    def test_cleanup_expired_carts_only_inactive(self):
        expired = timezone.now() - timedelta(days=1)
        Cart.objects.filter(pk=self.cart.pk).update(expires_at=expired)
        old = Cart.objects.create(customer=self.customer, is_active=False, expires_at=expired)

        out = StringIO()
        call_command('cleanup_expired_carts', stdout=out)
        self.assertIn('Deleted 1 expired carts', out.getvalue())
        self.assertFalse(Cart.objects.filter(pk=old.pk).exists())
        self.assertTrue(Cart.objects.filter(pk=self.cart.pk).exists())


class CartAPITests(TestCase):

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.customer)
        self.unit = TestDataFactory.create_unit(price=Decimal('100.00'), stock=10)

    def test_staff_cannot_use_cart(self):
        self.client.authenticate_user(TestDataFactory.create_staff())
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_add_item_and_summary(self):
        response = self.client.post('/api/v1/cart/items/', {
            'product': self.unit.product_id, 'unit': self.unit.id, 'quantity': 2,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        summary = response.data['summary']
        self.assertEqual(summary['subtotal'], 200.0)
        self.assertEqual(summary['delivery_fee'], float(settings.SALESHOSTEL['DELIVERY_FEE']))
        self.assertEqual(summary['item_count'], 2)

    def test_unit_from_other_product_rejected(self):
        other = TestDataFactory.create_unit()
        response = self.client.post('/api/v1/cart/items/', {
            'product': self.unit.product_id, 'unit': other.id, 'quantity': 1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_and_remove_item(self):
        self.client.post('/api/v1/cart/items/', {'product': self.unit.product_id, 'unit': self.unit.id},
                         format='json')
        item_id = CartItem.objects.get(cart__customer=self.customer).id

        response = self.client.patch(f'/api/v1/cart/items/{item_id}/', {'quantity': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'][0]['quantity'], 5)

        response = self.client.delete(f'/api/v1/cart/items/{item_id}/')
        self.assertEqual(response.data['items'], [])

    def test_missing_item_returns_business_error(self):
        response = self.client.delete('/api/v1/cart/items/9999/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'item_not_found')

    def test_validate_endpoint(self):
        response = self.client.post('/api/v1/cart/validate/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_valid'])

    def test_clear_cart(self):
        self.client.post('/api/v1/cart/items/', {'product': self.unit.product_id, 'unit': self.unit.id},
                         format='json')
        response = self.client.delete('/api/v1/cart/')
        self.assertEqual(response.data['items'], [])
