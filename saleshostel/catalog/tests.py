"""
Test suite for the catalog module
Tests: storefront listing and filters, search, categories, admin product CRUD with units
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from saleshostel.catalog.models import Category, Product, ProductUnit, slugify_name
from saleshostel.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from saleshostel.inventory.models import StockMovement


class CatalogModelTests(TestCase):

    def test_category_slug_generated(self):
        category = TestDataFactory.create_category(name='Sauces & Spices')
        self.assertEqual(category.slug, 'sauces-spices')

    def test_slugify_name_collapses_separators(self):
        self.assertEqual(slugify_name('  Frozen   Foods__Fresh '), 'frozen-foods-fresh')

    def test_product_min_price_and_stock(self):
        product = TestDataFactory.create_product()
        TestDataFactory.create_unit(product, 'Cup', price=Decimal('50.00'), stock=10)
        TestDataFactory.create_unit(product, 'Bag', price=Decimal('7000.00'), stock=3)
        self.assertEqual(product.min_price, Decimal('50.00'))
        self.assertEqual(product.total_stock, 13)

    def test_unit_stock_flags(self):
        unit = TestDataFactory.create_unit(stock=5, min_stock_level=5)
        self.assertTrue(unit.is_low_stock)
        self.assertTrue(unit.is_in_stock)
        unit.is_available = False
        self.assertFalse(unit.is_in_stock)


class StorefrontTests(TestCase):

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.staples = TestDataFactory.create_category(name='Staple Foods')
        self.oils = TestDataFactory.create_category(name='Cooking Oils')
        self.rice = TestDataFactory.create_product(name='Rice', category=self.staples, featured=True)
        TestDataFactory.create_unit(self.rice, 'Cup', price=Decimal('50.00'), stock=100)
        self.oil = TestDataFactory.create_product(name='Palm Oil', category=self.oils)
        TestDataFactory.create_unit(self.oil, 'Bottle', price=Decimal('1500.00'), stock=0)
        self.hidden = TestDataFactory.create_product(name='Hidden Rice', category=self.staples, is_active=False)
        TestDataFactory.create_unit(self.hidden, 'Cup', price=Decimal('10.00'))

    def test_list_only_active_products(self):
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = [product['name'] for product in response.data['results']]
        self.assertIn('Rice', names)
        self.assertNotIn('Hidden Rice', names)

    def test_public_units_hide_cost_price(self):
        response = self.client.get(f'/api/v1/products/{self.rice.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn('cost_price', response.data['units'][0])

    def test_inactive_product_detail_404(self):
        response = self.client.get(f'/api/v1/products/{self.hidden.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_filter_by_category_slug(self):
        response = self.client.get('/api/v1/products/?category=cooking-oils')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Palm Oil')

    def test_filter_by_price_range(self):
        response = self.client.get('/api/v1/products/?min_price=1000&max_price=2000')
        self.assertEqual([p['name'] for p in response.data['results']], ['Palm Oil'])

    def test_filter_in_stock(self):
        response = self.client.get('/api/v1/products/?in_stock=true')
        self.assertEqual([p['name'] for p in response.data['results']], ['Rice'])

    def test_sort_by_price_ascending(self):
        response = self.client.get('/api/v1/products/?sort_by=price&sort_order=asc')
        self.assertEqual([p['name'] for p in response.data['results']], ['Rice', 'Palm Oil'])

    def test_search_requires_two_characters(self):
        response = self.client.get('/api/v1/products/search/?q=r')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_query')

    def test_search_matches_category_name(self):
        response = self.client.get('/api/v1/products/search/?q=oils')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['query'], 'oils')
        self.assertEqual(response.data['count'], 1)

    def test_featured_products(self):
        response = self.client.get('/api/v1/products/featured/')
        self.assertEqual([p['name'] for p in response.data], ['Rice'])

    def test_products_by_category(self):
        response = self.client.get('/api/v1/products/category/staple-foods/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['category']['slug'], 'staple-foods')
        self.assertEqual(response.data['count'], 1)

    def test_category_list_counts_active_products(self):
        response = self.client.get('/api/v1/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        counts = {category['slug']: category['product_count'] for category in response.data}
        self.assertEqual(counts['staple-foods'], 1)

    def test_list_cache_invalidated_on_product_change(self):
        self.client.get('/api/v1/products/')
        beans = TestDataFactory.create_product(name='Beans', category=self.staples)
        TestDataFactory.create_unit(beans, 'Cup')
        response = self.client.get('/api/v1/products/')
        self.assertIn('Beans', [p['name'] for p in response.data['results']])


class AdminCatalogTests(TestCase):

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.category = TestDataFactory.create_category(name='Groceries')

    def product_payload(self, **overrides):
        payload = {
            'name': 'Sugar',
            'description': 'Granulated sugar',
            'category': self.category.id,
            'tags': ['sugar', ' sweet '],
            'units': [
                {'unit_type': 'Cup', 'price': '60.00', 'stock_quantity': 20, 'cost_price': '45.00'},
                {'unit_type': 'Bag', 'price': '9000.00', 'stock_quantity': 2},
            ],
        }
        payload.update(overrides)
        return payload

    def test_customer_cannot_create_product(self):
        self.client.authenticate_user(TestDataFactory.create_customer())
        response = self.client.post('/api/v1/admin/products/', self.product_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_product_with_units(self):
        response = self.client.post('/api/v1/admin/products/', self.product_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['units']), 2)
        self.assertEqual(response.data['tags'], ['sugar', 'sweet'])
        self.assertEqual(response.data['created_by'], self.admin.id)

    def test_opening_stock_is_recorded_as_movement(self):
        response = self.client.post('/api/v1/admin/products/', self.product_payload(), format='json')
        cup = ProductUnit.objects.get(product_id=response.data['id'], unit_type='Cup')
        self.assertEqual(cup.stock_quantity, 20)
        movement = StockMovement.objects.get(unit=cup)
        self.assertEqual(movement.quantity_before, 0)
        self.assertEqual(movement.quantity_changed, 20)
        self.assertEqual(movement.performed_by, self.admin)
        self.assertEqual(movement.reason, 'Opening stock')

    def test_create_product_requires_units(self):
        response = self.client.post('/api/v1/admin/products/', self.product_payload(units=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('units', response.data)

    def test_duplicate_unit_types_rejected(self):
        units = [{'unit_type': 'Cup', 'price': '60.00'}, {'unit_type': 'Cup', 'price': '70.00'}]
        response = self.client.post('/api/v1/admin/products/', self.product_payload(units=units), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_units_keeps_matching_rows(self):
        response = self.client.post('/api/v1/admin/products/', self.product_payload(), format='json')
        product_id = response.data['id']
        cup_id = next(u['id'] for u in response.data['units'] if u['unit_type'] == 'Cup')

        response = self.client.patch(f'/api/v1/admin/products/{product_id}/', {
            'units': [{'unit_type': 'Cup', 'price': '65.00', 'stock_quantity': 20}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['units']), 1)
        self.assertEqual(response.data['units'][0]['id'], cup_id)
        self.assertEqual(ProductUnit.objects.get(pk=cup_id).price, Decimal('65.00'))

    def test_product_update_cannot_change_stock(self):
        response = self.client.post('/api/v1/admin/products/', self.product_payload(), format='json')
        product_id = response.data['id']
        cup = ProductUnit.objects.get(product_id=product_id, unit_type='Cup')
        movements_before = StockMovement.objects.count()

        response = self.client.patch(f'/api/v1/admin/products/{product_id}/', {
            'units': [
                {'unit_type': 'Cup', 'price': '60.00', 'stock_quantity': 500},
                {'unit_type': 'Bag', 'price': '9000.00', 'stock_quantity': 2},
                {'unit_type': 'Tin', 'price': '400.00', 'stock_quantity': 6},
            ],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        cup.refresh_from_db()
        self.assertEqual(cup.stock_quantity, 20)

        # Only the new unit's opening stock reaches the ledger
        self.assertEqual(StockMovement.objects.count(), movements_before + 1)
        tin = ProductUnit.objects.get(product_id=product_id, unit_type='Tin')
        self.assertEqual(tin.stock_quantity, 6)
        self.assertTrue(StockMovement.objects.filter(unit=tin, quantity_changed=6).exists())

    def test_toggle_active(self):
        product = TestDataFactory.create_product(category=self.category)
        response = self.client.post(f'/api/v1/admin/products/{product.id}/toggle-active/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])

    def test_delete_product(self):
        product = TestDataFactory.create_product(category=self.category)
        response = self.client.delete(f'/api/v1/admin/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product.id).exists())

    def test_category_duplicate_name_case_insensitive(self):
        response = self.client.post('/api/v1/admin/categories/', {'name': 'groceries'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_category_name_with_clashing_slug_rejected(self):
        response = self.client.post('/api/v1/admin/categories/', {'name': 'Groceries!'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)

        response = self.client.post('/api/v1/admin/categories/', {'name': '!!!'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cannot_delete_category_in_use(self):
        TestDataFactory.create_product(category=self.category)
        response = self.client.delete(f'/api/v1/admin/categories/{self.category.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'category_in_use')
        self.assertTrue(Category.objects.filter(pk=self.category.id).exists())
