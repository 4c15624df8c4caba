"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from saleshostel.catalog.models import Category, Product, ProductUnit
from saleshostel.orders.models import Order, OrderItem
from saleshostel.suppliers.models import Supply
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(role=User.ROLE_CUSTOMER, email=None, password='testpass123', **extra):
        """Create a test user with the given role"""
        if not email:
            email = f'{role}_{TestDataFactory.random_string(6).lower()}@test.com'
        extra.setdefault('first_name', role.title())
        extra.setdefault('last_name', 'Tester')
        extra.setdefault('whatsapp_number', '+2348012345678')
        extra.setdefault('call_number', '+2348012345678')
        return User.objects.create_user(
            username=email,
            email=email,
            password=password,
            role=role,
            **extra
        )

    @staticmethod
    def create_admin(**kwargs):
        return TestDataFactory.create_user(role=User.ROLE_ADMIN, is_staff=True, **kwargs)

    @staticmethod
    def create_staff(**kwargs):
        return TestDataFactory.create_user(role=User.ROLE_STAFF, **kwargs)

    @staticmethod
    def create_supplier(**kwargs):
        return TestDataFactory.create_user(role=User.ROLE_SUPPLIER, **kwargs)

    @staticmethod
    def create_customer(**kwargs):
        return TestDataFactory.create_user(role=User.ROLE_CUSTOMER, **kwargs)

    @staticmethod
    def create_category(name=None, description=None):
        """Create a test category"""
        if not name:
            name = f'Category {TestDataFactory.random_string(6)}'
        return Category.objects.create(
            name=name,
            description=description or f'Test category {name}'
        )

    @staticmethod
    def create_product(name=None, category=None, is_active=True, featured=False):
        """Create a test product without units"""
        if not name:
            name = f'Product {TestDataFactory.random_string(6)}'
        if not category:
            category = TestDataFactory.create_category()
        return Product.objects.create(
            name=name,
            description=f'Test product {name}',
            category=category,
            is_active=is_active,
            featured=featured
        )

    @staticmethod
    def create_unit(product=None, unit_type='Piece', price=None, stock=50, min_stock_level=5, cost_price=None):
        """Create a test product unit; stock is set directly, without a ledger entry"""
        if not product:
            product = TestDataFactory.create_product()
        return ProductUnit.objects.create(
            product=product,
            unit_type=unit_type,
            price=price if price is not None else Decimal('100.00'),
            stock_quantity=stock,
            min_stock_level=min_stock_level,
            cost_price=cost_price if cost_price is not None else Decimal('60.00')
        )

    @staticmethod
    def create_order(customer=None, lines=None, status=Order.STATUS_PENDING, order_type=Order.TYPE_PICKUP,
                     payment_method='cash', payment_status=Order.PAYMENT_PENDING):
        """
        Create an order directly, bypassing checkout.

        ``lines`` is a list of ``(unit, quantity)``; stock is not touched.
        """
        if lines is None:
            lines = [(TestDataFactory.create_unit(), 2)]
        order = Order.objects.create(
            customer=customer,
            customer_name=customer.full_name if customer else 'Walk-in Customer',
            customer_email=customer.email if customer else '',
            order_type=order_type,
            status=status,
            payment_method=payment_method,
            payment_status=payment_status,
            delivery_street='Block A' if order_type == Order.TYPE_DELIVERY else '',
        )
        for unit, quantity in lines:
            OrderItem.objects.create(
                order=order,
                product=unit.product,
                unit=unit,
                product_name=unit.product.name,
                unit_type=unit.unit_type,
                quantity=quantity,
                unit_price=unit.price,
                unit_cost=unit.cost_price
            )
        order.calculate_totals()
        order.save()
        return order

    @staticmethod
    def create_supply(supplier, product_name, unit_type='Piece', quantity=10, price_per_unit=None):
        """Create a pending supply"""
        return Supply.objects.create(
            supplier=supplier,
            product_name=product_name,
            unit_type=unit_type,
            number_of_quantity=quantity,
            price_per_unit=price_per_unit if price_per_unit is not None else Decimal('50.00')
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
