"""
Management command to load starter users, categories and products
Usage: python manage.py seed_data [--clear] [--password secret]
"""
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from saleshostel.catalog.models import Category, Product, ProductUnit
from saleshostel.core.models import User
from saleshostel.inventory.services import record_movement

USERS = [
    ('admin@saleshostel.com', 'Admin', 'User', User.ROLE_ADMIN),
    ('staff@saleshostel.com', 'Staff', 'User', User.ROLE_STAFF),
    ('supplier@saleshostel.com', 'Supplier', 'User', User.ROLE_SUPPLIER),
    ('customer@saleshostel.com', 'Customer', 'User', User.ROLE_CUSTOMER),
]

CATEGORIES = [
    ('Staple Foods', 'Essential food items like rice, beans, garri and semovita'),
    ('Frozen Foods', 'Frozen chicken, fish and other frozen food items'),
    ('Convenience Foods', 'Quick meal solutions like noodles, spaghetti and pasta'),
    ('Sauces & Spices', 'Cooking ingredients like tomato paste, maggi, curry and thyme'),
    ('Cooking Oils', 'Palm oil, groundnut oil and vegetable oil'),
    ('Groceries', 'Daily grocery items like milk, sugar, flour and cereals'),
    ('Cleaning Agents', 'Detergents, soaps and liquid soap'),
    ('Personal Care', 'Toothpaste, sanitary pads and body spray'),
    ('Stationery', 'Notebooks, biros and writing materials'),
]

# (name, category, description, tags, featured, [(unit_type, price, stock, min_level, cost)])
PRODUCTS = [
    ('Rice', 'Staple Foods', 'Premium quality rice for daily consumption', ['rice', 'staple', 'grain'], True, [
        ('Cup', 50, 100, 10, 40),
        ('Half Rubber', 1800, 25, 5, 1500),
        ('Black Rubber', 3500, 15, 3, 3000),
        ('Paint Rubber', 7000, 8, 2, 6000),
    ]),
    ('Beans', 'Staple Foods', 'Fresh beans for protein-rich meals', ['beans', 'protein', 'staple'], True, [
        ('Cup', 80, 80, 10, 60),
        ('Half Rubber', 2500, 20, 5, 2000),
        ('Black Rubber', 4800, 12, 3, 4000),
    ]),
    ('Garri', 'Staple Foods', 'Fine garri for making eba', ['garri', 'cassava', 'staple'], True, [
        ('Cup', 30, 150, 15, 25),
        ('Half Rubber', 1200, 30, 5, 1000),
        ('Black Rubber', 2200, 18, 3, 1800),
    ]),
    ('Indomie Noodles', 'Convenience Foods', 'Instant noodles, chicken flavour', ['noodles', 'indomie'], True, [
        ('Piece', 250, 200, 20, 200),
        ('Carton', 9500, 10, 2, 8200),
    ]),
    ('Spaghetti', 'Convenience Foods', 'Long pasta for quick meals', ['spaghetti', 'pasta'], False, [
        ('Pack', 900, 60, 10, 750),
        ('Carton', 17000, 4, 1, 15000),
    ]),
    ('Tomato Paste', 'Sauces & Spices', 'Double concentrated tomato paste', ['tomato', 'paste'], False, [
        ('Sachet', 100, 150, 20, 80),
        ('Tin', 450, 40, 5, 380),
    ]),
    ('Palm Oil', 'Cooking Oils', 'Fresh red palm oil', ['oil', 'palm oil'], False, [
        ('Bottle', 1500, 30, 5, 1200),
        ('Liter', 1300, 20, 5, 1100),
    ]),
    ('Peak Milk', 'Groceries', 'Evaporated milk', ['milk', 'peak'], True, [
        ('Tin', 400, 80, 10, 330),
        ('Sachet', 150, 120, 20, 120),
    ]),
    ('Detergent', 'Cleaning Agents', 'Washing powder for laundry', ['detergent', 'washing'], False, [
        ('Sachet', 100, 100, 15, 75),
        ('Pack', 1200, 25, 5, 950),
    ]),
    ('Toothpaste', 'Personal Care', 'Fluoride toothpaste', ['toothpaste', 'oral care'], False, [
        ('Tube', 700, 40, 5, 550),
    ]),
    ('Exercise Book', 'Stationery', '40-leaf exercise book', ['book', 'stationery'], False, [
        ('Piece', 200, 90, 10, 150),
        ('Pack', 1800, 10, 2, 1400),
    ]),
]


class Command(BaseCommand):
    help = "Loads starter users, categories and products"

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete existing products and categories before seeding',
        )
        parser.add_argument(
            '--password',
            default='password123',
            help='Password for the seeded user accounts',
        )

    def handle(self, *args, **options):
        with transaction.atomic():
            if options['clear']:
                self.stdout.write(self.style.WARNING("Clearing products and categories..."))
                Product.objects.all().delete()
                Category.objects.all().delete()

            admin = self.seed_users(options['password'])
            categories = self.seed_categories()
            self.seed_products(categories, admin)

        self.stdout.write(self.style.SUCCESS("Seeding complete"))

    def seed_users(self, password):
        admin = None
        for email, first_name, last_name, role in USERS:
            user, created = User.objects.get_or_create(
                email=email,
                defaults={
                    'username': email,
                    'first_name': first_name,
                    'last_name': last_name,
                    'role': role,
                    'whatsapp_number': '+2348000000000',
                    'call_number': '+2348000000000',
                    'is_staff': role == User.ROLE_ADMIN,
                },
            )
            if created:
                user.set_password(password)
                user.save(update_fields=['password'])
                self.stdout.write(f"  Created {role}: {email}")
            else:
                self.stdout.write(f"  Exists: {email}")
            if role == User.ROLE_ADMIN:
                admin = user
        return admin

    def seed_categories(self):
        categories = {}
        for name, description in CATEGORIES:
            category, created = Category.objects.get_or_create(name=name, defaults={'description': description})
            categories[name] = category
            if created:
                self.stdout.write(f"  Added category: {name}")
        return categories

    def seed_products(self, categories, admin):
        added = 0
        for name, category_name, description, tags, featured, units in PRODUCTS:
            if Product.objects.filter(name=name, category=categories[category_name]).exists():
                continue
            product = Product.objects.create(
                name=name,
                description=description,
                category=categories[category_name],
                tags=tags,
                featured=featured,
                created_by=admin,
            )
            for unit_type, price, stock, min_level, cost in units:
                unit = ProductUnit.objects.create(
                    product=product,
                    unit_type=unit_type,
                    price=Decimal(price),
                    min_stock_level=min_level,
                    cost_price=Decimal(cost),
                )
                record_movement(
                    unit, stock, 'purchase',
                    performed_by=admin,
                    reference='SEED',
                    reference_type='system',
                    reason='Opening stock',
                    unit_cost=Decimal(cost),
                    source='system',
                    is_system_generated=True,
                )
            added += 1
        self.stdout.write(self.style.SUCCESS(f"Added {added} products"))
