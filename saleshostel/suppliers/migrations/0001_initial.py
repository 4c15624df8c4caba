import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


UNIT_TYPES = [
    ('Cup', 'Cup'), ('Half Rubber', 'Half Rubber'), ('Black Rubber', 'Black Rubber'),
    ('Paint Rubber', 'Paint Rubber'), ('Big Black Rubber', 'Big Black Rubber'), ('Bag', 'Bag'),
    ('Piece', 'Piece'), ('Pack', 'Pack'), ('Bottle', 'Bottle'), ('Sachet', 'Sachet'), ('Carton', 'Carton'),
    ('Tin', 'Tin'), ('Tube', 'Tube'), ('Kg', 'Kg'), ('Gram', 'Gram'), ('Liter', 'Liter'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='SupplierProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('company_name', models.CharField(max_length=100)),
                ('contact_first_name', models.CharField(max_length=50)),
                ('contact_last_name', models.CharField(max_length=50)),
                ('contact_position', models.CharField(blank=True, max_length=50)),
                ('registration_number', models.CharField(blank=True, max_length=50)),
                ('tax_id', models.CharField(blank=True, max_length=50)),
                ('business_type', models.CharField(choices=[('individual', 'Individual'), ('partnership', 'Partnership'), ('corporation', 'Corporation'), ('llc', 'LLC'), ('other', 'Other')], default='individual', max_length=20)),
                ('contact_email', models.EmailField(max_length=254)),
                ('contact_phone', models.CharField(blank=True, max_length=20)),
                ('contact_whatsapp', models.CharField(blank=True, max_length=20)),
                ('website', models.URLField(blank=True)),
                ('street', models.CharField(blank=True, max_length=255)),
                ('city', models.CharField(blank=True, max_length=100)),
                ('state', models.CharField(blank=True, max_length=100)),
                ('zip_code', models.CharField(blank=True, max_length=20)),
                ('country', models.CharField(default='Nigeria', max_length=100)),
                ('supplied_categories', models.JSONField(blank=True, default=list)),
                ('payment_terms', models.CharField(choices=[('cash-on-delivery', 'Cash on Delivery'), ('net-7', 'Net 7'), ('net-15', 'Net 15'), ('net-30', 'Net 30'), ('net-60', 'Net 60'), ('custom', 'Custom')], default='cash-on-delivery', max_length=20)),
                ('custom_payment_terms', models.CharField(blank=True, max_length=200)),
                ('credit_limit', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('current_balance', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('rating', models.PositiveSmallIntegerField(default=5, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)])),
                ('total_supplies', models.IntegerField(default=0)),
                ('total_value', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('on_time_deliveries', models.IntegerField(default=0)),
                ('late_deliveries', models.IntegerField(default=0)),
                ('quality_score', models.DecimalField(decimal_places=2, default=Decimal('5.00'), max_digits=3, validators=[django.core.validators.MinValueValidator(Decimal('1')), django.core.validators.MaxValueValidator(Decimal('5'))])),
                ('bank_name', models.CharField(blank=True, max_length=100)),
                ('account_name', models.CharField(blank=True, max_length=100)),
                ('account_number', models.CharField(blank=True, max_length=20)),
                ('routing_number', models.CharField(blank=True, max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('is_verified', models.BooleanField(default=False)),
                ('verified_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='supplier_profile', to=settings.AUTH_USER_MODEL)),
                ('verified_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='verified_suppliers', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'supplier_profiles',
                'ordering': ['company_name'],
                'indexes': [models.Index(fields=['is_active', 'is_verified'], name='supplier_active_verified_idx')],
            },
        ),
        migrations.CreateModel(
            name='Supply',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_name', models.CharField(max_length=100)),
                ('unit_type', models.CharField(choices=UNIT_TYPES, max_length=30)),
                ('number_of_quantity', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('price_per_unit', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('total_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('supply_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('notes', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('received', 'Received'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=20)),
                ('received_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('received_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='received_supplies', to=settings.AUTH_USER_MODEL)),
                ('supplier', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='supplies', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'supplies',
                'ordering': ['-created_at'],
                'verbose_name_plural': 'supplies',
                'indexes': [
                    models.Index(fields=['supplier', 'status'], name='supplies_supplier_status_idx'),
                    models.Index(fields=['status', '-created_at'], name='supplies_status_created_idx'),
                ],
            },
        ),
    ]
