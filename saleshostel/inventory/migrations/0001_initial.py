import django.db.models.deletion
import django.utils.timezone
import saleshostel.inventory.models
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('movement_type', models.CharField(choices=[('purchase', 'Purchase'), ('sale', 'Sale'), ('adjustment', 'Adjustment'), ('return', 'Return'), ('damage', 'Damage'), ('expired', 'Expired'), ('transfer', 'Transfer'), ('audit', 'Audit'), ('promotion', 'Promotion'), ('sample', 'Sample')], max_length=20)),
                ('quantity_before', models.IntegerField()),
                ('quantity_changed', models.IntegerField()),
                ('quantity_after', models.IntegerField()),
                ('reference', models.CharField(blank=True, max_length=100)),
                ('reference_type', models.CharField(choices=[('order', 'Order'), ('purchase-order', 'Purchase Order'), ('supply', 'Supply'), ('manual', 'Manual'), ('system', 'System'), ('return', 'Return'), ('audit', 'Audit')], default='manual', max_length=20)),
                ('reason', models.CharField(blank=True, max_length=200)),
                ('notes', models.TextField(blank=True)),
                ('unit_cost', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('total_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('movement_date', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('location', models.CharField(default=saleshostel.inventory.models.default_location, max_length=100)),
                ('batch_number', models.CharField(blank=True, max_length=100)),
                ('expiry_date', models.DateField(blank=True, null=True)),
                ('quality_status', models.CharField(choices=[('good', 'Good'), ('damaged', 'Damaged'), ('expired', 'Expired'), ('returned', 'Returned')], default='good', max_length=20)),
                ('source', models.CharField(choices=[('manual', 'Manual'), ('order', 'Order'), ('purchase', 'Purchase'), ('audit', 'Audit'), ('system', 'System')], default='manual', max_length=20)),
                ('is_system_generated', models.BooleanField(default=False)),
                ('is_reversed', models.BooleanField(default=False)),
                ('reversal_reason', models.CharField(blank=True, max_length=200)),
                ('reversal_date', models.DateTimeField(blank=True, null=True)),
                ('product_name', models.CharField(blank=True, max_length=100)),
                ('unit_type', models.CharField(blank=True, max_length=30)),
                ('category_name', models.CharField(blank=True, max_length=50)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='approved_stock_movements', to=settings.AUTH_USER_MODEL)),
                ('performed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='stock_movements', to=settings.AUTH_USER_MODEL)),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='movements', to='catalog.product')),
                ('reversal_of', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reversals', to='inventory.stockmovement')),
                ('reversed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reversed_stock_movements', to=settings.AUTH_USER_MODEL)),
                ('unit', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='movements', to='catalog.productunit')),
            ],
            options={
                'db_table': 'stock_movements',
                'ordering': ['-movement_date', '-id'],
                'indexes': [
                    models.Index(fields=['unit', '-movement_date'], name='stock_mov_unit_date_idx'),
                    models.Index(fields=['movement_type', '-movement_date'], name='stock_mov_type_date_idx'),
                    models.Index(fields=['reference_type', 'reference'], name='stock_mov_reference_idx'),
                ],
            },
        ),
    ]
