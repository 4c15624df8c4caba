from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('payments', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='payment',
            name='requires_refund',
            field=models.BooleanField(db_index=True, default=False),
        ),
    ]
