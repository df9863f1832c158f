from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='PlatformPolicy',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('admin_deduction_rate', models.DecimalField(decimal_places=4, default=Decimal('0.1000'), help_text='Share of the refundable amount kept by the platform (0..1).', max_digits=5)),
                ('refund_schedules', models.JSONField(blank=True, default=dict, help_text='Per-tier refund steps, e.g. {"moderate": {"steps": [...], "floor": "0"}}.')),
                ('auto_confirm_delay_hours', models.PositiveIntegerField(blank=True, help_text='Hours before a pending booking is confirmed automatically.', null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Platform policy',
                'verbose_name_plural': 'Platform policies',
            },
        ),
    ]
