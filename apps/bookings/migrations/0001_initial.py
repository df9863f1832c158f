import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('listing_id', models.CharField(db_index=True, max_length=64)),
                ('listing_title', models.CharField(blank=True, max_length=255)),
                ('check_in', models.DateTimeField()),
                ('check_out', models.DateTimeField(blank=True, help_text='Empty for single-date experiences and services.', null=True)),
                ('guests_count', models.PositiveSmallIntegerField(default=1)),
                ('base_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('service_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total_amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('currency', models.CharField(default='PHP', max_length=3)),
                ('payment_method', models.CharField(choices=[('wallet', 'Wallet'), ('paypal', 'PayPal')], default='paypal', max_length=20)),
                ('payment_status', models.CharField(choices=[('pending', 'Awaiting payment'), ('paid', 'Paid'), ('refunded', 'Refunded')], default='paid', max_length=20)),
                ('cancellation_policy', models.CharField(choices=[('flexible', 'Flexible'), ('moderate', 'Moderate'), ('strict', 'Strict')], default='moderate', max_length=20)),
                ('status', models.CharField(choices=[('pending', 'Pending host approval'), ('confirmed', 'Confirmed'), ('rejected', 'Rejected by host'), ('cancelled', 'Cancelled'), ('completed', 'Completed')], db_index=True, default='pending', max_length=20)),
                ('auto_confirmed', models.BooleanField(default=False)),
                ('auto_confirm_reason', models.CharField(blank=True, max_length=255)),
                ('rejection_reason', models.CharField(blank=True, max_length=255)),
                ('cancellation_reason', models.CharField(blank=True, max_length=255)),
                ('cancelled_by', models.CharField(blank=True, choices=[('guest', 'Guest'), ('host', 'Host'), ('system', 'System')], max_length=20)),
                ('confirmed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('check_in_reminder_1_day_sent', models.BooleanField(default=False)),
                ('check_in_reminder_1_day_sent_at', models.DateTimeField(blank=True, null=True)),
                ('check_in_reminder_day_of_sent', models.BooleanField(default=False)),
                ('check_in_reminder_day_of_sent_at', models.DateTimeField(blank=True, null=True)),
                ('review_reminder_sent', models.BooleanField(default=False)),
                ('review_reminder_sent_at', models.DateTimeField(blank=True, null=True)),
                ('refund_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('admin_deduction', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('cancellation_fee', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('refund_percentage', models.DecimalField(blank=True, decimal_places=4, max_digits=5, null=True)),
                ('refund_policy_description', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('guest', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='guest_bookings', to=settings.AUTH_USER_MODEL)),
                ('host', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='hosted_bookings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Booking',
                'verbose_name_plural': 'Bookings',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status', 'check_in'], name='booking_status_check_in_idx')],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('check_out__isnull', True), ('check_out__gt', models.F('check_in')), _connector='OR'), name='booking_check_out_after_check_in'),
                    models.CheckConstraint(condition=models.Q(('refund_amount__isnull', True), ('refund_amount__lte', models.F('total_amount')), _connector='OR'), name='booking_refund_within_total'),
                ],
            },
        ),
    ]
