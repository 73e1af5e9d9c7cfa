# Generated migration for trips app

from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.core.validators
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='GroupTrip',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('date', models.DateTimeField(help_text='Scheduled departure date')),
                ('time_slot', models.CharField(choices=[('MORNING', 'Morning'), ('AFTERNOON', 'Afternoon'), ('EVENING', 'Evening')], default='MORNING', max_length=20)),
                ('max_participants', models.PositiveIntegerField(default=8, help_text='Maximum number of seats on the boat', validators=[django.core.validators.MinValueValidator(1)])),
                ('min_required', models.PositiveIntegerField(default=6, help_text='Participants needed before the trip is confirmed')),
                ('price_per_person', models.DecimalField(decimal_places=2, default=Decimal('95.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('status', models.CharField(choices=[('FORMING', 'Forming'), ('CONFIRMED', 'Confirmed'), ('CANCELLED', 'Cancelled'), ('COMPLETED', 'Completed')], default='FORMING', help_text='FORMING, CONFIRMED, CANCELLED, COMPLETED', max_length=20)),
                ('description', models.TextField(blank=True, default='')),
                ('meeting_point', models.CharField(blank=True, default='', max_length=255)),
                ('difficulty_rating', models.PositiveSmallIntegerField(default=3, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)])),
                ('target_species', models.JSONField(blank=True, default=list, help_text='List of target fish species')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('captain', models.ForeignKey(blank=True, help_text='Captain leading the trip', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='captained_trips', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['date'],
                'indexes': [
                    models.Index(fields=['status'], name='trips_trip_status_idx'),
                    models.Index(fields=['date'], name='trips_trip_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='GroupBooking',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('participants', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ('total_price', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('contact_name', models.CharField(max_length=255)),
                ('contact_phone', models.CharField(max_length=50)),
                ('contact_email', models.EmailField(blank=True, default='', max_length=254)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('CONFIRMED', 'Confirmed'), ('CANCELLED', 'Cancelled'), ('COMPLETED', 'Completed')], default='PENDING', max_length=20)),
                ('payment_status', models.CharField(default='pending', max_length=20)),
                ('special_requests', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('trip', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bookings', to='trips.grouptrip')),
                ('user', models.ForeignKey(blank=True, help_text='Booking owner; empty for guest bookings', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='group_bookings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='trips_booking_status_idx'),
                ],
            },
        ),
    ]
