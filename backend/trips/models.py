import uuid
from decimal import Decimal

from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator


class GroupTrip(models.Model):
    """
    Database entity representing a scheduled group fishing trip. Users join a
    trip through GroupBooking; the trip is the recommendable item of the
    collaborative filtering engine.
    """

    class Status(models.TextChoices):
        """Enum for trip status"""
        FORMING = 'FORMING', 'Forming'
        CONFIRMED = 'CONFIRMED', 'Confirmed'
        CANCELLED = 'CANCELLED', 'Cancelled'
        COMPLETED = 'COMPLETED', 'Completed'

    class TimeSlot(models.TextChoices):
        """Enum for departure time slot"""
        MORNING = 'MORNING', 'Morning'
        AFTERNOON = 'AFTERNOON', 'Afternoon'
        EVENING = 'EVENING', 'Evening'

    # Primary Key
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Foreign Keys
    captain = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='captained_trips',
        help_text="Captain leading the trip"
    )

    # Date & Time
    date = models.DateTimeField(
        help_text="Scheduled departure date"
    )
    time_slot = models.CharField(
        max_length=20,
        choices=TimeSlot.choices,
        default=TimeSlot.MORNING,
    )

    # Capacity & Pricing
    max_participants = models.PositiveIntegerField(
        default=8,
        validators=[MinValueValidator(1)],
        help_text="Maximum number of seats on the boat"
    )
    min_required = models.PositiveIntegerField(
        default=6,
        help_text="Participants needed before the trip is confirmed"
    )
    price_per_person = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('95.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
    )

    # Status
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.FORMING,
        help_text="FORMING, CONFIRMED, CANCELLED, COMPLETED"
    )

    # Description
    description = models.TextField(blank=True, default="")
    meeting_point = models.CharField(max_length=255, blank=True, default="")
    difficulty_rating = models.PositiveSmallIntegerField(
        default=3,
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    target_species = models.JSONField(
        default=list,
        blank=True,
        help_text="List of target fish species"
    )

    # Timestamp
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['date']
        indexes = [
            models.Index(fields=['status'], name='trips_trip_status_idx'),
            models.Index(fields=['date'], name='trips_trip_date_idx'),
        ]

    def __str__(self):
        return f"Trip {self.date:%Y-%m-%d} ({self.get_status_display()})"


class GroupBooking(models.Model):
    """
    A user's reservation of seats on a GroupTrip. Confirmed and completed
    bookings are the implicit feedback signal for recommendations.
    """

    class Status(models.TextChoices):
        """Enum for booking status"""
        PENDING = 'PENDING', 'Pending'
        CONFIRMED = 'CONFIRMED', 'Confirmed'
        CANCELLED = 'CANCELLED', 'Cancelled'
        COMPLETED = 'COMPLETED', 'Completed'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    trip = models.ForeignKey(
        GroupTrip,
        on_delete=models.CASCADE,
        related_name='bookings',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='group_bookings',
        help_text="Booking owner; empty for guest bookings"
    )

    participants = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    total_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
    )

    # Contact
    contact_name = models.CharField(max_length=255)
    contact_phone = models.CharField(max_length=50)
    contact_email = models.EmailField(blank=True, default="")

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    payment_status = models.CharField(max_length=20, default='pending')
    special_requests = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['status'], name='trips_booking_status_idx'),
        ]

    def __str__(self):
        return f"{self.contact_name} x{self.participants} - {self.get_status_display()}"
