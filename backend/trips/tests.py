from django.test import TestCase
from django.contrib.auth import get_user_model
from django.utils import timezone
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from .models import GroupTrip, GroupBooking
from .dtos import BookingRecord
from .serializers import BookingRecordSerializer
from .services import BookingDataError, DjangoBookingRepository


class GroupTripModelTest(TestCase):
    """Test cases for GroupTrip model"""

    def test_trip_defaults(self):
        """Test creating a trip with default values"""
        trip = GroupTrip.objects.create(date=timezone.now() + timedelta(days=3))
        self.assertEqual(trip.status, GroupTrip.Status.FORMING)
        self.assertEqual(trip.max_participants, 8)
        self.assertEqual(trip.price_per_person, Decimal('95.00'))
        self.assertEqual(trip.target_species, [])


class GroupBookingModelTest(TestCase):
    """Test cases for GroupBooking model"""

    def setUp(self):
        """Set up test data"""
        User = get_user_model()
        self.user = User.objects.create_user(username='testuser', password='testpass')
        self.trip = GroupTrip.objects.create(date=timezone.now() + timedelta(days=3))

    def test_booking_creation(self):
        """Test creating a booking"""
        booking = GroupBooking.objects.create(
            trip=self.trip,
            user=self.user,
            participants=2,
            total_price=Decimal('190.00'),
            contact_name='Test User',
            contact_phone='+10000000000',
        )
        self.assertEqual(booking.status, GroupBooking.Status.PENDING)
        self.assertEqual(self.trip.bookings.count(), 1)
        self.assertIn('x2', str(booking))


class BookingRecordSerializerTest(TestCase):
    """Test cases for the booking boundary validation"""

    def _data(self, **overrides):
        data = {'id': 'b1', 'user_id': '1', 'trip_id': 't1', 'participants': 1, 'status': 'CONFIRMED'}
        data.update(overrides)
        return data

    def test_valid_row(self):
        self.assertTrue(BookingRecordSerializer(data=self._data()).is_valid())

    def test_rejects_zero_participants(self):
        serializer = BookingRecordSerializer(data=self._data(participants=0))
        self.assertFalse(serializer.is_valid())
        self.assertIn('participants', serializer.errors)

    def test_rejects_unknown_status(self):
        serializer = BookingRecordSerializer(data=self._data(status='REFUNDED'))
        self.assertFalse(serializer.is_valid())
        self.assertIn('status', serializer.errors)


class DjangoBookingRepositoryTest(TestCase):
    """Test cases for DjangoBookingRepository"""

    def setUp(self):
        """Set up one trip with bookings in every state"""
        User = get_user_model()
        self.user = User.objects.create_user(
            username='angler', password='testpass', first_name='Ana', last_name='Costa', email='ana@example.com'
        )
        self.other_user = User.objects.create_user(username='skipper', password='testpass')
        self.trip = GroupTrip.objects.create(
            date=timezone.now() + timedelta(days=5),
            description='Tuna offshore',
            price_per_person=Decimal('120.00'),
            max_participants=6,
            difficulty_rating=4,
            target_species=['tuna'],
        )
        self.bookings = {}
        for status in GroupBooking.Status.values:
            self.bookings[status] = self._book(self.user, status)
        self.guest_booking = self._book(None, GroupBooking.Status.CONFIRMED)

        self.repository = DjangoBookingRepository()

    def _book(self, user, status, participants=1):
        return GroupBooking.objects.create(
            trip=self.trip,
            user=user,
            participants=participants,
            total_price=self.trip.price_per_person * participants,
            contact_name='Contact',
            contact_phone='+10000000000',
            status=status,
        )

    def test_list_all_bookings(self):
        """Test that no filter returns every owned booking"""
        records = self.repository.list_bookings()
        self.assertEqual(len(records), len(GroupBooking.Status.values))
        self.assertTrue(all(isinstance(record, BookingRecord) for record in records))

    def test_status_filter(self):
        records = self.repository.list_bookings(
            statuses=[GroupBooking.Status.CONFIRMED, GroupBooking.Status.COMPLETED]
        )
        self.assertEqual({record.status for record in records}, {'CONFIRMED', 'COMPLETED'})
        self.assertEqual(len(records), 2)

    def test_guest_bookings_are_skipped(self):
        ids = {record.id for record in self.repository.list_bookings()}
        self.assertNotIn(str(self.guest_booking.id), ids)

    def test_record_carries_display_fields(self):
        """Test the trip and user joins"""
        [record] = self.repository.list_bookings(statuses=[GroupBooking.Status.COMPLETED])

        self.assertEqual(record.user_id, str(self.user.pk))
        self.assertEqual(record.trip_id, str(self.trip.id))
        self.assertEqual(record.trip.description, 'Tuna offshore')
        self.assertEqual(record.trip.price_per_person, Decimal('120.00'))
        self.assertEqual(record.trip.max_participants, 6)
        self.assertEqual(record.trip.difficulty_rating, 4)
        self.assertEqual(record.trip.target_species, ['tuna'])
        self.assertEqual(record.user.name, 'Ana Costa')
        self.assertEqual(record.user.email, 'ana@example.com')

    def test_user_name_falls_back_to_username(self):
        self._book(self.other_user, GroupBooking.Status.CONFIRMED)
        records = [
            record for record in self.repository.list_bookings()
            if record.user_id == str(self.other_user.pk)
        ]
        self.assertEqual(records[0].user.name, 'skipper')

    def test_records_ordered_by_creation(self):
        records = self.repository.list_bookings()
        self.assertEqual([r.created_at for r in records], sorted(r.created_at for r in records))

    def test_invalid_row_raises(self):
        """Test that a booking with zero participants is rejected"""
        self._book(self.other_user, GroupBooking.Status.CONFIRMED, participants=0)
        with self.assertRaises(BookingDataError):
            self.repository.list_bookings()

    def test_each_row_is_validated(self):
        """Test that validation happens once per row"""
        with patch('trips.services.BookingRecordSerializer', wraps=BookingRecordSerializer) as serializer:
            records = self.repository.list_bookings()
        self.assertEqual(serializer.call_count, len(records))
