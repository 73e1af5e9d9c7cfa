"""
Domain services for trips app - booking query interface.
"""
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from trips.dtos import BookingRecord, TripSummary, UserSummary
from trips.models import GroupBooking, GroupTrip
from trips.serializers import BookingRecordSerializer

logger = logging.getLogger(__name__)


class BookingDataError(ValueError):
    """Raised when a booking row fails validation at the read boundary"""


class BookingRepository(ABC):
    """Abstract base class for booking sources"""

    @abstractmethod
    def list_bookings(self, statuses: Optional[Iterable[str]] = None) -> List[BookingRecord]:
        """
        Return bookings joined with their trip and user.
        When statuses is given, only bookings in one of those states are returned.
        """
        pass


class DjangoBookingRepository(BookingRepository):
    """Reads bookings from the relational store through the Django ORM"""

    def list_bookings(self, statuses: Optional[Iterable[str]] = None) -> List[BookingRecord]:
        """
        Fetch owned bookings ordered by creation time.

        Guest bookings (no user) are skipped since they cannot be
        attributed to anyone.

        Args:
            statuses: Optional collection of GroupBooking.Status values

        Returns:
            List[BookingRecord]: Validated booking records

        Raises:
            BookingDataError: If a row does not pass validation
        """
        queryset = GroupBooking.objects.select_related('trip', 'user').filter(
            user__isnull=False
        )
        if statuses is not None:
            queryset = queryset.filter(status__in=list(statuses))

        records = [self._to_record(booking) for booking in queryset.order_by('created_at', 'id')]
        logger.debug("Fetched %d bookings (statuses=%s)", len(records), statuses)
        return records

    @staticmethod
    def _to_record(booking: GroupBooking) -> BookingRecord:
        serializer = BookingRecordSerializer(data={
            'id': str(booking.id),
            'user_id': str(booking.user_id),
            'trip_id': str(booking.trip_id),
            'participants': booking.participants,
            'status': booking.status,
        })
        if not serializer.is_valid():
            raise BookingDataError(f"Invalid booking {booking.id}: {serializer.errors}")

        data = serializer.validated_data
        user = booking.user
        return BookingRecord(
            id=data['id'],
            user_id=data['user_id'],
            trip_id=data['trip_id'],
            participants=data['participants'],
            status=data['status'],
            created_at=booking.created_at,
            trip=trip_summary(booking.trip),
            user=UserSummary(
                id=str(user.pk),
                name=user.get_full_name() or user.get_username(),
                email=user.email,
            ),
        )


def trip_summary(trip: GroupTrip) -> TripSummary:
    """Build the display summary of a trip"""
    return TripSummary(
        id=str(trip.id),
        description=trip.description,
        price_per_person=trip.price_per_person,
        max_participants=trip.max_participants,
        status=trip.status,
        date=trip.date,
        difficulty_rating=trip.difficulty_rating,
        target_species=list(trip.target_species or []),
    )
