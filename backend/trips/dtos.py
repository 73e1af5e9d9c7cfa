"""
Data Transfer Objects (DTOs) for bookings read by other apps.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional


@dataclass
class TripSummary:
    """Minimal trip display data shown next to a recommendation"""
    id: str
    description: str
    price_per_person: Decimal
    max_participants: int
    status: str
    date: datetime
    difficulty_rating: Optional[int] = None
    target_species: List[str] = field(default_factory=list)


@dataclass
class UserSummary:
    """Minimal user display data"""
    id: str
    name: str
    email: str


@dataclass
class BookingRecord:
    """
    Read-only view of a GroupBooking joined with its trip and user.
    Returned by BookingRepository.list_bookings().
    """
    id: str
    user_id: str
    trip_id: str
    participants: int
    status: str
    created_at: Optional[datetime]
    trip: TripSummary
    user: UserSummary
