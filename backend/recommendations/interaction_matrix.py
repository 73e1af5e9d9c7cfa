"""
MatrixBuilder: turns booking history into the sparse interaction matrices
used by the similarity engine and the recommendation generator.
"""
import logging
from typing import Iterable, Optional

from recommendations.conf import cf_setting
from recommendations.dtos import InteractionMatrix, InteractionRecord, PipelineRunContext
from trips.dtos import BookingRecord
from trips.models import GroupBooking
from trips.services import BookingRepository, DjangoBookingRepository

logger = logging.getLogger(__name__)

INTERACTION_STATUSES = (GroupBooking.Status.CONFIRMED, GroupBooking.Status.COMPLETED)


class MatrixBuilder:
    """
    Builds the user-item matrix (and its transpose) from confirmed and
    completed bookings. Ratings are implicit:

        rating = BASE_RATING
                 + COMPLETED_BONUS   if the booking is COMPLETED
                 + GROUP_BONUS       if more than one participant
    """

    def __init__(
        self,
        repository: Optional[BookingRepository] = None,
        base_rating: Optional[float] = None,
        completed_bonus: Optional[float] = None,
        group_bonus: Optional[float] = None,
    ):
        self.repository = repository or DjangoBookingRepository()
        self.BASE_RATING = base_rating if base_rating is not None else cf_setting('BASE_RATING')
        self.COMPLETED_BONUS = completed_bonus if completed_bonus is not None else cf_setting('COMPLETED_BONUS')
        self.GROUP_BONUS = group_bonus if group_bonus is not None else cf_setting('GROUP_BONUS')

    def compute_rating(self, status: str, participants: int) -> float:
        rating = self.BASE_RATING
        if status == GroupBooking.Status.COMPLETED:
            rating += self.COMPLETED_BONUS
        if participants > 1:
            rating += self.GROUP_BONUS
        return rating

    def to_interaction(self, booking: BookingRecord) -> InteractionRecord:
        return InteractionRecord(
            user_id=booking.user_id,
            item_id=booking.trip_id,
            rating=self.compute_rating(booking.status, booking.participants),
            timestamp=booking.created_at,
        )

    def build(self, records: Iterable[InteractionRecord]) -> InteractionMatrix:
        """
        Fill both matrices in a single pass.
        A repeated (user, item) pair overwrites the earlier rating.
        """
        matrix = InteractionMatrix()
        for record in records:
            matrix.user_items.setdefault(record.user_id, {})[record.item_id] = record.rating
            matrix.item_users.setdefault(record.item_id, {})[record.user_id] = record.rating
        return matrix

    def load_interaction_matrix(self, context: PipelineRunContext) -> InteractionMatrix:
        """
        Fetch bookings and rebuild the matrices held by the run context.

        The fetch happens before anything in the context is replaced, so a
        failing store leaves the previous matrices untouched.

        Args:
            context: Run context to populate

        Returns:
            InteractionMatrix: The freshly built matrix
        """
        logger.info("Loading user-item interaction matrix...")
        bookings = self.repository.list_bookings(statuses=INTERACTION_STATUSES)
        logger.info("Processing %d confirmed/completed bookings", len(bookings))

        matrix = self.build(self.to_interaction(booking) for booking in bookings)
        context.matrix = matrix

        logger.info("Matrix built: %d users x %d items", matrix.user_count, matrix.item_count)
        return matrix
