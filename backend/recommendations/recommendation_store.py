"""
RecommendationStore: persistence adapter for collaborative recommendations.
"""
import logging
import math
from typing import Iterable, List, Optional, Sequence

from django.db import transaction
from django.utils import timezone

from recommendations.conf import cf_setting
from recommendations.dtos import CollaborativeRecommendation, StoredRecommendation
from recommendations.models import RecommendationType, SmartRecommendation
from trips.services import trip_summary

logger = logging.getLogger(__name__)

ALGORITHM_NAME = 'user_based_collaborative_filtering'
RECOMMENDATION_TITLE = 'Personal recommendation based on your preferences'


def score_to_priority(score: float) -> int:
    """Scale a score by 10 and round half up"""
    return int(math.floor(score * 10 + 0.5))


class RecommendationStore:
    """
    Writes and reads SmartRecommendation rows of type COLLABORATIVE.
    """

    def __init__(self, fetch_page_size: Optional[int] = None):
        self.FETCH_PAGE_SIZE = fetch_page_size if fetch_page_size is not None else cf_setting('FETCH_PAGE_SIZE')

    def persist(
        self,
        recommendations: Sequence[CollaborativeRecommendation],
        replace_user_ids: Iterable[str] = (),
    ) -> int:
        """
        Replace the collaborative recommendations of every user present in
        the input or listed in replace_user_ids. A listed user without new
        recommendations ends up with none.

        Deletion of the old rows and insertion of the new ones run in one
        transaction: if the insert fails, the old rows are kept.

        Args:
            recommendations: New recommendations, any number of users
            replace_user_ids: Extra users whose old rows are dropped

        Returns:
            int: Number of rows inserted
        """
        user_ids = list(dict.fromkeys(
            [str(user_id) for user_id in replace_user_ids] + [rec.user_id for rec in recommendations]
        ))
        if not user_ids:
            return 0

        logger.info("Saving recommendations to database...")
        now = timezone.now()

        rows = [self._to_row(rec, now) for rec in recommendations]

        with transaction.atomic():
            deleted, _ = SmartRecommendation.objects.filter(
                target_user_id__in=user_ids,
                type=RecommendationType.COLLABORATIVE,
            ).delete()
            SmartRecommendation.objects.bulk_create(rows)

        logger.info(
            "Saved %d recommendations for %d users (replaced %d)",
            len(rows), len(user_ids), deleted
        )
        return len(rows)

    def fetch(self, user_id: str) -> List[StoredRecommendation]:
        """
        Read a user's collaborative recommendations, best first, joined with
        the display data of the recommended trip.

        Args:
            user_id: Target user id

        Returns:
            List[StoredRecommendation]: At most FETCH_PAGE_SIZE entries
        """
        queryset = SmartRecommendation.objects.select_related('recommended_trip').filter(
            target_user_id=user_id,
            type=RecommendationType.COLLABORATIVE,
        ).order_by('-relevance_score')[:self.FETCH_PAGE_SIZE]

        return [self._to_stored(row) for row in queryset]

    @staticmethod
    def _to_row(rec: CollaborativeRecommendation, now) -> SmartRecommendation:
        return SmartRecommendation(
            target_user_id=rec.user_id,
            type=RecommendationType.COLLABORATIVE,
            title=RECOMMENDATION_TITLE,
            description=rec.reason,
            recommended_trip_id=rec.item_id,
            priority=score_to_priority(rec.score),
            relevance_score=rec.score,
            confidence_score=rec.score,
            is_active=True,
            valid_from=now,
            metadata={
                'similar_users': list(rec.similar_users),
                'algorithm': ALGORITHM_NAME,
                'generated_at': now.isoformat(),
                'score': rec.score,
            },
        )

    @staticmethod
    def _to_stored(row: SmartRecommendation) -> StoredRecommendation:
        trip = row.recommended_trip
        return StoredRecommendation(
            id=str(row.id),
            user_id=str(row.target_user_id),
            type=row.type,
            title=row.title,
            description=row.description,
            priority=row.priority,
            relevance_score=row.relevance_score,
            confidence_score=row.confidence_score,
            is_active=row.is_active,
            valid_from=row.valid_from,
            metadata=row.metadata,
            trip=trip_summary(trip) if trip is not None else None,
        )
