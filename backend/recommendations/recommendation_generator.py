"""
RecommendationGenerator: turns a user's neighbours into scored trip candidates.
"""
import logging
from typing import Dict, List

from recommendations.dtos import CollaborativeRecommendation, PipelineRunContext

logger = logging.getLogger(__name__)


class _ItemScore:
    __slots__ = ('total', 'count', 'contributors')

    def __init__(self):
        self.total = 0.0
        self.count = 0
        self.contributors: List[str] = []


class RecommendationGenerator:
    """
    User-based collaborative filtering step. Requires a run context on which
    the matrix builder and the similarity engine have already run.
    """

    DEFAULT_LIMIT = 5

    def generate_recommendations_for_user(
        self,
        context: PipelineRunContext,
        target_user_id: str,
        limit: int = DEFAULT_LIMIT,
    ) -> List[CollaborativeRecommendation]:
        """
        Aggregate neighbour ratings into recommendations for one user.

        Steps:
        1. Skip trips the user already booked
        2. Sum similarity * rating per trip and count contributors
        3. Score = sum / contributor count
        4. Return the top `limit` trips by score

        Args:
            context: Run context with matrix and similarities filled
            target_user_id: User to recommend for
            limit: Maximum number of recommendations

        Returns:
            List[CollaborativeRecommendation]: Sorted by score (highest first);
            empty when the user has no neighbours
        """
        neighbours = context.similarities.get(target_user_id, [])
        if not neighbours:
            logger.warning("No similar users found for %s", target_user_id)
            return []

        already_booked = set(context.matrix.items_for(target_user_id))
        item_scores: Dict[str, _ItemScore] = {}

        for neighbour in neighbours:
            for item_id, rating in context.matrix.items_for(neighbour.neighbor_id).items():
                if item_id in already_booked:
                    continue

                entry = item_scores.get(item_id)
                if entry is None:
                    entry = item_scores[item_id] = _ItemScore()
                entry.total += neighbour.similarity * rating
                entry.count += 1
                entry.contributors.append(neighbour.neighbor_id)

        # Normalised by contributor count, not by the sum of similarities
        ranked = sorted(
            ((item_id, entry.total / entry.count, entry) for item_id, entry in item_scores.items()),
            key=lambda candidate: candidate[1],
            reverse=True,
        )[:limit]

        recommendations = [
            CollaborativeRecommendation(
                user_id=target_user_id,
                item_id=item_id,
                score=score,
                reason=f"Based on {entry.count} similar users' preferences",
                similar_users=list(entry.contributors),
            )
            for item_id, score, entry in ranked
        ]

        logger.debug("Generated %d recommendations for user %s", len(recommendations), target_user_id)
        return recommendations
