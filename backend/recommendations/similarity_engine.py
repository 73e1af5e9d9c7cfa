"""
SimilarityEngine: user-user cosine similarity over the sparse interaction matrix.
"""
import logging
import math
from typing import Dict, List, Mapping, Optional

from recommendations.conf import cf_setting
from recommendations.dtos import PipelineRunContext, UserSimilarity

logger = logging.getLogger(__name__)


def cosine_similarity(items_a: Mapping[str, float], items_b: Mapping[str, float]) -> float:
    """
    Computes Cosine Similarity between two users' rating vectors.

    Formula: cos(θ) = (A · B) / (||A|| * ||B||)

    Only items rated by both users take part: the dot product and both
    norms are summed over the intersection, not over the union.

    Returns:
        float: 0.0 when the users share no item or a norm is zero
    """
    if len(items_a) > len(items_b):
        items_a, items_b = items_b, items_a

    dot_product = 0.0
    norm_a = 0.0
    norm_b = 0.0
    common = 0

    for item_id, rating_a in items_a.items():
        rating_b = items_b.get(item_id)
        if rating_b is None:
            continue
        common += 1
        dot_product += rating_a * rating_b
        norm_a += rating_a * rating_a
        norm_b += rating_b * rating_b

    if common == 0:
        return 0.0

    # Avoid division by zero
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return dot_product / (math.sqrt(norm_a) * math.sqrt(norm_b))


class SimilarityEngine:
    """
    Compares every unordered pair of users once and keeps, per user, the
    strongest neighbours above the threshold.
    """

    SIMILARITY_THRESHOLD = 0.1  # pairs at or below are discarded
    MAX_NEIGHBORS = 5           # neighbours kept per user
    PROGRESS_STEP = 10          # log every N percent of the pair pass

    def __init__(self, similarity_threshold: Optional[float] = None, max_neighbors: Optional[int] = None):
        self.SIMILARITY_THRESHOLD = (
            similarity_threshold if similarity_threshold is not None else cf_setting('SIMILARITY_THRESHOLD')
        )
        self.MAX_NEIGHBORS = max_neighbors if max_neighbors is not None else cf_setting('MAX_NEIGHBORS')

    def compute_all_pair_similarities(self, context: PipelineRunContext) -> Dict[str, List[UserSimilarity]]:
        """
        Fill context.similarities with each user's top neighbours.

        Each retained pair is computed once and recorded under both users
        with the same value. Lists are sorted by similarity descending and
        truncated to MAX_NEIGHBORS.

        Args:
            context: Run context whose matrix has been loaded

        Returns:
            Dict[str, List[UserSimilarity]]: user id -> neighbours
        """
        logger.info("Calculating user similarities...")

        user_items = context.matrix.user_items
        users = list(user_items.keys())
        total_comparisons = len(users) * (len(users) - 1) // 2
        similarities: Dict[str, List[UserSimilarity]] = {}

        comparisons = 0
        next_progress = self.PROGRESS_STEP

        for i, user_1 in enumerate(users):
            items_1 = user_items[user_1]

            for user_2 in users[i + 1:]:
                similarity = cosine_similarity(items_1, user_items[user_2])

                if similarity > self.SIMILARITY_THRESHOLD:
                    similarities.setdefault(user_1, []).append(
                        UserSimilarity(user_id=user_1, neighbor_id=user_2, similarity=similarity)
                    )
                    similarities.setdefault(user_2, []).append(
                        UserSimilarity(user_id=user_2, neighbor_id=user_1, similarity=similarity)
                    )

                comparisons += 1
                progress = comparisons * 100 / total_comparisons
                if progress >= next_progress:
                    logger.info("  Progress: %.1f%% (%d/%d)", progress, comparisons, total_comparisons)
                    while next_progress <= progress:
                        next_progress += self.PROGRESS_STEP

        for user_id, neighbours in similarities.items():
            neighbours.sort(key=lambda entry: entry.similarity, reverse=True)
            similarities[user_id] = neighbours[:self.MAX_NEIGHBORS]

        context.similarities = similarities
        logger.info("User similarities calculated for %d users", len(similarities))
        return similarities
