"""
CollaborativeFilteringService: batch orchestration of the recommendation pipeline.

    MatrixBuilder -> SimilarityEngine -> RecommendationGenerator -> RecommendationStore
"""
import logging
import threading
from typing import List, Optional

from recommendations.conf import cf_setting
from recommendations.dtos import (
    CollaborativeRecommendation, PipelineRunContext, PipelineSummary, StoredRecommendation
)
from recommendations.interaction_matrix import MatrixBuilder
from recommendations.recommendation_generator import RecommendationGenerator
from recommendations.recommendation_store import RecommendationStore
from recommendations.similarity_engine import SimilarityEngine

logger = logging.getLogger(__name__)


class PipelineAborted(RuntimeError):
    """Raised when a run is cancelled at a stage boundary"""


class CollaborativeFilteringService:
    """
    Orchestrator for a full, stop-the-world recomputation of collaborative
    recommendations. Meant to run as a scheduled job.

    Every run works on its own PipelineRunContext; nothing is cached
    between runs except the persisted rows.
    """

    def __init__(
        self,
        matrix_builder: Optional[MatrixBuilder] = None,
        similarity_engine: Optional[SimilarityEngine] = None,
        generator: Optional[RecommendationGenerator] = None,
        store: Optional[RecommendationStore] = None,
    ):
        self.matrix_builder = matrix_builder or MatrixBuilder()
        self.similarity_engine = similarity_engine or SimilarityEngine()
        self.generator = generator or RecommendationGenerator()
        self.store = store or RecommendationStore()

    def run_full_pipeline(
        self,
        limit_per_user: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> PipelineSummary:
        """
        Rebuild the matrix and similarities, generate recommendations for
        every user in the matrix and persist them in one batch. Every user
        in the matrix has their collaborative rows replaced, even when the
        new batch holds nothing for them.

        Persisting is the last step, so a run that fails or is aborted
        earlier writes nothing.

        Args:
            limit_per_user: Recommendations per user (default RECOMMENDATIONS_PER_USER)
            cancel_event: Checked between stages; when set the run is aborted

        Returns:
            PipelineSummary: Counts of generated recommendations and users

        Raises:
            PipelineAborted: If cancel_event is set at a stage boundary
        """
        if limit_per_user is None:
            limit_per_user = cf_setting('RECOMMENDATIONS_PER_USER')

        logger.info("Starting collaborative filtering run")
        context = PipelineRunContext()

        try:
            self._check_cancelled(cancel_event, 'load')
            self.matrix_builder.load_interaction_matrix(context)

            self._check_cancelled(cancel_event, 'similarity')
            self.similarity_engine.compute_all_pair_similarities(context)

            self._check_cancelled(cancel_event, 'generation')
            all_recommendations: List[CollaborativeRecommendation] = []
            for user_id in context.matrix.user_items:
                all_recommendations.extend(
                    self.generator.generate_recommendations_for_user(context, user_id, limit_per_user)
                )

            self._check_cancelled(cancel_event, 'persist')
            # Users left without recommendations lose their stale rows too
            self.store.persist(all_recommendations, replace_user_ids=list(context.matrix.user_items))
        except PipelineAborted:
            logger.warning("Collaborative filtering run aborted")
            raise
        except Exception:
            logger.exception("Collaborative filtering run failed")
            raise

        summary = PipelineSummary(
            total_recommendations=len(all_recommendations),
            users_with_recommendations=len({rec.user_id for rec in all_recommendations}),
        )
        logger.info(
            "Collaborative filtering run completed: %d recommendations for %d users",
            summary.total_recommendations, summary.users_with_recommendations
        )
        return summary

    def get_recommendations_for_user(self, user_id: str) -> List[StoredRecommendation]:
        """Read path for consumers"""
        return self.store.fetch(user_id)

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event], stage: str) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise PipelineAborted(f"Run cancelled before {stage} stage")
