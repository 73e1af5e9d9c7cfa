"""
Data Transfer Objects (DTOs) for passing state between the stages of the
collaborative filtering pipeline and for returning results.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from trips.dtos import TripSummary


@dataclass
class InteractionRecord:
    """One implicit rating derived from a confirmed or completed booking"""
    user_id: str
    item_id: str
    rating: float
    timestamp: Optional[datetime] = None


@dataclass
class InteractionMatrix:
    """
    Sparse user -> item -> rating mapping and its transpose.
    Both are filled in the same pass by MatrixBuilder.
    """
    user_items: Dict[str, Dict[str, float]] = field(default_factory=dict)
    item_users: Dict[str, Dict[str, float]] = field(default_factory=dict)

    @property
    def user_count(self) -> int:
        return len(self.user_items)

    @property
    def item_count(self) -> int:
        return len(self.item_users)

    def items_for(self, user_id: str) -> Dict[str, float]:
        """Row of the user-item matrix; empty for unknown users"""
        return self.user_items.get(user_id, {})


@dataclass
class UserSimilarity:
    """Neighbour entry stored under user_id"""
    user_id: str
    neighbor_id: str
    similarity: float


@dataclass
class CollaborativeRecommendation:
    """
    Trip recommended to a user by aggregating neighbour preferences.
    Returned by RecommendationGenerator.generate_recommendations_for_user().
    """
    user_id: str
    item_id: str
    score: float
    reason: str
    similar_users: List[str] = field(default_factory=list)


@dataclass
class PipelineRunContext:
    """
    Working set of one pipeline run. Each stage reads what the previous
    stage produced and writes its own output here.
    """
    matrix: InteractionMatrix = field(default_factory=InteractionMatrix)
    similarities: Dict[str, List[UserSimilarity]] = field(default_factory=dict)


@dataclass
class PipelineSummary:
    total_recommendations: int
    users_with_recommendations: int


@dataclass
class StoredRecommendation:
    """A persisted recommendation joined with the trip it points to"""
    id: str
    user_id: str
    type: str
    title: str
    description: str
    priority: int
    relevance_score: float
    confidence_score: float
    is_active: bool
    valid_from: datetime
    metadata: dict
    trip: Optional[TripSummary] = None
