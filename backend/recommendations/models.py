import uuid
from django.conf import settings
from django.db import models
from trips.models import GroupTrip


class RecommendationType(models.TextChoices):
    """Enumeration for the engine that produced a recommendation"""
    HISTORY_BASED = 'HISTORY_BASED', 'History Based'
    WEATHER_AI = 'WEATHER_AI', 'Weather AI'
    SOCIAL_CAPTAIN = 'SOCIAL_CAPTAIN', 'Social Captain'
    COLLABORATIVE = 'COLLABORATIVE', 'Collaborative'
    CONTENT_BASED = 'CONTENT_BASED', 'Content Based'
    HYBRID = 'HYBRID', 'Hybrid'


class SmartRecommendation(models.Model):
    """
    A recommendation shown to a user.
    Collaborative rows are fully replaced per user by RecommendationStore.persist().
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    type = models.CharField(
        max_length=20,
        choices=RecommendationType.choices,
        help_text="Engine that produced the recommendation"
    )
    target_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='smart_recommendations'
    )
    title = models.CharField(max_length=255)
    description = models.TextField()
    recommended_trip = models.ForeignKey(
        GroupTrip,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='recommendations'
    )

    # Ranking
    priority = models.IntegerField(default=5)
    relevance_score = models.FloatField(default=0.5)
    confidence_score = models.FloatField(default=0.5)

    # Engagement counters
    impressions = models.IntegerField(default=0)
    clicks = models.IntegerField(default=0)
    conversions = models.IntegerField(default=0)

    # Validity
    valid_from = models.DateTimeField()
    valid_until = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Algorithm name, contributing users and generation time"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'recommendations_smart_recommendation'
        indexes = [
            models.Index(fields=['type'], name='rec_smart_type_idx'),
            models.Index(fields=['target_user'], name='rec_smart_target_user_idx'),
            models.Index(fields=['is_active', 'valid_from', 'valid_until'], name='rec_smart_validity_idx'),
        ]

    def __str__(self):
        return f"{self.type} for {self.target_user_id} - {self.relevance_score:.2f}"
