"""
Serializers for the recommendations module.
"""
from rest_framework import serializers


class TripSummarySerializer(serializers.Serializer):
    """Serializer for TripSummary DTO"""
    id = serializers.CharField()
    description = serializers.CharField(allow_blank=True)
    price_per_person = serializers.DecimalField(max_digits=10, decimal_places=2)
    max_participants = serializers.IntegerField()
    status = serializers.CharField()
    date = serializers.DateTimeField()
    difficulty_rating = serializers.IntegerField(allow_null=True)
    target_species = serializers.ListField(child=serializers.CharField(), allow_empty=True)


class StoredRecommendationSerializer(serializers.Serializer):
    """Serializer for StoredRecommendation DTO"""
    id = serializers.CharField()
    user_id = serializers.CharField()
    type = serializers.CharField()
    title = serializers.CharField()
    description = serializers.CharField()
    priority = serializers.IntegerField()
    relevance_score = serializers.FloatField()
    confidence_score = serializers.FloatField()
    is_active = serializers.BooleanField()
    valid_from = serializers.DateTimeField()
    metadata = serializers.JSONField()
    trip = TripSummarySerializer(allow_null=True)


class PipelineSummarySerializer(serializers.Serializer):
    """Serializer for PipelineSummary DTO"""
    total_recommendations = serializers.IntegerField()
    users_with_recommendations = serializers.IntegerField()
