"""
Django admin configuration for recommendations models.
"""
from django.contrib import admin
from recommendations.models import SmartRecommendation


@admin.register(SmartRecommendation)
class SmartRecommendationAdmin(admin.ModelAdmin):
    list_display = ['id', 'type', 'target_user', 'recommended_trip', 'priority', 'relevance_score', 'is_active', 'valid_from']
    list_filter = ['type', 'is_active', 'valid_from']
    search_fields = ['target_user__username', 'title', 'description']
    readonly_fields = ['id', 'metadata', 'created_at', 'updated_at']

    def get_queryset(self, request):
        queryset = super().get_queryset(request)
        return queryset.select_related('target_user', 'recommended_trip')
