"""
Batch entry point for the collaborative filtering pipeline.

    python manage.py run_collaborative_filtering
    python manage.py run_collaborative_filtering --limit 5 --show-user 42
"""
import json

from django.core.management.base import BaseCommand, CommandError
from rest_framework.utils.encoders import JSONEncoder

from recommendations.pipeline import CollaborativeFilteringService
from recommendations.serializers import PipelineSummarySerializer, StoredRecommendationSerializer


class Command(BaseCommand):
    help = "Recompute collaborative trip recommendations for all users"

    def add_arguments(self, parser):
        parser.add_argument(
            '--limit',
            type=int,
            default=None,
            help="Recommendations generated per user (default: RECOMMENDATIONS_PER_USER setting)",
        )
        parser.add_argument(
            '--show-user',
            dest='show_user',
            default=None,
            help="After the run, print the stored recommendations of this user as JSON",
        )

    def handle(self, *args, **options):
        limit = options['limit']
        if limit is not None and limit < 1:
            raise CommandError("--limit must be a positive integer")

        service = CollaborativeFilteringService()

        try:
            summary = service.run_full_pipeline(limit_per_user=limit)
        except Exception as e:
            raise CommandError(f"Collaborative filtering failed: {e}") from e

        data = PipelineSummarySerializer(summary).data
        self.stdout.write(self.style.SUCCESS(
            f"Total recommendations generated: {data['total_recommendations']}"
        ))
        self.stdout.write(f"Users with recommendations: {data['users_with_recommendations']}")

        if options['show_user']:
            try:
                stored = service.get_recommendations_for_user(options['show_user'])
            except Exception as e:
                raise CommandError(
                    f"Could not read recommendations for user {options['show_user']}: {e}"
                ) from e
            payload = StoredRecommendationSerializer(stored, many=True).data
            self.stdout.write(json.dumps(payload, cls=JSONEncoder, indent=2))
