# Generated migration for recommendations app

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('trips', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='SmartRecommendation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('type', models.CharField(choices=[('HISTORY_BASED', 'History Based'), ('WEATHER_AI', 'Weather AI'), ('SOCIAL_CAPTAIN', 'Social Captain'), ('COLLABORATIVE', 'Collaborative'), ('CONTENT_BASED', 'Content Based'), ('HYBRID', 'Hybrid')], help_text='Engine that produced the recommendation', max_length=20)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField()),
                ('priority', models.IntegerField(default=5)),
                ('relevance_score', models.FloatField(default=0.5)),
                ('confidence_score', models.FloatField(default=0.5)),
                ('impressions', models.IntegerField(default=0)),
                ('clicks', models.IntegerField(default=0)),
                ('conversions', models.IntegerField(default=0)),
                ('valid_from', models.DateTimeField()),
                ('valid_until', models.DateTimeField(blank=True, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('metadata', models.JSONField(blank=True, default=dict, help_text='Algorithm name, contributing users and generation time')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('recommended_trip', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='recommendations', to='trips.grouptrip')),
                ('target_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='smart_recommendations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'recommendations_smart_recommendation',
                'indexes': [
                    models.Index(fields=['type'], name='rec_smart_type_idx'),
                    models.Index(fields=['target_user'], name='rec_smart_target_user_idx'),
                    models.Index(fields=['is_active', 'valid_from', 'valid_until'], name='rec_smart_validity_idx'),
                ],
            },
        ),
    ]
