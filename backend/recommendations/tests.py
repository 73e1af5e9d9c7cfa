"""
Tests for the recommendations module.
"""
import json
import threading
from datetime import timedelta
from decimal import Decimal
from io import StringIO
from unittest.mock import MagicMock, patch

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from recommendations.dtos import (
    CollaborativeRecommendation, InteractionMatrix, InteractionRecord,
    PipelineRunContext, UserSimilarity
)
from recommendations.interaction_matrix import MatrixBuilder
from recommendations.models import RecommendationType, SmartRecommendation
from recommendations.pipeline import CollaborativeFilteringService, PipelineAborted
from recommendations.recommendation_generator import RecommendationGenerator
from recommendations.recommendation_store import (
    ALGORITHM_NAME, RecommendationStore, score_to_priority
)
from recommendations.similarity_engine import SimilarityEngine, cosine_similarity
from trips.models import GroupBooking, GroupTrip
from trips.services import BookingDataError


def create_user(username):
    return get_user_model().objects.create_user(username=username, password='testpass123')


def create_trip(description='Sea bass trip', days_ahead=7):
    return GroupTrip.objects.create(
        date=timezone.now() + timedelta(days=days_ahead),
        description=description,
        price_per_person=Decimal('95.00'),
        max_participants=8,
        target_species=['sea bass'],
    )


def create_booking(user, trip, status, participants=1):
    return GroupBooking.objects.create(
        trip=trip,
        user=user,
        participants=participants,
        total_price=trip.price_per_person * participants,
        contact_name=user.username if user else 'Guest',
        contact_phone='+10000000000',
        status=status,
    )


def context_from(user_items, similarities=None):
    """Build a run context directly from a user -> item -> rating mapping"""
    builder = MatrixBuilder(repository=MagicMock())
    records = [
        InteractionRecord(user_id=user_id, item_id=item_id, rating=rating)
        for user_id, items in user_items.items()
        for item_id, rating in items.items()
    ]
    context = PipelineRunContext(matrix=builder.build(records))
    if similarities is not None:
        context.similarities = similarities
    return context


class MatrixBuilderTestCase(TestCase):
    """Test cases for MatrixBuilder"""

    def setUp(self):
        """Set up users A, B, C and two trips"""
        self.user_a = create_user('anna')
        self.user_b = create_user('boris')
        self.user_c = create_user('clara')
        self.trip_1 = create_trip('Trip 1')
        self.trip_2 = create_trip('Trip 2')

        create_booking(self.user_a, self.trip_1, GroupBooking.Status.CONFIRMED, participants=1)
        create_booking(self.user_b, self.trip_1, GroupBooking.Status.COMPLETED, participants=2)
        create_booking(self.user_b, self.trip_2, GroupBooking.Status.COMPLETED, participants=1)
        create_booking(self.user_c, self.trip_1, GroupBooking.Status.PENDING)
        create_booking(self.user_c, self.trip_2, GroupBooking.Status.CANCELLED)
        create_booking(None, self.trip_2, GroupBooking.Status.CONFIRMED)

        self.builder = MatrixBuilder()

    def test_ratings_follow_booking_policy(self):
        """Test implicit ratings for confirmed and completed bookings"""
        context = PipelineRunContext()
        matrix = self.builder.load_interaction_matrix(context)

        a, b = str(self.user_a.pk), str(self.user_b.pk)
        t1, t2 = str(self.trip_1.id), str(self.trip_2.id)

        self.assertIs(context.matrix, matrix)
        self.assertEqual(set(matrix.user_items), {a, b})
        self.assertAlmostEqual(matrix.user_items[a][t1], 1.0)
        self.assertAlmostEqual(matrix.user_items[b][t1], 1.7)
        self.assertAlmostEqual(matrix.user_items[b][t2], 1.5)

    def test_pending_and_cancelled_bookings_are_ignored(self):
        """Test that only confirmed and completed bookings contribute"""
        matrix = self.builder.load_interaction_matrix(PipelineRunContext())
        self.assertNotIn(str(self.user_c.pk), matrix.user_items)
        for raters in matrix.item_users.values():
            self.assertNotIn(str(self.user_c.pk), raters)

    def test_item_user_matrix_is_transpose(self):
        """Test that both matrices hold the same entries"""
        matrix = self.builder.load_interaction_matrix(PipelineRunContext())
        for user_id, items in matrix.user_items.items():
            for item_id, rating in items.items():
                self.assertEqual(matrix.item_users[item_id][user_id], rating)
        entries = sum(len(items) for items in matrix.user_items.values())
        self.assertEqual(entries, sum(len(users) for users in matrix.item_users.values()))

    def test_repeated_pair_last_write_wins(self):
        """Test that a repeated user-item pair keeps the later rating"""
        matrix = self.builder.build([
            InteractionRecord('u1', 't1', 1.0),
            InteractionRecord('u1', 't1', 1.7),
        ])
        self.assertEqual(matrix.user_items, {'u1': {'t1': 1.7}})
        self.assertEqual(matrix.item_users, {'t1': {'u1': 1.7}})

    def test_compute_rating(self):
        """Test rating bonuses"""
        self.assertAlmostEqual(self.builder.compute_rating(GroupBooking.Status.CONFIRMED, 1), 1.0)
        self.assertAlmostEqual(self.builder.compute_rating(GroupBooking.Status.CONFIRMED, 3), 1.2)
        self.assertAlmostEqual(self.builder.compute_rating(GroupBooking.Status.COMPLETED, 1), 1.5)
        self.assertAlmostEqual(self.builder.compute_rating(GroupBooking.Status.COMPLETED, 4), 1.7)

    def test_fetch_failure_keeps_previous_matrix(self):
        """Test that a failing store leaves the context untouched"""
        previous = InteractionMatrix(user_items={'u1': {'t1': 1.0}}, item_users={'t1': {'u1': 1.0}})
        context = PipelineRunContext(matrix=previous)

        repository = MagicMock()
        repository.list_bookings.side_effect = DatabaseError("store unavailable")
        builder = MatrixBuilder(repository=repository)

        with self.assertRaises(DatabaseError):
            builder.load_interaction_matrix(context)
        self.assertIs(context.matrix, previous)
        self.assertEqual(context.matrix.user_items, {'u1': {'t1': 1.0}})

    def test_invalid_booking_row_is_fatal(self):
        """Test that a booking with zero participants aborts the load"""
        create_booking(self.user_c, self.trip_2, GroupBooking.Status.CONFIRMED, participants=0)
        with self.assertRaises(BookingDataError):
            self.builder.load_interaction_matrix(PipelineRunContext())


class CosineSimilarityTestCase(SimpleTestCase):
    """Test cases for cosine_similarity"""

    def test_identical_vectors(self):
        self.assertAlmostEqual(cosine_similarity({'t1': 1.0, 't2': 1.5}, {'t1': 1.0, 't2': 1.5}), 1.0)

    def test_no_common_items(self):
        self.assertEqual(cosine_similarity({'t1': 1.0}, {'t2': 1.0}), 0.0)
        self.assertEqual(cosine_similarity({}, {'t2': 1.0}), 0.0)

    def test_only_common_items_count(self):
        """Test that items outside the intersection do not affect the result"""
        similarity = cosine_similarity({'t1': 1.0, 't2': 5.0}, {'t1': 2.0, 't3': 9.0})
        self.assertEqual(similarity, 1.0)

    def test_zero_norm(self):
        self.assertEqual(cosine_similarity({'t1': 0.0}, {'t1': 1.0}), 0.0)

    def test_two_common_items(self):
        similarity = cosine_similarity({'t1': 1.0, 't2': 1.7}, {'t1': 1.7, 't2': 1.0})
        self.assertAlmostEqual(similarity, 3.4 / 3.89)

    def test_argument_order_does_not_matter(self):
        a = {'t1': 1.0, 't2': 1.2, 't3': 1.7}
        b = {'t2': 1.5, 't3': 1.0}
        self.assertEqual(cosine_similarity(a, b), cosine_similarity(b, a))


class SimilarityEngineTestCase(SimpleTestCase):
    """Test cases for SimilarityEngine"""

    def setUp(self):
        """Seven users sharing trip t1, plus pairs with weak overlap"""
        user_items = {f'u{i}': {'t1': 1.0 + 0.1 * i, f'own{i}': 1.5} for i in range(7)}
        user_items['weak_a'] = {'x1': 1.0, 'x2': 0.001}
        user_items['weak_b'] = {'x1': 0.001, 'x2': 1.0}
        user_items['loner'] = {'solo': 1.2}
        self.context = context_from(user_items)
        self.engine = SimilarityEngine(similarity_threshold=0.1, max_neighbors=5)
        self.similarities = self.engine.compute_all_pair_similarities(self.context)

    def test_result_stored_on_context(self):
        self.assertIs(self.context.similarities, self.similarities)

    def test_similarity_is_symmetric(self):
        """Test similarity(i, j) == similarity(j, i) for every stored entry"""
        for user_id, neighbours in self.similarities.items():
            for entry in neighbours:
                self.assertEqual(entry.user_id, user_id)
                reverse = {e.neighbor_id: e.similarity for e in self.similarities[entry.neighbor_id]}
                if user_id in reverse:
                    self.assertEqual(reverse[user_id], entry.similarity)

    def test_every_pair_is_stored_both_ways(self):
        """Test symmetry on a matrix small enough that nothing is truncated"""
        context = context_from({
            'a': {'t1': 1.0, 't2': 1.0},
            'b': {'t1': 1.0, 't2': 0.5},
            'c': {'t2': 1.0, 't3': 1.0},
            'd': {'t1': 0.5},
        })
        engine = SimilarityEngine(similarity_threshold=0.1, max_neighbors=10)
        similarities = engine.compute_all_pair_similarities(context)

        entries = [entry for neighbours in similarities.values() for entry in neighbours]
        self.assertEqual(len(entries), 10)
        for entry in entries:
            reverse = {e.neighbor_id: e.similarity for e in similarities[entry.neighbor_id]}
            self.assertIn(entry.user_id, reverse)
            self.assertEqual(reverse[entry.user_id], entry.similarity)
        self.assertNotIn('d', {e.neighbor_id for e in similarities['c']})

    def test_progress_logged_every_ten_percent(self):
        """Test one progress line per 10% step of the pair pass"""
        for user_count, total in ((5, 10), (20, 190)):
            context = context_from({f'u{i}': {'t1': 1.0} for i in range(user_count)})
            with self.assertLogs('recommendations.similarity_engine', level='INFO') as cm:
                self.engine.compute_all_pair_similarities(context)
            progress = [line for line in cm.output if 'Progress' in line]
            self.assertEqual(len(progress), 10)
            self.assertIn(f'100.0% ({total}/{total})', progress[-1])

    def test_weak_pairs_are_discarded(self):
        """Test that no stored similarity is at or below the threshold"""
        self.assertNotIn('weak_a', self.similarities)
        self.assertNotIn('weak_b', self.similarities)
        for neighbours in self.similarities.values():
            for entry in neighbours:
                self.assertGreater(entry.similarity, 0.1)

    def test_threshold_is_exclusive(self):
        """Test that a similarity equal to the threshold is dropped"""
        context = context_from({'a': {'t1': 1.0}, 'b': {'t1': 2.0}})
        engine = SimilarityEngine(similarity_threshold=1.0, max_neighbors=5)
        self.assertEqual(engine.compute_all_pair_similarities(context), {})

    def test_users_without_overlap_have_no_entry(self):
        self.assertNotIn('loner', self.similarities)

    def test_neighbour_lists_are_truncated_and_sorted(self):
        """Test the top-K bound and descending order"""
        for neighbours in self.similarities.values():
            self.assertLessEqual(len(neighbours), 5)
            values = [entry.similarity for entry in neighbours]
            self.assertEqual(values, sorted(values, reverse=True))
        self.assertEqual(len(self.similarities['u0']), 5)

    def test_sorting_keeps_strongest_neighbours(self):
        """Test that truncation keeps the most similar users"""
        user_items = {
            'target': {'t1': 1.0, 't2': 1.0},
            'close': {'t1': 1.0, 't2': 1.0},
            'far': {'t1': 1.0, 't2': 0.2},
        }
        context = context_from(user_items)
        engine = SimilarityEngine(similarity_threshold=0.1, max_neighbors=1)
        similarities = engine.compute_all_pair_similarities(context)
        self.assertEqual([e.neighbor_id for e in similarities['target']], ['close'])

    def test_empty_matrix(self):
        context = PipelineRunContext()
        self.assertEqual(self.engine.compute_all_pair_similarities(context), {})

    def test_settings_provide_defaults(self):
        engine = SimilarityEngine()
        self.assertEqual(engine.SIMILARITY_THRESHOLD, 0.1)
        self.assertEqual(engine.MAX_NEIGHBORS, 5)


class RecommendationGeneratorTestCase(SimpleTestCase):
    """Test cases for RecommendationGenerator"""

    def setUp(self):
        self.generator = RecommendationGenerator()

    def _run_engine(self, user_items):
        context = context_from(user_items)
        SimilarityEngine(similarity_threshold=0.1, max_neighbors=5).compute_all_pair_similarities(context)
        return context

    def test_example_scenario(self):
        """A and B share trip1; A gets B's trip2 with score 1.5"""
        context = self._run_engine({
            'A': {'trip1': 1.0},
            'B': {'trip1': 1.7, 'trip2': 1.5},
        })
        self.assertAlmostEqual(context.similarities['A'][0].similarity, 1.0)

        recommendations = self.generator.generate_recommendations_for_user(context, 'A')

        self.assertEqual(len(recommendations), 1)
        rec = recommendations[0]
        self.assertIsInstance(rec, CollaborativeRecommendation)
        self.assertEqual(rec.item_id, 'trip2')
        self.assertAlmostEqual(rec.score, 1.5)
        self.assertEqual(rec.similar_users, ['B'])
        self.assertEqual(rec.reason, "Based on 1 similar users' preferences")

    def test_score_is_mean_of_weighted_contributions(self):
        """Test normalisation by contributor count, not by similarity sum"""
        context = context_from(
            {
                'T': {'t1': 1.0},
                'N1': {'t1': 1.0, 't9': 2.0},
                'N2': {'t1': 1.0, 't9': 1.0},
            },
            similarities={
                'T': [
                    UserSimilarity('T', 'N1', 0.9),
                    UserSimilarity('T', 'N2', 0.4),
                ],
            },
        )
        [rec] = self.generator.generate_recommendations_for_user(context, 'T')
        self.assertAlmostEqual(rec.score, (0.9 * 2.0 + 0.4 * 1.0) / 2)
        self.assertEqual(rec.similar_users, ['N1', 'N2'])
        self.assertEqual(rec.reason, "Based on 2 similar users' preferences")

    def test_never_recommends_booked_trips(self):
        """Test that the user's own trips are excluded"""
        context = self._run_engine({
            'A': {'t1': 1.0, 't2': 1.5},
            'B': {'t1': 1.0, 't2': 1.2, 't3': 1.7},
            'C': {'t2': 1.0, 't4': 1.0},
        })
        recommendations = self.generator.generate_recommendations_for_user(context, 'A')
        recommended = {rec.item_id for rec in recommendations}
        self.assertEqual(recommended, {'t3', 't4'})
        self.assertFalse(recommended & set(context.matrix.items_for('A')))

    def test_results_sorted_and_limited(self):
        context = context_from(
            {
                'T': {'t0': 1.0},
                'N': {'t0': 1.0, 'a': 1.0, 'b': 1.7, 'c': 1.5, 'd': 1.2},
            },
            similarities={'T': [UserSimilarity('T', 'N', 1.0)]},
        )
        recommendations = self.generator.generate_recommendations_for_user(context, 'T', limit=3)
        self.assertEqual([rec.item_id for rec in recommendations], ['b', 'c', 'd'])

    def test_user_without_neighbours_gets_nothing(self):
        """Test graceful empty result for users with no overlap"""
        context = self._run_engine({
            'A': {'t1': 1.0},
            'B': {'t2': 1.0},
        })
        with self.assertLogs('recommendations.recommendation_generator', level='WARNING'):
            recommendations = self.generator.generate_recommendations_for_user(context, 'A')
        self.assertEqual(recommendations, [])

    def test_unknown_user_gets_nothing(self):
        context = self._run_engine({'A': {'t1': 1.0}, 'B': {'t1': 1.0}})
        with self.assertLogs('recommendations.recommendation_generator', level='WARNING'):
            self.assertEqual(self.generator.generate_recommendations_for_user(context, 'nobody'), [])


class RecommendationStoreTestCase(TestCase):
    """Test cases for RecommendationStore"""

    def setUp(self):
        self.user = create_user('anna')
        self.other_user = create_user('boris')
        self.trips = [create_trip(f'Trip {i}', days_ahead=i + 1) for i in range(7)]
        self.store = RecommendationStore()

    def _rec(self, user, trip, score, similar_users=('42',)):
        return CollaborativeRecommendation(
            user_id=str(user.pk),
            item_id=str(trip.id),
            score=score,
            reason=f"Based on {len(similar_users)} similar users' preferences",
            similar_users=list(similar_users),
        )

    def test_priority_rounds_half_up(self):
        self.assertEqual(score_to_priority(1.25), 13)
        self.assertEqual(score_to_priority(1.5), 15)
        self.assertEqual(score_to_priority(1.04), 10)

    def test_persist_writes_audit_fields(self):
        """Test the stored row carries score, priority and metadata"""
        inserted = self.store.persist([self._rec(self.user, self.trips[0], 1.5, ('7', '9'))])
        self.assertEqual(inserted, 1)

        row = SmartRecommendation.objects.get(target_user=self.user)
        self.assertEqual(row.type, RecommendationType.COLLABORATIVE)
        self.assertEqual(row.recommended_trip, self.trips[0])
        self.assertEqual(row.priority, 15)
        self.assertEqual(row.relevance_score, 1.5)
        self.assertEqual(row.confidence_score, 1.5)
        self.assertTrue(row.is_active)
        self.assertIsNotNone(row.valid_from)
        self.assertEqual(row.description, "Based on 2 similar users' preferences")
        self.assertEqual(row.metadata['similar_users'], ['7', '9'])
        self.assertEqual(row.metadata['algorithm'], ALGORITHM_NAME)
        self.assertIn('generated_at', row.metadata)

    def test_persist_replaces_previous_rows(self):
        """Test replace-not-merge for users in the new batch"""
        self.store.persist([
            self._rec(self.user, self.trips[0], 1.2),
            self._rec(self.user, self.trips[1], 1.1),
        ])
        self.store.persist([self._rec(self.user, self.trips[2], 1.7)])

        stored = self.store.fetch(str(self.user.pk))
        self.assertEqual([rec.trip.id for rec in stored], [str(self.trips[2].id)])

    def test_persist_leaves_other_users_and_types_alone(self):
        self.store.persist([self._rec(self.other_user, self.trips[0], 1.0)])
        SmartRecommendation.objects.create(
            type=RecommendationType.WEATHER_AI,
            target_user=self.user,
            title='Calm sea tomorrow',
            description='Good conditions',
            valid_from=timezone.now(),
        )

        self.store.persist([self._rec(self.user, self.trips[1], 1.5)])

        self.assertEqual(len(self.store.fetch(str(self.other_user.pk))), 1)
        self.assertTrue(SmartRecommendation.objects.filter(
            target_user=self.user, type=RecommendationType.WEATHER_AI
        ).exists())

    def test_failed_insert_keeps_previous_rows(self):
        """Test that delete and insert are rolled back together"""
        self.store.persist([self._rec(self.user, self.trips[0], 1.2)])

        with patch.object(SmartRecommendation.objects, 'bulk_create', side_effect=DatabaseError("insert failed")):
            with self.assertRaises(DatabaseError):
                self.store.persist([self._rec(self.user, self.trips[1], 1.5)])

        stored = self.store.fetch(str(self.user.pk))
        self.assertEqual([rec.trip.id for rec in stored], [str(self.trips[0].id)])

    def test_persist_empty_batch_is_noop(self):
        self.store.persist([self._rec(self.user, self.trips[0], 1.2)])
        self.assertEqual(self.store.persist([]), 0)
        self.assertEqual(SmartRecommendation.objects.count(), 1)

    def test_persist_clears_listed_users_without_new_rows(self):
        """Test that a user named for replacement with no new rows ends up empty"""
        self.store.persist([
            self._rec(self.user, self.trips[0], 1.2),
            self._rec(self.other_user, self.trips[1], 1.3),
        ])

        inserted = self.store.persist(
            [self._rec(self.other_user, self.trips[2], 1.4)],
            replace_user_ids=[self.user.pk],
        )

        self.assertEqual(inserted, 1)
        self.assertEqual(self.store.fetch(str(self.user.pk)), [])
        stored = self.store.fetch(str(self.other_user.pk))
        self.assertEqual([rec.trip.id for rec in stored], [str(self.trips[2].id)])

    def test_fetch_orders_by_relevance_and_caps_page(self):
        """Test ordering, page size and the trip join"""
        scores = [1.0, 1.7, 1.2, 1.5, 1.1, 1.6, 1.3]
        self.store.persist([
            self._rec(self.user, trip, score) for trip, score in zip(self.trips, scores)
        ])

        stored = self.store.fetch(str(self.user.pk))

        self.assertEqual(len(stored), 5)
        self.assertEqual([rec.relevance_score for rec in stored], [1.7, 1.6, 1.5, 1.3, 1.2])
        top = stored[0]
        self.assertEqual(top.trip.id, str(self.trips[1].id))
        self.assertEqual(top.trip.description, 'Trip 1')
        self.assertEqual(top.trip.price_per_person, Decimal('95.00'))
        self.assertEqual(top.trip.max_participants, 8)
        self.assertEqual(top.trip.status, GroupTrip.Status.FORMING)
        self.assertEqual(top.trip.target_species, ['sea bass'])

    def test_fetch_unknown_user(self):
        self.assertEqual(self.store.fetch('999999'), [])


class CollaborativeFilteringServiceTestCase(TestCase):
    """Test cases for the full pipeline"""

    def setUp(self):
        """Users A and B overlap on trip 1; B also completed trip 2"""
        self.user_a = create_user('anna')
        self.user_b = create_user('boris')
        self.user_c = create_user('clara')
        self.trip_1 = create_trip('Trip 1')
        self.trip_2 = create_trip('Trip 2')
        self.trip_3 = create_trip('Trip 3')

        create_booking(self.user_a, self.trip_1, GroupBooking.Status.CONFIRMED, participants=1)
        create_booking(self.user_b, self.trip_1, GroupBooking.Status.COMPLETED, participants=2)
        create_booking(self.user_b, self.trip_2, GroupBooking.Status.COMPLETED, participants=1)
        create_booking(self.user_c, self.trip_3, GroupBooking.Status.PENDING)

        self.service = CollaborativeFilteringService()

    def test_run_full_pipeline(self):
        """Test the example scenario end to end"""
        summary = self.service.run_full_pipeline()

        self.assertEqual(summary.total_recommendations, 1)
        self.assertEqual(summary.users_with_recommendations, 1)

        stored = self.service.get_recommendations_for_user(str(self.user_a.pk))
        self.assertEqual(len(stored), 1)
        self.assertEqual(stored[0].trip.id, str(self.trip_2.id))
        self.assertAlmostEqual(stored[0].relevance_score, 1.5)
        self.assertEqual(stored[0].priority, 15)
        self.assertEqual(stored[0].metadata['similar_users'], [str(self.user_b.pk)])
        self.assertEqual(self.service.get_recommendations_for_user(str(self.user_b.pk)), [])

    def test_second_run_replaces_first(self):
        """Test that only rows from the latest run survive"""
        self.service.run_full_pipeline()

        create_booking(self.user_a, self.trip_2, GroupBooking.Status.CONFIRMED)
        create_booking(self.user_b, self.trip_3, GroupBooking.Status.CONFIRMED)

        self.service.run_full_pipeline()

        stored = self.service.get_recommendations_for_user(str(self.user_a.pk))
        self.assertEqual([rec.trip.id for rec in stored], [str(self.trip_3.id)])
        self.assertEqual(
            SmartRecommendation.objects.filter(target_user=self.user_a).count(), 1
        )

    def test_user_without_new_recommendations_loses_stale_rows(self):
        """Test that a rerun leaves no row pointing at a trip the user now holds"""
        self.service.run_full_pipeline()
        self.assertEqual(len(self.service.get_recommendations_for_user(str(self.user_a.pk))), 1)

        GroupBooking.objects.filter(user=self.user_b, trip=self.trip_1).update(
            status=GroupBooking.Status.CANCELLED
        )
        create_booking(self.user_a, self.trip_2, GroupBooking.Status.CONFIRMED)

        summary = self.service.run_full_pipeline()

        self.assertEqual(summary.total_recommendations, 0)
        self.assertFalse(SmartRecommendation.objects.filter(target_user=self.user_a).exists())

    def test_limit_per_user(self):
        for trip in (self.trip_3, create_trip('Trip 4'), create_trip('Trip 5')):
            create_booking(self.user_b, trip, GroupBooking.Status.CONFIRMED)

        summary = self.service.run_full_pipeline(limit_per_user=2)
        self.assertEqual(summary.total_recommendations, 2)

    def test_cancelled_run_persists_nothing(self):
        cancel_event = threading.Event()
        cancel_event.set()

        with self.assertRaises(PipelineAborted):
            self.service.run_full_pipeline(cancel_event=cancel_event)
        self.assertFalse(SmartRecommendation.objects.exists())

    def test_cancel_between_stages(self):
        """Test that a cancel raised during one stage stops at the next boundary"""
        cancel_event = threading.Event()
        engine = SimilarityEngine()
        compute = engine.compute_all_pair_similarities

        def compute_and_cancel(context):
            result = compute(context)
            cancel_event.set()
            return result

        engine.compute_all_pair_similarities = compute_and_cancel
        service = CollaborativeFilteringService(similarity_engine=engine)

        with self.assertRaises(PipelineAborted):
            service.run_full_pipeline(cancel_event=cancel_event)
        self.assertFalse(SmartRecommendation.objects.exists())

    def test_stage_failure_aborts_run(self):
        """Test that a failing stage is logged, re-raised and writes nothing"""
        engine = MagicMock()
        engine.compute_all_pair_similarities.side_effect = RuntimeError("similarity failed")
        service = CollaborativeFilteringService(similarity_engine=engine)

        with self.assertLogs('recommendations.pipeline', level='ERROR'):
            with self.assertRaises(RuntimeError):
                service.run_full_pipeline()
        self.assertFalse(SmartRecommendation.objects.exists())

    def test_no_bookings(self):
        GroupBooking.objects.all().delete()
        summary = self.service.run_full_pipeline()
        self.assertEqual(summary.total_recommendations, 0)
        self.assertEqual(summary.users_with_recommendations, 0)


class RunCollaborativeFilteringCommandTestCase(TestCase):
    """Test cases for the run_collaborative_filtering management command"""

    def setUp(self):
        self.user_a = create_user('anna')
        self.user_b = create_user('boris')
        self.trip_1 = create_trip('Trip 1')
        self.trip_2 = create_trip('Trip 2')
        create_booking(self.user_a, self.trip_1, GroupBooking.Status.CONFIRMED)
        create_booking(self.user_b, self.trip_1, GroupBooking.Status.COMPLETED, participants=2)
        create_booking(self.user_b, self.trip_2, GroupBooking.Status.COMPLETED)

    def test_command_prints_summary(self):
        out = StringIO()
        call_command('run_collaborative_filtering', stdout=out)
        output = out.getvalue()
        self.assertIn('Total recommendations generated: 1', output)
        self.assertIn('Users with recommendations: 1', output)
        self.assertEqual(SmartRecommendation.objects.count(), 1)

    def test_command_shows_user_recommendations(self):
        out = StringIO()
        call_command('run_collaborative_filtering', show_user=str(self.user_a.pk), stdout=out)
        output = out.getvalue()
        payload = json.loads(output[output.index('['):])
        self.assertEqual(len(payload), 1)
        self.assertEqual(payload[0]['trip']['id'], str(self.trip_2.id))
        self.assertEqual(payload[0]['type'], 'COLLABORATIVE')

    def test_command_failure_raises_command_error(self):
        with patch.object(
            CollaborativeFilteringService, 'run_full_pipeline',
            side_effect=DatabaseError("store unavailable")
        ):
            with self.assertRaises(CommandError):
                call_command('run_collaborative_filtering', stdout=StringIO())

    def test_command_unreadable_user_raises_command_error(self):
        """Test that a read-path failure is reported as a CommandError"""
        with self.assertRaises(CommandError):
            call_command('run_collaborative_filtering', show_user='abc', stdout=StringIO())

    def test_command_rejects_invalid_limit(self):
        with self.assertRaises(CommandError):
            call_command('run_collaborative_filtering', limit=0, stdout=StringIO())
