"""
Recommendations Module Summary
==============================

This module implements user-based collaborative filtering for group trips.
Confirmed and completed bookings are turned into implicit ratings, users
are compared with cosine similarity, and every user gets trips that their
most similar neighbours booked.

Key Features Implemented:
1. MatrixBuilder - user-item / item-user interaction matrices
2. SimilarityEngine - pairwise cosine similarity with top-K pruning
3. RecommendationGenerator - neighbour aggregation per user
4. RecommendationStore - transactional replace and read path
5. CollaborativeFilteringService - batch orchestration
6. run_collaborative_filtering management command
"""
