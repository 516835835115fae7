from __future__ import annotations

from datetime import datetime

import pytest

from restaurant_discovery.recommendations.models import (
    InteractionKind,
    Restaurant,
    SearchFilters,
    SortKey,
    UserInteraction,
    UserPreference,
)
from restaurant_discovery.recommendations.ranking import (
    RESULT_LIMIT,
    anonymous_score,
    base_score,
    dietary_score,
    haversine_km,
    personal_score,
    popularity_score,
    price_score,
    proximity_score,
    rank,
    rating_score,
)


def _restaurant(rid: int = 1, **overrides) -> Restaurant:
    data = {
        "id": rid,
        "name": f"Restaurant {rid}",
        "rating": 4.0,
        "total_reviews": 100,
        "price_level": 2,
        "categories": ["Italian"],
        "address": "1 Main St",
        "lat": 40.7128,
        "lng": -74.0060,
        "reviews": [],
        "sentiment_score": 0.0,
        "place_url": "",
        "dietary_options": [],
    }
    data.update(overrides)
    return Restaurant(**data)


def _favorite(restaurant_id: int, kind: InteractionKind = InteractionKind.favorite) -> UserInteraction:
    return UserInteraction(
        id=1,
        user_id="u1",
        restaurant_id=restaurant_id,
        kind=kind,
        created_at=datetime(2024, 1, 1),
    )


# ── Components ───────────────────────────────────────────────────────────


class TestBaseScore:
    def test_formula(self):
        r = _restaurant(rating=5.0, price_level=1, sentiment_score=1.0)
        assert base_score(r) == pytest.approx(0.2 + 0.1 + 0.1)

    def test_worst_case(self):
        r = _restaurant(rating=0.0, price_level=4, sentiment_score=-1.0)
        assert base_score(r) == pytest.approx(0.025)

    def test_rating_monotonic(self):
        scores = [rating_score(_restaurant(rating=x / 2)) for x in range(11)]
        assert scores == sorted(scores)

    def test_price_never_increases_with_level(self):
        scores = [price_score(_restaurant(price_level=p)) for p in range(1, 5)]
        assert scores == sorted(scores, reverse=True)


class TestProximity:
    def test_zero_distance_gets_full_weight(self):
        filters = SearchFilters(lat=40.7128, lng=-74.0060, radius_km=5)
        assert proximity_score(_restaurant(), filters) == pytest.approx(0.3)

    def test_beyond_radius_is_zero(self):
        filters = SearchFilters(lat=40.7128, lng=-74.0060, radius_km=5)
        far = _restaurant(lat=41.5, lng=-74.0060)
        assert proximity_score(far, filters) == 0.0

    def test_skipped_without_coordinates(self):
        assert proximity_score(_restaurant(), SearchFilters(radius_km=5)) == 0.0

    def test_haversine_known_distance(self):
        # One degree of latitude is ~111.2 km on a 6371 km sphere.
        assert haversine_km(0, 0, 1, 0) == pytest.approx(111.19, abs=0.01)

    def test_haversine_same_point(self):
        assert haversine_km(40.7128, -74.0060, 40.7128, -74.0060) == 0.0


class TestDietaryAndPopularity:
    def test_partial_match_fraction(self):
        r = _restaurant(dietary_options=["vegan"])
        assert dietary_score(r, ["vegan", "vegetarian"]) == pytest.approx(0.1)

    def test_case_insensitive(self):
        r = _restaurant(dietary_options=["Vegan"])
        assert dietary_score(r, ["vegan"]) == pytest.approx(0.2)

    def test_case_insensitive_beyond_ascii(self):
        r = _restaurant(dietary_options=["VÉGÉTALIEN"])
        assert dietary_score(r, ["végétalien"]) == pytest.approx(0.2)

    def test_no_options_scores_zero(self):
        assert dietary_score(_restaurant(), ["vegan"]) == 0.0

    def test_no_request_scores_zero(self):
        assert dietary_score(_restaurant(dietary_options=["vegan"]), []) == 0.0

    def test_popularity_caps_at_one_thousand_reviews(self):
        assert popularity_score(_restaurant(total_reviews=500)) == pytest.approx(0.05)
        assert popularity_score(_restaurant(total_reviews=5000)) == pytest.approx(0.1)

    def test_anonymous_score_is_sum(self):
        filters = SearchFilters(lat=40.7128, lng=-74.0060, radius_km=5, dietary=["vegan"])
        r = _restaurant(dietary_options=["vegan"], total_reviews=1000)
        expected = base_score(r) + 0.3 + 0.2 + 0.1
        assert anonymous_score(r, filters) == pytest.approx(expected)


# ── Personalization ──────────────────────────────────────────────────────


class TestPersonalScore:
    def test_full_match(self):
        pref = UserPreference(
            user_id="u1",
            dietary_preferences=["vegan"],
            favorite_categories=["italian"],
            price_preference=2,
        )
        r = _restaurant(dietary_options=["vegan"], categories=["Italian"], price_level=2)
        assert personal_score(r, pref) == pytest.approx(0.8)

    def test_no_match_is_zero(self):
        pref = UserPreference(
            user_id="u1",
            dietary_preferences=["halal"],
            favorite_categories=["thai"],
            price_preference=1,
        )
        r = _restaurant(dietary_options=["vegan"], categories=["Italian"], price_level=3)
        assert personal_score(r, pref) == 0.0

    def test_no_match_plus_favorites_only(self):
        pref = UserPreference(user_id="u1", favorite_categories=["thai"])
        r = _restaurant(rid=7)
        interactions = [_favorite(7), _favorite(7), _favorite(7, InteractionKind.view), _favorite(8)]
        assert personal_score(r, pref, interactions) == pytest.approx(0.2)

    def test_interaction_term_is_unbounded(self):
        pref = UserPreference(user_id="u1", price_preference=4)
        r = _restaurant(rid=3)
        interactions = [_favorite(3) for _ in range(20)]
        assert personal_score(r, pref, interactions) == pytest.approx(2.2)

    def test_empty_preference(self):
        assert personal_score(_restaurant(), UserPreference(user_id="u1")) == 0.0


# ── Ranking ──────────────────────────────────────────────────────────────


class TestRank:
    def test_anonymous_capped_and_sorted(self):
        candidates = [_restaurant(rid=i, rating=(i % 10) / 2) for i in range(1, 31)]
        results = rank(candidates, SearchFilters())
        assert len(results) == RESULT_LIMIT
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)
        assert len({r.id for r in results}) == RESULT_LIMIT

    def test_ties_keep_candidate_order(self):
        candidates = [_restaurant(rid=i) for i in range(1, 6)]
        results = rank(candidates, SearchFilters())
        assert [r.id for r in results] == [1, 2, 3, 4, 5]

    def test_personalized_not_capped(self):
        candidates = [_restaurant(rid=i) for i in range(1, 31)]
        pref = UserPreference(user_id="u1", favorite_categories=["italian"])
        results = rank(candidates, SearchFilters(user_id="u1"), pref)
        assert len(results) == 30

    def test_personalized_orders_by_personal_score(self):
        candidates = [
            _restaurant(rid=1, categories=["Thai"], rating=5.0),
            _restaurant(rid=2, categories=["Italian"], rating=1.0),
        ]
        pref = UserPreference(user_id="u1", favorite_categories=["Italian"])
        results = rank(candidates, SearchFilters(user_id="u1"), pref)
        assert [r.id for r in results] == [2, 1]
        assert results[0].score == pytest.approx(0.3)

    def test_favorites_lift_restaurant(self):
        candidates = [_restaurant(rid=1), _restaurant(rid=2)]
        pref = UserPreference(user_id="u1", favorite_categories=["thai"])
        results = rank(candidates, SearchFilters(user_id="u1"), pref, [_favorite(2)])
        assert results[0].id == 2

    def test_sort_by_price(self):
        candidates = [_restaurant(rid=i, price_level=p) for i, p in enumerate([3, 1, 4, 2], 1)]
        results = rank(candidates, SearchFilters(sort_by=SortKey.price))
        assert [r.price_level for r in results] == [1, 2, 3, 4]

    def test_sort_by_distance_needs_origin(self):
        near = _restaurant(rid=1, lat=40.71, lng=-74.0, rating=1.0)
        far = _restaurant(rid=2, lat=40.80, lng=-74.0, rating=5.0)
        by_score = rank([near, far], SearchFilters(sort_by=SortKey.distance))
        assert [r.id for r in by_score] == [2, 1]
        by_distance = rank(
            [near, far],
            SearchFilters(lat=40.70, lng=-74.0, sort_by=SortKey.distance),
        )
        assert [r.id for r in by_distance] == [1, 2]

    def test_empty_candidates(self):
        assert rank([], SearchFilters()) == []
