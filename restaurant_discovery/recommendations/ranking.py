"""
Scoring and ranking of filtered candidates.

Pure functions over in-memory restaurants. Two paths:

- **Anonymous**: additive weighted score (rating, price, sentiment, proximity,
  dietary match, popularity), top ``RESULT_LIMIT`` returned.
- **Personalized**: when the requesting user has a stored preference, a
  preference-match score replaces the weighted score and every candidate is
  returned. The favourite-interaction term is not bounded, so scores in this
  path can exceed 1.0.
"""
from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from .models import (
    InteractionKind,
    Restaurant,
    ScoredRestaurant,
    SearchFilters,
    SortKey,
    UserInteraction,
    UserPreference,
    label_key,
)

RESULT_LIMIT = 10
EARTH_RADIUS_KM = 6371.0
POPULARITY_REVIEW_CEILING = 1000

DEFAULT_WEIGHTS: dict[str, float] = {
    "rating": 0.2,
    "price": 0.1,
    "sentiment": 0.1,
    "proximity": 0.3,
    "dietary": 0.2,
    "popularity": 0.1,
}

PERSONAL_WEIGHTS: dict[str, float] = {
    "dietary": 0.3,
    "categories": 0.3,
    "price": 0.2,
    "favorite": 0.1,
}


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def _key_set(labels: Iterable[str] | None) -> set[str]:
    return {label_key(label) for label in labels or [] if label.strip()}


def _match_fraction(wanted: Iterable[str], offered: Iterable[str] | None) -> float:
    wanted_set = _key_set(wanted)
    if not wanted_set:
        return 0.0
    return len(wanted_set & _key_set(offered)) / len(wanted_set)


# ── Anonymous score components ───────────────────────────────────────────


def rating_score(restaurant: Restaurant, weights: dict[str, float] | None = None) -> float:
    w = weights or DEFAULT_WEIGHTS
    return (restaurant.rating / 5.0) * w["rating"]


def price_score(restaurant: Restaurant, weights: dict[str, float] | None = None) -> float:
    """Cheaper scores higher."""
    w = weights or DEFAULT_WEIGHTS
    return ((5 - restaurant.price_level) / 4.0) * w["price"]


def sentiment_score(restaurant: Restaurant, weights: dict[str, float] | None = None) -> float:
    w = weights or DEFAULT_WEIGHTS
    return ((restaurant.sentiment_score + 1.0) / 2.0) * w["sentiment"]


def base_score(restaurant: Restaurant, weights: dict[str, float] | None = None) -> float:
    return (
        rating_score(restaurant, weights)
        + price_score(restaurant, weights)
        + sentiment_score(restaurant, weights)
    )


def proximity_score(
    restaurant: Restaurant,
    filters: SearchFilters,
    weights: dict[str, float] | None = None,
) -> float:
    # Exact great-circle distance here, unlike the bounding box used for filtering.
    if not filters.has_proximity:
        return 0.0
    w = weights or DEFAULT_WEIGHTS
    distance = haversine_km(filters.lat, filters.lng, restaurant.lat, restaurant.lng)
    return max(0.0, 1.0 - distance / filters.radius_km) * w["proximity"]


def dietary_score(
    restaurant: Restaurant,
    requested: Sequence[str],
    weights: dict[str, float] | None = None,
) -> float:
    if not requested or not restaurant.dietary_options:
        return 0.0
    w = weights or DEFAULT_WEIGHTS
    return _match_fraction(requested, restaurant.dietary_options) * w["dietary"]


def popularity_score(restaurant: Restaurant, weights: dict[str, float] | None = None) -> float:
    w = weights or DEFAULT_WEIGHTS
    return min(1.0, restaurant.total_reviews / POPULARITY_REVIEW_CEILING) * w["popularity"]


def anonymous_score(
    restaurant: Restaurant,
    filters: SearchFilters,
    weights: dict[str, float] | None = None,
) -> float:
    return (
        base_score(restaurant, weights)
        + proximity_score(restaurant, filters, weights)
        + dietary_score(restaurant, filters.dietary, weights)
        + popularity_score(restaurant, weights)
    )


# ── Personalized score ───────────────────────────────────────────────────


def favorite_count(restaurant_id: int, interactions: Iterable[UserInteraction]) -> int:
    return sum(
        1
        for i in interactions
        if i.restaurant_id == restaurant_id and i.kind == InteractionKind.favorite
    )


def personal_score(
    restaurant: Restaurant,
    preference: UserPreference,
    interactions: Sequence[UserInteraction] = (),
    weights: dict[str, float] | None = None,
) -> float:
    w = weights or PERSONAL_WEIGHTS
    score = 0.0
    if preference.dietary_preferences:
        score += _match_fraction(preference.dietary_preferences, restaurant.dietary_options) * w["dietary"]
    if preference.favorite_categories:
        score += _match_fraction(preference.favorite_categories, restaurant.categories) * w["categories"]
    if preference.price_preference is not None and restaurant.price_level <= preference.price_preference:
        score += w["price"]
    score += favorite_count(restaurant.id, interactions) * w["favorite"]
    return score


# ── Ranking ──────────────────────────────────────────────────────────────


def _apply_sort_key(
    scored: list[tuple[float, Restaurant]],
    filters: SearchFilters,
) -> list[tuple[float, Restaurant]]:
    if filters.sort_by == SortKey.rating:
        return sorted(scored, key=lambda pair: pair[1].rating, reverse=True)
    if filters.sort_by == SortKey.price:
        return sorted(scored, key=lambda pair: pair[1].price_level)
    if filters.sort_by == SortKey.distance and filters.has_origin:
        return sorted(
            scored,
            key=lambda pair: haversine_km(filters.lat, filters.lng, pair[1].lat, pair[1].lng),
        )
    return scored


def rank(
    candidates: Sequence[Restaurant],
    filters: SearchFilters,
    preference: UserPreference | None = None,
    interactions: Sequence[UserInteraction] = (),
) -> list[ScoredRestaurant]:
    """
    Score and order candidates, highest first.

    ``sorted`` is stable, so equal scores keep candidate order. The anonymous
    path is capped at ``RESULT_LIMIT``; the personalized path is not.
    A ``sort_by`` key re-orders the selected results afterwards.
    """
    if preference is not None:
        scored = [(personal_score(r, preference, interactions), r) for r in candidates]
        scored.sort(key=lambda pair: pair[0], reverse=True)
    else:
        scored = [(anonymous_score(r, filters), r) for r in candidates]
        scored.sort(key=lambda pair: pair[0], reverse=True)
        scored = scored[:RESULT_LIMIT]

    scored = _apply_sort_key(scored, filters)

    return [
        ScoredRestaurant(**r.model_dump(), score=round(score, 4))
        for score, r in scored
    ]
