"""
Candidate filtering.

Turns raw query parameters into ``SearchFilters`` and ``SearchFilters`` into
SQL predicates evaluated by the restaurant store. Nothing here scores.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass

from sqlalchemy import ColumnElement

from ..storage.restaurants import CANDIDATE_LIMIT, RestaurantStore
from ..storage.tables import CategoryRow, DietaryOptionRow, RestaurantRow
from .models import Restaurant, SearchFilters, SortKey, label_key

logger = logging.getLogger(__name__)

KM_PER_DEGREE_LAT = 111.32
ALL_CUISINES = "all"


# ── Lenient parsing ──────────────────────────────────────────────────────


def _clean(raw: str | None) -> str | None:
    if raw is None:
        return None
    value = str(raw).strip()
    return value or None


def _parse_float(
    raw: str | None,
    low: float | None = None,
    high: float | None = None,
) -> float | None:
    value_str = _clean(raw)
    if value_str is None:
        return None
    try:
        value = float(value_str)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    if low is not None and value < low:
        return None
    if high is not None and value > high:
        return None
    return value


def _parse_price(raw: str | None) -> int | None:
    value = _parse_float(raw, 1, 4)
    if value is None or not value.is_integer():
        return None
    return int(value)


def _parse_dietary(raw: str | None) -> list[str]:
    value = _clean(raw)
    if value is None:
        return []
    labels: list[str] = []
    for part in value.split(","):
        label = label_key(part)
        if label and label not in labels:
            labels.append(label)
    return labels


def _parse_sort_key(raw: str | None) -> SortKey | None:
    value = _clean(raw)
    if value is None:
        return None
    try:
        return SortKey(value.lower())
    except ValueError:
        return None


def parse_filters(params: Mapping[str, str | None]) -> SearchFilters:
    """
    Build ``SearchFilters`` from wire-level query parameters.

    Unparsable or out-of-range values are treated as absent; this never raises.
    """
    cuisine = _clean(params.get("cuisine"))
    if cuisine is not None and cuisine.lower() == ALL_CUISINES:
        cuisine = None

    radius = _parse_float(params.get("radius"), 0)
    if radius == 0:
        radius = None

    return SearchFilters(
        cuisine=cuisine,
        min_rating=_parse_float(params.get("rating"), 0, 5),
        min_price=_parse_price(params.get("minPrice")),
        max_price=_parse_price(params.get("maxPrice")),
        lat=_parse_float(params.get("lat"), -90, 90),
        lng=_parse_float(params.get("lng"), -180, 180),
        radius_km=radius,
        dietary=_parse_dietary(params.get("dietary")),
        user_id=_clean(params.get("userId")),
        sort_by=_parse_sort_key(params.get("sortBy")),
    )


# ── Bounding box ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


def bounding_box(lat: float, lng: float, radius_km: float) -> BoundingBox:
    """
    Rectangle approximating a ``radius_km`` circle around (lat, lng).

    Corners admit points farther than the radius. The box is not wrapped
    across the antimeridian.
    """
    lat_delta = radius_km / KM_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(lat))
    if cos_lat < 1e-9:
        min_lng, max_lng = -180.0, 180.0
    else:
        lng_delta = radius_km / (KM_PER_DEGREE_LAT * cos_lat)
        min_lng, max_lng = lng - lng_delta, lng + lng_delta
    return BoundingBox(
        min_lat=lat - lat_delta,
        max_lat=lat + lat_delta,
        min_lng=min_lng,
        max_lng=max_lng,
    )


# ── Predicates ───────────────────────────────────────────────────────────


def build_predicates(filters: SearchFilters) -> list[ColumnElement[bool]]:
    predicates: list[ColumnElement[bool]] = []

    if filters.cuisine is not None:
        logger.debug("Adding cuisine filter: %s", filters.cuisine)
        predicates.append(
            RestaurantRow.categories.any(
                CategoryRow.label_key == label_key(filters.cuisine)
            )
        )

    if filters.max_price is not None:
        logger.debug("Adding max price filter: %s", filters.max_price)
        predicates.append(RestaurantRow.price_level <= filters.max_price)

    if filters.min_price is not None:
        logger.debug("Adding min price filter: %s", filters.min_price)
        predicates.append(RestaurantRow.price_level >= filters.min_price)

    if filters.min_rating is not None:
        logger.debug("Adding rating filter: %s", filters.min_rating)
        predicates.append(RestaurantRow.rating >= filters.min_rating)

    if filters.dietary:
        requested = [label_key(d) for d in filters.dietary]
        logger.debug("Adding dietary filter: %s", requested)
        predicates.append(
            RestaurantRow.dietary_options.any(DietaryOptionRow.label_key.in_(requested))
        )

    if filters.has_proximity:
        box = bounding_box(filters.lat, filters.lng, filters.radius_km)
        logger.debug("Adding location filter: %s", box)
        predicates.append(RestaurantRow.lat.between(box.min_lat, box.max_lat))
        predicates.append(RestaurantRow.lng.between(box.min_lng, box.max_lng))

    return predicates


def find_candidates(store: RestaurantStore, filters: SearchFilters) -> list[Restaurant]:
    return store.search(build_predicates(filters), limit=CANDIDATE_LIMIT)
