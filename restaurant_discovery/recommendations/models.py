from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for wire models: snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def label_key(label: str) -> str:
    """Matching key for cuisine and dietary labels, shared by the store and the ranker."""
    return label.strip().casefold()


class SortKey(str, Enum):
    rating = "rating"
    price = "price"
    distance = "distance"


class InteractionKind(str, Enum):
    view = "view"
    favorite = "favorite"
    visit = "visit"


# ── Restaurants ──────────────────────────────────────────────────────────


class RestaurantCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    rating: float = Field(..., ge=0.0, le=5.0)
    total_reviews: int = Field(default=0, ge=0)
    price_level: int = Field(..., ge=1, le=4)
    categories: list[str] = Field(..., min_length=1)
    address: str = ""
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    reviews: list[str] = Field(default_factory=list)
    sentiment_score: float = Field(default=0.0, ge=-1.0, le=1.0)
    place_url: str = ""
    dietary_options: list[str] = Field(default_factory=list)
    popular_dishes: list[str] | None = None
    peak_hours: list[str] | None = None


class Restaurant(RestaurantCreate):
    id: int


class ScoredRestaurant(Restaurant):
    score: float


# ── Search ───────────────────────────────────────────────────────────────


class SearchFilters(BaseModel):
    """
    Filters for a single search request.

    ``cuisine=None`` means every cuisine; there is no wildcard string.
    Proximity applies only when ``lat``, ``lng`` and ``radius_km`` are all set.
    """

    cuisine: str | None = None
    min_rating: float | None = Field(default=None, ge=0.0, le=5.0)
    min_price: int | None = Field(default=None, ge=1, le=4)
    max_price: int | None = Field(default=None, ge=1, le=4)
    lat: float | None = Field(default=None, ge=-90.0, le=90.0)
    lng: float | None = Field(default=None, ge=-180.0, le=180.0)
    radius_km: float | None = Field(default=None, gt=0.0)
    dietary: list[str] = Field(default_factory=list)
    user_id: str | None = None
    sort_by: SortKey | None = None

    @property
    def has_origin(self) -> bool:
        return self.lat is not None and self.lng is not None

    @property
    def has_proximity(self) -> bool:
        return self.has_origin and self.radius_km is not None


# ── Users ────────────────────────────────────────────────────────────────


class UserPreferenceIn(CamelModel):
    dietary_preferences: list[str] = Field(default_factory=list)
    favorite_categories: list[str] = Field(default_factory=list)
    price_preference: int | None = Field(default=None, ge=1, le=4)
    preferred_radius: float | None = Field(default=None, gt=0.0)
    last_lat: float | None = Field(default=None, ge=-90.0, le=90.0)
    last_lng: float | None = Field(default=None, ge=-180.0, le=180.0)


class UserPreference(UserPreferenceIn):
    user_id: str = Field(..., min_length=1)


class InteractionCreate(CamelModel):
    restaurant_id: int
    kind: InteractionKind


class UserInteraction(CamelModel):
    id: int
    user_id: str
    restaurant_id: int
    kind: InteractionKind
    created_at: datetime


# ── Metadata ─────────────────────────────────────────────────────────────


class MetadataResponse(CamelModel):
    cuisines: list[str]
    dietary_options: list[str]
