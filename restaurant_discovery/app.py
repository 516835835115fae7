from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .recommendations.filters import parse_filters
from .recommendations.models import (
    InteractionCreate,
    MetadataResponse,
    Restaurant,
    RestaurantCreate,
    ScoredRestaurant,
    SearchFilters,
    UserInteraction,
    UserPreference,
    UserPreferenceIn,
)
from .recommendations.retrieval import search_restaurants
from .storage.config import DEFAULT_DATABASE_CONFIG, DatabaseConfig
from .storage.interactions import RECENT_INTERACTION_LIMIT
from .storage.stores import Stores, build_stores

logger = logging.getLogger(__name__)


def get_stores(request: Request) -> Stores:
    return request.app.state.stores


def search_filters(
    cuisine: str | None = None,
    min_price: str | None = Query(default=None, alias="minPrice"),
    max_price: str | None = Query(default=None, alias="maxPrice"),
    rating: str | None = None,
    lat: str | None = None,
    lng: str | None = None,
    radius: str | None = None,
    dietary: str | None = Query(default=None, description="Comma-separated labels"),
    user_id: str | None = Query(default=None, alias="userId"),
    sort_by: str | None = Query(default=None, alias="sortBy"),
) -> SearchFilters:
    # Taken as raw strings: malformed numbers degrade to "absent" instead of a 422.
    return parse_filters({
        "cuisine": cuisine,
        "minPrice": min_price,
        "maxPrice": max_price,
        "rating": rating,
        "lat": lat,
        "lng": lng,
        "radius": radius,
        "dietary": dietary,
        "userId": user_id,
        "sortBy": sort_by,
    })


def create_app(
    config: DatabaseConfig = DEFAULT_DATABASE_CONFIG,
    stores: Stores | None = None,
) -> FastAPI:
    app = FastAPI(title="Restaurant Discovery API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.stores = stores or build_stores(config)

    @app.exception_handler(SQLAlchemyError)
    async def store_failure(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Failed to process request"})

    # ── Public endpoints ─────────────────────────────────────────────────

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/metadata", response_model=MetadataResponse)
    def metadata(stores: Stores = Depends(get_stores)) -> MetadataResponse:
        return MetadataResponse(
            cuisines=stores.restaurants.list_categories(),
            dietary_options=stores.restaurants.list_dietary_options(),
        )

    # ── Restaurant endpoints ─────────────────────────────────────────────

    @app.get("/api/restaurants", response_model=list[ScoredRestaurant])
    def search(
        filters: SearchFilters = Depends(search_filters),
        stores: Stores = Depends(get_stores),
    ) -> list[ScoredRestaurant]:
        logger.debug("Received filters: %s", filters)
        return search_restaurants(filters, stores)

    @app.get("/api/restaurants/{restaurant_id}", response_model=Restaurant)
    def get_restaurant(
        restaurant_id: int,
        stores: Stores = Depends(get_stores),
    ) -> Restaurant:
        restaurant = stores.restaurants.get_by_id(restaurant_id)
        if restaurant is None:
            raise HTTPException(status_code=404, detail="Restaurant not found")
        return restaurant

    @app.post("/api/restaurants", response_model=Restaurant, status_code=201)
    def create_restaurant(
        body: RestaurantCreate,
        stores: Stores = Depends(get_stores),
    ) -> Restaurant:
        return stores.restaurants.insert(body)

    # ── User endpoints ───────────────────────────────────────────────────

    @app.get("/api/users/{user_id}/preferences", response_model=UserPreference)
    def get_preferences(
        user_id: str,
        stores: Stores = Depends(get_stores),
    ) -> UserPreference:
        preference = stores.preferences.get(user_id)
        if preference is None:
            raise HTTPException(status_code=404, detail="No preferences stored")
        return preference

    @app.put("/api/users/{user_id}/preferences", response_model=UserPreference)
    def put_preferences(
        user_id: str,
        body: UserPreferenceIn,
        stores: Stores = Depends(get_stores),
    ) -> UserPreference:
        preference = UserPreference(user_id=user_id, **body.model_dump())
        return stores.preferences.upsert(preference)

    @app.post(
        "/api/users/{user_id}/interactions",
        response_model=UserInteraction,
        status_code=201,
    )
    def post_interaction(
        user_id: str,
        body: InteractionCreate,
        stores: Stores = Depends(get_stores),
    ) -> UserInteraction:
        return stores.interactions.append(user_id, body.restaurant_id, body.kind)

    @app.get("/api/users/{user_id}/interactions", response_model=list[UserInteraction])
    def get_interactions(
        user_id: str,
        limit: int = Query(default=RECENT_INTERACTION_LIMIT, ge=1, le=100),
        stores: Stores = Depends(get_stores),
    ) -> list[UserInteraction]:
        return stores.interactions.recent_for(user_id, limit)

    return app
