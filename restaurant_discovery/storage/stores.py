from __future__ import annotations

from dataclasses import dataclass

from .config import DEFAULT_DATABASE_CONFIG, DatabaseConfig
from .database import Database
from .interactions import InteractionLog
from .preferences import PreferenceStore
from .restaurants import RestaurantStore


@dataclass(frozen=True)
class Stores:
    """The store handles a request needs, passed explicitly instead of a global."""

    db: Database
    restaurants: RestaurantStore
    preferences: PreferenceStore
    interactions: InteractionLog


def build_stores(config: DatabaseConfig = DEFAULT_DATABASE_CONFIG) -> Stores:
    db = Database(config)
    db.create_tables()
    return Stores(
        db=db,
        restaurants=RestaurantStore(db),
        preferences=PreferenceStore(db),
        interactions=InteractionLog(db),
    )
