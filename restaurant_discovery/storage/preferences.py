from __future__ import annotations

from ..recommendations.models import UserPreference
from .database import Database
from .tables import UserPreferenceRow


def _to_preference(row: UserPreferenceRow) -> UserPreference:
    return UserPreference(
        user_id=row.user_id,
        dietary_preferences=list(row.dietary_preferences or []),
        favorite_categories=list(row.favorite_categories or []),
        price_preference=row.price_preference,
        preferred_radius=row.preferred_radius,
        last_lat=row.last_lat,
        last_lng=row.last_lng,
    )


class PreferenceStore:
    def __init__(self, db: Database) -> None:
        self._db = db

    def get(self, user_id: str) -> UserPreference | None:
        with self._db.session() as session:
            row = session.get(UserPreferenceRow, user_id)
            return _to_preference(row) if row is not None else None

    def upsert(self, preference: UserPreference) -> UserPreference:
        """Create or wholesale-replace the stored preference for a user."""
        row = UserPreferenceRow(
            user_id=preference.user_id,
            dietary_preferences=list(preference.dietary_preferences),
            favorite_categories=list(preference.favorite_categories),
            price_preference=preference.price_preference,
            preferred_radius=preference.preferred_radius,
            last_lat=preference.last_lat,
            last_lng=preference.last_lng,
        )
        with self._db.session() as session:
            merged = session.merge(row)
            session.commit()
            return _to_preference(merged)
