from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select

from ..recommendations.models import InteractionKind, UserInteraction
from .database import Database
from .tables import UserInteractionRow

RECENT_INTERACTION_LIMIT = 20


def _to_interaction(row: UserInteractionRow) -> UserInteraction:
    return UserInteraction(
        id=row.id,
        user_id=row.user_id,
        restaurant_id=row.restaurant_id,
        kind=InteractionKind(row.kind),
        # Stored naive; always written as UTC.
        created_at=row.created_at.replace(tzinfo=timezone.utc),
    )


class InteractionLog:
    """Append-only log of user actions on restaurants."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def append(
        self,
        user_id: str,
        restaurant_id: int,
        kind: InteractionKind,
    ) -> UserInteraction:
        row = UserInteractionRow(
            user_id=user_id,
            restaurant_id=restaurant_id,
            kind=InteractionKind(kind).value,
            created_at=datetime.now(timezone.utc).replace(tzinfo=None),
        )
        with self._db.session() as session:
            session.add(row)
            session.commit()
            return _to_interaction(row)

    def recent_for(
        self,
        user_id: str,
        limit: int = RECENT_INTERACTION_LIMIT,
    ) -> list[UserInteraction]:
        """Newest first; ties on timestamp fall back to insertion order."""
        stmt = (
            select(UserInteractionRow)
            .where(UserInteractionRow.user_id == user_id)
            .order_by(UserInteractionRow.created_at.desc(), UserInteractionRow.id.desc())
            .limit(limit)
        )
        with self._db.session() as session:
            return [_to_interaction(row) for row in session.scalars(stmt).all()]
