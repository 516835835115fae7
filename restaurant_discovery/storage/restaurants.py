from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy import ColumnElement, and_, select

from ..recommendations.models import Restaurant, RestaurantCreate, label_key
from .database import Database
from .tables import CategoryRow, DietaryOptionRow, RestaurantRow

logger = logging.getLogger(__name__)

CANDIDATE_LIMIT = 50


def _to_restaurant(row: RestaurantRow) -> Restaurant:
    return Restaurant(
        id=row.id,
        name=row.name,
        rating=row.rating,
        total_reviews=row.total_reviews,
        price_level=row.price_level,
        categories=[c.label for c in row.categories],
        address=row.address,
        lat=row.lat,
        lng=row.lng,
        reviews=list(row.reviews or []),
        sentiment_score=row.sentiment_score,
        place_url=row.place_url,
        dietary_options=[d.label for d in row.dietary_options],
        popular_dishes=row.popular_dishes,
        peak_hours=row.peak_hours,
    )


def _to_row(record: RestaurantCreate) -> RestaurantRow:
    return RestaurantRow(
        name=record.name,
        rating=record.rating,
        total_reviews=record.total_reviews,
        price_level=record.price_level,
        address=record.address,
        lat=record.lat,
        lng=record.lng,
        reviews=list(record.reviews),
        sentiment_score=record.sentiment_score,
        place_url=record.place_url,
        popular_dishes=record.popular_dishes,
        peak_hours=record.peak_hours,
        categories=[
            CategoryRow(position=i, label=label, label_key=label_key(label))
            for i, label in enumerate(record.categories)
        ],
        dietary_options=[
            DietaryOptionRow(position=i, label=label, label_key=label_key(label))
            for i, label in enumerate(record.dietary_options)
        ],
    )


class RestaurantStore:
    def __init__(self, db: Database) -> None:
        self._db = db

    def search(
        self,
        predicates: Sequence[ColumnElement[bool]],
        limit: int = CANDIDATE_LIMIT,
    ) -> list[Restaurant]:
        """
        Return at most ``limit`` restaurants satisfying every predicate.

        No ORDER BY is issued: when more rows match than ``limit``, which
        ones come back follows the store's iteration order and carries no
        meaning.
        """
        stmt = select(RestaurantRow).limit(limit)
        if predicates:
            stmt = stmt.where(and_(*predicates))
        with self._db.session() as session:
            rows = session.scalars(stmt).all()
            results = [_to_restaurant(row) for row in rows]
        logger.debug("Restaurant search matched %d rows (%d predicates)", len(results), len(predicates))
        return results

    def get_by_id(self, restaurant_id: int) -> Restaurant | None:
        with self._db.session() as session:
            row = session.get(RestaurantRow, restaurant_id)
            return _to_restaurant(row) if row is not None else None

    def insert(self, record: RestaurantCreate) -> Restaurant:
        return self.insert_many([record])[0]

    def insert_many(self, records: Iterable[RestaurantCreate]) -> list[Restaurant]:
        with self._db.session() as session:
            rows = [_to_row(r) for r in records]
            session.add_all(rows)
            session.commit()
            return [_to_restaurant(row) for row in rows]

    def list_categories(self) -> list[str]:
        stmt = select(CategoryRow.label).distinct().order_by(CategoryRow.label)
        with self._db.session() as session:
            return list(session.scalars(stmt).all())

    def list_dietary_options(self) -> list[str]:
        stmt = select(DietaryOptionRow.label).distinct().order_by(DietaryOptionRow.label)
        with self._db.session() as session:
            return list(session.scalars(stmt).all())
