from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class RestaurantRow(Base):
    __tablename__ = "restaurants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    rating: Mapped[float] = mapped_column(Float, nullable=False)
    total_reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_level: Mapped[int] = mapped_column(Integer, nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    reviews: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    sentiment_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    place_url: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    popular_dishes: Mapped[list | None] = mapped_column(JSON, nullable=True)
    peak_hours: Mapped[list | None] = mapped_column(JSON, nullable=True)

    # Labels live in child tables so cuisine / dietary predicates stay plain SQL.
    categories: Mapped[list[CategoryRow]] = relationship(
        order_by="CategoryRow.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    dietary_options: Mapped[list[DietaryOptionRow]] = relationship(
        order_by="DietaryOptionRow.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class CategoryRow(Base):
    __tablename__ = "restaurant_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(
        ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    # casefold() of label; SQL lower() only folds ASCII.
    label_key: Mapped[str] = mapped_column(String(100), nullable=False)


class DietaryOptionRow(Base):
    __tablename__ = "restaurant_dietary_options"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(
        ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    # casefold() of label; SQL lower() only folds ASCII.
    label_key: Mapped[str] = mapped_column(String(100), nullable=False)


class UserPreferenceRow(Base):
    __tablename__ = "user_preferences"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    dietary_preferences: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    favorite_categories: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    price_preference: Mapped[int | None] = mapped_column(Integer, nullable=True)
    preferred_radius: Mapped[float | None] = mapped_column(Float, nullable=True)
    last_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    last_lng: Mapped[float | None] = mapped_column(Float, nullable=True)


class UserInteractionRow(Base):
    __tablename__ = "user_interactions"

    # No foreign key on restaurant_id: the log accepts ids the store has never seen.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    kind: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
