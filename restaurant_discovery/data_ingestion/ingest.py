from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List

import pandas as pd
from pydantic import ValidationError

from ..recommendations.models import RestaurantCreate
from ..storage.config import DatabaseConfig
from ..storage.restaurants import RestaurantStore
from ..storage.stores import build_stores
from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: List[str] = [
    "name",
    "rating",
    "total_reviews",
    "price_level",
    "categories",
    "address",
    "lat",
    "lng",
    "reviews",
    "sentiment_score",
    "place_url",
]

OPTIONAL_LIST_COLUMNS: List[str] = ["dietary_options", "popular_dishes", "peak_hours"]

NUMERIC_COLUMNS: List[str] = [
    "rating",
    "total_reviews",
    "price_level",
    "lat",
    "lng",
    "sentiment_score",
]


def _split_list(value: object, separator: str) -> list[str]:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return []
    return [part.strip() for part in str(value).split(separator) if part.strip()]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _text(value: object) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


def normalize_frame(
    df: pd.DataFrame,
    config: IngestionConfig = DEFAULT_INGESTION_CONFIG,
) -> list[RestaurantCreate]:
    """
    Map raw CSV rows into ``RestaurantCreate`` records.

    Rows missing a name, coordinates or categories, or with a price level
    outside 1-4, are skipped with a warning. Ratings are clamped to [0, 5]
    and sentiment to [-1, 1].
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"CSV is missing required columns: {', '.join(missing)}")

    df = df.copy()
    for col in NUMERIC_COLUMNS:
        # inf / 1e400 coerce to infinity; treat them as missing like any bad cell.
        df[col] = pd.to_numeric(df[col], errors="coerce").replace([float("inf"), float("-inf")], float("nan"))

    records: list[RestaurantCreate] = []
    for index, row in df.iterrows():
        name = _text(row["name"])
        categories = _split_list(row["categories"], config.list_separator)
        price = row["price_level"]

        if not name or not categories:
            logger.warning("Skipping row %s: missing name or categories", index)
            continue
        if pd.isna(row["lat"]) or pd.isna(row["lng"]):
            logger.warning("Skipping row %s (%s): missing coordinates", index, name)
            continue
        if pd.isna(price) or not float(price).is_integer() or not 1 <= price <= 4:
            logger.warning("Skipping row %s (%s): invalid price level %r", index, name, price)
            continue

        optional = {
            col: _split_list(row[col], config.list_separator) if col in df.columns else []
            for col in OPTIONAL_LIST_COLUMNS
        }

        try:
            records.append(RestaurantCreate(
                name=name,
                rating=_clamp(float(row["rating"]), 0.0, 5.0) if pd.notna(row["rating"]) else 0.0,
                total_reviews=max(0, int(row["total_reviews"])) if pd.notna(row["total_reviews"]) else 0,
                price_level=int(price),
                categories=categories,
                address=_text(row["address"]),
                lat=float(row["lat"]),
                lng=float(row["lng"]),
                reviews=_split_list(row["reviews"], config.review_separator),
                sentiment_score=(
                    _clamp(float(row["sentiment_score"]), -1.0, 1.0)
                    if pd.notna(row["sentiment_score"])
                    else 0.0
                ),
                place_url=_text(row["place_url"]),
                dietary_options=optional["dietary_options"],
                popular_dishes=optional["popular_dishes"] or None,
                peak_hours=optional["peak_hours"] or None,
            ))
        except ValidationError as exc:
            logger.warning("Skipping row %s (%s): %s", index, name, exc.errors()[0]["msg"])

    return records


def run_ingestion(
    store: RestaurantStore,
    config: IngestionConfig = DEFAULT_INGESTION_CONFIG,
) -> int:
    """
    Execute the CSV ingestion pipeline.

    Steps:
    - Read the CSV at ``config.csv_path``.
    - Normalize rows into the canonical Restaurant schema.
    - Insert them into the store in batches.

    Returns the number of inserted restaurants.
    """
    df = pd.read_csv(config.csv_path)
    records = normalize_frame(df, config)

    inserted = 0
    for start in range(0, len(records), config.batch_size):
        batch = records[start:start + config.batch_size]
        inserted += len(store.insert_many(batch))

    logger.info(
        "Ingested %d of %d rows from %s", inserted, len(df), config.csv_path
    )
    return inserted


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Load a restaurants CSV into the store")
    parser.add_argument("csv_path", type=Path)
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    db_config = DatabaseConfig(url=args.database_url) if args.database_url else DatabaseConfig()
    stores = build_stores(db_config)
    count = run_ingestion(stores.restaurants, IngestionConfig(csv_path=args.csv_path))
    print(f"Ingestion complete. {count} restaurants stored in {db_config.url}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
