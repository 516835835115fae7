from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class IngestionConfig:
    """
    Configuration for the CSV ingestion pipeline.

    Label lists (categories, dietary options, dishes, peak hours) are split on
    ``list_separator``. Reviews are free text and may contain it, so they are
    split on ``review_separator``: one review per line inside the quoted cell.
    """

    csv_path: Path = Path("data/restaurants.csv")
    list_separator: str = "|"
    review_separator: str = "\n"
    batch_size: int = 500


DEFAULT_INGESTION_CONFIG = IngestionConfig()
