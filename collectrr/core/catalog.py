"""Loading media libraries from YAML/JSON files and exporting results."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .exceptions import CatalogError
from .models import AggregateGroup, GroupingResult, MediaItem, MediaType, to_naive_utc

logger = logging.getLogger(__name__)


class MediaRecord(BaseModel):
    """One media record as stored in a library file.

    Keys may be snake_case (``set_id``) or camelCase (``setId``).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int = 0
    title: str = ""
    sort_title: str = ""
    plot: str = ""
    path: str = ""
    base_path: str = ""
    full_path: str = ""
    media_type: MediaType = MediaType.MOVIE

    set_id: int | None = None
    set_title: str = ""
    set_overview: str = ""
    movie_unique_id: str = ""
    episode_unique_id: str = ""

    rating: float = Field(default=0.0, ge=0.0)
    year: int = 0
    play_count: int = Field(default=0, ge=0)
    last_played: datetime | None = None
    date_added: datetime | None = None

    @field_validator("last_played", "date_added", mode="before")
    @classmethod
    def _blank_timestamp(cls, value: Any) -> Any:
        # Libraries store unset timestamps as empty strings
        if value in ("", None):
            return None
        return value

    @field_validator("last_played", "date_added")
    @classmethod
    def _utc_timestamp(cls, value: datetime | None) -> datetime | None:
        # Offset timestamps are stored as naive UTC, like the offset-less ones
        return to_naive_utc(value)

    @field_validator("movie_unique_id", "episode_unique_id", "set_title", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def to_item(self) -> MediaItem:
        """Convert the record to a MediaItem."""
        return MediaItem(**self.model_dump())


def parse_records(data: Any) -> list[MediaItem]:
    """
    Validate raw library data and convert it to media items.

    Args:
        data: A list of record mappings, or a mapping with an ``items`` list

    Returns:
        Media items in file order

    Raises:
        CatalogError: If the data is not a list of valid records
    """
    if isinstance(data, dict):
        data = data.get("items")
    if not isinstance(data, list):
        raise CatalogError("Library must be a list of items or contain an 'items' list")

    items = []
    for index, raw in enumerate(data):
        try:
            record = MediaRecord.model_validate(raw)
        except ValidationError as e:
            raise CatalogError(f"Invalid record #{index}: {e}") from e
        items.append(record.to_item())
    return items


def load_library(library_path: Path) -> list[MediaItem]:
    """Load media items from a YAML or JSON library file."""
    try:
        with open(library_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise CatalogError(f"Cannot read library {library_path}: {e}") from e
    except yaml.YAMLError as e:
        raise CatalogError(f"Cannot parse library {library_path}: {e}") from e

    items = parse_records(data)
    logger.info(f"Loaded {len(items)} item(s) from {library_path}")
    return items


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def item_to_dict(item: MediaItem) -> dict[str, Any]:
    """Convert an item or aggregate to a JSON-ready dict."""
    data: dict[str, Any] = {
        "id": item.id,
        "title": item.title,
        "media_type": item.media_type.value,
        "path": item.path,
        "base_path": item.base_path,
        "rating": round(item.rating, 3),
        "year": item.year,
        "play_count": item.play_count,
        "last_played": _timestamp(item.last_played),
        "date_added": _timestamp(item.date_added),
        "is_folder": item.is_folder,
    }
    if isinstance(item, AggregateGroup):
        data.update(
            {
                "kind": item.kind.value,
                "key": item.key,
                "members": [m.id for m in item.members],
                "total": item.total_count,
                "watched": item.watched_count,
                "unwatched": item.unwatched_count,
                "properties": dict(item.properties),
            }
        )
    return data


def result_to_dict(result: GroupingResult) -> dict[str, Any]:
    """Convert a grouping result to a JSON-ready dict."""
    return {
        "grouped": [item_to_dict(item) for item in result.grouped],
        "ungrouped": [item_to_dict(item) for item in result.ungrouped],
    }
