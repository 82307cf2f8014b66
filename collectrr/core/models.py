"""Core data models for media grouping."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntFlag
from typing import Any


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Convert a timestamp to naive UTC; naive values are taken as UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class GroupBy(IntFlag):
    """Grouping modes, combinable with ``|``."""

    NONE = 0
    SET = 1
    MOVIE = 2
    EPISODE = 4


class GroupAttribute(IntFlag):
    """Extra grouping behaviour flags."""

    NONE = 0
    IGNORE_SINGLE_SET_ITEMS = 1


class GroupKind(Enum):
    """Kind of aggregate produced by grouping."""

    SET = "set"
    MOVIE_DUPLICATE = "movie_duplicate"
    EPISODE_DUPLICATE = "episode_duplicate"


class MediaType(Enum):
    """Media types known to the library."""

    MOVIE = "movie"
    EPISODE = "episode"
    COLLECTION = "collection"


class Overlay(Enum):
    """Overlay icons that can be toggled on an item."""

    UNWATCHED = "unwatched"


@dataclass
class MediaItem:
    """A single media record (movie, episode) from the library."""

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
    movie_unique_id: str = ""  # IMDb number, "tt0133093"
    episode_unique_id: str = ""

    rating: float = 0.0
    year: int = 0
    play_count: int = 0
    last_played: datetime | None = None
    date_added: datetime | None = None

    is_folder: bool = False
    properties: dict[str, Any] = field(default_factory=dict)
    overlays: dict[Overlay, bool] = field(default_factory=dict)

    @property
    def in_set(self) -> bool:
        """Check if the item belongs to a movie set."""
        return self.set_id is not None and self.set_id > 0

    def get_property(self, key: str) -> Any:
        """Return a property value, or None when it was never set."""
        return self.properties.get(key)

    def set_property(self, key: str, value: Any) -> None:
        self.properties[key] = value

    def set_overlay(self, overlay: Overlay, flag: bool) -> None:
        self.overlays[overlay] = flag


@dataclass
class AggregateGroup(MediaItem):
    """Synthesized item representing a merged group of media items."""

    kind: GroupKind = GroupKind.SET
    key: int | str = 0
    members: list[MediaItem] = field(default_factory=list)
    total_count: int = 0
    watched_count: int = 0
    unwatched_count: int = 0
    media_type: MediaType = MediaType.COLLECTION
    is_folder: bool = True

    @property
    def member_count(self) -> int:
        return len(self.members)


@dataclass
class GroupingResult:
    """Grouped aggregates plus the items that matched no group."""

    grouped: list[MediaItem] = field(default_factory=list)
    ungrouped: list[MediaItem] = field(default_factory=list)

    @property
    def aggregates(self) -> list[AggregateGroup]:
        """Aggregates produced by grouping, in output order."""
        return [item for item in self.grouped if isinstance(item, AggregateGroup)]

    def combined(self) -> list[MediaItem]:
        """Grouped items followed by the ungrouped leftovers."""
        return [*self.grouped, *self.ungrouped]
