"""Grouping of media items into sets and duplicate collections."""

import logging
from collections.abc import Iterable
from dataclasses import fields
from datetime import datetime
from typing import TypeVar

from ..config.settings import CollectrrConfig
from .exceptions import InvalidBaseDirectoryError, InvalidGroupModeError, LibraryUrlError
from .library_url import LibraryUrl
from .models import (
    AggregateGroup,
    GroupAttribute,
    GroupBy,
    GroupingResult,
    GroupKind,
    MediaItem,
    Overlay,
    to_naive_utc,
)
from .paths import construct_multipath, is_video_file, parent_directory

logger = logging.getLogger(__name__)

K = TypeVar("K", int, str)

CONTEXT_MENU_LABEL = "contextmenulabel(0)"
CONTEXT_MENU_ACTION = "contextmenuaction(0)"


def _later(current: datetime | None, candidate: datetime | None) -> datetime | None:
    """Running maximum of timestamps; None never replaces a valid value.

    Naive and offset-aware values are compared as UTC.
    """
    if candidate is None:
        return current
    if current is None or to_naive_utc(candidate) > to_naive_utc(current):
        return candidate
    return current


def _average_rating(members: list[MediaItem]) -> float:
    """Average of the positive ratings, 0.0 when nothing is rated."""
    rated = [m.rating for m in members if m.rating > 0.0]
    if not rated:
        return 0.0
    return sum(rated) / len(rated)


class Grouper:
    """Groups media items by set membership or duplicate identity.

    A Grouper only holds configuration; each call builds its own working
    state, so one instance can be shared between threads.
    """

    def __init__(self, config: CollectrrConfig | None = None):
        """Initialize grouper with configuration."""
        self.config = config or CollectrrConfig()
        self.video_extensions = {ext.lower() for ext in self.config.video_extensions}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def group(
        self,
        items: Iterable[MediaItem],
        group_by: GroupBy,
        base_dir: str,
        attributes: GroupAttribute = GroupAttribute.NONE,
        grouped: list[MediaItem] | None = None,
        ungrouped: list[MediaItem] | None = None,
    ) -> GroupingResult:
        """
        Group items into set aggregates and duplicate aggregates.

        Aggregates are appended to ``grouped`` in a fixed order (sets, then
        movie duplicates, then episode duplicates, each in ascending key
        order). Items that match no group, and members of collapsed single
        item groups, are appended to ``ungrouped``.

        Args:
            items: Media items to group; they are not modified
            group_by: Grouping modes to apply
            base_dir: Library address the items were listed from; its
                options are carried over to aggregate paths
            attributes: Extra grouping behaviour
            grouped: Output list for aggregates (a new list if omitted)
            ungrouped: Output list for leftover items (a new list if omitted)

        Returns:
            GroupingResult wrapping the two output lists

        Raises:
            InvalidGroupModeError: If group_by is GroupBy.NONE
            InvalidBaseDirectoryError: If base_dir cannot be parsed when
                aggregates need to be built
        """
        result = GroupingResult(
            grouped=grouped if grouped is not None else [],
            ungrouped=ungrouped if ungrouped is not None else [],
        )

        if group_by == GroupBy.NONE:
            logger.error("Grouping requested without any grouping mode")
            raise InvalidGroupModeError("At least one grouping mode is required")

        items = list(items)
        if not items:
            return result

        set_map, movie_map, episode_map = self._classify(
            items, group_by, result.ungrouped
        )
        logger.debug(
            f"Classified {len(items)} item(s): {len(set_map)} set(s), "
            f"{len(movie_map)} movie key(s), {len(episode_map)} episode key(s)"
        )

        grouped_before = len(result.grouped)

        if (group_by & GroupBy.SET) and set_map:
            items_url = self._parse_base_dir(base_dir)
            self._group_sets(set_map, items_url, attributes, result)

        if (group_by & GroupBy.MOVIE) and movie_map:
            items_url = self._parse_base_dir(base_dir)
            self._group_duplicates(
                movie_map,
                GroupKind.MOVIE_DUPLICATE,
                self.config.addresses.movie_titles_path,
                self.config.addresses.movie_id_option,
                items_url,
                result,
            )

        if (group_by & GroupBy.EPISODE) and episode_map:
            items_url = self._parse_base_dir(base_dir)
            self._group_duplicates(
                episode_map,
                GroupKind.EPISODE_DUPLICATE,
                base_dir,
                self.config.addresses.episode_number_option,
                items_url,
                result,
            )

        logger.info(
            f"Grouped {len(items)} item(s) into "
            f"{len(result.grouped) - grouped_before} aggregate(s)"
        )
        return result

    def group_and_recombine(
        self,
        items: Iterable[MediaItem],
        group_by: GroupBy,
        base_dir: str,
        attributes: GroupAttribute = GroupAttribute.NONE,
    ) -> list[MediaItem]:
        """Group items, then return aggregates followed by ungrouped items."""
        return self.group(items, group_by, base_dir, attributes).combined()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _classify(
        self,
        items: list[MediaItem],
        group_by: GroupBy,
        ungrouped: list[MediaItem],
    ) -> tuple[
        dict[int, list[MediaItem]],
        dict[str, list[MediaItem]],
        dict[str, list[MediaItem]],
    ]:
        """Sort items into set, movie and episode bags; first match wins."""
        set_map: dict[int, list[MediaItem]] = {}
        movie_map: dict[str, list[MediaItem]] = {}
        episode_map: dict[str, list[MediaItem]] = {}

        for item in items:
            if (group_by & GroupBy.SET) and item.in_set:
                set_map.setdefault(item.set_id, []).append(item)
            elif (group_by & GroupBy.MOVIE) and item.movie_unique_id:
                movie_map.setdefault(item.movie_unique_id, []).append(item)
            elif (group_by & GroupBy.EPISODE) and item.episode_unique_id:
                episode_map.setdefault(item.episode_unique_id, []).append(item)
            else:
                ungrouped.append(item)

        return set_map, movie_map, episode_map

    def _parse_base_dir(self, base_dir: str) -> LibraryUrl:
        try:
            return LibraryUrl.parse(base_dir)
        except LibraryUrlError as e:
            logger.error(f"Invalid base directory {base_dir!r}: {e}")
            raise InvalidBaseDirectoryError(
                f"Cannot parse base directory {base_dir!r}"
            ) from e

    def _build_path(
        self, address: str, items_url: LibraryUrl, option: tuple[str, str] | None = None
    ) -> str:
        """Build an aggregate address carrying the base directory's options.

        Addresses that are not library URLs themselves are used verbatim.
        """
        try:
            url = LibraryUrl.parse(address)
        except LibraryUrlError:
            return address

        url.add_options(items_url.options_string())
        if option is not None:
            url.add_option(*option)
        return url.to_string()

    def _install_context_menu(self, aggregate: AggregateGroup, label: str) -> None:
        if aggregate.get_property(CONTEXT_MENU_LABEL) is not None:
            return
        window = self.config.context_menu.window
        aggregate.set_property(CONTEXT_MENU_LABEL, label)
        aggregate.set_property(
            CONTEXT_MENU_ACTION, f"ActivateWindow({window}, {aggregate.path})"
        )

    def _group_sets(
        self,
        set_map: dict[int, list[MediaItem]],
        items_url: LibraryUrl,
        attributes: GroupAttribute,
        result: GroupingResult,
    ) -> None:
        for set_id in sorted(set_map):
            members = set_map[set_id]

            if len(members) == 1 and (attributes & GroupAttribute.IGNORE_SINGLE_SET_ITEMS):
                logger.debug(f"Set {set_id} has a single item, leaving it ungrouped")
                result.ungrouped.append(members[0])
                continue

            result.grouped.append(self._build_set(set_id, members, items_url))

    def _build_set(
        self, set_id: int, members: list[MediaItem], items_url: LibraryUrl
    ) -> AggregateGroup:
        """Merge the members of one movie set into a set aggregate."""
        first = members[0]
        address = self.config.addresses.set_path_template.format(set_id=set_id)

        aggregate = AggregateGroup(
            kind=GroupKind.SET,
            key=set_id,
            id=set_id,
            title=first.set_title,
            plot=first.set_overview,
            path=self._build_path(address, items_url),
            members=list(members),
        )
        aggregate.full_path = aggregate.path

        watched = 0
        play_count = 0
        source_paths: set[str] = set()
        for member in members:
            if member.year > aggregate.year:
                aggregate.year = member.year
            aggregate.last_played = _later(aggregate.last_played, member.last_played)
            aggregate.date_added = _later(aggregate.date_added, member.date_added)

            play_count += member.play_count
            if member.play_count > 0:
                watched += 1

            # Accumulate source directories for the multipath
            if not member.base_path:
                continue
            if is_video_file(member.base_path, self.video_extensions):
                source_paths.add(parent_directory(member.base_path))
            else:
                source_paths.add(member.base_path)

        total = len(members)
        aggregate.rating = _average_rating(members)
        aggregate.base_path = construct_multipath(source_paths)
        # A set only counts as played once every member has been played
        aggregate.play_count = play_count // total if watched >= total else 0

        aggregate.total_count = total
        aggregate.watched_count = watched
        aggregate.unwatched_count = total - watched
        aggregate.set_property("total", total)
        aggregate.set_property("watched", watched)
        aggregate.set_property("unwatched", total - watched)
        aggregate.set_overlay(Overlay.UNWATCHED, aggregate.play_count > 0)
        self._install_context_menu(aggregate, self.config.context_menu.set_label)

        logger.debug(
            f"Built set {set_id} '{aggregate.title}' from {total} item(s), "
            f"{watched} watched"
        )
        return aggregate

    def _group_duplicates(
        self,
        key_map: dict[K, list[MediaItem]],
        kind: GroupKind,
        address: str,
        option_name: str,
        items_url: LibraryUrl,
        result: GroupingResult,
    ) -> None:
        for key in sorted(key_map):
            members = key_map[key]

            # Only one copy, so just re-add it
            if len(members) == 1:
                result.ungrouped.append(members[0])
                continue

            aggregate = self._seed_from(members[0], kind, key)
            aggregate.path = self._build_path(address, items_url, (option_name, key))
            self._combine_entries(aggregate, members)
            result.grouped.append(aggregate)

            logger.debug(
                f"Built {kind.value} group {key!r} from {len(members)} copies"
            )

    def _seed_from(self, item: MediaItem, kind: GroupKind, key: K) -> AggregateGroup:
        """Start a duplicate aggregate from a copy of the item's metadata."""
        metadata = {
            f.name: getattr(item, f.name)
            for f in fields(MediaItem)
            if f.name not in ("properties", "overlays", "media_type", "is_folder")
        }
        aggregate = AggregateGroup(kind=kind, key=key, **metadata)
        # Paths are filled in later by the artwork/thumbnail loader
        aggregate.base_path = ""
        aggregate.full_path = ""
        return aggregate

    def _combine_entries(
        self, aggregate: AggregateGroup, members: list[MediaItem]
    ) -> None:
        """Attach duplicate members to the aggregate and merge their stats."""
        aggregate.play_count = 0
        aggregate.rating = _average_rating(members)

        for member in members:
            aggregate.members.append(member)
            aggregate.last_played = _later(aggregate.last_played, member.last_played)
            aggregate.date_added = _later(aggregate.date_added, member.date_added)
            aggregate.play_count += member.play_count

        total = len(members)
        # NOTE: watched/unwatched differ from the set counters (summed play
        # count and raw member count); kept as-is pending product sign-off.
        aggregate.total_count = total
        aggregate.watched_count = aggregate.play_count
        aggregate.unwatched_count = total
        aggregate.set_property("total", total)
        aggregate.set_property("watched", aggregate.play_count)
        aggregate.set_property("unwatched", total)
        aggregate.set_overlay(Overlay.UNWATCHED, aggregate.play_count > 0)
        self._install_context_menu(aggregate, self.config.context_menu.duplicate_label)


# Grouper with the default configuration
default_grouper = Grouper()


def group(
    items: Iterable[MediaItem],
    group_by: GroupBy,
    base_dir: str,
    attributes: GroupAttribute = GroupAttribute.NONE,
    grouped: list[MediaItem] | None = None,
    ungrouped: list[MediaItem] | None = None,
) -> GroupingResult:
    """Group items with the default configuration."""
    return default_grouper.group(
        items, group_by, base_dir, attributes, grouped, ungrouped
    )


def group_and_recombine(
    items: Iterable[MediaItem],
    group_by: GroupBy,
    base_dir: str,
    attributes: GroupAttribute = GroupAttribute.NONE,
) -> list[MediaItem]:
    """Group items with the default configuration and recombine the output."""
    return default_grouper.group_and_recombine(
        items, group_by, base_dir, attributes
    )
