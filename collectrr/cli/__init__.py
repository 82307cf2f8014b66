"""Command-line interface."""

import json
import logging
from pathlib import Path

import click

from ..config.settings import CollectrrConfig, load_config
from ..core.catalog import item_to_dict, load_library, result_to_dict
from ..core.exceptions import CatalogError, GroupingError
from ..core.grouper import Grouper
from ..core.models import AggregateGroup, GroupingResult, GroupKind

KIND_LABELS = {
    GroupKind.SET: "SET",
    GroupKind.MOVIE_DUPLICATE: "MOVIE DUPLICATES",
    GroupKind.EPISODE_DUPLICATE: "EPISODE DUPLICATES",
}


def configure_logging(settings: CollectrrConfig, verbose: bool) -> None:
    """Configure root logging from settings and the --verbose flag."""
    if verbose:
        settings.log_level = "DEBUG"
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        filename=settings.log_file,
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    )


def display_groups(aggregates: list[AggregateGroup]) -> None:
    """Display aggregates with formatting."""
    if not aggregates:
        click.echo("No groups found.")
        return

    for idx, aggregate in enumerate(aggregates, 1):
        click.echo()
        click.echo("=" * 60)
        click.echo(f"Group #{idx}: {KIND_LABELS[aggregate.kind]} {aggregate.key}")
        click.echo("=" * 60)
        click.echo(f"Title: {aggregate.title}")
        if aggregate.year:
            click.echo(f"Year: {aggregate.year}")
        click.echo(f"Rating: {aggregate.rating:.1f}")
        click.echo(
            f"Items: {aggregate.total_count} "
            f"(watched {aggregate.watched_count}, unwatched {aggregate.unwatched_count})"
        )
        click.echo(f"Play count: {aggregate.play_count}")
        click.echo(f"Path: {aggregate.path}")
        click.echo(f"Members: {aggregate.member_count}")
        for member in aggregate.members:
            click.echo(f"  • [{member.id}] {member.title} ({member.base_path or '-'})")


def display_summary(result: GroupingResult) -> None:
    """Display summary statistics."""
    aggregates = result.aggregates
    click.echo()
    click.echo("=" * 60)
    click.echo("SUMMARY")
    click.echo("=" * 60)
    click.echo(f"Total groups: {len(aggregates)}")
    for kind, label in KIND_LABELS.items():
        count = sum(1 for a in aggregates if a.kind == kind)
        click.echo(f"  - {label.title()}: {count}")
    grouped_items = sum(a.member_count for a in aggregates)
    click.echo(f"Grouped items: {grouped_items}")
    click.echo(f"Ungrouped items: {len(result.ungrouped)}")


def export_json(data: dict, output_path: Path) -> None:
    """Export results to JSON file."""
    output_path.write_text(json.dumps(data, indent=2))
    click.echo(f"\nResults exported to: {output_path}")
    click.echo(f"\nResults exported to: {output_path}")


@click.command()
@click.argument("library", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--by",
    "group_by",
    multiple=True,
    type=click.Choice(["set", "movie", "episode"]),
    help="Grouping mode (repeatable, defaults to the configured modes)",
)
@click.option("--base-dir", help="Library address the items were listed from")
@click.option(
    "--keep-single-sets",
    is_flag=True,
    help="Keep sets with a single item as groups instead of ungrouping them",
)
@click.option(
    "--recombine", is_flag=True, help="Export groups and ungrouped items as one list"
)
@click.option(
    "--output-json", type=click.Path(path_type=Path), help="Export results to JSON file"
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Custom configuration file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def main(
    library: Path,
    group_by: tuple[str, ...],
    base_dir: str | None,
    keep_single_sets: bool,
    recombine: bool,
    output_json: Path | None,
    config: Path | None,
    verbose: bool,
) -> None:
    """Group media items from LIBRARY into sets and duplicate collections.

    LIBRARY: YAML or JSON file with the media items to group
    """
    settings = load_config(config) if config else CollectrrConfig()
    configure_logging(settings, verbose)

    if group_by:
        settings.grouping.group_by = list(group_by)
    if keep_single_sets:
        settings.grouping.ignore_single_set_items = False

    try:
        mode = settings.grouping.group_by_flags()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    attributes = settings.grouping.attribute_flags()
    base = base_dir or settings.grouping.base_directory

    click.echo("=" * 60)
    click.echo("Media Grouping")
    click.echo("=" * 60)
    click.echo(f"Library: {library}")
    click.echo(f"Modes: {', '.join(settings.grouping.group_by) or 'none'}")
    click.echo(f"Base directory: {base}")

    try:
        items = load_library(library)
        grouper = Grouper(settings)
        if recombine:
            combined = grouper.group_and_recombine(items, mode, base, attributes)
            result = GroupingResult(
                grouped=[i for i in combined if isinstance(i, AggregateGroup)],
                ungrouped=[i for i in combined if not isinstance(i, AggregateGroup)],
            )
        else:
            result = grouper.group(items, mode, base, attributes)
    except (CatalogError, GroupingError) as e:
        click.echo(f"Error: {e}", err=True)
        if verbose:
            import traceback

            traceback.print_exc()
        raise SystemExit(1)

    click.echo(f"Loaded {len(items)} item(s)")

    display_groups(result.aggregates)
    display_summary(result)

    if output_json:
        if recombine:
            data = {"items": [item_to_dict(i) for i in combined]}
        else:
            data = result_to_dict(result)
        export_json(data, output_json)


if __name__ == "__main__":
    main()
