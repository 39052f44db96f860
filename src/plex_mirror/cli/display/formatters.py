"""Display formatters and UI helpers for CLI."""

import logging
from datetime import datetime
from typing import List, Optional, Union

from rich.console import Console
from rich.table import Table

from ...core.sync import SyncStatistics
from ...models.models import Album, Artist, Section, Track

console = Console()
logger = logging.getLogger(__name__)


def _format_time(value: Optional[datetime]) -> str:
    if value is None:
        return "[yellow]pending[/yellow]"
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def display_sections(sections: List[Section]) -> None:
    """Display a table of cached sections.

    Args:
        sections: Cached section tree
    """
    if not sections:
        console.print("[dim]No sections cached[/dim]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Section", style="cyan")
    table.add_column("ID", justify="right")
    table.add_column("Artists", justify="right", style="green")
    table.add_column("Albums", justify="right", style="green")
    table.add_column("Tracks", justify="right", style="green")
    table.add_column("Updated on server")
    table.add_column("Processed")

    for section in sections:
        albums = sum(artist.album_count for artist in section.artists)
        tracks = sum(
            album.track_count for artist in section.artists for album in artist.albums
        )
        table.add_row(
            section.name,
            section.section_id,
            str(section.artist_count),
            str(albums),
            str(tracks),
            _format_time(section.last_updated),
            _format_time(section.last_processed),
        )

    console.print(table)


def display_sync_summary(
    sections: List[Section], stats: Optional[SyncStatistics]
) -> None:
    """Display summary of a synchronization run.

    Args:
        sections: Section tree after synchronization
        stats: Statistics of the run
    """
    console.print("\n[bold green]📊 Sync Summary[/bold green]")

    summary_table = Table(show_header=False)
    summary_table.add_column("Metric", style="cyan")
    summary_table.add_column("Value", style="green", justify="right")

    summary_table.add_row("Sections cached", str(len(sections)))
    if stats is not None:
        summary_table.add_row("New sections", str(stats.sections_added))
        summary_table.add_row("Changed sections", str(stats.sections_invalidated))
        summary_table.add_row("Sections rebuilt", str(stats.sections_processed))
        summary_table.add_row("Artists built", str(stats.artists_built))
        summary_table.add_row("Albums built", str(stats.albums_built))
        summary_table.add_row("Tracks built", str(stats.tracks_built))
        if stats.records_skipped:
            summary_table.add_row(
                "Malformed records skipped", f"[yellow]{stats.records_skipped}[/yellow]"
            )

    console.print(summary_table)
    console.print()


def display_entity(entity: Union[Track, Album, Artist]) -> None:
    """Display a single library entity.

    Args:
        entity: Track, album or artist to show
    """
    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Key", entity.key)
    if isinstance(entity, Track):
        table.add_row("Title", entity.title)
        table.add_row("Duration", entity.duration_formatted)
        table.add_row("Track number", str(entity.index or "-"))
        table.add_row("Album", entity.album_key)
        table.add_row("Media part", entity.part_key or "-")
    elif isinstance(entity, Album):
        table.add_row("Title", entity.title)
        table.add_row("Year", str(entity.year or "-"))
        table.add_row("Artist", entity.artist_key)
        table.add_row("Tracks", str(entity.track_count))
    else:
        table.add_row("Name", entity.name)
        table.add_row("Section", entity.section_key)
        table.add_row("Albums", str(entity.album_count))

    console.print(table)
