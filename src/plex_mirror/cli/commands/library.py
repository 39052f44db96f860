"""Commands that read the cached library snapshot."""

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from ...config import Config
from ...core.library import (
    MusicLibraryService,
    NotFoundError,
    PersistenceError,
    create_library_service,
)
from ..display import display_entity, display_sections

console = Console()
logger = logging.getLogger(__name__)

snapshot_option = click.option(
    "--snapshot",
    "-s",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Snapshot file (defaults to PLEX_MIRROR_SNAPSHOT_FILE)",
)


def load_cached_library(
    config: Config, snapshot: Optional[Path]
) -> MusicLibraryService:
    """Create a library service and load it from the snapshot.

    Raises:
        click.Abort: If the snapshot is missing or unreadable
    """
    snapshot_path = snapshot or config.snapshot_path
    if not snapshot_path.exists():
        console.print(
            f"[bold red]❌ No snapshot at {snapshot_path}; run 'sync' first[/bold red]"
        )
        raise click.Abort()

    service = create_library_service(config)
    try:
        service.load_music_section_details(snapshot_path)
    except PersistenceError as e:
        logger.exception("Cannot load snapshot")
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise click.Abort()
    return service


@click.command("sections")
@snapshot_option
@click.pass_obj
def sections_command(config: Config, snapshot: Optional[Path]) -> None:
    """Show the cached music sections."""
    service = load_cached_library(config, snapshot)
    display_sections(service.sections)


@click.command("last-updated")
@snapshot_option
@click.pass_obj
def last_updated_command(config: Config, snapshot: Optional[Path]) -> None:
    """Show when the cached music library last changed on the server."""
    service = load_cached_library(config, snapshot)
    last_update = service.determine_music_library_last_update_date()
    if last_update is None:
        console.print("[dim]No sections cached[/dim]")
        return
    console.print(last_update.astimezone().isoformat(timespec="seconds"))


@click.command("lookup")
@click.argument("kind", type=click.Choice(["track", "album", "artist"]))
@click.argument("key")
@snapshot_option
@click.pass_obj
def lookup_command(
    config: Config, kind: str, key: str, snapshot: Optional[Path]
) -> None:
    """Look up a cached track, album or artist by its key."""
    service = load_cached_library(config, snapshot)
    lookups = {
        "track": service.lookup_track,
        "album": service.lookup_album,
        "artist": service.lookup_artist,
    }
    try:
        entity = lookups[kind](key)
    except NotFoundError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise click.Abort()
    display_entity(entity)
