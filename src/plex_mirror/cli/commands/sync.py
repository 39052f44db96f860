"""Sync command: refresh the cached library from the Plex server."""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console

from ...config import Config
from ...core.library import PersistenceError, create_library_service
from ...core.plex import FetchError
from ...core.sync import ConsoleProgressReporter, ProgressFeed, SyncStatistics
from ...models.models import Section
from ..display import display_sync_summary

console = Console()
logger = logging.getLogger(__name__)


async def run_sync(
    config: Config, snapshot: Path, fresh: bool, verbose: bool
) -> Tuple[List[Section], Optional[SyncStatistics]]:
    """Load the snapshot, synchronize, and save the result.

    A failed synchronization still saves the partially updated tree so the
    next run only has to redo the sections left pending.

    Args:
        config: Application configuration
        snapshot: Snapshot file to read and write
        fresh: Ignore an existing snapshot
        verbose: Print per-artist progress

    Returns:
        Tuple of the synchronized sections and the run statistics
    """
    progress = ProgressFeed()
    reporter = ConsoleProgressReporter(console, verbose=verbose)

    async with create_library_service(config, progress=progress) as service:
        if snapshot.exists() and not fresh:
            service.load_music_section_details(snapshot)
            console.print(f"[dim]Loaded {len(service.sections)} cached sections[/dim]")

        consumer = asyncio.create_task(reporter.consume(progress))
        try:
            await service.get_music_section_details()
        except FetchError:
            if service.sections:
                logger.warning("Sync failed; saving partial progress to %s", snapshot)
                try:
                    service.save_music_section_details(snapshot)
                except PersistenceError as e:
                    logger.error(f"Could not save partial progress: {e}")
            raise
        finally:
            progress.close()
            await consumer

        service.save_music_section_details(snapshot)
        return service.sections, service.last_sync_stats


@click.command("sync")
@click.option(
    "--snapshot",
    "-s",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Snapshot file (defaults to PLEX_MIRROR_SNAPSHOT_FILE)",
)
@click.option(
    "--fresh",
    is_flag=True,
    help="Ignore the existing snapshot and rebuild everything",
)
@click.option("--quiet", "-q", is_flag=True, help="Only show section-level progress")
@click.pass_obj
def sync_command(
    config: Config, snapshot: Optional[Path], fresh: bool, quiet: bool
) -> None:
    """Synchronize the cached library with the Plex server.

    Sections whose server timestamp changed are rebuilt completely; new
    sections are added. The result is written back to the snapshot.
    """
    snapshot_path = snapshot or config.snapshot_path
    try:
        console.print(
            f"[bold blue]🔄 Synchronizing with {config.server_and_port}...[/bold blue]"
        )
        sections, stats = asyncio.run(
            run_sync(config, snapshot_path, fresh=fresh, verbose=not quiet)
        )
        display_sync_summary(sections, stats)
        console.print(
            f"[bold green]✅ Snapshot saved to {snapshot_path}[/bold green]"
        )
    except Exception as e:
        logger.exception("Sync failed")
        console.print(f"[bold red]❌ Sync failed: {e}[/bold red]")
        raise click.Abort()
