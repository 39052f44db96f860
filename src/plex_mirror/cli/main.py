"""Command-line interface for the Plex library mirror.

This is the main entry point that delegates to command modules.
"""

from pathlib import Path
from typing import Any, Optional

import click

from ..config import get_config
from ..utils.logging_config import configure_third_party_loggers, setup_logging
from .commands import (
    last_updated_command,
    lookup_command,
    sections_command,
    sync_command,
)


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Set logging level",
)
@click.option("--log-file", type=click.Path(), help="Log to file")
@click.pass_context
def cli(ctx: Any, log_level: str, log_file: Optional[str]) -> None:
    """Plex library mirror.

    Keeps a local, queryable copy of a Plex server's music libraries.
    """
    setup_logging(log_level=log_level, log_file=Path(log_file) if log_file else None)
    configure_third_party_loggers()

    ctx.obj = get_config()


cli.add_command(sync_command)
cli.add_command(sections_command)
cli.add_command(last_updated_command)
cli.add_command(lookup_command)


if __name__ == "__main__":
    cli()
