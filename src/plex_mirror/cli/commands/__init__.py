"""CLI command modules."""

from .library import last_updated_command, lookup_command, sections_command
from .sync import run_sync, sync_command

__all__ = [
    "last_updated_command",
    "lookup_command",
    "run_sync",
    "sections_command",
    "sync_command",
]
