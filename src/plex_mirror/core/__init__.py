"""Core business logic modules for the Plex library mirror.

This package contains the main business logic organized by workflow step:
- plex: Plex API access and record-to-entity conversion
- sync: Section synchronization and progress reporting
- library: Lookup index, snapshot persistence and the library service
"""

from .library import MusicLibraryService, NotFoundError, PersistenceError
from .plex import FetchError, MappingError

__all__ = [
    "MusicLibraryService",
    "FetchError",
    "MappingError",
    "NotFoundError",
    "PersistenceError",
]
