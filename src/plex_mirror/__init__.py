"""Plex library mirror.

Keeps a locally cached, queryable copy of the music libraries of a Plex
Media Server (artists, albums, tracks), synchronized incrementally and
persisted as a compressed snapshot.
"""

__version__ = "0.1.0"

from .config import Config, get_config
from .core import (
    FetchError,
    MappingError,
    MusicLibraryService,
    NotFoundError,
    PersistenceError,
)
from .core.library import create_library_service
from .core.sync import ProgressFeed
from .models import Album, Artist, Section, Track

__all__ = [
    "Album",
    "Artist",
    "Config",
    "FetchError",
    "MappingError",
    "MusicLibraryService",
    "NotFoundError",
    "PersistenceError",
    "ProgressFeed",
    "Section",
    "Track",
    "create_library_service",
    "get_config",
]
