"""Plex integration module.

Handles reading library listings from the Plex server and turning the raw
records into library entities.
"""

from .api_client import FetchError, PlexApiService, RecordFetcher, parse_record_tree
from .entity_builder import (
    MappingError,
    build_album,
    build_artist,
    build_section,
    build_track,
    is_music_section,
    is_playable,
)

__all__ = [
    "PlexApiService",
    "RecordFetcher",
    "FetchError",
    "parse_record_tree",
    "MappingError",
    "build_section",
    "build_artist",
    "build_album",
    "build_track",
    "is_music_section",
    "is_playable",
]
