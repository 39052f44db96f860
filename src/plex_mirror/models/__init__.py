"""Models for the Plex library mirror."""

from .models import Album, Artist, Section, Track
from .records import (
    AlbumRecord,
    ArtistRecord,
    RecordTree,
    SectionRecord,
    TrackRecord,
)

__all__ = [
    "Track",
    "Album",
    "Artist",
    "Section",
    "RecordTree",
    "SectionRecord",
    "ArtistRecord",
    "AlbumRecord",
    "TrackRecord",
]
