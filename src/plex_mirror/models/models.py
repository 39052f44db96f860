"""Domain models for the cached Plex music library.

The library is a four-level tree: Section -> Artist -> Album -> Track.
Each level owns the next through a list field. Parent references are kept
as plain keys and are never used for ownership.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class Track(BaseModel):
    """Represents a playable track."""

    key: str
    title: str
    album_key: str
    duration: int  # Duration in milliseconds
    index: Optional[int] = None
    part_key: Optional[str] = None

    @property
    def duration_formatted(self) -> str:
        """Get formatted duration string (mm:ss)."""
        seconds_total = self.duration // 1000
        minutes = seconds_total // 60
        seconds = seconds_total % 60
        return f"{minutes}:{seconds:02d}"


class Album(BaseModel):
    """Represents an album and its tracks."""

    key: str
    title: str
    artist_key: str
    year: Optional[int] = None
    tracks: List[Track] = []

    @property
    def track_count(self) -> int:
        """Get number of tracks on the album."""
        return len(self.tracks)

    @property
    def total_duration(self) -> int:
        """Get total duration of all tracks in milliseconds."""
        return sum(track.duration for track in self.tracks)


class Artist(BaseModel):
    """Represents an artist and its albums."""

    key: str
    name: str
    section_key: str
    albums: List[Album] = []

    @property
    def album_count(self) -> int:
        """Get number of albums for the artist."""
        return len(self.albums)


class Section(BaseModel):
    """Represents a music library section on the server.

    ``last_processed`` is ``None`` while the artist subtree still has to be
    (re)built. ``last_updated`` is the server-reported modification time.
    """

    key: str
    section_id: str
    name: str
    last_updated: datetime
    last_processed: Optional[datetime] = None
    artists: List[Artist] = []

    @property
    def is_pending(self) -> bool:
        """Check whether the section subtree needs to be rebuilt."""
        return self.last_processed is None

    @property
    def artist_count(self) -> int:
        """Get number of artists in the section."""
        return len(self.artists)
