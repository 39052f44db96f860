"""Schemas for raw records returned by the Plex server.

Records arrive as plain mappings. They are validated against these schemas
exactly once, when the entity builder turns them into domain models.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

MUSIC_SECTION_TYPE = "artist"


class RemoteRecord(BaseModel):
    """Fields shared by every Plex metadata record."""

    key: str
    title: str

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SectionRecord(RemoteRecord):
    """A library section entry from ``library/sections``."""

    type: str
    uuid: Optional[str] = None
    updated_at: int = Field(default=0, alias="updatedAt")


class ArtistRecord(RemoteRecord):
    """An artist entry from ``library/sections/{id}/all``."""

    rating_key: Optional[str] = Field(default=None, alias="ratingKey")


class AlbumRecord(RemoteRecord):
    """An album entry from an artist's children listing."""

    rating_key: Optional[str] = Field(default=None, alias="ratingKey")
    year: Optional[int] = None


class MediaPart(BaseModel):
    """A single playable file of a media item."""

    key: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class MediaItem(BaseModel):
    """A media item; holds one or more parts."""

    parts: List[MediaPart] = Field(default_factory=list, alias="Part")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TrackRecord(RemoteRecord):
    """A track entry from an album's children listing.

    Placeholder tracks come without a duration and end up with 0.
    """

    rating_key: Optional[str] = Field(default=None, alias="ratingKey")
    duration: int = 0
    index: Optional[int] = None
    media: List[MediaItem] = Field(default_factory=list, alias="Media")

    @property
    def part_key(self) -> Optional[str]:
        """Get the key of the first media part, if any."""
        for item in self.media:
            for part in item.parts:
                if part.key:
                    return part.key
        return None


class RecordTree(BaseModel):
    """Normalized response of a single fetch: the ordered child records."""

    path: str
    children: List[Dict[str, Any]] = []

    def __len__(self) -> int:
        return len(self.children)
