"""Conversion of raw Plex records into domain entities.

Every builder takes one raw record plus its parent entity and returns a
single typed entity. Builders are pure: they neither fetch nor filter.
The existence filter (playable tracks, non-empty albums and artists) is
applied by the caller once the children of an entity are known.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Type, TypeVar

from pydantic import ValidationError

from ...models.models import Album, Artist, Section, Track
from ...models.records import (
    MUSIC_SECTION_TYPE,
    AlbumRecord,
    ArtistRecord,
    RemoteRecord,
    SectionRecord,
    TrackRecord,
)

RecordT = TypeVar("RecordT", bound=RemoteRecord)


class MappingError(Exception):
    """Raised when a raw record cannot be turned into an entity."""

    def __init__(self, kind: str, record: Mapping[str, Any], reason: str) -> None:
        self.kind = kind
        self.record = record
        self.reason = reason
        super().__init__(
            f"Cannot build {kind} from record {record.get('title')!r}: {reason}"
        )


def _validate(kind: str, schema: Type[RecordT], record: Mapping[str, Any]) -> RecordT:
    if not isinstance(record, Mapping):
        raise MappingError(kind, {}, f"expected a mapping, got {type(record).__name__}")
    try:
        return schema.model_validate(record)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) for error in e.errors()
        )
        raise MappingError(kind, record, f"invalid field(s): {fields}") from e


def is_music_section(record: Mapping[str, Any]) -> bool:
    """Check whether a raw section record describes a music library."""
    return isinstance(record, Mapping) and record.get("type") == MUSIC_SECTION_TYPE


def build_section(record: Mapping[str, Any]) -> Section:
    """Build a pending Section from a ``library/sections`` record.

    The unique key is the section UUID when the server reports one, and the
    section identifier otherwise.
    """
    parsed = _validate("section", SectionRecord, record)
    return Section(
        key=parsed.uuid or parsed.key,
        section_id=parsed.key,
        name=parsed.title,
        last_updated=datetime.fromtimestamp(parsed.updated_at, tz=timezone.utc),
        last_processed=None,
    )


def build_artist(record: Mapping[str, Any], section: Section) -> Artist:
    """Build an Artist without albums."""
    parsed = _validate("artist", ArtistRecord, record)
    return Artist(key=parsed.key, name=parsed.title, section_key=section.key)


def build_album(record: Mapping[str, Any], artist: Artist) -> Album:
    """Build an Album without tracks."""
    parsed = _validate("album", AlbumRecord, record)
    return Album(
        key=parsed.key, title=parsed.title, artist_key=artist.key, year=parsed.year
    )


def build_track(record: Mapping[str, Any], album: Album) -> Track:
    """Build a Track; the duration is kept as reported, even when 0."""
    parsed = _validate("track", TrackRecord, record)
    return Track(
        key=parsed.key,
        title=parsed.title,
        album_key=album.key,
        duration=parsed.duration,
        index=parsed.index,
        part_key=parsed.part_key,
    )


def is_playable(track: Track) -> bool:
    """Check whether a track passes the existence filter."""
    return track.duration > 0
