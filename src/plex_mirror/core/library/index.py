"""Key lookup tables over the cached section tree.

The index is always rebuilt from the whole tree, never patched.
"""

import logging
import threading
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Dict, Iterable, Optional, TypeVar

from ...models.models import Album, Artist, Section, Track

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", Track, Album, Artist)


class NotFoundError(KeyError):
    """Raised when a lookup key is not present in the index."""

    def __init__(self, kind: str, key: str) -> None:
        self.kind = kind
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return f"{self.kind.capitalize()} not found: {self.key}"


@dataclass
class IndexTables:
    """The three key -> entity mappings."""

    tracks: Dict[str, Track] = dataclass_field(default_factory=dict)
    albums: Dict[str, Album] = dataclass_field(default_factory=dict)
    artists: Dict[str, Artist] = dataclass_field(default_factory=dict)


def _add(table: Dict[str, EntityT], kind: str, entity: EntityT) -> None:
    if entity.key in table:
        logger.warning(f"Duplicate {kind} key '{entity.key}', keeping first entry")
        return
    table[entity.key] = entity


def build_index(sections: Optional[Iterable[Section]]) -> IndexTables:
    """Flatten the section tree into lookup tables.

    Args:
        sections: Section tree; None is treated as empty

    Returns:
        IndexTables for tracks, albums and artists
    """
    tables = IndexTables()
    for section in sections or []:
        for artist in section.artists:
            _add(tables.artists, "artist", artist)
            for album in artist.albums:
                _add(tables.albums, "album", album)
                for track in album.tracks:
                    _add(tables.tracks, "track", track)
    return tables


class LibraryIndex:
    """Thread-safe lookup index over a section tree."""

    def __init__(self, lock: "Optional[threading.RLock]" = None) -> None:
        """Initialize library index.

        Args:
            lock: Whole-tree lock shared with the owner of the tree
        """
        self._lock = lock if lock is not None else threading.RLock()
        self._tables = IndexTables()

    def rebuild(self, sections: Optional[Iterable[Section]]) -> None:
        """Replace the lookup tables with a fresh build of ``sections``."""
        with self._lock:
            self._tables = build_index(sections)
        logger.debug(
            "Index rebuilt: %d artists, %d albums, %d tracks",
            len(self._tables.artists),
            len(self._tables.albums),
            len(self._tables.tracks),
        )

    @property
    def tables(self) -> IndexTables:
        """Current lookup tables."""
        return self._tables

    def lookup_track(self, key: str) -> Track:
        """Get a track by key.

        Raises:
            NotFoundError: If no track has this key
        """
        try:
            return self._tables.tracks[key]
        except KeyError:
            raise NotFoundError("track", key) from None

    def lookup_album(self, key: str) -> Album:
        """Get an album by key.

        Raises:
            NotFoundError: If no album has this key
        """
        try:
            return self._tables.albums[key]
        except KeyError:
            raise NotFoundError("album", key) from None

    def lookup_artist(self, key: str) -> Artist:
        """Get an artist by key.

        Raises:
            NotFoundError: If no artist has this key
        """
        try:
            return self._tables.artists[key]
        except KeyError:
            raise NotFoundError("artist", key) from None
