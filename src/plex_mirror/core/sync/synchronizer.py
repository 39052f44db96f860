"""Synchronization of the cached section tree against the Plex server.

A run has two phases:

1. Merge: fetch the current music sections and reconcile them with the
   cached tree. New sections are appended, sections whose server
   ``updatedAt`` moved forward are marked pending. Sections that vanished
   from the server are kept.
2. Rebuild: every pending section gets its artist/album/track subtree
   rebuilt from scratch. There is no field-level merge below the section
   level; a newer timestamp invalidates the whole subtree.

Artists of a section are processed one after another. The track listings
of all albums of one artist are fetched concurrently.

Fetch errors are not caught here. A failed run leaves the tree partially
updated with the unfinished sections still pending, so the next run picks
them up again.
"""

import asyncio
import logging
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ...models.models import Album, Artist, Section, Track
from ..plex.api_client import RecordFetcher
from ..plex.entity_builder import (
    MappingError,
    build_album,
    build_artist,
    build_section,
    build_track,
    is_music_section,
    is_playable,
)
from .progress import ProgressFeed

logger = logging.getLogger(__name__)

SECTIONS_PATH = "library/sections"
SECTION_ARTISTS_PATH = "library/sections/{section_id}/all"

# Bounded-cost placeholder: only this many artists are built per section
DEFAULT_MAX_ARTISTS_PER_SECTION = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SyncStatistics:
    """Statistics from a synchronization run."""

    sections_fetched: int = 0
    sections_added: int = 0
    sections_invalidated: int = 0
    sections_processed: int = 0
    artists_built: int = 0
    albums_built: int = 0
    tracks_built: int = 0
    records_skipped: int = 0
    errors: List[str] = dataclass_field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "sections_fetched": self.sections_fetched,
            "sections_added": self.sections_added,
            "sections_invalidated": self.sections_invalidated,
            "sections_processed": self.sections_processed,
            "artists_built": self.artists_built,
            "albums_built": self.albums_built,
            "tracks_built": self.tracks_built,
            "records_skipped": self.records_skipped,
            "error_count": len(self.errors),
            "errors": self.errors[:10],  # Limit error list
        }


class SectionSynchronizer:
    """Reconciles the cached section tree with the Plex server."""

    def __init__(
        self,
        fetcher: RecordFetcher,
        progress: Optional[ProgressFeed] = None,
        max_artists_per_section: Optional[int] = DEFAULT_MAX_ARTISTS_PER_SECTION,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize section synchronizer.

        Args:
            fetcher: Source of raw record trees
            progress: Feed receiving status messages
            max_artists_per_section: Artist cap per section; None or a value
                below 1 disables the cap
            clock: Source of the ``last_processed`` timestamp
        """
        self.fetcher = fetcher
        self.progress = progress if progress is not None else ProgressFeed()
        if max_artists_per_section is not None and max_artists_per_section < 1:
            max_artists_per_section = None
        self.max_artists_per_section = max_artists_per_section
        self.clock = clock
        self._stats = SyncStatistics()

    @property
    def stats(self) -> SyncStatistics:
        """Statistics of the most recent run."""
        return self._stats

    async def synchronize(self, previous: Optional[List[Section]]) -> List[Section]:
        """Bring the section tree up to date with the server.

        Args:
            previous: Cached section tree; None or empty means no prior state.
                A list is always updated in place, so a failed run leaves
                the progress made so far in it.

        Returns:
            The updated section tree

        Raises:
            FetchError: If any remote fetch fails
        """
        self._stats = SyncStatistics()
        self.progress.publish("Getting music section details")

        fresh_sections = await self.discover_music_sections()
        self._stats.sections_fetched = len(fresh_sections)

        sections = previous if previous is not None else []
        if not sections:
            self.progress.publish("No existing data; rebuilding from scratch")
            sections.extend(fresh_sections)
            self._stats.sections_added = len(fresh_sections)
        else:
            self.progress.publish("Merging music data")
            sections = previous
            self.merge_sections(sections, fresh_sections)

        for section in [s for s in sections if s.is_pending]:
            await self.rebuild_section(section)

        logger.info("Synchronization finished: %s", self._stats.to_dict())
        return sections

    async def discover_music_sections(self) -> List[Section]:
        """Fetch the music library sections, each marked pending."""
        tree = await self.fetcher.fetch(SECTIONS_PATH)
        sections: List[Section] = []
        for record in tree.children:
            if not is_music_section(record):
                continue
            section = self._build("section", lambda: build_section(record))
            if section is not None:
                sections.append(section)
        logger.info(f"Found {len(sections)} music sections on the server")
        return sections

    def merge_sections(
        self, sections: List[Section], fresh_sections: List[Section]
    ) -> None:
        """Merge freshly fetched sections into the cached list in place.

        Args:
            sections: Cached sections (modified)
            fresh_sections: Sections just fetched from the server
        """
        by_key = {section.key: section for section in sections}
        for fresh in fresh_sections:
            existing = by_key.get(fresh.key)
            if existing is None:
                fresh.last_processed = None
                sections.append(fresh)
                by_key[fresh.key] = fresh
                self._stats.sections_added += 1
                logger.info(f"New section '{fresh.name}' ({fresh.key})")
                continue

            if existing.last_updated < fresh.last_updated:
                # Whole subtree is rebuilt; changes are not diffed
                logger.info(
                    f"Section '{existing.name}' changed on the server "
                    f"({existing.last_updated} -> {fresh.last_updated})"
                )
                existing.last_processed = None
                existing.last_updated = fresh.last_updated
                existing.name = fresh.name
                existing.section_id = fresh.section_id
                self._stats.sections_invalidated += 1

    async def rebuild_section(self, section: Section) -> None:
        """Rebuild the artist subtree of one section from scratch."""
        artists = await self.get_section_artists(section)
        section.artists = artists
        section.last_processed = self.clock()
        self._stats.sections_processed += 1
        self.progress.publish(
            f"Added section '{section.name}', {len(artists)} artists"
        )

    async def get_section_artists(self, section: Section) -> List[Artist]:
        """Fetch and build the artists of a section.

        Only the first ``max_artists_per_section`` artist records are
        processed. Artists without any album are dropped.
        """
        path = SECTION_ARTISTS_PATH.format(section_id=section.section_id)
        tree = await self.fetcher.fetch(path)

        records = tree.children
        if self.max_artists_per_section is not None:
            if len(records) > self.max_artists_per_section:
                logger.info(
                    "Section '%s' has %d artists, processing the first %d",
                    section.name,
                    len(records),
                    self.max_artists_per_section,
                )
            records = records[: self.max_artists_per_section]

        artists: List[Artist] = []
        for record in records:
            artist = self._build("artist", lambda: build_artist(record, section))
            if artist is None:
                continue

            self.progress.publish(f"Adding '{artist.name}'")
            artist.albums = await self.get_artist_albums(artist)
            self.progress.publish(f"...{len(artist.albums)} albums")

            if artist.albums:
                artists.append(artist)
                self._stats.artists_built += 1
        return artists

    async def get_artist_albums(self, artist: Artist) -> List[Album]:
        """Fetch the albums of an artist with their tracks.

        Track listings of all albums are fetched concurrently. Albums left
        without playable tracks are dropped. The result keeps server order.
        """
        tree = await self.fetcher.fetch(artist.key)

        built: List[Tuple[int, Album]] = []
        built_lock = asyncio.Lock()

        async def build_one(position: int, record: Mapping[str, Any]) -> None:
            album = self._build("album", lambda: build_album(record, artist))
            if album is None:
                return
            album.tracks = await self.build_tracks(album)
            if album.tracks:
                async with built_lock:
                    built.append((position, album))

        tasks = [
            asyncio.ensure_future(build_one(position, record))
            for position, record in enumerate(tree.children)
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        albums = [album for _, album in sorted(built, key=lambda item: item[0])]
        self._stats.albums_built += len(albums)
        return albums

    async def build_tracks(self, album: Album) -> List[Track]:
        """Fetch the tracks of an album, keeping only playable ones."""
        tree = await self.fetcher.fetch(album.key)
        tracks: List[Track] = []
        for record in tree.children:
            track = self._build("track", lambda: build_track(record, album))
            if track is None:
                continue
            if is_playable(track):
                tracks.append(track)
            else:
                logger.debug(f"Skipping unplayable track '{track.title}' ({track.key})")
        self._stats.tracks_built += len(tracks)
        return tracks

    def _build(self, kind: str, builder: Callable[[], Any]) -> Any:
        """Run an entity builder, skipping the record on MappingError."""
        try:
            return builder()
        except MappingError as e:
            logger.warning(f"Skipping malformed {kind} record: {e}")
            self._stats.records_skipped += 1
            self._stats.errors.append(str(e))
            return None
