"""Music library service: the entry point for callers.

The service owns the cached section tree and its index. It is constructed
explicitly (see ``create_library_service``) and handed to whoever needs
it. Synchronization is async; snapshot load/save and lookups are plain
calls that may run on other threads.
"""

import asyncio
import logging
import threading
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import List, Optional, Type, Union

from ...config import Config, get_config
from ...models.models import Album, Artist, Section, Track
from ..plex.api_client import PlexApiService, RecordFetcher
from ..sync.progress import ProgressFeed
from ..sync.synchronizer import SectionSynchronizer, SyncStatistics
from .index import LibraryIndex
from .snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

# Messages kept by the default progress feed when nobody consumes it
DEFAULT_PROGRESS_BACKLOG = 1000


class MusicLibraryService:
    """Cached, queryable mirror of the Plex music library."""

    def __init__(
        self,
        config: Config,
        fetcher: Optional[RecordFetcher] = None,
        snapshot_store: Optional[SnapshotStore] = None,
        progress: Optional[ProgressFeed] = None,
    ) -> None:
        """Initialize music library service.

        Args:
            config: Application configuration, read once here
            fetcher: Record source; defaults to a PlexApiService for the
                configured server
            snapshot_store: Snapshot persistence; defaults to SnapshotStore()
            progress: Feed receiving synchronization messages; defaults to a
                feed holding at most DEFAULT_PROGRESS_BACKLOG messages
        """
        self.server_and_port = config.server_and_port
        self.snapshot_path = config.snapshot_path
        self.max_artists_per_section = config.max_artists_per_section

        self._owns_fetcher = fetcher is None
        self.fetcher: RecordFetcher = (
            fetcher if fetcher is not None else PlexApiService(config)
        )
        self.snapshot_store = (
            snapshot_store if snapshot_store is not None else SnapshotStore()
        )
        self.progress = (
            progress
            if progress is not None
            else ProgressFeed(maxsize=DEFAULT_PROGRESS_BACKLOG)
        )

        self._tree_lock = threading.RLock()
        self._index = LibraryIndex(lock=self._tree_lock)
        self._sections: Optional[List[Section]] = None
        self._sync_lock = asyncio.Lock()
        self._init_lock = asyncio.Lock()
        self._initialized = False
        self.last_sync_stats: Optional[SyncStatistics] = None

    @property
    def sections(self) -> List[Section]:
        """The cached section tree (empty before the first load or sync)."""
        with self._tree_lock:
            return list(self._sections or [])

    @property
    def is_loaded(self) -> bool:
        """Check whether a section tree is held in memory."""
        return self._sections is not None

    def load_music_section_details(
        self, path: Optional[Union[str, Path]] = None
    ) -> List[Section]:
        """Replace the cached tree with a snapshot and rebuild the index.

        Args:
            path: Snapshot file; defaults to the configured snapshot path

        Raises:
            PersistenceError: If the snapshot cannot be read
        """
        source = Path(path) if path is not None else self.snapshot_path
        with self._tree_lock:
            sections = self.snapshot_store.load(source)
            self._sections = sections
            self._index.rebuild(sections)
        return sections

    def save_music_section_details(
        self, path: Optional[Union[str, Path]] = None
    ) -> None:
        """Write the cached tree to a snapshot.

        Args:
            path: Snapshot file; defaults to the configured snapshot path

        Raises:
            PersistenceError: If the snapshot cannot be written
        """
        destination = Path(path) if path is not None else self.snapshot_path
        with self._tree_lock:
            self.snapshot_store.save(self._sections or [], destination)

    async def get_music_section_details(self) -> List[Section]:
        """Synchronize the cached tree with the server and rebuild the index.

        Concurrent calls are serialized. The synchronization works on a copy
        of the tree that replaces the cached tree when the run ends. If a
        snapshot was loaded in the meantime, the loaded tree wins and the
        synchronized copy is discarded.

        Raises:
            FetchError: If a remote fetch fails; the tree keeps whatever was
                merged so far and unfinished sections stay pending
        """
        async with self._sync_lock:
            synchronizer = SectionSynchronizer(
                fetcher=self.fetcher,
                progress=self.progress,
                max_artists_per_section=self.max_artists_per_section,
            )
            # Synchronize a private copy; readers only ever see whole trees
            with self._tree_lock:
                base = self._sections
                working = [section.model_copy(deep=True) for section in base or []]
            try:
                await synchronizer.synchronize(working)
            finally:
                self.last_sync_stats = synchronizer.stats
                with self._tree_lock:
                    if self._sections is base:
                        self._sections = working
                    else:
                        logger.warning(
                            "Section tree was replaced during synchronization; "
                            "discarding the synchronized copy"
                        )
                    self._index.rebuild(self._sections)
                    sections = list(self._sections or [])
            return sections

    async def ensure_loaded(self) -> None:
        """Make sure a section tree is available, once.

        Loads the configured snapshot when it exists, and synchronizes with
        the server otherwise. Later calls return immediately.
        """
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            if self.snapshot_path.exists():
                logger.info(f"Loading cached library from {self.snapshot_path}")
                self.load_music_section_details(self.snapshot_path)
            else:
                logger.info("No cached library found; synchronizing with Plex")
                await self.get_music_section_details()
            self._initialized = True

    def determine_music_library_last_update_date(self) -> Optional[datetime]:
        """Get the latest server update time across the cached sections.

        Returns:
            The newest ``last_updated`` value, or None when nothing is cached
        """
        with self._tree_lock:
            sections = self._sections or []
            if not sections:
                return None
            return max(section.last_updated for section in sections)

    def lookup_track(self, key: str) -> Track:
        """Get a cached track by key (raises NotFoundError)."""
        return self._index.lookup_track(key)

    def lookup_album(self, key: str) -> Album:
        """Get a cached album by key (raises NotFoundError)."""
        return self._index.lookup_album(key)

    def lookup_artist(self, key: str) -> Artist:
        """Get a cached artist by key (raises NotFoundError)."""
        return self._index.lookup_artist(key)

    async def close(self) -> None:
        """Release the fetcher if this service created it."""
        if self._owns_fetcher and isinstance(self.fetcher, PlexApiService):
            await self.fetcher.close()
        self.progress.close()

    async def __aenter__(self) -> "MusicLibraryService":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.close()


def create_library_service(
    config: Optional[Config] = None,
    fetcher: Optional[RecordFetcher] = None,
    progress: Optional[ProgressFeed] = None,
) -> MusicLibraryService:
    """Create a configured music library service.

    Args:
        config: Application configuration; read from the environment if None
        fetcher: Optional record source replacing the Plex HTTP client
        progress: Optional progress feed

    Returns:
        A MusicLibraryService instance
    """
    return MusicLibraryService(
        config or get_config(), fetcher=fetcher, progress=progress
    )
