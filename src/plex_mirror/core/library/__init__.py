"""Library module.

Holds the cached section tree: lookup index, snapshot persistence and the
service that ties them to synchronization.
"""

from .index import IndexTables, LibraryIndex, NotFoundError, build_index
from .service import MusicLibraryService, create_library_service
from .snapshot_store import LibrarySnapshot, PersistenceError, SnapshotStore

__all__ = [
    "IndexTables",
    "LibraryIndex",
    "NotFoundError",
    "build_index",
    "LibrarySnapshot",
    "PersistenceError",
    "SnapshotStore",
    "MusicLibraryService",
    "create_library_service",
]
