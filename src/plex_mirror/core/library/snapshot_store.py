"""Persistence of the section tree as a compressed snapshot file.

The whole tree is encoded with pydantic and compressed with gzip at the
highest level. Every save and load handles the complete tree; there is no
delta format and no partial recovery from a damaged file.
"""

import gzip
import logging
import os
import tempfile
import zlib
from pathlib import Path
from typing import List, Union

from pydantic import BaseModel, ValidationError

from ...models.models import Section

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT_VERSION = 1
COMPRESS_LEVEL = 9


class PersistenceError(Exception):
    """Raised when a snapshot cannot be written or read."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"Snapshot '{path}': {message}")


class LibrarySnapshot(BaseModel):
    """On-disk envelope of the section tree."""

    version: int = SNAPSHOT_FORMAT_VERSION
    sections: List[Section] = []


class SnapshotStore:
    """Reads and writes section tree snapshots."""

    def __init__(self, compress_level: int = COMPRESS_LEVEL) -> None:
        self.compress_level = compress_level

    def encode(self, sections: List[Section]) -> bytes:
        """Encode a section tree into compressed snapshot bytes."""
        snapshot = LibrarySnapshot(sections=sections)
        payload = snapshot.model_dump_json().encode("utf-8")
        return gzip.compress(payload, compresslevel=self.compress_level)

    def decode(self, data: bytes, source: Path) -> List[Section]:
        """Decode compressed snapshot bytes into a section tree.

        Raises:
            PersistenceError: If the data is corrupt or not a snapshot
        """
        try:
            payload = gzip.decompress(data)
            snapshot = LibrarySnapshot.model_validate_json(payload)
        except (OSError, EOFError, zlib.error) as e:
            raise PersistenceError(source, f"corrupt compressed data: {e}") from e
        except (ValidationError, UnicodeDecodeError) as e:
            raise PersistenceError(source, f"malformed snapshot: {e}") from e

        if snapshot.version != SNAPSHOT_FORMAT_VERSION:
            raise PersistenceError(
                source, f"unsupported snapshot version {snapshot.version}"
            )
        return snapshot.sections

    def save(self, sections: List[Section], destination: Union[str, Path]) -> None:
        """Write the full section tree to ``destination``.

        The file is written to a temporary sibling and moved into place, so
        an interrupted save never leaves a truncated snapshot behind.

        Raises:
            PersistenceError: If the file cannot be written
        """
        path = Path(destination)
        data = self.encode(sections)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "wb") as tmp_file:
                    tmp_file.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error(f"Failed to save snapshot to {path}: {e}")
            raise PersistenceError(path, f"cannot write: {e}") from e

        logger.info(
            f"Saved snapshot with {len(sections)} sections to {path} "
            f"({len(data)} bytes)"
        )

    def load(self, source: Union[str, Path]) -> List[Section]:
        """Read a full section tree from ``source``.

        Raises:
            PersistenceError: If the file cannot be read or decoded
        """
        path = Path(source)
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.error(f"Failed to read snapshot {path}: {e}")
            raise PersistenceError(path, f"cannot read: {e}") from e

        sections = self.decode(data, path)
        logger.info(f"Loaded snapshot with {len(sections)} sections from {path}")
        return sections
