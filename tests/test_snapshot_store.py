"""Tests for snapshot persistence."""

import gzip
import json
from datetime import datetime, timezone

import pytest

from plex_mirror.core.library import LibrarySnapshot, PersistenceError, SnapshotStore
from plex_mirror.models import Album, Artist, Section, Track


@pytest.fixture
def sections():
    """A small section tree with a pending and a processed section."""
    track = Track(
        key="/library/metadata/30",
        title="Dancing Queen",
        album_key="/library/metadata/20/children",
        duration=230_000,
        index=2,
        part_key="/library/parts/30/file.flac",
    )
    album = Album(
        key="/library/metadata/20/children",
        title="Arrival",
        artist_key="/library/metadata/10/children",
        year=1976,
        tracks=[track],
    )
    artist = Artist(
        key="/library/metadata/10/children",
        name="ABBA",
        section_key="uuid-1",
        albums=[album],
    )
    return [
        Section(
            key="uuid-1",
            section_id="1",
            name="Music",
            last_updated=datetime(2024, 1, 1, tzinfo=timezone.utc),
            last_processed=datetime(2024, 1, 2, 8, 30, tzinfo=timezone.utc),
            artists=[artist],
        ),
        Section(
            key="uuid-3",
            section_id="3",
            name="Audiobooks",
            last_updated=datetime(2024, 2, 1, tzinfo=timezone.utc),
        ),
    ]


class TestSaveAndLoad:
    """Test writing and reading snapshot files."""

    def test_round_trip(self, tmp_path, sections):
        """Test that a loaded tree equals the saved one."""
        store = SnapshotStore()
        path = tmp_path / "library.gz"

        store.save(sections, path)
        loaded = store.load(path)

        assert loaded == sections
        assert loaded[1].is_pending is True
        assert loaded[0].last_processed.tzinfo is not None

    def test_empty_tree(self, tmp_path):
        """Test saving and loading an empty tree."""
        store = SnapshotStore()
        path = tmp_path / "empty.gz"

        store.save([], path)

        assert store.load(path) == []

    def test_file_is_gzip_json(self, tmp_path, sections):
        """Test the on-disk format."""
        path = tmp_path / "library.gz"

        SnapshotStore().save(sections, path)

        document = json.loads(gzip.decompress(path.read_bytes()))
        assert document["version"] == 1
        assert [s["name"] for s in document["sections"]] == ["Music", "Audiobooks"]

    def test_creates_parent_directory(self, tmp_path, sections):
        """Test that missing parent directories are created."""
        path = tmp_path / "nested" / "dir" / "library.gz"

        SnapshotStore().save(sections, path)

        assert path.exists()

    def test_no_temporary_files_left(self, tmp_path, sections):
        """Test that the atomic write cleans up after itself."""
        path = tmp_path / "library.gz"

        SnapshotStore().save(sections, path)
        SnapshotStore().save(sections, path)

        assert [p.name for p in tmp_path.iterdir()] == ["library.gz"]

    def test_unwritable_destination(self, tmp_path, sections):
        """Test that write failures raise PersistenceError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(PersistenceError) as exc_info:
            SnapshotStore().save(sections, blocker / "library.gz")

        assert "cannot write" in str(exc_info.value)


class TestLoadErrors:
    """Test rejection of unusable snapshot files."""

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises PersistenceError."""
        path = tmp_path / "missing.gz"

        with pytest.raises(PersistenceError) as exc_info:
            SnapshotStore().load(path)

        assert exc_info.value.path == path
        assert "cannot read" in str(exc_info.value)

    def test_not_gzip(self, tmp_path):
        """Test that non-gzip data is reported as corrupt."""
        path = tmp_path / "library.gz"
        path.write_bytes(b"definitely not gzip")

        with pytest.raises(PersistenceError) as exc_info:
            SnapshotStore().load(path)

        assert "corrupt" in str(exc_info.value)

    def test_truncated_file(self, tmp_path, sections):
        """Test that a truncated snapshot is reported as corrupt."""
        path = tmp_path / "library.gz"
        data = SnapshotStore().encode(sections)
        path.write_bytes(data[: len(data) // 2])

        with pytest.raises(PersistenceError):
            SnapshotStore().load(path)

    def test_invalid_json(self, tmp_path):
        """Test that gzip data without a JSON document is rejected."""
        path = tmp_path / "library.gz"
        path.write_bytes(gzip.compress(b"{not json"))

        with pytest.raises(PersistenceError) as exc_info:
            SnapshotStore().load(path)

        assert "malformed" in str(exc_info.value)

    def test_wrong_structure(self, tmp_path):
        """Test that JSON not shaped like a snapshot is rejected."""
        path = tmp_path / "library.gz"
        path.write_bytes(gzip.compress(b'{"sections": [{"name": 5}]}'))

        with pytest.raises(PersistenceError) as exc_info:
            SnapshotStore().load(path)

        assert "malformed" in str(exc_info.value)

    def test_unsupported_version(self, tmp_path):
        """Test that snapshots from another format version are rejected."""
        path = tmp_path / "library.gz"
        payload = LibrarySnapshot(version=99).model_dump_json().encode("utf-8")
        path.write_bytes(gzip.compress(payload))

        with pytest.raises(PersistenceError) as exc_info:
            SnapshotStore().load(path)

        assert "unsupported snapshot version 99" in str(exc_info.value)
