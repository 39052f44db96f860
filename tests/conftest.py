"""Shared fixtures: a scripted in-memory Plex server."""

import asyncio
import copy
from typing import Any, Dict, List, Optional

import pytest

from plex_mirror.config import Config
from plex_mirror.core.plex import FetchError
from plex_mirror.models.records import RecordTree


class FakePlexServer:
    """In-memory stand-in for the Plex server, usable as a RecordFetcher.

    Responses are built with the ``add_*`` helpers. Every fetch is recorded
    in ``calls`` and the number of concurrent fetches is tracked.
    """

    def __init__(self) -> None:
        self.responses: Dict[str, List[Dict[str, Any]]] = {"library/sections": []}
        self.failures: Dict[str, Exception] = {}
        self.delays: Dict[str, float] = {}
        self.default_delay = 0.0
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    # -- building responses ------------------------------------------------

    def add_section(
        self,
        section_id: str = "1",
        title: str = "Music",
        updated_at: int = 1_600_000_000,
        uuid: Optional[str] = None,
        section_type: str = "artist",
    ) -> Dict[str, Any]:
        record = {
            "key": section_id,
            "title": title,
            "type": section_type,
            "uuid": uuid or f"uuid-{section_id}",
            "updatedAt": updated_at,
        }
        self.responses["library/sections"].append(record)
        self.responses.setdefault(f"library/sections/{section_id}/all", [])
        return record

    def set_section_updated_at(self, section_id: str, updated_at: int) -> None:
        for record in self.responses["library/sections"]:
            if record["key"] == section_id:
                record["updatedAt"] = updated_at

    def add_artist(self, section_id: str, artist_id: int, title: str) -> str:
        key = f"/library/metadata/{artist_id}/children"
        self.responses[f"library/sections/{section_id}/all"].append(
            {"key": key, "ratingKey": str(artist_id), "title": title, "type": "artist"}
        )
        self.responses.setdefault(key, [])
        return key

    def add_album(
        self, artist_key: str, album_id: int, title: str, year: Optional[int] = None
    ) -> str:
        key = f"/library/metadata/{album_id}/children"
        record: Dict[str, Any] = {
            "key": key,
            "ratingKey": str(album_id),
            "title": title,
        }
        if year is not None:
            record["year"] = year
        self.responses[artist_key].append(record)
        self.responses.setdefault(key, [])
        return key

    def add_track(
        self,
        album_key: str,
        track_id: int,
        title: str,
        duration: Optional[int] = 180_000,
        index: Optional[int] = None,
    ) -> str:
        key = f"/library/metadata/{track_id}"
        record: Dict[str, Any] = {
            "key": key,
            "ratingKey": str(track_id),
            "title": title,
            "Media": [{"Part": [{"key": f"/library/parts/{track_id}/file.flac"}]}],
        }
        if duration is not None:
            record["duration"] = duration
        if index is not None:
            record["index"] = index
        self.responses[album_key].append(record)
        return key

    def add_raw(self, path: str, record: Dict[str, Any]) -> None:
        self.responses.setdefault(path, []).append(record)

    def fail(self, path: str, error: Optional[Exception] = None) -> None:
        self.failures[path] = error or FetchError(path, "HTTP 500 Internal Error")

    def heal(self, path: str) -> None:
        self.failures.pop(path, None)

    # -- RecordFetcher ------------------------------------------------------

    async def fetch(self, path: str) -> RecordTree:
        self.calls.append(path)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(path, self.default_delay))
            if path in self.failures:
                raise self.failures[path]
            if path not in self.responses:
                raise FetchError(path, "HTTP 404 Not Found")
            return RecordTree(path=path, children=copy.deepcopy(self.responses[path]))
        finally:
            self.in_flight -= 1


@pytest.fixture
def plex_server():
    """Create an empty fake Plex server."""
    return FakePlexServer()


@pytest.fixture
def music_server(plex_server):
    """Fake server with one music section: 2 artists, 3 albums, 5 tracks."""
    plex_server.add_section("1", "Music", updated_at=1_600_000_000)
    plex_server.add_section("2", "Movies", section_type="movie")

    abba = plex_server.add_artist("1", 10, "ABBA")
    arrival = plex_server.add_album(abba, 20, "Arrival", year=1976)
    plex_server.add_track(arrival, 30, "Tiger", index=1)
    plex_server.add_track(arrival, 31, "Dancing Queen", index=2)
    voulez = plex_server.add_album(abba, 21, "Voulez-Vous", year=1979)
    plex_server.add_track(voulez, 32, "As Good as New", index=1)

    bowie = plex_server.add_artist("1", 11, "David Bowie")
    low = plex_server.add_album(bowie, 22, "Low", year=1977)
    plex_server.add_track(low, 33, "Speed of Life", index=1)
    plex_server.add_track(low, 34, "Breaking Glass", index=2)
    return plex_server


@pytest.fixture
def config(tmp_path, monkeypatch):
    """Configuration pointing at a temporary snapshot file."""
    monkeypatch.setenv("PLEX_MIRROR_SERVER", "plex.local:32400")
    monkeypatch.setenv("PLEX_MIRROR_SNAPSHOT_FILE", str(tmp_path / "library.gz"))
    monkeypatch.delenv("PLEX_MIRROR_TOKEN", raising=False)
    monkeypatch.delenv("PLEX_MIRROR_MAX_ARTISTS_PER_SECTION", raising=False)
    return Config()
