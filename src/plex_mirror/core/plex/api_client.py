"""Plex Media Server API client.

Issues GET requests against the server and returns each response as a
normalized ``RecordTree``: the ordered list of child records, no matter
which JSON layout the server used.
"""

import asyncio
import logging
import platform
import socket
from types import TracebackType
from typing import Any, Dict, List, Optional, Protocol, Type

import aiohttp

from ...config import Config
from ...models.records import RecordTree

logger = logging.getLogger(__name__)

PRODUCT_NAME = "plex-mirror"
PRODUCT_VERSION = "0.1.0"

# Child collections of a modern MediaContainer, in the order they are read
CONTAINER_CHILD_FIELDS = ("Directory", "Metadata")
LEGACY_CHILDREN_FIELD = "_children"


class FetchError(Exception):
    """Custom exception for failed or unparseable remote fetches."""

    def __init__(self, path: str, message: str) -> None:
        """Initialize fetch error.

        Args:
            path: Resource path that was requested
            message: Description of the failure
        """
        self.path = path
        self.message = message
        super().__init__(f"Cannot fetch '{path}': {message}")


class RecordFetcher(Protocol):
    """Anything that can fetch a resource path into a record tree."""

    async def fetch(self, path: str) -> RecordTree:
        """Fetch the child records at ``path``."""
        ...


def build_plex_headers(config: Config) -> Dict[str, str]:
    """Build the client identification headers sent with every request.

    Args:
        config: Application configuration

    Returns:
        Header dictionary
    """
    headers = {
        "X-Plex-Platform": platform.system() or "Unknown",
        "X-Plex-Platform-Version": platform.release() or "Unknown",
        "X-Plex-Provides": "player",
        "X-Plex-Client-Identifier": config.client_identifier,
        "X-Plex-Product": PRODUCT_NAME,
        "X-Plex-Version": PRODUCT_VERSION,
        "X-Plex-Device": socket.gethostname(),
        "Accept": "application/json",
    }
    if config.token:
        headers["X-Plex-Token"] = config.token
    return headers


def parse_record_tree(path: str, payload: Any) -> RecordTree:
    """Normalize a decoded JSON response into a record tree.

    Supports the ``MediaContainer`` layout of current servers and the
    ``_children`` layout of older ones.

    Args:
        path: Resource path the payload was fetched from
        payload: Decoded JSON document

    Returns:
        RecordTree with the child records in server order

    Raises:
        FetchError: If the payload has no recognizable shape
    """
    if not isinstance(payload, dict):
        raise FetchError(path, f"unexpected payload type {type(payload).__name__}")

    container = payload.get("MediaContainer")
    if isinstance(container, dict):
        children: List[Dict[str, Any]] = []
        for field_name in CONTAINER_CHILD_FIELDS:
            entries = container.get(field_name) or []
            if not isinstance(entries, list):
                raise FetchError(path, f"'{field_name}' is not a list")
            children.extend(entry for entry in entries if isinstance(entry, dict))
        return RecordTree(path=path, children=children)

    if LEGACY_CHILDREN_FIELD in payload:
        entries = payload[LEGACY_CHILDREN_FIELD] or []
        if not isinstance(entries, list):
            raise FetchError(path, f"'{LEGACY_CHILDREN_FIELD}' is not a list")
        return RecordTree(
            path=path, children=[entry for entry in entries if isinstance(entry, dict)]
        )

    raise FetchError(path, "response has no child collection")


class PlexApiService:
    """Service for reading library listings from a Plex Media Server."""

    def __init__(
        self, config: Config, session: Optional[aiohttp.ClientSession] = None
    ) -> None:
        """Initialize Plex API service.

        Args:
            config: Application configuration (server address, token, timeout)
            session: Optional pre-built HTTP session, mainly for testing
        """
        self.base_url = config.base_url
        self.headers = build_plex_headers(config)
        self.timeout = aiohttp.ClientTimeout(total=config.request_timeout)
        self._session = session
        self._owns_session = session is None

    def build_url(self, path: str) -> str:
        """Build the absolute URL for a resource path."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self.headers, timeout=self.timeout
            )
            self._owns_session = True
        return self._session

    async def fetch(self, path: str) -> RecordTree:
        """Fetch a resource path and return its child records.

        Args:
            path: Resource path, e.g. ``library/sections``

        Returns:
            RecordTree with the child records in server order

        Raises:
            FetchError: If the request fails or the response is unusable
        """
        url = self.build_url(path)
        logger.debug("GET %s", url)
        try:
            async with self._get_session().get(url) as response:
                response.raise_for_status()
                payload = await response.json(content_type=None)
        except aiohttp.ClientResponseError as e:
            logger.error(f"Plex returned HTTP {e.status} for {path}")
            raise FetchError(path, f"HTTP {e.status} {e.message}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to reach Plex for {path}: {e}")
            raise FetchError(path, str(e) or type(e).__name__) from e
        except ValueError as e:
            logger.error(f"Plex returned invalid JSON for {path}: {e}")
            raise FetchError(path, f"invalid JSON: {e}") from e

        tree = parse_record_tree(path, payload)
        logger.debug("Fetched %d records from %s", len(tree), path)
        return tree

    async def close(self) -> None:
        """Close the underlying HTTP session if this service created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "PlexApiService":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.close()
