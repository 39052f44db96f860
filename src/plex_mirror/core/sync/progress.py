"""Progress notifications for library synchronization.

The synchronizer publishes free-text status messages to a ``ProgressFeed``.
Publishing never waits for a consumer; a UI or log drains the feed on its
own schedule.
"""

import asyncio
import logging
from typing import AsyncIterator, List, Optional

from rich.console import Console

logger = logging.getLogger(__name__)


class ProgressFeed:
    """Stream of human-readable progress messages."""

    def __init__(self, maxsize: int = 0) -> None:
        """Initialize progress feed.

        Args:
            maxsize: Maximum number of undelivered messages (0 = unbounded).
                When a bounded feed is full the oldest message is dropped.
        """
        self.maxsize = maxsize
        self._queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue(maxsize=maxsize)
        self._dropped = 0
        self._closed = False

    @property
    def dropped(self) -> int:
        """Number of messages discarded because the feed was full."""
        return self._dropped

    def qsize(self) -> int:
        """Number of messages waiting to be consumed."""
        return self._queue.qsize()

    def publish(self, message: str) -> None:
        """Publish a message without waiting for a consumer.

        Args:
            message: Status message
        """
        logger.info(message)
        if self._closed:
            return
        self._put(message)

    def close(self) -> None:
        """Signal consumers that no more messages will follow."""
        if self._closed:
            return
        self._closed = True
        self._put(None)

    def _put(self, item: Optional[str]) -> None:
        while True:
            try:
                self._queue.put_nowait(item)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()
                self._dropped += 1

    def drain(self) -> List[str]:
        """Take every message currently waiting in the feed."""
        messages: List[str] = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is not None:
                messages.append(item)
        return messages

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            item = await self._queue.get()
            if item is None:
                return
            yield item


class ConsoleProgressReporter:
    """Console consumer that prints progress messages."""

    def __init__(self, console: Optional[Console] = None, verbose: bool = True):
        """Initialize console reporter.

        Args:
            console: Rich console to print to
            verbose: Whether to print per-artist messages
        """
        self.console = console or Console()
        self.verbose = verbose
        self.printed = 0

    def __call__(self, message: str) -> None:
        """Print a single progress message."""
        if not self.verbose and message.startswith(("Adding", "...")):
            return
        self.console.print(f"  [dim]{message}[/dim]")
        self.printed += 1

    async def consume(self, feed: ProgressFeed) -> None:
        """Print messages from a feed until it is closed."""
        async for message in feed:
            self(message)
