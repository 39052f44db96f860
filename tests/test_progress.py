"""Tests for progress notifications."""

import asyncio
from io import StringIO

import pytest
from rich.console import Console

from plex_mirror.core.sync import ConsoleProgressReporter, ProgressFeed


def make_console():
    """Create a console writing to a buffer."""
    return Console(file=StringIO(), width=120, color_system=None)


class TestProgressFeed:
    """Test the progress feed."""

    def test_publish_and_drain(self):
        """Test that published messages are drained in order."""
        feed = ProgressFeed()

        feed.publish("first")
        feed.publish("second")

        assert feed.drain() == ["first", "second"]
        assert feed.drain() == []

    def test_bounded_feed_drops_oldest(self):
        """Test that a full feed discards the oldest message."""
        feed = ProgressFeed(maxsize=2)

        for message in ["a", "b", "c", "d"]:
            feed.publish(message)

        assert feed.drain() == ["c", "d"]
        assert feed.dropped == 2

    def test_publish_after_close_is_ignored(self):
        """Test that a closed feed accepts no more messages."""
        feed = ProgressFeed()
        feed.publish("before")
        feed.close()
        feed.close()

        feed.publish("after")

        assert feed.drain() == ["before"]

    def test_publish_logs_message(self, caplog):
        """Test that every message is also logged."""
        feed = ProgressFeed()

        with caplog.at_level("INFO", logger="plex_mirror.core.sync.progress"):
            feed.publish("Merging music data")

        assert "Merging music data" in caplog.text

    @pytest.mark.asyncio
    async def test_async_iteration_until_closed(self):
        """Test that a consumer receives messages until close."""
        feed = ProgressFeed()

        async def produce():
            for message in ["one", "two", "three"]:
                feed.publish(message)
                await asyncio.sleep(0)
            feed.close()

        producer = asyncio.create_task(produce())
        received = [message async for message in feed]
        await producer

        assert received == ["one", "two", "three"]


class TestConsoleProgressReporter:
    """Test the console consumer."""

    def test_verbose_prints_everything(self):
        """Test that verbose mode prints every message."""
        console = make_console()
        reporter = ConsoleProgressReporter(console)

        reporter("Getting music section details")
        reporter("Adding 'ABBA'")
        reporter("...2 albums")

        output = console.file.getvalue()
        assert "Adding 'ABBA'" in output
        assert "...2 albums" in output
        assert reporter.printed == 3

    def test_quiet_skips_artist_messages(self):
        """Test that quiet mode only prints section-level messages."""
        console = make_console()
        reporter = ConsoleProgressReporter(console, verbose=False)

        reporter("Getting music section details")
        reporter("Adding 'ABBA'")
        reporter("...2 albums")
        reporter("Added section 'Music', 1 artists")

        output = console.file.getvalue()
        assert "Adding" not in output
        assert "albums" not in output
        assert "Added section 'Music'" in output
        assert reporter.printed == 2

    @pytest.mark.asyncio
    async def test_consume(self):
        """Test consuming a closed feed."""
        console = make_console()
        reporter = ConsoleProgressReporter(console)
        feed = ProgressFeed()
        feed.publish("Merging music data")
        feed.close()

        await reporter.consume(feed)

        assert "Merging music data" in console.file.getvalue()
        assert reporter.printed == 1
