"""Synchronization module.

Handles reconciling the cached section tree with the server and reporting
progress while doing so.
"""

from .progress import ConsoleProgressReporter, ProgressFeed
from .synchronizer import (
    DEFAULT_MAX_ARTISTS_PER_SECTION,
    SectionSynchronizer,
    SyncStatistics,
)

__all__ = [
    "DEFAULT_MAX_ARTISTS_PER_SECTION",
    "SectionSynchronizer",
    "SyncStatistics",
    "ProgressFeed",
    "ConsoleProgressReporter",
]
