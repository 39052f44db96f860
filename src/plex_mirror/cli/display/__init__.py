"""CLI display and formatting utilities."""

from .formatters import display_entity, display_sections, display_sync_summary

__all__ = [
    "display_entity",
    "display_sections",
    "display_sync_summary",
]
