"""Utility helpers for the Plex library mirror."""

from .logging_config import configure_third_party_loggers, set_log_level, setup_logging

__all__ = ["setup_logging", "set_log_level", "configure_third_party_loggers"]
