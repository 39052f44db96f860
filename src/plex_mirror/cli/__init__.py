"""Command-line interface for the Plex library mirror."""
