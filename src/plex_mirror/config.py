"""Configuration management for the Plex library mirror."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file from config directory or project root
config_env = Path(__file__).parent.parent.parent / "config" / ".env"
if config_env.exists():
    load_dotenv(config_env)
else:
    # Fallback to project root .env
    load_dotenv()

DEFAULT_CLIENT_IDENTIFIER = "38fc8a22-6fc5-46f2-8c6b-818e2758cfa2"


class Config:
    """Application configuration."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Plex server settings
        self.server_and_port = os.getenv("PLEX_MIRROR_SERVER", "localhost:32400")
        self.token: Optional[str] = os.getenv("PLEX_MIRROR_TOKEN") or None
        self.client_identifier = os.getenv(
            "PLEX_MIRROR_CLIENT_IDENTIFIER", DEFAULT_CLIENT_IDENTIFIER
        )
        self.request_timeout = float(os.getenv("PLEX_MIRROR_REQUEST_TIMEOUT", "30"))

        # Synchronization settings
        self.max_artists_per_section = int(
            os.getenv("PLEX_MIRROR_MAX_ARTISTS_PER_SECTION", "10")
        )

        # Snapshot settings
        default_snapshot_path = str(
            Path.home() / ".plex-mirror" / "library.snapshot.gz"
        )
        self.snapshot_path = Path(
            os.getenv("PLEX_MIRROR_SNAPSHOT_FILE", default_snapshot_path)
        )

    @property
    def base_url(self) -> str:
        """Get the HTTP base URL of the Plex server."""
        return f"http://{self.server_and_port}"


def get_config() -> Config:
    """Get application configuration."""
    return Config()
