"""
Configuration settings for the journal watcher.

Handles environment variables for the event database, the HTTP query server
and the journal line source.
"""

import os
import logging
from typing import Optional
from pathlib import Path
from dataclasses import dataclass, field

from ..errors import ConfigError


def default_db_path() -> str:
    """Default location of the event database (~/.journal-watcher/events.db)."""
    return str(Path.home() / ".journal-watcher" / "events.db")


@dataclass
class DatabaseSettings:
    """Event database settings."""

    path: str = field(default_factory=default_db_path)

    @classmethod
    def from_env(cls) -> "DatabaseSettings":
        """Load database settings from environment variables."""
        return cls(path=os.getenv("WATCHER_DB_PATH") or default_db_path())


@dataclass
class ServerSettings:
    """Query server configuration settings."""

    host: str = "localhost"
    port: int = 6767
    log_level: str = "info"
    # Seconds a request may wait for the store lock; None waits forever
    query_lock_timeout: Optional[float] = None

    @classmethod
    def from_env(cls) -> "ServerSettings":
        """Load server settings from environment variables."""
        timeout = os.getenv("WATCHER_QUERY_LOCK_TIMEOUT")
        try:
            return cls(
                host=os.getenv("WATCHER_HOST", "localhost"),
                port=int(os.getenv("WATCHER_PORT", "6767")),
                log_level=os.getenv("LOG_LEVEL", "info").lower(),
                query_lock_timeout=float(timeout) if timeout else None,
            )
        except ValueError as e:
            raise ConfigError(f"Invalid server setting in environment: {e}")


@dataclass
class SourceSettings:
    """Line source settings."""

    journalctl: str = "journalctl"

    @classmethod
    def from_env(cls) -> "SourceSettings":
        """Load source settings from environment variables."""
        return cls(journalctl=os.getenv("WATCHER_JOURNALCTL", "journalctl"))


@dataclass
class ApplicationSettings:
    """Main application settings container."""

    database: DatabaseSettings
    server: ServerSettings
    source: SourceSettings

    @classmethod
    def from_env(cls) -> "ApplicationSettings":
        """Load all settings from environment variables."""
        return cls(
            database=DatabaseSettings.from_env(),
            server=ServerSettings.from_env(),
            source=SourceSettings.from_env(),
        )

    def validate(self):
        """Validate configuration settings."""
        errors = []

        if not (1 <= self.server.port <= 65535):
            errors.append(f"Invalid port number: {self.server.port}")

        timeout = self.server.query_lock_timeout
        if timeout is not None and timeout <= 0:
            errors.append(f"Query lock timeout must be positive: {timeout}")

        if not self.database.path:
            errors.append("Database path must not be empty")

        if errors:
            raise ConfigError(f"Configuration validation failed: {'; '.join(errors)}")

    def log_configuration(self):
        """Log current configuration."""
        logger = logging.getLogger(__name__)

        logger.info("=== Watcher Configuration ===")
        logger.info(f"Database: SQLite ({self.database.path})")
        logger.info(f"Server: {self.server.host}:{self.server.port}")
        logger.info(f"Log Level: {self.server.log_level}")
        if self.server.query_lock_timeout is not None:
            logger.info(f"Query Lock Timeout: {self.server.query_lock_timeout}s")
        logger.info(f"journalctl: {self.source.journalctl}")
        logger.info("=== End Configuration ===")


# Global settings instance
settings = ApplicationSettings.from_env()


def get_settings() -> ApplicationSettings:
    """Get the global settings instance."""
    return settings


def reload_settings() -> ApplicationSettings:
    """Reload settings from environment variables."""
    global settings
    settings = ApplicationSettings.from_env()
    return settings
