"""
Configuration module for the journal watcher.

Provides environment-driven settings and the event definition file loader.
"""

from .settings import (
    ApplicationSettings,
    DatabaseSettings,
    ServerSettings,
    SourceSettings,
    default_db_path,
    get_settings,
    reload_settings,
)
from .loader import DefinitionLoader, load_definitions, load_raw_definitions

__all__ = [
    "ApplicationSettings",
    "DatabaseSettings",
    "ServerSettings",
    "SourceSettings",
    "default_db_path",
    "get_settings",
    "reload_settings",
    "DefinitionLoader",
    "load_definitions",
    "load_raw_definitions",
]
