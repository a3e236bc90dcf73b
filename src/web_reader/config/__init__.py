"""
Configuration module for the web reader.

Provides Pydantic-based settings management with YAML file support
and environment variable overrides.
"""

from web_reader.config.settings import (
    Settings,
    ReaderSettings,
    FetchSettings,
    LoggingSettings,
    BASELINE_CLASSES_TO_PRESERVE,
)
from web_reader.config.loader import load_config, get_settings, reset_settings

__all__ = [
    "Settings",
    "ReaderSettings",
    "FetchSettings",
    "LoggingSettings",
    "BASELINE_CLASSES_TO_PRESERVE",
    "load_config",
    "get_settings",
    "reset_settings",
]
