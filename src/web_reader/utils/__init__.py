"""
Utilities module for the web reader.

Provides logging setup and URI resolution helpers.
"""

from web_reader.utils.logging import setup_logging, get_logger
from web_reader.utils.uri import (
    to_absolute,
    absolutize_srcset,
    get_base,
    get_path_base,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    # URIs
    "to_absolute",
    "absolutize_srcset",
    "get_base",
    "get_path_base",
]
