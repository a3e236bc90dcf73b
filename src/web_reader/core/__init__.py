"""
Core module for the web reader.

Contains the exception hierarchy used throughout the application.
"""

from web_reader.core.exceptions import (
    WebReaderError,
    ConfigurationError,
    FetchError,
    ImageFetchError,
    ExtractionError,
    SizeLimitExceededError,
    LanguageDetectionError,
)

__all__ = [
    # Base
    "WebReaderError",
    "ConfigurationError",
    # Fetch
    "FetchError",
    "ImageFetchError",
    # Extraction
    "ExtractionError",
    "SizeLimitExceededError",
    # Language
    "LanguageDetectionError",
]
