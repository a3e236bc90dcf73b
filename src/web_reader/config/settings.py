"""
Pydantic settings models for the web reader.

All configuration is defined here with the defaults used by the
extraction heuristics.
"""

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

# Classes that always survive class stripping
BASELINE_CLASSES_TO_PRESERVE = ("page", "caption")


class ReaderSettings(BaseModel):
    """Extraction engine configuration."""

    max_elems_to_parse: int = Field(
        default=0,
        ge=0,
        description="Maximum number of elements to parse. 0 means no limit.",
    )
    n_top_candidates: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of top candidates kept while scoring",
    )
    char_threshold: int = Field(
        default=500,
        ge=0,
        description="Minimum characters of text an article must have to be accepted",
    )
    classes_to_preserve: list[str] = Field(
        default_factory=list,
        description="Extra class names kept when stripping class attributes",
    )
    keep_classes: bool = Field(
        default=False,
        description="Keep every class attribute in the extracted content",
    )
    debug: bool = Field(
        default=False,
        description="Record a debug trace of every extraction step",
    )
    continue_if_not_readable: bool = Field(
        default=True,
        description="Keep going when the document does not look readerable",
    )
    pattern_overrides: dict[str, str] = Field(
        default_factory=dict,
        description="Regular expressions replacing a default pattern category",
    )
    pattern_extensions: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Alternation terms added to a default pattern category",
    )

    @field_validator("classes_to_preserve", mode="after")
    @classmethod
    def include_baseline_classes(cls, v: list[str]) -> list[str]:
        """Make sure the baseline classes are always preserved."""
        merged = list(BASELINE_CLASSES_TO_PRESERVE)
        for name in v:
            if name not in merged:
                merged.append(name)
        return merged

    @field_validator("pattern_overrides", mode="after")
    @classmethod
    def validate_overrides(cls, v: dict[str, str]) -> dict[str, str]:
        """Reject overrides that are not valid regular expressions."""
        for category, expression in v.items():
            try:
                re.compile(expression)
            except re.error as e:
                raise ValueError(
                    f"Invalid pattern for {category!r}: {e}") from e
        return v


class FetchSettings(BaseModel):
    """Document and image fetching configuration."""

    timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Timeout for a single request in seconds",
    )
    user_agent: str = Field(
        default="web-reader",
        description="User agent sent with every request",
    )
    follow_redirects: bool = Field(
        default=True,
        description="Whether to follow HTTP redirects",
    )


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum logging level",
    )
    format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        description="Log message format string",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Date format for log timestamps",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path to log file. None means console only.",
    )
    max_file_size_mb: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum log file size before rotation",
    )
    backup_count: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Number of backup log files to keep",
    )
    log_to_console: bool = Field(
        default=True,
        description="Whether to output logs to console",
    )

    @field_validator("file_path", mode="before")
    @classmethod
    def convert_file_path(cls, v: str | Path | None) -> Path | None:
        """Convert string paths to Path objects."""
        if v is None:
            return None
        return Path(v) if isinstance(v, str) else v


class Settings(BaseModel):
    """
    Root configuration model containing all subsystem settings.

    Settings are loaded from YAML with environment variable overrides.
    """

    reader: ReaderSettings = Field(
        default_factory=ReaderSettings,
        description="Extraction engine settings",
    )
    fetch: FetchSettings = Field(
        default_factory=FetchSettings,
        description="Network collaborator settings",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    model_config = {
        "extra": "forbid",
        "validate_default": True,
    }
