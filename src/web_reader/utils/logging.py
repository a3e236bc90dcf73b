"""
Logging helpers for the web reader.

The library only creates loggers under the ``web_reader`` namespace;
handlers are installed by applications (the CLI) through setup_logging.
Parse-level messages carry the document URL through LoggerAdapter, and
the optional debug trace of the extraction engine goes through
DebugTrace.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from web_reader.config.settings import LoggingSettings


ROOT_LOGGER_NAME = "web_reader"

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logging_configured = False


def setup_logging(
    settings: "LoggingSettings | None" = None,
    level: str | None = None,
) -> logging.Logger:
    """
    Install console and file handlers on the ``web_reader`` logger.

    Calling it again only changes the level, so the CLI callback and an
    embedding application can both call it safely.

    Args:
        settings: Logging configuration; console output at INFO when None
        level: Level name taking precedence over ``settings.level``

    Returns:
        The ``web_reader`` logger
    """
    global _logging_configured

    logger = logging.getLogger(ROOT_LOGGER_NAME)

    if _logging_configured:
        if level is not None:
            logger.setLevel(getattr(logging, level))
        return logger

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    log_level = getattr(logging, level or (settings.level if settings else "INFO"))
    formatter = logging.Formatter(
        fmt=settings.format if settings else _DEFAULT_FORMAT,
        datefmt=settings.date_format if settings else _DEFAULT_DATE_FORMAT,
    )

    handlers: list[logging.Handler] = []
    if settings is None or settings.log_to_console:
        # stdout is reserved for extracted content
        handlers.append(logging.StreamHandler(sys.stderr))

    if settings is not None and settings.file_path is not None:
        settings.file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            filename=str(settings.file_path),
            maxBytes=settings.max_file_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        ))

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(log_level)
    logger.propagate = False
    _logging_configured = True

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a logger below the ``web_reader`` namespace.

    Example:
        >>> get_logger("extraction").name
        'web_reader.extraction'
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def reset_logging() -> None:
    """Remove the installed handlers and restore propagation. Used by tests."""
    global _logging_configured

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    _logging_configured = False


class LoggerAdapter(logging.LoggerAdapter):
    """
    Appends ``[key=value]`` context to every message.

    Example:
        >>> log = LoggerAdapter(get_logger(__name__), {"url": "https://example.com"})
        >>> log.info("Article parsed")  # "Article parsed [url=https://example.com]"
    """

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        if self.extra:
            context = " ".join(f"[{key}={value}]" for key, value in self.extra.items())
            msg = f"{msg} {context}"
        return msg, kwargs


def get_logger_with_context(name: str | None = None, **context: str) -> LoggerAdapter:
    return LoggerAdapter(get_logger(name), context)


class DebugTrace:
    """
    Debug trace for a single parse.

    Messages go to the module logger at DEBUG level and, when given,
    to a user supplied sink (for instance a list's ``append``).
    """

    def __init__(
        self,
        logger: logging.Logger | logging.LoggerAdapter,
        sink: Callable[[str], None] | None = None,
        enabled: bool = False,
    ) -> None:
        self._logger = logger
        self._sink = sink
        self.enabled = enabled or sink is not None

    def __call__(self, message: str) -> None:
        self._logger.debug(message)
        if self._sink is not None:
            self._sink(message)
