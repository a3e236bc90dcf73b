"""
Custom exceptions for the web reader.

Provides a hierarchy of exceptions for precise error handling across
the extraction pipeline. All exceptions inherit from WebReaderError.

Exception Hierarchy:
    WebReaderError (base)
    ├── ConfigurationError
    ├── FetchError
    │   └── ImageFetchError
    ├── ExtractionError
    │   └── SizeLimitExceededError
    └── LanguageDetectionError

Content-quality failures are never raised: they are reported through
``Article.is_readable`` and ``Article.errors``. Only the size guard raises
inside the engine and it is converted into a recorded error at the
top-level parse entry point.
"""

from typing import Any


class WebReaderError(Exception):
    """
    Base exception for all web reader errors.

    All custom exceptions inherit from this class, allowing for
    catch-all handling when needed.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary with additional context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(
                f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(WebReaderError):
    """
    Error in configuration loading or validation.

    Raised when:
    - Configuration file is missing or malformed
    - Setting values fail validation
    - A pattern override is not a valid regular expression
    """

    pass


# =============================================================================
# Fetch Errors
# =============================================================================


class FetchError(WebReaderError):
    """
    Error retrieving a remote resource.

    Raised when:
    - The server answers with a non-success status
    - The connection fails or times out

    Only a single attempt is ever made; callers decide what to do next.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        if status_code:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code


class ImageFetchError(FetchError):
    """
    Error retrieving an image referenced by the article.

    Never fatal: the image is simply left out of the inventory.
    """

    pass


# =============================================================================
# Extraction Errors
# =============================================================================


class ExtractionError(WebReaderError):
    """
    Base error for content extraction operations.

    Raised for extraction failures that must abort a parse.
    """

    pass


class SizeLimitExceededError(ExtractionError):
    """
    Error when the document holds more elements than allowed.

    The message format is part of the public contract: it becomes the
    first entry of ``Article.errors``.
    """

    def __init__(
        self,
        element_count: int,
        max_elements: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["max_elements"] = max_elements
        super().__init__(
            f"Aborting parsing document; {element_count} elements found", details)
        self.element_count = element_count
        self.max_elements = max_elements

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Language Errors
# =============================================================================


class LanguageDetectionError(WebReaderError):
    """
    Failure of a language identification hook.

    Hooks may raise it directly; any other exception from a hook is
    wrapped in it. The engine logs it and keeps the language found in
    the metadata.
    """

    pass
