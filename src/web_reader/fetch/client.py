"""
HTTP access for documents and images using httpx.

A single attempt is made per request; failures surface as FetchError
(ImageFetchError for images) and callers decide what to do with them.
"""

from dataclasses import dataclass

import httpx

from web_reader.config.settings import FetchSettings
from web_reader.core.exceptions import FetchError, ImageFetchError
from web_reader.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class FetchedDocument:
    """A downloaded HTML document."""

    url: str
    html: str
    language: str | None = None
    charset: str | None = None


class DocumentFetcher:
    """
    Downloads documents and images.

    Usable as an async context manager, which owns the underlying
    client. A client passed in by the caller is never closed here.

    Example:
        >>> async with DocumentFetcher(settings.fetch) as fetcher:
        ...     document = await fetcher.fetch_document("https://example.com")
        ...     size = await fetcher.get_image_size("https://example.com/a.png")
    """

    def __init__(
        self,
        settings: FetchSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            settings: Timeout, user agent and redirect policy
            client: Optional preconfigured client (tests pass one with a mock transport)
        """
        self.settings = settings or FetchSettings()
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "DocumentFetcher":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.timeout_seconds,
                follow_redirects=self.settings.follow_redirects,
                headers={"User-Agent": self.settings.user_agent},
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        url: str,
        error_cls: type[FetchError] = FetchError,
    ) -> httpx.Response:
        client = self._ensure_client()
        try:
            response = await client.request(method, url)
        except httpx.HTTPError as e:
            raise error_cls(f"Cannot {method} resource {url}: {e}", url=url) from e

        if response.is_error:
            raise error_cls(
                f"Cannot {method} resource {url}. Status code: {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        return response

    async def fetch_document(self, url: str) -> FetchedDocument:
        """
        Download an HTML document.

        The Content-Language header, when present, becomes the
        document's language hint.

        Raises:
            FetchError: If the request fails or the status is not a success
        """
        logger.info(f"Fetching {url}")
        response = await self._request("GET", url)

        language = response.headers.get("content-language")
        if language:
            language = language.split(",")[0].strip()

        return FetchedDocument(
            url=str(response.url),
            html=response.text,
            language=language or None,
            charset=response.charset_encoding,
        )

    async def get_image_size(self, url: str) -> int:
        """
        Size of an image in bytes, from a HEAD request.

        Returns:
            The Content-Length, or 0 when the server does not send one

        Raises:
            ImageFetchError: If the request fails
        """
        response = await self._request("HEAD", url, ImageFetchError)
        try:
            return int(response.headers.get("content-length", 0))
        except ValueError:
            logger.debug(f"Invalid Content-Length for {url}")
            return 0

    async def get_image_bytes(self, url: str) -> bytes:
        """
        Download an image.

        Raises:
            ImageFetchError: If the request fails
        """
        response = await self._request("GET", url, ImageFetchError)
        return response.content
