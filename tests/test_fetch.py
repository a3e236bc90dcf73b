"""
Tests for document and image fetching.

Uses httpx's mock transport, no network access needed.
"""

import httpx
import pytest

from web_reader import Reader
from web_reader.config.settings import FetchSettings
from web_reader.core.exceptions import FetchError, ImageFetchError
from web_reader.fetch import DocumentFetcher

PAGE = "<html><body><p>Hello</p></body></html>"


def _handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/article":
        return httpx.Response(
            200,
            text=PAGE,
            headers={"Content-Type": "text/html; charset=utf-8", "Content-Language": "de, en"},
        )
    if path == "/plain":
        return httpx.Response(200, text=PAGE)
    if path == "/image.png":
        if request.method == "HEAD":
            return httpx.Response(200, headers={"Content-Length": "120000"})
        return httpx.Response(200, content=b"\x89PNG")
    if path == "/bad-length.png":
        return httpx.Response(200, headers={"Content-Length": "unknown"})
    if path == "/down":
        raise httpx.ConnectError("Connection refused", request=request)
    return httpx.Response(404)


@pytest.fixture
def mock_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(_handler))


class TestDocumentFetcher:
    """Tests for DocumentFetcher."""

    @pytest.mark.asyncio
    async def test_fetch_document(self, mock_client):
        fetcher = DocumentFetcher(client=mock_client)

        document = await fetcher.fetch_document("https://example.com/article")

        assert document.url == "https://example.com/article"
        assert document.html == PAGE
        assert document.language == "de"
        assert document.charset == "utf-8"

    @pytest.mark.asyncio
    async def test_fetch_document_without_language(self, mock_client):
        fetcher = DocumentFetcher(client=mock_client)

        document = await fetcher.fetch_document("https://example.com/plain")

        assert document.language is None

    @pytest.mark.asyncio
    async def test_error_status(self, mock_client):
        fetcher = DocumentFetcher(client=mock_client)

        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch_document("https://example.com/missing")

        assert exc_info.value.status_code == 404
        assert "Status code: 404" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_connection_error(self, mock_client):
        fetcher = DocumentFetcher(client=mock_client)

        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch_document("https://example.com/down")

        assert exc_info.value.url == "https://example.com/down"
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_image_size_and_bytes(self, mock_client):
        fetcher = DocumentFetcher(client=mock_client)

        assert await fetcher.get_image_size("https://example.com/image.png") == 120000
        assert await fetcher.get_image_bytes("https://example.com/image.png") == b"\x89PNG"

    @pytest.mark.asyncio
    async def test_invalid_content_length(self, mock_client):
        fetcher = DocumentFetcher(client=mock_client)

        assert await fetcher.get_image_size("https://example.com/bad-length.png") == 0

    @pytest.mark.asyncio
    async def test_image_errors(self, mock_client):
        fetcher = DocumentFetcher(client=mock_client)

        with pytest.raises(ImageFetchError):
            await fetcher.get_image_size("https://example.com/missing.png")

    @pytest.mark.asyncio
    async def test_caller_client_not_closed(self, mock_client):
        async with DocumentFetcher(client=mock_client) as fetcher:
            await fetcher.fetch_document("https://example.com/plain")

        assert not mock_client.is_closed
        await mock_client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        fetcher = DocumentFetcher(FetchSettings(timeout_seconds=5))

        async with fetcher:
            assert fetcher._client is not None

        assert fetcher._client is None


class TestFetchAndParse:
    """Tests for Reader.fetch_and_parse."""

    @pytest.mark.asyncio
    async def test_fetch_and_parse(self, sample_html):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=sample_html)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        fetcher = DocumentFetcher(client=client)

        article = await Reader().fetch_and_parse("https://example.com/2023/04/12/tomatoes", fetcher)

        assert article.is_readable
        assert article.title == "Growing Tomatoes at Home"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_fetch_failure_recorded(self, mock_client):
        fetcher = DocumentFetcher(client=mock_client)

        article = await Reader().fetch_and_parse("https://example.com/missing", fetcher)

        assert not article.is_readable
        assert not article.completed
        assert "Status code: 404" in article.errors[0]
