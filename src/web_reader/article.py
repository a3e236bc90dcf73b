"""
The parse result.

Article is an immutable record of everything a parse found. Derived
values (length, reading time) are computed from the stored text, and the
image helpers go through an image fetcher supplied by the caller.
"""

import asyncio
import base64
import copy
import mimetypes
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from functools import cached_property
from typing import Any, Callable, Protocol
from urllib.parse import urlparse

from bs4 import Tag

from web_reader.core.exceptions import FetchError
from web_reader.extraction.text import serialize_inner_html, time_to_read
from web_reader.utils.logging import get_logger
from web_reader.utils.uri import to_absolute

logger = get_logger(__name__)

# Images smaller than this many bytes are considered decoration
DEFAULT_MIN_IMAGE_SIZE = 75000


class ImageFetcher(Protocol):
    """What the image helpers need from a network client."""

    async def get_image_size(self, url: str) -> int:
        ...

    async def get_image_bytes(self, url: str) -> bytes:
        ...


@dataclass(frozen=True)
class ArticleImage:
    """An image found in the article content."""

    source: str
    size: int
    title: str = ""
    description: str = ""


def image_to_data_uri(path: str, data: bytes) -> str:
    """
    Encode image bytes as a data URI.

    The path only serves to guess the mime type from its extension.
    """
    mime, _ = mimetypes.guess_type(urlparse(path).path)
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime or 'application/octet-stream'};base64,{encoded}"


@dataclass(frozen=True)
class Article:
    """
    Readable content and metadata of a web page.

    ``is_readable`` tells whether content was found; ``completed`` tells
    whether the parse finished without errors. Both must be checked.

    Example:
        >>> article = reader.parse(html, "https://example.com/post")
        >>> if article.is_readable:
        ...     print(article.title, article.time_to_read)
    """

    url: str
    title: str = ""
    byline: str = ""
    dir: str = ""
    content: str = ""
    text_content: str = ""
    excerpt: str = ""
    language: str = ""
    author: str = ""
    site_name: str = ""
    publication_date: datetime | None = None
    featured_image: str = ""
    alternate_language_uris: dict[str, str] = field(default_factory=dict, hash=False)
    is_readable: bool = False
    errors: tuple[str, ...] = ()
    element: Tag | None = field(default=None, compare=False, hash=False, repr=False)

    @classmethod
    def unreadable(
        cls,
        url: str,
        title: str = "",
        errors: tuple[str, ...] = (),
        language: str = "",
    ) -> "Article":
        """An article without content."""
        return cls(url=url, title=title, errors=tuple(errors), language=language or "")

    @property
    def completed(self) -> bool:
        """True when no error was recorded during the parse."""
        return not self.errors

    @property
    def length(self) -> int:
        return len(self.text_content)

    @cached_property
    def time_to_read(self) -> timedelta:
        return time_to_read(self.text_content, self.language)

    async def get_images(
        self,
        fetcher: ImageFetcher,
        min_size: int = DEFAULT_MIN_IMAGE_SIZE,
    ) -> list[ArticleImage]:
        """
        List the content images of at least ``min_size`` bytes.

        Images whose size cannot be fetched are skipped.

        Args:
            fetcher: Client used for the size requests
            min_size: Minimum size in bytes

        Returns:
            Images in document order
        """
        if self.element is None:
            return []

        images = [
            (img, source) for img in self.element.find_all("img")
            if (source := self._image_source(img))
        ]
        sizes = await asyncio.gather(*(self._fetch_size(fetcher, source) for _, source in images))

        return [
            ArticleImage(
                source=source,
                size=size,
                title=str(img.get("title") or ""),
                description=str(img.get("alt") or ""),
            )
            for (img, source), size in zip(images, sizes)
            if size is not None and size >= min_size
        ]

    async def convert_images_to_data_uri(
        self,
        fetcher: ImageFetcher,
        min_size: int = DEFAULT_MIN_IMAGE_SIZE,
        serializer: Callable[[Tag], str] = serialize_inner_html,
    ) -> "Article":
        """
        Embed the content images as data URIs.

        Images under ``min_size`` bytes are removed; larger ones get
        their bytes inlined. Images that cannot be fetched stay as they
        are.

        Args:
            fetcher: Client used for size and byte requests
            min_size: Minimum size in bytes of a kept image
            serializer: Renders the updated content element

        Returns:
            A new Article with the updated content
        """
        if self.element is None:
            return self

        element = copy.copy(self.element)
        for img in element.find_all("img"):
            source = self._image_source(img)
            if not source:
                continue

            size = await self._fetch_size(fetcher, source)
            if size is None:
                continue
            if size < min_size:
                img.extract()
                continue

            try:
                data = await fetcher.get_image_bytes(source)
            except FetchError as e:
                logger.warning(f"Could not download image {source}: {e}")
                continue
            img["src"] = image_to_data_uri(source, data)

        return replace(self, content=serializer(element), element=element)

    def _image_source(self, img: Tag) -> str:
        source = img.get("src")
        if not isinstance(source, str) or not source.strip() or source.startswith("data:"):
            return ""
        return to_absolute(self.url, source.strip())

    async def _fetch_size(self, fetcher: ImageFetcher, source: str) -> int | None:
        try:
            return await fetcher.get_image_size(source)
        except FetchError as e:
            logger.warning(f"Could not get size of image {source}: {e}")
            return None

    def to_dict(self) -> dict[str, Any]:
        """Plain data view, ready for JSON."""
        return {
            "url": self.url,
            "title": self.title,
            "byline": self.byline,
            "author": self.author,
            "dir": self.dir,
            "language": self.language,
            "site_name": self.site_name,
            "excerpt": self.excerpt,
            "publication_date": self.publication_date.isoformat() if self.publication_date else None,
            "featured_image": self.featured_image,
            "alternate_language_uris": dict(self.alternate_language_uris),
            "is_readable": self.is_readable,
            "completed": self.completed,
            "errors": list(self.errors),
            "length": self.length,
            "time_to_read_minutes": int(self.time_to_read.total_seconds() // 60),
            "content": self.content,
            "text_content": self.text_content,
        }
