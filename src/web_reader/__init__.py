"""
Web Reader - extracts the readable article from web pages.

This package finds the main content of an HTML document, discards
navigation, ads and boilerplate, and collects the page metadata
(title, author, language, publication date, site name, excerpt).
"""

__version__ = "0.1.0"
__author__ = "Web Reader Team"

from web_reader.config import Settings, load_config
from web_reader.utils.logging import setup_logging, get_logger
from web_reader.core.exceptions import WebReaderError
from web_reader.article import Article, ArticleImage
from web_reader.reader import Reader, ReaderOptions, parse_article, parse_article_async

__all__ = [
    "Settings",
    "load_config",
    "setup_logging",
    "get_logger",
    "WebReaderError",
    "Article",
    "ArticleImage",
    "Reader",
    "ReaderOptions",
    "parse_article",
    "parse_article_async",
]
