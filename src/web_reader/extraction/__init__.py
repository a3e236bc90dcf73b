"""
Extraction module for the web reader.

Provides the content extraction pipeline:
- DOM preprocessing
- Metadata extraction (meta tags, JSON-LD)
- Candidate scoring and article selection
- Content cleaning and post-processing
- Plain text rendering
"""

from web_reader.extraction.patterns import (
    PatternCategory,
    PatternSet,
    DEFAULT_PATTERNS,
)
from web_reader.extraction.scoring import (
    Flags,
    ScoreTable,
)
from web_reader.extraction.preprocessor import DomPreprocessor
from web_reader.extraction.metadata_extractor import (
    MetadataExtractor,
    ArticleMetadata,
    clean_title,
    get_article_title,
    extract_json_ld,
)
from web_reader.extraction.cleaner import ContentCleaner
from web_reader.extraction.grabber import (
    ArticleGrabber,
    GrabResult,
)
from web_reader.extraction.readerable import is_probably_readerable
from web_reader.extraction.text import (
    html_to_text,
    serialize_inner_html,
    time_to_read,
)

__all__ = [
    # Patterns
    "PatternCategory",
    "PatternSet",
    "DEFAULT_PATTERNS",
    # Scoring
    "Flags",
    "ScoreTable",
    # Preprocessing
    "DomPreprocessor",
    # Metadata
    "MetadataExtractor",
    "ArticleMetadata",
    "clean_title",
    "get_article_title",
    "extract_json_ld",
    # Content
    "ContentCleaner",
    "ArticleGrabber",
    "GrabResult",
    "is_probably_readerable",
    # Text
    "html_to_text",
    "serialize_inner_html",
    "time_to_read",
]
