"""
Metadata extraction from web pages.

Extracts article metadata from:
- Standard HTML meta tags
- Open Graph, Twitter Cards, Dublin Core, Weibo and Parse.ly keys
- JSON-LD structured data (schema.org Article types)
- <time> elements and date-like URL paths
"""

import calendar
import html
import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable
from urllib.parse import urlsplit

from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from web_reader.extraction import dom
from web_reader.utils.logging import get_logger
from web_reader.utils.uri import to_absolute

logger = get_logger(__name__)

# See https://schema.org/Article
JSON_LD_ARTICLE_TYPES = frozenset({
    "Article", "AdvertiserContentArticle", "NewsArticle", "AnalysisNewsArticle",
    "AskPublicNewsArticle", "BackgroundNewsArticle", "OpinionNewsArticle",
    "ReportageNewsArticle", "ReviewNewsArticle", "Report", "SatiricalArticle",
    "ScholarlyArticle", "MedicalScholarlyArticle", "SocialMediaPosting", "BlogPosting",
    "LiveBlogPosting", "DiscussionForumPosting", "TechArticle", "APIReference",
})

_SCHEMA_ORG_RE = re.compile(r"^https?://schema\.org/?$")
_CDATA_RE = re.compile(r"^\s*<!\[CDATA\[|\]\]>\s*$")

# name is a single value
_NAME_PATTERN = re.compile(
    r"^\s*((?:(dc|dcterm|og|twitter|parsely|weibo:(article|webpage))\s*[-\.:]\s*)?"
    r"(author|creator|pub-date|description|title|image|image-url|site_name)|name)\s*$",
    re.IGNORECASE,
)
# property is a space separated list of values
_PROPERTY_PATTERN = re.compile(
    r"\s*(dc|dcterm|og|twitter|article)\s*:\s*"
    r"(author|creator|description|title|published_time|image|site_name)(\s+|$)",
    re.IGNORECASE,
)
_ITEMPROP_PATTERN = re.compile(r"\s*datePublished\s*", re.IGNORECASE)

_URL_DATE_RE = re.compile(r"/(?P<year>[0-9]{4})/(?P<month>[0-9]{2})/((?P<day>[0-9]{2})/)?")

_NORMALIZE_RE = re.compile(r"\s{2,}")
_TOKENIZE_RE = re.compile(r"\W+")
_WORDS_RE = re.compile(r"\s+")

TITLE_SEPARATORS = "|-»/>"
HIERARCHICAL_SEPARATORS = "\\»/>"

_EXCERPT_KEYS = (
    "jsonld:description", "description", "dc:description", "dcterm:description",
    "og:description", "weibo:article:description", "weibo:webpage:description",
    "twitter:description",
)
_SITE_NAME_KEYS = ("jsonld:siteName", "og:site_name")
_TITLE_KEYS = (
    "jsonld:title", "dc:title", "dcterm:title", "og:title", "weibo:article:title",
    "weibo:webpage:title", "twitter:title", "parsely-title", "title",
)
_IMAGE_KEYS = (
    "jsonld:image", "og:image", "twitter:image", "weibo:article:image",
    "weibo:webpage:image", "parsely-image-url",
)
_AUTHOR_KEYS = ("jsonld:author", "author", "dc:creator", "dcterm:creator", "parsely-author")
_DATE_KEYS = (
    "jsonld:datePublished", "article:published_time", "date", "datepublished",
    "weibo:article:create_at", "weibo:webpage:create_at", "parsely-pub-date",
)


@dataclass
class ArticleMetadata:
    """
    Metadata describing an article.

    Combines meta tags, JSON-LD and URL heuristics into one record.
    """

    title: str = ""
    byline: str = ""
    author: str = ""
    excerpt: str = ""
    site_name: str = ""
    language: str = ""
    published_date: datetime | None = None
    featured_image: str = ""
    alternate_language_uris: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "title": self.title,
            "byline": self.byline,
            "author": self.author,
            "excerpt": self.excerpt,
            "site_name": self.site_name,
            "language": self.language,
            "published_date": self.published_date.isoformat() if self.published_date else None,
            "featured_image": self.featured_image,
            "alternate_language_uris": dict(self.alternate_language_uris),
        }


def clean_title(title: str, site_name: str | None) -> str:
    """
    Drop a trailing ``separator + site name`` from a title.

    Example:
        >>> clean_title("Big title | Wikipedia", "Wikipedia")
        'Big title'
    """
    if site_name and any(sep in title for sep in TITLE_SEPARATORS):
        title = re.sub(
            rf"(.*) [\|\-\\/>»] {re.escape(site_name)}.*", r"\1", title, flags=re.IGNORECASE)

    return _NORMALIZE_RE.sub(" ", title)


def _word_count(text: str) -> int:
    return len(_WORDS_RE.split(text))


def get_article_title(soup: BeautifulSoup) -> str:
    """
    Work out the article title from the document's <title>.

    Site names glued on with a separator or a colon are dropped, unless
    that leaves too few words to be a real title.
    """
    title_tag = soup.find("title")
    orig_title = title_tag.get_text().strip() if title_tag is not None else ""
    cur_title = orig_title
    had_hierarchical_separators = False

    if any(sep in cur_title for sep in TITLE_SEPARATORS):
        had_hierarchical_separators = any(sep in cur_title for sep in HIERARCHICAL_SEPARATORS)
        cur_title = re.sub(r"(.*) [\|\-\\\/>»] .*", r"\1", orig_title)

        # Too short, remove the first part instead
        if _word_count(cur_title) < 3:
            cur_title = re.sub(r"[^\|\-\\\/>»]* [\|\-\\\/>»](.*)", r"\1", orig_title)
    elif ": " in cur_title:
        # A heading holding the exact title means the colon belongs to it
        trimmed = cur_title.strip()
        matched = any(
            heading.get_text().strip() == trimmed for heading in soup.find_all(["h1", "h2"]))

        if not matched:
            cur_title = orig_title[orig_title.rfind(":") + 1:]

            if _word_count(cur_title) < 3:
                cur_title = orig_title[orig_title.find(":") + 1:]
    elif len(cur_title) > 150 or len(cur_title) < 15:
        h_ones = soup.find_all("h1")
        if len(h_ones) == 1:
            cur_title = dom.inner_text(h_ones[0])

    cur_title = _NORMALIZE_RE.sub(" ", cur_title.strip())

    cur_word_count = _word_count(cur_title)
    if cur_word_count <= 4 and (
        not had_hierarchical_separators
        or cur_word_count != _word_count(re.sub(r"[\|\-\\\/>»: ]+", " ", orig_title)) - 1
    ):
        cur_title = orig_title

    return cur_title


def text_similarity(text_a: str, text_b: str) -> float:
    """
    Compare ``text_b`` against ``text_a``: 1 means same words, 0 means
    nothing in common.
    """
    tokens_a = [t for t in _TOKENIZE_RE.split(text_a.lower()) if t]
    tokens_b = [t for t in _TOKENIZE_RE.split(text_b.lower()) if t]
    if not tokens_a or not tokens_b:
        return 0.0

    unique_b = [t for t in tokens_b if t not in tokens_a]
    distance_b = len(" ".join(unique_b)) / len(" ".join(tokens_b))
    return 1 - distance_b


def _json_ld_string(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip()
    return None


def _json_ld_image(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return _json_ld_string(value.get("url"))
    if isinstance(value, list) and value:
        return _json_ld_image(value[0])
    return None


def _json_ld_author(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        return _json_ld_string(value.get("name"))
    if isinstance(value, list):
        names = [
            item["name"].strip() for item in value
            if isinstance(item, dict) and isinstance(item.get("name"), str)
        ]
        return ", ".join(names) if names else None
    return None


def _find_article_object(data: Any) -> dict | None:
    """Pick the schema.org Article object out of a JSON-LD payload."""
    if isinstance(data, list):
        for item in data:
            found = _find_article_object(item)
            if found is not None:
                return found
        return None

    if not isinstance(data, dict):
        return None

    # Objects may be listed inside @graph
    if "@type" not in data and isinstance(data.get("@graph"), list):
        context = data.get("@context")
        for item in data["@graph"]:
            if isinstance(item, dict) and item.get("@type") in JSON_LD_ARTICLE_TYPES:
                if "@context" not in item and context is not None:
                    item = {**item, "@context": context}
                return item
        return None

    return data


def _is_schema_org(context: Any) -> bool:
    if isinstance(context, str):
        return bool(_SCHEMA_ORG_RE.match(context))
    if isinstance(context, dict):
        vocab = context.get("@vocab", context.get("vocab"))
        return isinstance(vocab, str) and bool(_SCHEMA_ORG_RE.match(vocab))
    return False


def extract_json_ld(soup: BeautifulSoup) -> dict[str, str]:
    """
    Extract article metadata from the first usable JSON-LD script.

    Only schema.org objects of type Article (or a subtype) are used.

    Returns:
        Dictionary with ``jsonld:*`` keys, possibly empty
    """
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        content = _CDATA_RE.sub("", script.string or script.get_text())
        if not content.strip():
            continue

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.debug(f"Failed to parse JSON-LD: {e}")
            continue

        root = _find_article_object(data)
        if root is None or not _is_schema_org(root.get("@context")):
            continue
        if root.get("@type") not in JSON_LD_ARTICLE_TYPES:
            continue

        return _read_article_object(root, soup)

    return {}


def _read_article_object(root: dict, soup: BeautifulSoup) -> dict[str, str]:
    values: dict[str, str] = {}

    name = _json_ld_string(root.get("name"))
    headline = _json_ld_string(root.get("headline"))
    if name and headline:
        # Some sites put their own name in "name"; prefer whichever matches the page title
        title = get_article_title(soup)
        name_matches = text_similarity(name, title) > 0.75
        headline_matches = text_similarity(headline, title) > 0.75
        values["jsonld:title"] = headline if headline_matches and not name_matches else name
    elif name or headline:
        values["jsonld:title"] = name or headline

    optional = {
        "jsonld:author": _json_ld_author(root.get("author")),
        "jsonld:description": _json_ld_string(root.get("description")),
        "jsonld:datePublished": _json_ld_string(root.get("datePublished")),
        "jsonld:image": _json_ld_image(root.get("image")),
    }
    publisher = root.get("publisher")
    if isinstance(publisher, dict):
        optional["jsonld:siteName"] = _json_ld_string(publisher.get("name"))

    for key, value in optional.items():
        if value:
            values[key] = value

    return values


class MetadataExtractor:
    """
    Extracts article metadata from a parsed document.

    Example:
        >>> extractor = MetadataExtractor()
        >>> metadata = extractor.extract(soup, "https://example.com/2020/01/02/post")
        >>> print(metadata.title, metadata.published_date)
    """

    # Date formats tried before falling back to the lenient parser
    DATE_FORMATS = [
        "%Y-%m-%dT%H:%M:%S%z",
        "%Y-%m-%dT%H:%M:%SZ",
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d",
    ]

    def extract(
        self,
        soup: BeautifulSoup,
        url: str,
        language: str | None = None,
        json_ld: dict[str, str] | None = None,
    ) -> ArticleMetadata:
        """
        Extract all metadata from a document.

        Args:
            soup: Parsed document
            url: URL of the page, used for the date fallback
            language: Language hint, e.g. from a Content-Language header
            json_ld: Pre-parsed JSON-LD values (``jsonld:*`` keys). When
                None they are read from the document.

        Returns:
            ArticleMetadata with extracted data
        """
        values: dict[str, str] = dict(extract_json_ld(soup) if json_ld is None else json_ld)
        metadata = ArticleMetadata()

        self._extract_meta_values(soup, values, metadata)

        metadata.excerpt = self._first(values, _EXCERPT_KEYS)
        metadata.site_name = self._first(values, _SITE_NAME_KEYS)
        metadata.title = clean_title(self._first(values, _TITLE_KEYS), metadata.site_name)
        if not metadata.title:
            metadata.title = get_article_title(soup)

        metadata.language = self._extract_language(soup, language)
        metadata.alternate_language_uris = self._extract_alternate_languages(soup, url)
        metadata.featured_image = self._first(values, _IMAGE_KEYS)
        metadata.author = self._first(values, _AUTHOR_KEYS)
        metadata.published_date = self._extract_date(soup, values, url)

        # Meta values are often escaped twice
        metadata.title = html.unescape(metadata.title).strip()
        metadata.excerpt = html.unescape(metadata.excerpt).strip()
        metadata.site_name = html.unescape(metadata.site_name).strip()

        return metadata

    def _extract_meta_values(
        self,
        soup: BeautifulSoup,
        values: dict[str, str],
        metadata: ArticleMetadata,
    ) -> None:
        """Collect meta tag values under normalized keys, first seen wins."""
        for meta in soup.find_all("meta"):
            element_name = meta.get("name") or ""
            element_property = meta.get("property") or ""
            item_prop = meta.get("itemprop") or ""
            content = meta.get("content") or ""

            if not content:
                continue

            if "author" in (element_name, element_property, item_prop):
                if not metadata.byline:
                    metadata.byline = content.strip()
                values.setdefault("author", content.strip())
                continue

            key = ""
            match = _PROPERTY_PATTERN.search(element_property) if element_property else None
            if match:
                key = re.sub(r"\s+", "", match.group(0).lower())
            elif element_name and _NAME_PATTERN.match(element_name):
                key = re.sub(r"\s+", "", element_name.lower()).replace(".", ":")
            elif item_prop and _ITEMPROP_PATTERN.match(item_prop):
                key = re.sub(r"\s+", "", item_prop.lower())

            if key:
                values.setdefault(key, content.strip())

    def _first(self, values: dict[str, str], keys: Iterable[str]) -> str:
        for key in keys:
            value = values.get(key)
            if value:
                return value
        return ""

    def _extract_language(self, soup: BeautifulSoup, language: str | None) -> str:
        """Language from the hint, <html lang>, or the legacy meta tags."""
        html_tag = soup.find("html")
        content_language = soup.find("meta", attrs={"http-equiv": re.compile(r"^content-language$", re.I)})
        lang_meta = soup.find("meta", attrs={"name": "lang"})

        candidates = [
            language,
            html_tag.get("lang") if html_tag is not None else None,
            html_tag.get("xml:lang") if html_tag is not None else None,
            content_language.get("content") if content_language is not None else None,
            # Not valid HTML, but some sites use it
            lang_meta.get("value") if lang_meta is not None else None,
        ]
        for candidate in candidates:
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
        return ""

    def _extract_alternate_languages(self, soup: BeautifulSoup, url: str) -> dict[str, str]:
        uris: dict[str, str] = {}
        for link in soup.find_all("link"):
            rel = link.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            if "alternate" not in rel:
                continue

            href = (link.get("href") or "").strip()
            hreflang = (link.get("hreflang") or "").strip()
            if not href or not hreflang or hreflang == "x-default":
                continue

            uris[hreflang] = to_absolute(url, href)
        return uris

    def _extract_date(
        self,
        soup: BeautifulSoup,
        values: dict[str, str],
        url: str,
    ) -> datetime | None:
        """Publication date from meta values, <time pubdate>, then the URL path."""
        for key in _DATE_KEYS:
            if key in values:
                parsed = self._parse_date(values[key])
                if parsed is not None:
                    return parsed

        for time_tag in soup.find_all("time"):
            if time_tag.has_attr("pubdate") and time_tag.get("datetime"):
                parsed = self._parse_date(time_tag["datetime"])
                if parsed is not None:
                    return parsed

        return self._date_from_url(url)

    def _date_from_url(self, url: str) -> datetime | None:
        parts = urlsplit(url)
        path = parts.path + (f"?{parts.query}" if parts.query else "")
        match = _URL_DATE_RE.search(path)
        if not match:
            return None

        year = int(match.group("year"))
        month = int(match.group("month"))
        if not 1 <= month <= 12 or year < 1:
            return None

        day = 1
        if match.group("day"):
            day = int(match.group("day"))
            # The number might mean something other than a day
            if day < 1 or day > calendar.monthrange(year, month)[1]:
                day = 1

        return datetime(year, month, day)

    def _parse_date(self, date_str: str) -> datetime | None:
        """Parse a date string into datetime."""
        if not date_str:
            return None

        date_str = date_str.strip()

        for fmt in self.DATE_FORMATS:
            try:
                return datetime.strptime(date_str, fmt)
            except ValueError:
                continue

        try:
            return date_parser.parse(date_str)
        except (ValueError, OverflowError) as e:
            logger.debug(f"Could not parse date {date_str!r}: {e}")
            return None
