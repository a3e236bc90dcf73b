"""
The extraction engine.

Reader runs the whole pipeline on one document: size guard, readerable
check, preprocessing, metadata, article selection and post-processing.
Every piece of per-parse state is created inside ``parse``, so a Reader
can be reused and shared freely.
"""

from dataclasses import dataclass, field
from typing import Callable

from bs4 import BeautifulSoup, Tag

from web_reader.article import Article
from web_reader.config.settings import BASELINE_CLASSES_TO_PRESERVE, FetchSettings, ReaderSettings, Settings
from web_reader.core.exceptions import FetchError, LanguageDetectionError, SizeLimitExceededError
from web_reader.extraction.cleaner import ContentCleaner
from web_reader.extraction.grabber import ArticleGrabber
from web_reader.extraction.metadata_extractor import MetadataExtractor, extract_json_ld
from web_reader.extraction.patterns import PatternSet
from web_reader.extraction.preprocessor import DomPreprocessor
from web_reader.extraction.readerable import is_probably_readerable
from web_reader.extraction.text import html_to_text, serialize_inner_html
from web_reader.fetch.client import DocumentFetcher
from web_reader.utils.logging import DebugTrace, LoggerAdapter, get_logger, get_logger_with_context

logger = get_logger(__name__)

# Receives the plain text and the language found so far
LanguageIdentifier = Callable[[str, str], str | None]


def _run_language_hook(identify: LanguageIdentifier, text: str, language: str) -> str | None:
    """Call a language hook, reporting any failure as LanguageDetectionError."""
    try:
        return identify(text, language)
    except LanguageDetectionError:
        raise
    except Exception as e:
        raise LanguageDetectionError(str(e), {"hook": getattr(identify, "__name__", repr(identify))}) from e


@dataclass
class ReaderOptions:
    """
    Per-engine configuration, including the pluggable hooks.

    Example:
        >>> options = ReaderOptions(char_threshold=250, keep_classes=True)
        >>> reader = Reader(options)
    """

    max_elems_to_parse: int = 0
    n_top_candidates: int = 5
    char_threshold: int = 500
    classes_to_preserve: list[str] = field(default_factory=list)
    keep_classes: bool = False
    debug: bool = False
    continue_if_not_readable: bool = True
    # Run on the document element before preprocessing
    custom_operations_start: list[Callable[[Tag], None]] = field(default_factory=list)
    # Run on the final content element
    custom_operations_end: list[Callable[[Tag], None]] = field(default_factory=list)
    patterns: PatternSet = field(default_factory=PatternSet)
    serializer: Callable[[Tag], str] = serialize_inner_html
    text_converter: Callable[[Tag], str] = html_to_text
    language_identification: LanguageIdentifier | None = None
    debug_sink: Callable[[str], None] | None = None

    def __post_init__(self) -> None:
        merged = list(BASELINE_CLASSES_TO_PRESERVE)
        for name in self.classes_to_preserve:
            if name not in merged:
                merged.append(name)
        self.classes_to_preserve = merged

    @classmethod
    def from_settings(cls, settings: Settings | ReaderSettings, **overrides) -> "ReaderOptions":
        """
        Build options from loaded settings.

        Args:
            settings: Root settings or the reader section
            **overrides: Option values taking precedence (hooks, sinks)
        """
        reader = settings.reader if isinstance(settings, Settings) else settings
        values = {
            "max_elems_to_parse": reader.max_elems_to_parse,
            "n_top_candidates": reader.n_top_candidates,
            "char_threshold": reader.char_threshold,
            "classes_to_preserve": list(reader.classes_to_preserve),
            "keep_classes": reader.keep_classes,
            "debug": reader.debug,
            "continue_if_not_readable": reader.continue_if_not_readable,
            "patterns": PatternSet.from_config(reader.pattern_overrides, reader.pattern_extensions),
        }
        values.update(overrides)
        return cls(**values)


class Reader:
    """
    Extracts the readable article from HTML documents.

    Example:
        >>> reader = Reader(ReaderOptions(char_threshold=250))
        >>> article = reader.parse(html, "https://example.com/2021/05/story")
        >>> if article.is_readable:
        ...     print(article.title)
        ...     print(article.text_content)
    """

    def __init__(
        self,
        options: ReaderOptions | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize the reader.

        Args:
            options: Engine options. Built from ``settings`` when None.
            settings: Application settings, also used for fetching
        """
        self.settings = settings or Settings()
        self.options = options or ReaderOptions.from_settings(self.settings)
        self.preprocessor = DomPreprocessor()
        self.metadata_extractor = MetadataExtractor()

    def parse(
        self,
        document: str | bytes | BeautifulSoup,
        url: str,
        language: str | None = None,
        json_ld: dict[str, str] | None = None,
    ) -> Article:
        """
        Extract the article of a document.

        A BeautifulSoup passed in is modified; pass markup to keep the
        caller's tree intact.

        Args:
            document: HTML markup or an already parsed document
            url: Address of the document, used to resolve links
            language: Language hint, e.g. from a Content-Language header
            json_ld: Pre-parsed JSON-LD values (``jsonld:*`` keys)

        Returns:
            The Article. Check ``is_readable`` and ``completed``.
        """
        log = get_logger_with_context(__name__, url=url)
        soup = document if isinstance(document, BeautifulSoup) else BeautifulSoup(document, "html.parser")

        try:
            return self._parse(soup, url, language, json_ld, log)
        except SizeLimitExceededError as e:
            log.warning(str(e))
            return Article.unreadable(url, errors=(str(e),), language=language or "")

    def _parse(
        self,
        soup: BeautifulSoup,
        url: str,
        language: str | None,
        json_ld: dict[str, str] | None,
        log: LoggerAdapter,
    ) -> Article:
        options = self.options
        trace = DebugTrace(log, options.debug_sink, options.debug)

        if options.max_elems_to_parse > 0:
            element_count = len(soup.find_all(True))
            if element_count > options.max_elems_to_parse:
                raise SizeLimitExceededError(element_count, options.max_elems_to_parse)

        is_readable = is_probably_readerable(soup, options.patterns)
        if not is_readable:
            trace("Warning: article probably not readable")
            if not options.continue_if_not_readable:
                return Article.unreadable(url, language=language or "")

        root = soup.find("html") or soup
        for operation in options.custom_operations_start:
            operation(root)

        # Structured data lives in scripts, read it before they go
        if json_ld is None:
            json_ld = extract_json_ld(soup)

        self.preprocessor.unwrap_noscript_images(soup)
        self.preprocessor.remove_scripts(soup)
        self.preprocessor.prep_document(soup)

        metadata = self.metadata_extractor.extract(soup, url, language, json_ld)

        grabber = ArticleGrabber(
            options.patterns,
            n_top_candidates=options.n_top_candidates,
            char_threshold=options.char_threshold,
            trace=trace,
        )
        result = grabber.grab(soup, metadata.title)
        if result is None:
            log.info("No readable content found")
            return Article.unreadable(url, title=metadata.title, language=metadata.language)

        if not result.is_readable:
            log.info(f"Article shorter than {options.char_threshold} characters")
            if not options.continue_if_not_readable:
                return Article.unreadable(url, title=metadata.title, language=metadata.language)

        content = result.content
        cleaner = ContentCleaner(options.patterns, options.char_threshold)
        cleaner.post_process(soup, content, url, options.classes_to_preserve, options.keep_classes)

        for operation in options.custom_operations_end:
            operation(content)

        excerpt = metadata.excerpt
        if not excerpt:
            first_paragraph = content.find("p")
            if first_paragraph is not None:
                excerpt = first_paragraph.get_text().strip()

        text_content = options.text_converter(content)
        article_language = self._identify_language(text_content, metadata.language)

        return Article(
            url=url,
            title=metadata.title,
            byline=result.byline or metadata.byline,
            dir=result.dir,
            content=options.serializer(content),
            text_content=text_content,
            excerpt=excerpt,
            language=article_language,
            author=result.author or metadata.author,
            site_name=metadata.site_name,
            publication_date=metadata.published_date,
            featured_image=metadata.featured_image,
            alternate_language_uris=metadata.alternate_language_uris,
            is_readable=result.is_readable,
            element=content,
        )

    def _identify_language(self, text: str, language: str) -> str:
        identify = self.options.language_identification
        if identify is None:
            return language

        try:
            detected = _run_language_hook(identify, text, language)
        except LanguageDetectionError as e:
            logger.warning(f"Language identification failed: {e}")
            return language

        return detected or language

    async def fetch_and_parse(self, url: str, fetcher: DocumentFetcher | None = None) -> Article:
        """
        Download a document and extract its article.

        A failed download gives an unreadable article carrying the error.

        Args:
            url: Address of the document
            fetcher: Fetcher to use; a temporary one is created when None
        """
        owned = fetcher is None
        fetcher = fetcher or DocumentFetcher(self.settings.fetch)

        try:
            document = await fetcher.fetch_document(url)
        except FetchError as e:
            logger.error(f"Failed to fetch {url}: {e}")
            return Article.unreadable(url, errors=(e.message,))
        finally:
            if owned:
                await fetcher.close()

        return self.parse(document.html, document.url, language=document.language)


def parse_article(url: str, html: str | bytes, **options) -> Article:
    """
    Extract the article of an HTML document in one call.

    Args:
        url: Address of the document
        html: The markup
        **options: Any ReaderOptions field

    Example:
        >>> article = parse_article("https://example.com/post", html, char_threshold=100)
    """
    return Reader(ReaderOptions(**options)).parse(html, url)


async def parse_article_async(
    url: str,
    fetch_settings: FetchSettings | None = None,
    **options,
) -> Article:
    """
    Download a document and extract its article in one call.

    Args:
        url: Address of the document
        fetch_settings: Network settings for the download
        **options: Any ReaderOptions field
    """
    settings = Settings(fetch=fetch_settings or FetchSettings())
    reader = Reader(ReaderOptions(**options), settings=settings)
    return await reader.fetch_and_parse(url)
