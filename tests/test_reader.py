"""
Tests for the extraction engine.

Runs the whole pipeline on sample pages and checks the hooks.
"""

import pytest

from web_reader import Reader, ReaderOptions, parse_article
from web_reader.config import Settings
from web_reader.core.exceptions import LanguageDetectionError

SMALL_DOCUMENT = "<html><head></head><body><p>a</p><div>b</div></body></html>"


class TestReaderOptions:
    """Tests for ReaderOptions."""

    def test_baseline_classes_always_preserved(self):
        options = ReaderOptions(classes_to_preserve=["highlight"])

        assert "page" in options.classes_to_preserve
        assert "highlight" in options.classes_to_preserve

    def test_from_settings(self):
        settings = Settings(reader={"char_threshold": 100, "keep_classes": True})

        options = ReaderOptions.from_settings(settings, debug=True)

        assert options.char_threshold == 100
        assert options.keep_classes is True
        assert options.debug is True


class TestReaderParse:
    """Tests for Reader.parse on a typical article page."""

    @pytest.fixture
    def article(self, sample_html, article_url):
        return Reader().parse(sample_html, article_url)

    def test_article_is_readable(self, article):
        assert article.is_readable
        assert article.completed
        assert article.errors == ()

    def test_metadata(self, article):
        assert article.title == "Growing Tomatoes at Home"
        assert article.site_name == "Garden Weekly"
        assert article.excerpt == "A practical guide to growing tomatoes."
        assert article.featured_image == "https://example.com/images/tomatoes.jpg"
        assert article.language == "en"

    def test_publication_date(self, article):
        date = article.publication_date

        assert (date.year, date.month, date.day) == (2023, 4, 12)

    def test_alternate_languages_absolute(self, article):
        assert article.alternate_language_uris == {"fr": "https://example.com/fr/tomates"}

    def test_byline_found_in_content(self, article):
        assert article.byline == "By Jane Gardener"
        assert "Jane Gardener" not in article.text_content

    def test_clutter_removed(self, article):
        text = article.text_content

        assert "Tomatoes are among the most rewarding plants" in text
        assert "Feed the plants every week" in text
        assert "Related stories" not in text
        assert "Great article" not in text
        assert "Copyright" not in text

    def test_content_wrapped_in_page_div(self, article):
        assert 'id="readability-page-1"' in article.content
        assert 'class="page"' in article.content
        assert article.element is not None

    def test_length_and_time_to_read(self, article):
        assert article.length == len(article.text_content)
        assert article.length >= 500
        assert article.time_to_read.total_seconds() == 60

    def test_content_byline_wins_over_meta_author(self, article_html_factory, article_url):
        html = article_html_factory(head='<meta name="author" content="J. Gardener">')

        article = Reader().parse(html, article_url)

        assert article.byline == "By Jane Gardener"
        # No rel=author link in the content, so the meta author is used
        assert article.author == "J. Gardener"

    def test_meta_author_used_without_content_byline(self, article_html_factory, article_url):
        html = article_html_factory(head='<meta name="author" content="J. Gardener">').replace(
            '<div class="byline">By Jane Gardener</div>', "")

        article = Reader().parse(html, article_url)

        assert article.byline == "J. Gardener"

    def test_content_author_wins_over_meta_author(self, article_html_factory, article_url):
        html = article_html_factory(head='<meta name="author" content="Meta Person">').replace(
            '<div class="byline">By Jane Gardener</div>',
            '<a rel="author" href="/jane">Jane Gardener</a>',
        )

        article = Reader().parse(html, article_url)

        assert article.byline == "Jane Gardener"
        assert article.author == "Jane Gardener"

    def test_excerpt_falls_back_to_first_paragraph(self, article_html_factory, article_url):
        article = Reader().parse(article_html_factory(), article_url)

        assert article.excerpt.startswith("Tomatoes are among the most rewarding plants")

    def test_date_from_url_when_no_meta(self, article_html_factory, article_url):
        article = Reader().parse(article_html_factory(), article_url)

        assert article.publication_date.day == 12

    def test_relative_links_made_absolute(self, article_html_factory, article_url):
        html = article_html_factory().replace(
            "<p>Tomatoes are among",
            '<p><img src="images/seedling.jpg" alt="Seedling">'
            '<a href="/guides/soil">Soil guide.</a> Tomatoes are among',
        )

        article = Reader().parse(html, article_url)

        assert 'src="https://example.com/2023/04/12/images/seedling.jpg"' in article.content
        assert 'href="https://example.com/guides/soil"' in article.content

    def test_classes_stripped_unless_kept(self, article_html_factory, article_url):
        html = article_html_factory().replace("<p>Start the seeds", '<p class="intro">Start the seeds')

        stripped = Reader().parse(html, article_url)
        kept = Reader(ReaderOptions(keep_classes=True)).parse(html, article_url)
        preserved = Reader(ReaderOptions(classes_to_preserve=["intro"])).parse(html, article_url)

        assert 'class="intro"' not in stripped.content
        assert 'class="intro"' in kept.content
        assert 'class="intro"' in preserved.content

    def test_parse_accepts_soup(self, sample_soup, article_url):
        article = Reader().parse(sample_soup, article_url)

        assert article.is_readable

    def test_reader_reusable(self, sample_html, article_url):
        reader = Reader()

        first = reader.parse(sample_html, article_url)
        second = reader.parse(sample_html, article_url)

        assert first.content == second.content
        assert first.text_content == second.text_content


class TestShortDocuments:
    """Tests for documents without much content."""

    def test_size_guard(self):
        reader = Reader(ReaderOptions(max_elems_to_parse=1))

        article = reader.parse(SMALL_DOCUMENT, "https://example.com/")

        assert not article.completed
        assert not article.is_readable
        assert article.errors == ("Aborting parsing document; 5 elements found",)

    def test_size_guard_disabled_by_default(self):
        article = Reader().parse(SMALL_DOCUMENT, "https://example.com/")

        assert article.completed

    def test_not_readerable_stops_when_asked(self):
        reader = Reader(ReaderOptions(continue_if_not_readable=False))

        article = reader.parse(SMALL_DOCUMENT, "https://example.com/")

        assert not article.is_readable
        assert article.completed
        assert article.content == ""

    def test_short_content_kept_but_unreadable(self):
        """Below the threshold the longest attempt is kept, flagged unreadable."""
        html = "<html><body><div><p>Only a short paragraph of text here.</p></div></body></html>"

        article = parse_article("https://example.com/", html)

        assert not article.is_readable
        assert article.completed
        assert article.text_content == "Only a short paragraph of text here."

    def test_single_short_paragraph_unreadable(self):
        html = "<html><body><p>" + "x" * 48 + "</p></body></html>"

        article = parse_article("https://example.com/", html)

        assert not article.is_readable
        assert article.completed
        assert article.length == 48

    def test_short_content_stops_when_asked(self):
        """A page passing the quick check can still fall short of the threshold."""
        html = "<html><body><p>" + "Word, " * 120 + "</p></body></html>"

        article = parse_article(
            "https://example.com/", html, char_threshold=2000, continue_if_not_readable=False)

        assert not article.is_readable
        assert article.completed
        assert article.content == ""

    def test_lower_threshold_makes_short_content_readable(self):
        html = "<html><body><div><p>Only a short paragraph of text here.</p></div></body></html>"

        article = parse_article("https://example.com/", html, char_threshold=20)

        assert article.is_readable

    def test_empty_document_unreadable(self):
        article = parse_article("https://example.com/", "<html><body></body></html>")

        assert not article.is_readable
        assert article.completed


class TestHooks:
    """Tests for the pluggable operations."""

    def test_custom_operations(self, sample_html, article_url):
        calls = []

        def remove_first_paragraph(root):
            calls.append(("start", root.name))
            root.find("p").decompose()

        def mark_content(content):
            calls.append(("end", content.name))
            content["data-checked"] = "yes"

        reader = Reader(ReaderOptions(
            custom_operations_start=[remove_first_paragraph],
            custom_operations_end=[mark_content],
        ))
        article = reader.parse(sample_html, article_url)

        assert calls == [("start", "html"), ("end", "div")]
        assert "Tomatoes are among" not in article.text_content
        assert article.element["data-checked"] == "yes"

    def test_custom_serializer_and_text_converter(self, sample_html, article_url):
        reader = Reader(ReaderOptions(
            serializer=lambda element: "<custom/>",
            text_converter=lambda element: "plain",
        ))

        article = reader.parse(sample_html, article_url)

        assert article.content == "<custom/>"
        assert article.text_content == "plain"

    def test_language_identification(self, sample_html, article_url):
        seen = []

        def identify(text, language):
            seen.append(language)
            return "de"

        article = Reader(ReaderOptions(language_identification=identify)).parse(sample_html, article_url)

        assert seen == ["en"]
        assert article.language == "de"

    def test_language_identification_errors_ignored(self, sample_html, article_url, caplog):
        def identify(text, language):
            raise RuntimeError("model not loaded")

        with caplog.at_level("WARNING", logger="web_reader"):
            article = Reader(ReaderOptions(language_identification=identify)).parse(sample_html, article_url)

        assert article.is_readable
        assert article.language == "en"
        assert "Language identification failed: model not loaded (hook='identify')" in caplog.text

    def test_language_detection_error_from_hook(self, sample_html, article_url, caplog):
        def identify(text, language):
            raise LanguageDetectionError("unsupported script")

        with caplog.at_level("WARNING", logger="web_reader"):
            article = Reader(ReaderOptions(language_identification=identify)).parse(sample_html, article_url)

        assert article.language == "en"
        assert "Language identification failed: unsupported script" in caplog.text

    def test_debug_sink(self, sample_html, article_url):
        messages = []

        Reader(ReaderOptions(debug=True, debug_sink=messages.append)).parse(sample_html, article_url)

        assert messages
        assert any("grabArticle" in message for message in messages)

    def test_debug_trace_logged(self, sample_html, article_url, caplog):
        with caplog.at_level("DEBUG", logger="web_reader"):
            Reader(ReaderOptions(debug=True)).parse(sample_html, article_url)

        assert "grabArticle" in caplog.text
