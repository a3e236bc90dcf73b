"""
Tests for article content cleanup.
"""

import pytest
from bs4 import BeautifulSoup, Tag

from web_reader.extraction.cleaner import ContentCleaner, row_and_column_count
from web_reader.extraction.patterns import PatternSet
from web_reader.extraction.scoring import Flags

URL = "https://example.com/blog/post.html"


def _content(inner: str) -> tuple[BeautifulSoup, Tag]:
    """Detached content container, the way the grabber hands it over."""
    soup = BeautifulSoup(f"<div id='content'>{inner}</div>", "html.parser")
    return soup, soup.find(id="content").extract()


@pytest.fixture
def cleaner() -> ContentCleaner:
    return ContentCleaner(PatternSet(), char_threshold=500)


class TestPrepArticle:
    """Tests for the per-attempt cleanup."""

    def test_presentational_attributes_removed(self, cleaner: ContentCleaner):
        soup, content = _content(
            '<p align="center" style="color: red">Text</p>'
            '<table width="100" summary="Data"><tr><td>1</td></tr></table>'
            '<svg style="fill: red"></svg>'
        )

        cleaner.clean_styles(content)

        assert "align" not in content.p.attrs
        assert "style" not in content.p.attrs
        assert "width" not in content.table.attrs
        assert content.svg["style"] == "fill: red"

    def test_forms_and_asides_removed(self, cleaner: ContentCleaner):
        soup, content = _content(
            "<p>" + "Long paragraph text, " * 20 + "</p>"
            "<aside>Related</aside><footer>Footer</footer>"
            "<form><input type='text'></form><button>Click</button>"
        )

        cleaner.prep_article(soup, content, Flags.all())

        for tag in ("aside", "footer", "form", "input", "button"):
            assert content.find(tag) is None
        assert content.find("p") is not None

    def test_video_embed_kept(self, cleaner: ContentCleaner):
        soup, content = _content(
            '<p>' + "Text about the video, " * 10 + '</p>'
            '<iframe src="https://www.youtube.com/embed/abc"></iframe>'
            '<iframe src="https://ads.example.com/banner"></iframe>'
        )

        cleaner.prep_article(soup, content, Flags.all())

        iframes = content.find_all("iframe")
        assert len(iframes) == 1
        assert "youtube" in iframes[0]["src"]

    def test_duplicate_title_heading_removed(self, cleaner: ContentCleaner):
        soup, content = _content(
            "<h2>Growing Tomatoes</h2><p>" + "Some words, " * 20 + "</p>"
        )

        cleaner.prep_article(soup, content, Flags.all(), "Growing Tomatoes at Home")

        assert content.find("h2") is None

    def test_h1_removed_before_share_widgets_measured(self, cleaner: ContentCleaner):
        soup, content = _content(
            "<div><p>" + "Some words, " * 20 + "</p>"
            '<div class="share-tools"><h1>' + "Heading words " * 40 + "</h1>"
            '<a href="/tweet">Tweet</a></div></div>'
        )

        cleaner.prep_article(soup, content, Flags.NONE)

        assert content.find("h1") is None
        assert content.find(class_="share-tools") is None
        assert content.find("p") is not None

    def test_negative_headers_removed(self, cleaner: ContentCleaner):
        soup, content = _content(
            '<h2 class="comment-header">Comments</h2><h2>Section</h2><p>' + "Words, " * 30 + "</p>"
        )

        cleaner.prep_article(soup, content, Flags.all())

        assert [h.get_text() for h in content.find_all("h2")] == ["Section"]

    def test_empty_paragraphs_removed(self, cleaner: ContentCleaner):
        soup, content = _content('<p>   </p><p><img src="a.jpg"></p><p>Text</p>')

        cleaner.prep_article(soup, content, Flags.NONE)

        assert len(content.find_all("p")) == 2

    def test_link_heavy_div_removed(self, cleaner: ContentCleaner):
        soup, content = _content(
            "<p>" + "Real article words, " * 20 + "</p>"
            '<div><a href="/a">Link one</a> <a href="/b">Link two</a></div>'
        )

        cleaner.prep_article(soup, content, Flags.all())

        assert content.find("a") is None

    def test_clean_conditionally_off_without_flag(self, cleaner: ContentCleaner):
        soup, content = _content(
            '<div><a href="/a">Link one</a> <a href="/b">Link two</a></div>'
        )

        cleaner.prep_article(soup, content, Flags.all() & ~Flags.CLEAN_CONDITIONALLY)

        assert len(content.find_all("a")) == 2

    def test_single_cell_table_unwrapped(self, cleaner: ContentCleaner):
        soup, content = _content("<table><tbody><tr><td>Just <b>text</b></td></tr></tbody></table>")

        cleaner.prep_article(soup, content, Flags.NONE)

        assert content.find("table") is None
        assert content.find("p").get_text() == "Just text"

    def test_lazy_image_attributes(self, cleaner: ContentCleaner):
        soup, content = _content(
            '<img data-src="photo.jpg">'
            '<img class="lazy" src="blank.gif" data-srcset="big.jpg 2x">'
            '<figure data-image="figure.png"></figure>'
        )

        cleaner.fix_lazy_images(soup, content)

        images = content.find_all("img")
        assert images[0]["src"] == "photo.jpg"
        assert images[1]["srcset"] == "big.jpg 2x"
        assert content.figure.img["src"] == "figure.png"


class TestDataTables:
    """Tests for data table classification."""

    def test_classification(self, cleaner: ContentCleaner):
        soup, content = _content(
            '<table id="layout" role="presentation"><tr><th>x</th></tr></table>'
            '<table id="summary" summary="Prices"><tr><td>1</td></tr></table>'
            '<table id="header"><tr><th>A</th></tr></table>'
            '<table id="small"><tr><td>1</td><td>2</td></tr></table>'
            '<table id="wide"><tr>' + "<td>x</td>" * 5 + '</tr></table>'
        )
        tables = {table["id"]: id(table) for table in content.find_all("table")}

        data_tables = cleaner.mark_data_tables(content)

        assert data_tables == {tables["summary"], tables["header"], tables["wide"]}

    def test_row_and_column_count(self):
        soup = BeautifulSoup(
            '<table><tr><td colspan="3">a</td></tr><tr rowspan="2"><td>b</td></tr></table>',
            "html.parser",
        )

        assert row_and_column_count(soup.table) == (3, 3)

    @pytest.mark.parametrize("span,expected", [
        ("2abc", 2),
        (" 3", 3),
        ("0", 1),
        ("wide", 1),
        ("", 1),
    ])
    def test_span_leading_digits(self, span, expected):
        soup = BeautifulSoup(f'<table><tr><td colspan="{span}">a</td></tr></table>', "html.parser")

        assert row_and_column_count(soup.table) == (1, expected)


class TestPostProcess:
    """Tests for the final content rewrite."""

    def test_relative_uris(self, cleaner: ContentCleaner):
        soup, content = _content(
            '<a href="other.html">Other</a>'
            '<a href="#note">Note</a>'
            '<img src="/img/a.png" srcset="b.png 2x">'
            '<video poster="poster.jpg"></video>'
        )

        cleaner.fix_relative_uris(soup, content, URL)

        links = content.find_all("a")
        assert links[0]["href"] == "https://example.com/blog/other.html"
        assert links[1]["href"] == "#note"
        assert content.img["src"] == "https://example.com/img/a.png"
        assert content.img["srcset"] == "https://example.com/blog/b.png 2x"
        assert content.video["poster"] == "https://example.com/blog/poster.jpg"

    def test_javascript_links_replaced(self, cleaner: ContentCleaner):
        soup, content = _content(
            '<p><a href="javascript:void(0)">plain</a> and '
            '<a href="javascript:go()"><b>bold</b> text</a></p>'
        )

        cleaner.fix_relative_uris(soup, content, URL)

        assert content.find("a") is None
        assert content.p.get_text() == "plain and bold text"
        assert content.find("span").find("b") is not None

    def test_simplify_nested_elements(self, cleaner: ContentCleaner):
        soup, content = _content(
            '<div id="readability-page-1"><div class="outer"><div class="inner"><p>Text</p></div></div>'
            '<section></section></div>'
        )

        cleaner.simplify_nested_elements(content)

        page = content.find(id="readability-page-1")
        assert page is not None
        assert content.find("section") is None
        assert len(page.find_all("div")) == 1
        # The surviving child takes the wrapper's attributes
        inner = page.find("div")
        assert inner["class"] == ["outer"]
        assert inner.p.get_text() == "Text"

    def test_classes_and_ids(self, cleaner: ContentCleaner):
        soup, content = _content(
            '<div id="readability-page-1" class="page wrapper">'
            '<p id="intro" class="lead caption">Text</p></div>'
        )

        cleaner.post_process(soup, content, URL, ["page", "caption"])

        page = content.find(id="readability-page-1")
        assert page["class"] == ["page"]
        assert content.p["class"] == ["caption"]
        assert "id" not in content.p.attrs
        assert "id" not in content.attrs

    def test_keep_classes(self, cleaner: ContentCleaner):
        soup, content = _content('<p class="lead">Text</p>')

        cleaner.post_process(soup, content, URL, ["page"], keep_classes=True)

        assert content.p["class"] == ["lead"]
