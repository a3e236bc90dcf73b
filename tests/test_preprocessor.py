"""
Tests for document preprocessing.
"""

import pytest
from bs4 import BeautifulSoup

from web_reader.extraction.preprocessor import DomPreprocessor


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class TestDomPreprocessor:
    """Tests for DomPreprocessor."""

    @pytest.fixture
    def preprocessor(self) -> DomPreprocessor:
        return DomPreprocessor()

    def test_remove_scripts_and_comments(self, preprocessor: DomPreprocessor):
        soup = _soup(
            "<html><body><!-- note --><script>alert(1)</script>"
            "<noscript>Enable JS</noscript><p>Text</p></body></html>"
        )

        preprocessor.remove_scripts(soup)

        assert soup.find("script") is None
        assert soup.find("noscript") is None
        assert "note" not in str(soup)
        assert soup.find("p").get_text() == "Text"

    def test_prep_document_removes_styles_and_retags_font(self, preprocessor: DomPreprocessor):
        soup = _soup(
            '<html><head><style>p {}</style></head>'
            '<body><font color="red">Red <b>text</b></font></body></html>'
        )

        preprocessor.prep_document(soup)

        assert soup.find("style") is None
        span = soup.find("span")
        assert span is not None
        assert span.get("color") == "red"
        assert span.find("b").get_text() == "text"
        assert soup.find("font") is None

    def test_replace_brs(self, preprocessor: DomPreprocessor):
        """Runs of two or more <br> become a paragraph."""
        soup = _soup("<body><div>foo<br>bar<br> <br><br>abc</div></body>")

        preprocessor.prep_document(soup)

        div = soup.find("div")
        assert len(div.find_all("br")) == 1
        assert div.find("p").get_text().strip() == "abc"
        assert div.get_text().startswith("foobar")

    def test_replace_brs_stops_at_next_run(self, preprocessor: DomPreprocessor):
        soup = _soup("<body><div><br><br>first<br><br>second</div></body>")

        preprocessor.prep_document(soup)

        paragraphs = [p.get_text() for p in soup.find_all("p")]
        assert paragraphs == ["first", "second"]

    def test_replace_brs_inside_paragraph(self, preprocessor: DomPreprocessor):
        """A paragraph created inside a <p> turns that parent into a <div>."""
        soup = _soup("<body><p>one<br><br>two</p></body>")

        preprocessor.prep_document(soup)

        outer = soup.body.find(True)
        assert outer.name == "div"
        assert outer.find("p").get_text() == "two"

    def test_placeholder_images_removed(self, preprocessor: DomPreprocessor):
        soup = _soup(
            '<body><img class="placeholder"><img data-src="real.jpg">'
            '<img data-lazy="photo.png"></body>'
        )

        preprocessor.unwrap_noscript_images(soup)

        images = soup.find_all("img")
        assert len(images) == 2
        assert images[0].get("data-src") == "real.jpg"

    def test_noscript_image_replaces_placeholder(self, preprocessor: DomPreprocessor):
        soup = _soup(
            '<body><div><img src="blank.gif" data-src="photo.jpg">'
            '<noscript><img src="photo-full.jpg" alt="Photo"></noscript></div></body>'
        )

        preprocessor.unwrap_noscript_images(soup)

        images = soup.find_all("img")
        assert len(images) == 1
        img = images[0]
        assert img["src"] == "photo-full.jpg"
        assert img["data-old-src"] == "blank.gif"
        assert img["data-src"] == "photo.jpg"
        assert img["alt"] == "Photo"
        assert soup.find("noscript") is None

    def test_noscript_with_text_kept(self, preprocessor: DomPreprocessor):
        soup = _soup(
            '<body><img src="a.jpg"><noscript><p>Please enable JavaScript</p></noscript></body>'
        )

        preprocessor.unwrap_noscript_images(soup)

        assert soup.find("noscript") is not None
        assert soup.find("img")["src"] == "a.jpg"
