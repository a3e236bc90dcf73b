"""
Document normalization run before any scoring.

Strips scripts, styles and comments, recovers images hidden in
<noscript> fallbacks, turns <br> runs into paragraphs and retags
<font> elements.
"""

import re

from bs4 import BeautifulSoup, Tag

from web_reader.extraction import dom
from web_reader.utils.logging import get_logger

logger = get_logger(__name__)

_IMAGE_EXTENSION_RE = re.compile(r"\.(jpg|jpeg|png|webp)", re.IGNORECASE)

# Attributes that mean an <img> is more than a placeholder
_IMAGE_SOURCE_ATTRIBUTES = ("src", "srcset", "data-src", "data-srcset")


class DomPreprocessor:
    """
    Normalizes a parsed document in place.

    Example:
        >>> soup = BeautifulSoup(html, "html.parser")
        >>> preprocessor = DomPreprocessor()
        >>> preprocessor.unwrap_noscript_images(soup)
        >>> preprocessor.remove_scripts(soup)
        >>> preprocessor.prep_document(soup)
    """

    def unwrap_noscript_images(self, soup: BeautifulSoup) -> None:
        """
        Replace lazy-loading placeholders with the image kept in the
        following <noscript> fallback.

        Images with no source at all are dropped first so that a
        placeholder is never chosen over the real image.
        """
        for img in soup.find_all("img"):
            if not self._looks_like_image(img):
                img.extract()

        for noscript in soup.find_all("noscript"):
            if noscript.parent is None:
                continue

            fragment = BeautifulSoup(noscript.decode_contents(), "html.parser")
            wrapper = fragment.new_tag("div")
            for child in list(fragment.contents):
                wrapper.append(child.extract())

            if not dom.is_single_image(wrapper):
                continue

            previous = dom.previous_element_sibling(noscript)
            if previous is None or not dom.is_single_image(previous):
                continue

            previous_img = previous if previous.name == "img" else previous.find("img")
            new_img = wrapper.find("img")
            self._merge_image_attributes(previous_img, new_img)

            replacement = dom.first_element_child(wrapper)
            previous.replace_with(replacement.extract())
            noscript.extract()

    def _looks_like_image(self, img: Tag) -> bool:
        for name, value in img.attrs.items():
            if name in _IMAGE_SOURCE_ATTRIBUTES:
                return True
            value = " ".join(value) if isinstance(value, list) else str(value)
            if _IMAGE_EXTENSION_RE.search(value):
                return True
        return False

    def _merge_image_attributes(self, source: Tag, target: Tag) -> None:
        """Copy image-bearing attributes the target lacks, prefixing clashes with ``data-old-``."""
        for name, value in list(source.attrs.items()):
            value = " ".join(value) if isinstance(value, list) else str(value)
            if not value:
                continue
            if name not in ("src", "srcset") and not _IMAGE_EXTENSION_RE.search(value):
                continue
            if target.get(name) == value:
                continue

            target_name = f"data-old-{name}" if target.has_attr(name) else name
            target[target_name] = value

    def remove_scripts(self, soup: BeautifulSoup) -> None:
        """Remove <script> and <noscript> elements and all comments."""
        dom.remove_nodes(soup.find_all(["script", "noscript"]))
        dom.remove_comments(soup)

    def prep_document(self, soup: BeautifulSoup) -> None:
        """
        Prepare the document for scoring: drop <style>, collapse <br>
        runs into paragraphs and retag <font> as <span>.
        """
        dom.remove_nodes(soup.find_all("style"))

        body = soup.body
        if body is not None:
            self.replace_brs(soup, body)

        for font in soup.find_all("font"):
            dom.set_node_tag(font, "span")

    def replace_brs(self, soup: BeautifulSoup, root: Tag) -> None:
        """
        Replace two or more successive <br> elements with a single <p>.

        Whitespace between <br> elements is ignored, so
        ``<div>foo<br>bar<br> <br><br>abc</div>`` becomes
        ``<div>foo<br>bar<p>abc</p></div>``.
        """
        for br in root.find_all("br"):
            if br.parent is None:
                continue

            replaced = False
            following = dom.next_element(br.next_sibling)
            while following is not None and following.name == "br":
                replaced = True
                after = following.next_sibling
                following.extract()
                following = dom.next_element(after)

            if not replaced:
                continue

            paragraph = soup.new_tag("p")
            br.replace_with(paragraph)

            sibling = paragraph.next_sibling
            while sibling is not None:
                # Another <br><br> ends this paragraph
                if isinstance(sibling, Tag) and sibling.name == "br":
                    after_br = dom.next_element(sibling.next_sibling)
                    if after_br is not None and after_br.name == "br":
                        break

                if not dom.is_phrasing_content(sibling):
                    break

                after = sibling.next_sibling
                paragraph.append(sibling.extract())
                sibling = after

            while paragraph.contents and dom.is_whitespace(paragraph.contents[-1]):
                paragraph.contents[-1].extract()

            if paragraph.parent is not None and paragraph.parent.name == "p":
                dom.set_node_tag(paragraph.parent, "div")

        logger.debug("Document prepared for scoring")
