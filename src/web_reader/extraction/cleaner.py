"""
Cleanup of the selected article content.

ContentCleaner.prep_article runs on every grab attempt and removes
low-value elements from the candidate content. post_process runs once
on the final content and rewrites URIs, classes and ids.
"""

import re
from math import floor

from bs4 import BeautifulSoup, NavigableString, Tag

from web_reader.extraction import dom
from web_reader.extraction.patterns import PatternCategory, PatternSet
from web_reader.extraction.scoring import Flags, class_weight
from web_reader.utils.logging import get_logger
from web_reader.utils.uri import absolutize_srcset, to_absolute

logger = get_logger(__name__)

# Ids that survive the final id stripping
PRESERVED_IDS = frozenset({"readability-page-1", "readability-content"})

_LAZY_SRCSET_RE = re.compile(r"\.(jpg|jpeg|png|webp)\s+\d", re.IGNORECASE)
_LAZY_SRC_RE = re.compile(r"^\s*\S+\.(jpg|jpeg|png|webp)\S*\s*$", re.IGNORECASE)
_SPAN_RE = re.compile(r"\s*(\d+)")

_EMBED_TAGS = ("object", "embed", "iframe")
_MEDIA_TAGS = ("img", "picture", "figure", "video", "audio", "source")
_DATA_TABLE_DESCENDANTS = ("col", "colgroup", "tfoot", "thead", "th")


def _span(value: str | None) -> int:
    # Leading digits, the way browsers read span attributes ("2px" is 2)
    match = _SPAN_RE.match(value or "")
    return (int(match.group(1)) or 1) if match else 1


def row_and_column_count(table: Tag) -> tuple[int, int]:
    """Rows (summing rowspan) and the widest row's columns (summing colspan)."""
    rows = 0
    columns = 0
    for tr in table.find_all("tr"):
        rows += _span(tr.get("rowspan"))
        columns_in_row = sum(_span(td.get("colspan")) for td in tr.find_all("td"))
        columns = max(columns, columns_in_row)
    return rows, columns


class ContentCleaner:
    """
    Removes clutter from candidate article content.

    Args:
        patterns: Pattern set used for class weights, videos and share markers
        char_threshold: Share-marked elements shorter than this are removed

    Example:
        >>> cleaner = ContentCleaner(PatternSet(), char_threshold=500)
        >>> cleaner.prep_article(soup, content, Flags.all(), "Article title")
    """

    def __init__(self, patterns: PatternSet, char_threshold: int = 500) -> None:
        self.patterns = patterns
        self.char_threshold = char_threshold

    # =========================================================================
    # Per-attempt cleaning
    # =========================================================================

    def prep_article(
        self,
        soup: BeautifulSoup,
        content: Tag,
        flags: Flags,
        article_title: str = "",
    ) -> None:
        """
        Prepare the article content for display.

        Args:
            soup: Document owning the content, used to create elements
            content: Candidate content container, cleaned in place
            flags: Active aggressiveness flags of the attempt
            article_title: Title from the metadata, to drop a duplicate <h2>
        """
        self.clean_styles(content)

        # Data tables must be known before anything removes their surroundings
        data_tables = self.mark_data_tables(content)

        self.fix_lazy_images(soup, content)

        self.clean_conditionally(content, "form", flags, data_tables)
        self.clean_conditionally(content, "fieldset", flags, data_tables)
        for tag in ("object", "embed", "h1", "footer", "link", "aside"):
            self.clean(content, tag)

        # Share widgets below the top level; the top level children are kept
        for child in dom.element_children(content):
            self._clean_share_elements(child)

        self._clean_title_heading(content, article_title)

        for tag in ("iframe", "input", "textarea", "select", "button"):
            self.clean(content, tag)
        self.clean_headers(content, flags)

        # Last, as earlier steps may have removed junk that affects these
        self.clean_conditionally(content, "table", flags, data_tables)
        self.clean_conditionally(content, "ul", flags, data_tables)
        self.clean_conditionally(content, "div", flags, data_tables)

        dom.remove_nodes(content.find_all("p"), self._is_empty_paragraph)

        for br in content.find_all("br"):
            following = dom.next_element(br.next_sibling)
            if following is not None and following.name == "p":
                br.extract()

        self._unwrap_single_cell_tables(content)

    def clean_styles(self, root: Tag) -> None:
        """Remove presentational attributes on the element and below, skipping <svg>."""
        stack = [root]
        while stack:
            element = stack.pop()
            if element.name == "svg":
                continue

            for attribute in dom.PRESENTATIONAL_ATTRIBUTES:
                if attribute in element.attrs:
                    del element[attribute]

            if element.name in dom.DEPRECATED_SIZE_ATTRIBUTE_ELEMS:
                for attribute in ("width", "height"):
                    if attribute in element.attrs:
                        del element[attribute]

            stack.extend(reversed(dom.element_children(element)))

    def mark_data_tables(self, root: Tag) -> set[int]:
        """
        Classify tables as data (as opposed to layout) tables.

        Returns:
            Ids of the tables holding real tabular data
        """
        data_tables: set[int] = set()

        for table in root.find_all("table"):
            if table.get("role") == "presentation":
                continue
            if table.get("datatable") == "0":
                continue

            if table.get("summary"):
                data_tables.add(id(table))
                continue

            caption = table.find("caption")
            if caption is not None and caption.contents:
                data_tables.add(id(table))
                continue

            if any(table.find(tag) is not None for tag in _DATA_TABLE_DESCENDANTS):
                logger.debug("Data table because found data-y descendant")
                data_tables.add(id(table))
                continue

            # Nested tables indicate a layout table
            if table.find("table") is not None:
                continue

            rows, columns = row_and_column_count(table)
            if rows >= 10 or columns > 4 or rows * columns > 10:
                data_tables.add(id(table))

        return data_tables

    def fix_lazy_images(self, soup: BeautifulSoup, root: Tag) -> None:
        """Copy lazy-loading attributes (data-src and friends) into src/srcset."""
        for element in root.find_all(["img", "picture", "figure"]):
            src = element.get("src")
            srcset = element.get("srcset")
            is_lazy = "lazy" in dom.get_class(element).lower()

            if (src or srcset) and not is_lazy:
                continue

            for name, value in list(element.attrs.items()):
                if name in ("src", "srcset"):
                    continue
                value = " ".join(value) if isinstance(value, list) else str(value)

                if _LAZY_SRCSET_RE.search(value):
                    copy_to = "srcset"
                elif _LAZY_SRC_RE.match(value):
                    copy_to = "src"
                else:
                    continue

                if element.name in ("img", "picture"):
                    element[copy_to] = value
                elif element.name == "figure" and element.find(["img", "picture"]) is None:
                    # A figure without an image gets one created from the attribute
                    img = soup.new_tag("img")
                    img[copy_to] = value
                    element.append(img)

    def _matches_video(self, element: Tag) -> bool:
        videos = self.patterns.get(PatternCategory.VIDEOS)
        if any(videos.search(value) for value in dom.attribute_values(element)):
            return True
        return element.name == "object" and bool(videos.search(dom.inner_html(element)))

    def clean(self, root: Tag, tag: str) -> None:
        """Remove every ``tag`` element, sparing embedded videos."""
        is_embed = tag in _EMBED_TAGS

        def should_remove(element: Tag) -> bool:
            return not (is_embed and self._matches_video(element))

        dom.remove_nodes(root.find_all(tag), should_remove)

    def clean_headers(self, root: Tag, flags: Flags) -> None:
        """Remove <h1> and <h2> headers with a negative class weight."""
        for level in (1, 2):
            dom.remove_nodes(
                root.find_all(f"h{level}"),
                lambda header: class_weight(header, self.patterns, flags) < 0,
            )

    def clean_conditionally(
        self,
        root: Tag,
        tag: str,
        flags: Flags,
        data_tables: set[int],
    ) -> None:
        """
        Remove ``tag`` elements that look fishy.

        Fishy is judged on content length, class names, link density,
        and the number of images, inputs and embeds.
        """
        if not flags & Flags.CLEAN_CONDITIONALLY:
            return

        is_list = tag in ("ul", "ol")

        def is_data_table(element: Tag) -> bool:
            return id(element) in data_tables

        def should_remove(node: Tag) -> bool:
            if tag == "table" and is_data_table(node):
                return False
            if dom.has_ancestor_tag(node, "table", -1, is_data_table):
                return False

            weight = class_weight(node, self.patterns, flags)
            if weight < 0:
                return True

            if dom.char_count(node, ",") >= 10:
                return False

            p = len(node.find_all("p"))
            img = len(node.find_all("img"))
            li = len(node.find_all("li")) - 100
            inputs = len(node.find_all("input"))

            embed_count = 0
            for embed in node.find_all(list(_EMBED_TAGS)):
                if self._matches_video(embed):
                    return False
                embed_count += 1

            density = dom.link_density(node)
            content_length = len(dom.inner_text(node))
            in_figure = dom.has_ancestor_tag(node, "figure")

            return (
                (img > 1 and p / img < 0.5 and not in_figure)
                or (not is_list and li > p)
                or (inputs > floor(p / 3))
                or (not is_list and content_length < 25 and (img == 0 or img > 2) and not in_figure)
                or (not is_list and weight < 25 and density > 0.2)
                or (weight >= 25 and density > 0.5)
                or (embed_count == 1 and content_length < 75)
                or embed_count > 1
            )

        dom.remove_nodes(root.find_all(tag), should_remove)

    def _clean_share_elements(self, element: Tag) -> None:
        share = self.patterns.get(PatternCategory.SHARE_ELEMENTS)
        end_marker = dom.get_next_node(element, ignore_self_and_kids=True)
        node = dom.get_next_node(element)

        while node is not None and node is not end_marker:
            if share.search(dom.match_string(node)) and \
                    len(dom.text_content(node)) < self.char_threshold:
                node = dom.remove_and_get_next(node)
            else:
                node = dom.get_next_node(node)

    def _clean_title_heading(self, content: Tag, article_title: str) -> None:
        """Drop a lone <h2> that repeats the article title."""
        headings = content.find_all("h2")
        if len(headings) != 1 or not article_title:
            return

        heading_text = dom.text_content(headings[0])
        length_similar_rate = (len(heading_text) - len(article_title)) / len(article_title)
        if abs(length_similar_rate) >= 0.5:
            return

        if length_similar_rate > 0:
            titles_match = article_title in heading_text
        else:
            titles_match = heading_text in article_title

        if titles_match:
            self.clean(content, "h2")

    def _is_empty_paragraph(self, paragraph: Tag) -> bool:
        # Remaining iframes are embedded videos
        if paragraph.find(["img", "embed", "object", "iframe"]) is not None:
            return False
        return not dom.inner_text(paragraph, normalize_spaces=False)

    def _unwrap_single_cell_tables(self, content: Tag) -> None:
        for table in content.find_all("table"):
            if table.parent is None:
                continue

            tbody = dom.first_element_child(table) \
                if dom.has_single_tag_inside_element(table, "tbody") else table
            if not dom.has_single_tag_inside_element(tbody, "tr"):
                continue

            row = dom.first_element_child(tbody)
            if not dom.has_single_tag_inside_element(row, "td"):
                continue

            cell = dom.first_element_child(row)
            phrasing = all(dom.is_phrasing_content(child) for child in cell.children)
            dom.set_node_tag(cell, "p" if phrasing else "div")
            table.replace_with(cell.extract())

    # =========================================================================
    # Final post-processing
    # =========================================================================

    def post_process(
        self,
        soup: BeautifulSoup,
        content: Tag,
        url: str,
        classes_to_preserve: list[str] | tuple[str, ...],
        keep_classes: bool = False,
    ) -> None:
        """
        Finish the selected content: absolute URIs, simplified nesting,
        and only the preserved classes and ids left.
        """
        self.fix_relative_uris(soup, content, url)
        self.simplify_nested_elements(content)

        if not keep_classes:
            self.clean_classes(content, classes_to_preserve)

        self.clean_ids(content)

    def fix_relative_uris(self, soup: BeautifulSoup, content: Tag, url: str) -> None:
        """
        Make every link and media URI absolute.

        ``javascript:`` links cannot work once scripts are gone, so they
        are replaced by their content.
        """
        for link in content.find_all("a"):
            href = link.get("href")
            if not isinstance(href, str) or not href.strip():
                continue

            if not href.lower().startswith("javascript:"):
                link["href"] = to_absolute(url, href)
                continue

            children = list(link.contents)
            if len(children) == 1 and dom.is_text(children[0]):
                link.replace_with(NavigableString(dom.text_content(link)))
            else:
                container = soup.new_tag("span")
                for child in children:
                    container.append(child.extract())
                link.replace_with(container)

        for media in content.find_all(list(_MEDIA_TAGS)):
            for attribute in ("src", "poster"):
                value = media.get(attribute)
                if isinstance(value, str):
                    media[attribute] = to_absolute(url, value)

            srcset = media.get("srcset")
            if isinstance(srcset, str):
                media["srcset"] = absolutize_srcset(url, srcset)

    def simplify_nested_elements(self, content: Tag) -> None:
        """Collapse empty or single-child <div>/<section> wrappers."""
        node = content
        while node is not None:
            if node.parent is not None and node.name in ("div", "section") \
                    and not dom.get_id(node).startswith("readability"):
                if dom.is_element_without_content(node):
                    node = dom.remove_and_get_next(node)
                    continue

                if dom.has_single_tag_inside_element(node, "div") or \
                        dom.has_single_tag_inside_element(node, "section"):
                    child = dom.element_children(node)[0]
                    for name, value in node.attrs.items():
                        child[name] = value
                    node.replace_with(child.extract())
                    node = child
                    continue

            node = dom.get_next_node(node)
            if node is not None and not self._is_within(node, content):
                break

    @staticmethod
    def _is_within(node: Tag, root: Tag) -> bool:
        return node is root or any(parent is root for parent in node.parents)

    def clean_classes(self, root: Tag, classes_to_preserve: list[str] | tuple[str, ...]) -> None:
        """Remove every class except the preserved ones."""
        preserved = set(classes_to_preserve)
        for element in [root, *root.find_all(True)]:
            kept = [name for name in dom.get_class(element).split() if name in preserved]
            dom.set_class(element, " ".join(kept))

    def clean_ids(self, root: Tag) -> None:
        for element in [root, *root.find_all(True)]:
            if "id" in element.attrs and element.get("id") not in PRESERVED_IDS:
                del element["id"]
