"""
Article content selection.

ArticleGrabber scores the document's paragraphs, picks the element most
likely to hold the article, merges related siblings and cleans the
result. When the result is too short the document is restored and the
whole thing is retried with one aggressiveness flag fewer.
"""

import re
from dataclasses import dataclass
from math import floor

from bs4 import BeautifulSoup, NavigableString, Tag

from web_reader.extraction import dom
from web_reader.extraction.cleaner import ContentCleaner
from web_reader.extraction.patterns import PatternCategory, PatternSet
from web_reader.extraction.scoring import FLAG_RELAXATION_ORDER, Flags, ScoreTable
from web_reader.utils.logging import DebugTrace, get_logger

logger = get_logger(__name__)

TAGS_TO_SCORE = frozenset({"section", "h2", "h3", "h4", "h5", "h6", "p", "td", "pre"})

# Appended siblings with other tags become <div>
ALTER_TO_DIV_EXCEPTIONS = frozenset({"div", "article", "section", "p"})

UNLIKELY_ROLES = frozenset({
    "menu", "menubar", "complementary", "navigation", "alert", "alertdialog", "dialog",
})

_EMPTY_REMOVABLE_TAGS = frozenset({"div", "section", "header", "h1", "h2", "h3", "h4", "h5", "h6"})

_SENTENCE_END_RE = re.compile(r"\.( |$)")

# Candidates whose ancestors may be promoted to top candidate
MINIMUM_TOP_CANDIDATES = 3


@dataclass
class GrabResult:
    """Outcome of a successful grab."""

    content: Tag
    byline: str = ""
    author: str = ""
    dir: str = ""
    # False when no attempt reached the character threshold
    is_readable: bool = True


@dataclass
class _Attempt:
    content: Tag
    length: int
    dir: str


def ensure_body(soup: BeautifulSoup) -> Tag:
    """Return the document's <body>, creating one around loose content if missing."""
    if soup.body is not None:
        return soup.body

    html = soup.find("html")
    container = html if html is not None else soup
    body = soup.new_tag("body")

    for child in list(container.contents):
        if isinstance(child, Tag):
            if child.name == "head":
                continue
        elif not dom.is_text(child):
            continue
        body.append(child.extract())

    container.append(body)
    return body


class ArticleGrabber:
    """
    Finds the main content of a prepared document.

    The grabber keeps no state between calls: scores, flags and
    attempts all live inside ``grab``.

    Args:
        patterns: Pattern set used for scoring and cleaning
        n_top_candidates: How many top candidates to track
        char_threshold: Minimum text length of an accepted result
        trace: Debug trace receiving progress messages

    Example:
        >>> grabber = ArticleGrabber(PatternSet())
        >>> result = grabber.grab(soup, article_title="My article")
        >>> if result:
        ...     print(result.content.get_text())
    """

    def __init__(
        self,
        patterns: PatternSet,
        n_top_candidates: int = 5,
        char_threshold: int = 500,
        trace: DebugTrace | None = None,
    ) -> None:
        self.patterns = patterns
        self.n_top_candidates = n_top_candidates
        self.char_threshold = char_threshold
        self.cleaner = ContentCleaner(patterns, char_threshold)
        self._trace = trace or DebugTrace(logger)

    def grab(self, soup: BeautifulSoup, article_title: str = "") -> GrabResult | None:
        """
        Select the article content.

        Args:
            soup: Preprocessed document; it is mutated
            article_title: Title found in the metadata

        Returns:
            GrabResult with the detached content container, or None when
            nothing readable was found
        """
        self._trace("**** grabArticle ****")
        page = ensure_body(soup)
        page_cache = page.decode_contents()

        flags = Flags.all()
        attempts: list[_Attempt] = []
        byline = {"byline": "", "author": ""}

        while True:
            content, article_dir = self._attempt(soup, page, flags, article_title, byline)
            text_length = len(dom.inner_text(content))

            if text_length >= self.char_threshold:
                return GrabResult(content, byline["byline"], byline["author"], article_dir)

            self._trace(f"Attempt with flags {flags!r} found {text_length} characters")
            attempts.append(_Attempt(content, text_length, article_dir))
            self._restore(page, page_cache)

            for flag in FLAG_RELAXATION_ORDER:
                if flags & flag:
                    flags &= ~flag
                    break
            else:
                # No luck after removing flags, use the longest text found
                best = max(attempts, key=lambda attempt: attempt.length)
                if best.length == 0:
                    return None
                return GrabResult(
                    best.content, byline["byline"], byline["author"], best.dir, is_readable=False)

    def _restore(self, page: Tag, page_cache: str) -> None:
        page.clear()
        fragment = BeautifulSoup(page_cache, "html.parser")
        for child in list(fragment.contents):
            page.append(child.extract())

    def _attempt(
        self,
        soup: BeautifulSoup,
        page: Tag,
        flags: Flags,
        article_title: str,
        byline: dict[str, str],
    ) -> tuple[Tag, str]:
        table = ScoreTable(self.patterns, flags)

        elements_to_score = self._prepare_nodes(soup, flags, byline)
        candidates = self._score_elements(elements_to_score, table)
        top_candidates = self._top_candidates(candidates, table)

        top_candidate, created = self._select_top_candidate(soup, page, top_candidates, table)
        parent_of_top = dom.parent_element(top_candidate)

        article_content = soup.new_tag("div")
        self._gather_siblings(top_candidate, parent_of_top, article_content, table)
        if self._trace.enabled:
            self._trace(f"Article content pre-prep: {dom.inner_html(article_content)}")

        self.cleaner.prep_article(soup, article_content, flags, article_title)
        if self._trace.enabled:
            self._trace(f"Article content post-prep: {dom.inner_html(article_content)}")

        if created:
            # The synthesized container already is the only child
            top_candidate["id"] = "readability-page-1"
            top_candidate["class"] = ["page"]
        else:
            page_div = soup.new_tag("div", attrs={"id": "readability-page-1", "class": "page"})
            for child in list(article_content.contents):
                page_div.append(child.extract())
            article_content.append(page_div)

        return article_content, self._text_direction(top_candidate, parent_of_top)

    def _prepare_nodes(
        self,
        soup: BeautifulSoup,
        flags: Flags,
        byline: dict[str, str],
    ) -> list[Tag]:
        """
        Walk the document removing clutter and collecting elements to score.

        DIVs used as paragraphs are turned into <p> along the way.
        """
        unlikely = self.patterns.get(PatternCategory.UNLIKELY_CANDIDATES)
        possible = self.patterns.get(PatternCategory.POSSIBLE_CANDIDATES)
        strip_unlikely = bool(flags & Flags.STRIP_UNLIKELY_CANDIDATES)

        elements_to_score: list[Tag] = []
        node = soup.find(True)

        while node is not None:
            match_string = dom.match_string(node)

            if not dom.is_probably_visible(node):
                self._trace(f"Removing hidden node - {match_string}")
                node = dom.remove_and_get_next(node)
                continue

            if self._check_byline(node, match_string, byline):
                node = dom.remove_and_get_next(node)
                continue

            if strip_unlikely:
                if (unlikely.search(match_string)
                        and not possible.search(match_string)
                        and not dom.has_ancestor_tag(node, "table")
                        and not dom.has_ancestor_tag(node, "code")
                        and node.name not in ("body", "a")):
                    self._trace(f"Removing unlikely candidate - {match_string}")
                    node = dom.remove_and_get_next(node)
                    continue

                if node.get("role") in UNLIKELY_ROLES:
                    self._trace(f"Removing content with role {node.get('role')} - {match_string}")
                    node = dom.remove_and_get_next(node)
                    continue

            if node.name in _EMPTY_REMOVABLE_TAGS and dom.is_element_without_content(node):
                node = dom.remove_and_get_next(node)
                continue

            if node.name in TAGS_TO_SCORE:
                elements_to_score.append(node)

            if node.name == "div":
                self._wrap_phrasing_content(soup, node)

                # A DIV holding only a <p> is really that paragraph
                if dom.has_single_tag_inside_element(node, "p") and dom.link_density(node) < 0.25:
                    paragraph = dom.element_children(node)[0]
                    dom.set_class(paragraph, f"{dom.get_class(paragraph)} {dom.get_class(node)}")
                    node.replace_with(paragraph.extract())
                    node = paragraph
                    elements_to_score.append(node)
                elif not dom.has_child_block_element(node):
                    dom.set_node_tag(node, "p")
                    elements_to_score.append(node)

            node = dom.get_next_node(node)

        return elements_to_score

    def _wrap_phrasing_content(self, soup: BeautifulSoup, div: Tag) -> None:
        """Put runs of phrasing content directly inside a DIV into paragraphs."""
        paragraph = None
        child = div.contents[0] if div.contents else None

        while child is not None:
            next_sibling = child.next_sibling
            if dom.is_phrasing_content(child):
                if paragraph is not None:
                    paragraph.append(child.extract())
                elif not dom.is_whitespace(child):
                    paragraph = soup.new_tag("p")
                    child.replace_with(paragraph)
                    paragraph.append(child)
            elif paragraph is not None:
                while paragraph.contents and dom.is_whitespace(paragraph.contents[-1]):
                    paragraph.contents[-1].extract()
                paragraph = None
            child = next_sibling

    def _check_byline(self, node: Tag, match_string: str, byline: dict[str, str]) -> bool:
        """Record and report the first plausible byline element."""
        if byline["byline"]:
            return False

        rel = node.get("rel")
        rel = " ".join(rel) if isinstance(rel, list) else (rel or "")
        itemprop = node.get("itemprop") or ""

        is_byline = (
            rel == "author"
            or "author" in itemprop
            or self.patterns.get(PatternCategory.BYLINE).search(match_string)
        )
        text = dom.text_content(node).strip()
        if not is_byline or not 0 < len(text) < 100:
            return False

        if rel == "author":
            byline["author"] = text
        else:
            nested = node.find(attrs={"rel": "author"})
            if nested is not None:
                byline["author"] = dom.text_content(nested).strip()

        byline["byline"] = text
        return True

    def _score_elements(self, elements_to_score: list[Tag], table: ScoreTable) -> list[Tag]:
        """Give each paragraph a score and propagate it to its ancestors."""
        candidates: list[Tag] = []

        for element in elements_to_score:
            if element.parent is None:
                continue

            text = dom.inner_text(element)
            if len(text) < 25:
                continue

            ancestors = dom.get_ancestors(element, 3)
            if not ancestors:
                continue

            # One point for the paragraph, one per comma separated part,
            # one per 100 characters up to three
            content_score = 1 + len(text.split(",")) + min(floor(len(text) / 100), 3)

            for level, ancestor in enumerate(ancestors):
                if dom.parent_element(ancestor) is None:
                    continue

                if ancestor not in table:
                    table.initialize(ancestor)
                    candidates.append(ancestor)

                if level == 0:
                    divider = 1
                elif level == 1:
                    divider = 2
                else:
                    divider = level * 3
                table.add(ancestor, content_score / divider)

        return candidates

    def _top_candidates(self, candidates: list[Tag], table: ScoreTable) -> list[Tag]:
        """Scale scores by link density and keep the best N candidates."""
        top: list[Tag] = []

        for candidate in candidates:
            score = table.get(candidate) * (1 - dom.link_density(candidate))
            table.set(candidate, score)

            for position in range(self.n_top_candidates):
                current = top[position] if position < len(top) else None
                if current is None or score > table.get(current):
                    top.insert(position, candidate)
                    if len(top) > self.n_top_candidates:
                        top.pop()
                    break

        return top

    def _select_top_candidate(
        self,
        soup: BeautifulSoup,
        page: Tag,
        top_candidates: list[Tag],
        table: ScoreTable,
    ) -> tuple[Tag, bool]:
        top_candidate = top_candidates[0] if top_candidates else None

        # Nothing usable: put the whole page in a new container
        if top_candidate is None or top_candidate.name == "body":
            container = soup.new_tag("div")
            for child in list(page.contents):
                container.append(child.extract())
            page.append(container)
            table.initialize(container)
            return container, True

        top_candidate = self._promote_shared_ancestor(top_candidate, top_candidates, table)
        if top_candidate not in table:
            table.initialize(top_candidate)

        # Parents scoring higher than the candidate probably hold more content
        parent = dom.parent_element(top_candidate)
        last_score = table.get(top_candidate)
        score_threshold = last_score / 3
        while parent is not None and parent.name != "body":
            if parent not in table:
                parent = dom.parent_element(parent)
                continue

            parent_score = table.get(parent)
            if parent_score < score_threshold:
                break
            if parent_score > last_score:
                top_candidate = parent
                break

            last_score = parent_score
            parent = dom.parent_element(parent)

        # An only child gives way to its parent so siblings can be joined
        parent = dom.parent_element(top_candidate)
        while parent is not None and parent.name != "body" and len(dom.element_children(parent)) == 1:
            top_candidate = parent
            parent = dom.parent_element(top_candidate)

        if top_candidate not in table:
            table.initialize(top_candidate)

        return top_candidate, False

    def _promote_shared_ancestor(
        self,
        top_candidate: Tag,
        top_candidates: list[Tag],
        table: ScoreTable,
    ) -> Tag:
        """Use an ancestor shared by several candidates scoring close to the best."""
        top_score = table.get(top_candidate)
        if top_score <= 0:
            return top_candidate

        alternative_ancestors = [
            dom.get_ancestors(candidate)
            for candidate in top_candidates[1:]
            if table.get(candidate) / top_score >= 0.75
        ]
        if len(alternative_ancestors) < MINIMUM_TOP_CANDIDATES:
            return top_candidate

        parent = dom.parent_element(top_candidate)
        while parent is not None and parent.name != "body":
            containing = sum(
                1 for ancestors in alternative_ancestors
                if any(ancestor is parent for ancestor in ancestors)
            )
            if containing >= MINIMUM_TOP_CANDIDATES:
                return parent
            parent = dom.parent_element(parent)

        return top_candidate

    def _gather_siblings(
        self,
        top_candidate: Tag,
        parent_of_top: Tag | None,
        article_content: Tag,
        table: ScoreTable,
    ) -> None:
        """Move the top candidate and related siblings into the content container."""
        siblings = dom.element_children(parent_of_top) if parent_of_top is not None else [top_candidate]
        top_score = table.get(top_candidate)
        top_class = dom.get_class(top_candidate)
        sibling_threshold = max(10, top_score * 0.2)

        for sibling in siblings:
            append = sibling is top_candidate

            if not append:
                content_bonus = 0.0
                if top_class and dom.get_class(sibling) == top_class:
                    content_bonus += top_score * 0.2

                if sibling in table and table.get(sibling) + content_bonus >= sibling_threshold:
                    append = True
                elif sibling.name == "p":
                    density = dom.link_density(sibling)
                    node_content = dom.inner_text(sibling)
                    node_length = len(node_content)

                    if node_length > 80 and density < 0.25:
                        append = True
                    elif 0 < node_length < 80 and density == 0 and _SENTENCE_END_RE.search(node_content):
                        append = True

            if append:
                # Odd block tags like <form> or <td> would be filtered out later
                if sibling.name not in ALTER_TO_DIV_EXCEPTIONS:
                    dom.set_node_tag(sibling, "div")
                article_content.append(sibling.extract())

    def _text_direction(self, top_candidate: Tag, parent_of_top: Tag | None) -> str:
        chain = [top_candidate] if parent_of_top is None else \
            [parent_of_top, top_candidate, *dom.get_ancestors(parent_of_top)]
        for ancestor in chain:
            direction = ancestor.get("dir")
            if isinstance(direction, str) and direction:
                return direction
        return ""
