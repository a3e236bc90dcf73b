"""
Quick check of whether a document looks like an article.

Runs on the raw document before any mutation, so it is cheap enough to
call on every page.
"""

from math import sqrt
from typing import Callable

from bs4 import BeautifulSoup, Tag

from web_reader.extraction import dom
from web_reader.extraction.patterns import PatternCategory, PatternSet

# Paragraphs shorter than this do not count
MIN_CONTENT_LENGTH = 140
MIN_SCORE = 20


def _candidate_nodes(soup: BeautifulSoup) -> list[Tag]:
    """<p> and <pre> elements, plus DIVs using <br> as paragraph breaks."""
    nodes = soup.find_all(["p", "pre"])
    seen = {id(node) for node in nodes}

    for br in soup.select("div > br"):
        parent = br.parent
        if id(parent) not in seen:
            seen.add(id(parent))
            nodes.append(parent)

    return nodes


def is_probably_readerable(
    soup: BeautifulSoup,
    patterns: PatternSet | None = None,
    is_visible: Callable[[Tag], bool] | None = None,
    min_content_length: int = MIN_CONTENT_LENGTH,
    min_score: float = MIN_SCORE,
) -> bool:
    """
    Decide whether the parse is likely to find an article.

    Each long enough visible paragraph adds the square root of its extra
    length to a running score; the document is readerable once the score
    passes ``min_score``.

    Args:
        soup: Parsed document, left untouched
        patterns: Pattern set for the unlikely-candidate check
        is_visible: Visibility test, by default "no hiding style"
        min_content_length: Minimum paragraph text length
        min_score: Score to reach

    Returns:
        True if the document probably holds readable content
    """
    patterns = patterns or PatternSet()
    is_visible = is_visible or (lambda node: not dom.is_hidden(node))
    unlikely = patterns.get(PatternCategory.UNLIKELY_CANDIDATES)
    possible = patterns.get(PatternCategory.POSSIBLE_CANDIDATES)

    score = 0.0
    for node in _candidate_nodes(soup):
        if not is_visible(node):
            continue

        match_string = dom.match_string(node)
        if unlikely.search(match_string) and not possible.search(match_string):
            continue

        if node.name == "p" and node.find_parent("li") is not None:
            continue

        text_length = len(dom.text_content(node).strip())
        if text_length < min_content_length:
            continue

        score += sqrt(text_length - min_content_length)
        if score > min_score:
            return True

    return False
