"""
Plain text rendering and reading time for extracted content.
"""

import re
import unicodedata
from datetime import timedelta

from bs4 import NavigableString, Tag

from web_reader.extraction import dom

BLOCK_ELEMENTS = frozenset({
    "address", "article", "aside", "blockquote", "dd", "div", "dl", "dt",
    "figcaption", "figure", "footer", "h1", "h2", "h3", "h4", "h5", "h6",
    "header", "hr", "li", "main", "ol", "p", "pre", "section", "table",
    "tr", "ul",
})

_SPACES_RE = re.compile(r"[ \t\f\v ]+")
_ANY_WHITESPACE_RE = re.compile(r"\s+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")

# Characters read per minute, by language
# (Trauzettel-Klosinski and Dietz, Standardized Assessment of Reading Performance)
CHARACTERS_PER_MINUTE = {
    "Arabic": 612,
    "Chinese": 255,
    "Dutch": 978,
    "English": 987,
    "Finnish": 1078,
    "French": 998,
    "German": 920,
    "Hebrew": 833,
    "Italian": 950,
    "Japanese": 357,
    "Polish": 916,
    "Portuguese": 913,
    "Swedish": 917,
    "Slovenian": 885,
    "Spanish": 1025,
    "Russian": 986,
    "Turkish": 1054,
}

# Average of the table without the three outliers
DEFAULT_CHARACTERS_PER_MINUTE = 960

LANGUAGE_NAMES = {
    "ar": "Arabic",
    "zh": "Chinese",
    "nl": "Dutch",
    "en": "English",
    "fi": "Finnish",
    "fr": "French",
    "de": "German",
    "he": "Hebrew",
    "iw": "Hebrew",
    "it": "Italian",
    "ja": "Japanese",
    "pl": "Polish",
    "pt": "Portuguese",
    "sv": "Swedish",
    "sl": "Slovenian",
    "es": "Spanish",
    "ru": "Russian",
    "tr": "Turkish",
}


def serialize_inner_html(element: Tag) -> str:
    """Default content serializer: the element's inner HTML."""
    return element.decode_contents()


def html_to_text(element: Tag) -> str:
    """
    Render an element as plain text.

    Block elements end with a blank line and ``<br>`` with a line break.
    Runs of spaces and tabs become one space, every line is trimmed and
    no more than one blank line is kept in a row.

    Args:
        element: Content element

    Returns:
        Plain text
    """
    parts: list[str] = []
    _render(element, parts, preformatted=False)

    lines = [_SPACES_RE.sub(" ", line).strip() for line in "".join(parts).split("\n")]
    return _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()


def _render(node: Tag, parts: list[str], preformatted: bool) -> None:
    # Iterative walk; deeply nested markup must not hit the recursion limit.
    # A plain string on the stack is text to emit after a child's subtree.
    stack: list = [(node, preformatted)]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
            continue

        current, preformatted = item
        for child in reversed(list(current.children)):
            if isinstance(child, NavigableString):
                if not dom.is_text(child):
                    continue
                text = str(child)
                stack.append(text if preformatted else _ANY_WHITESPACE_RE.sub(" ", text))
                continue

            if not isinstance(child, Tag):
                continue

            if child.name == "br":
                stack.append("\n")
                continue

            if child.name in ("td", "th"):
                stack.append(" ")
            elif child.name in BLOCK_ELEMENTS:
                stack.append("\n\n")
            stack.append((child, preformatted or child.name == "pre"))


def characters_per_minute(language: str | None) -> int:
    """Reading speed for a language code (``en``, ``pt-BR``) or English name."""
    if not language:
        return DEFAULT_CHARACTERS_PER_MINUTE

    code = re.split(r"[-_]", language.strip())[0].lower()
    name = LANGUAGE_NAMES.get(code)
    if name is None:
        name = next((key for key in CHARACTERS_PER_MINUTE if language.strip().startswith(key)), None)

    return CHARACTERS_PER_MINUTE.get(name, DEFAULT_CHARACTERS_PER_MINUTE)


def count_letters(text: str) -> int:
    """Characters that are neither spaces nor punctuation."""
    return sum(
        1 for char in text
        if char != " " and not unicodedata.category(char).startswith("P")
    )


def time_to_read(text: str, language: str | None = None) -> timedelta:
    """
    Estimate the reading time of a text.

    Returns:
        Whole minutes, at least one for non-empty text
    """
    if not text:
        return timedelta(0)

    minutes = count_letters(text) // characters_per_minute(language)
    return timedelta(minutes=max(minutes, 1))
