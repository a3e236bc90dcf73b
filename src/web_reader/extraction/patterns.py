"""
Regular expression categories consulted while scoring and cleaning.

Each category can be replaced or extended independently. A PatternSet
is immutable: every change returns a new set, so engines configured
with different patterns never interfere with each other.
"""

import re
from dataclasses import dataclass, field, replace as dataclass_replace
from enum import Enum
from typing import Mapping, Iterable


class PatternCategory(str, Enum):
    """Named pattern slots."""

    UNLIKELY_CANDIDATES = "unlikely_candidates"
    POSSIBLE_CANDIDATES = "possible_candidates"
    POSITIVE = "positive"
    NEGATIVE = "negative"
    BYLINE = "byline"
    VIDEOS = "videos"
    SHARE_ELEMENTS = "share_elements"


DEFAULT_PATTERNS: dict[PatternCategory, str] = {
    PatternCategory.UNLIKELY_CANDIDATES: (
        r"-ad-|ai2html|banner|breadcrumbs|combx|comment|community|cover-wrap|disqus|extra"
        r"|footer|gdpr|header|legends|menu|related|remark|replies|rss|shoutbox|sidebar"
        r"|skyscraper|social|sponsor|supplemental|ad-break|agegate|pagination|pager|popup"
        r"|yom-remote"
    ),
    PatternCategory.POSSIBLE_CANDIDATES: r"and|article|body|column|content|main|shadow",
    PatternCategory.POSITIVE: (
        r"article|body|content|entry|hentry|h-entry|main|page|pagination|post|text|blog|story"
    ),
    PatternCategory.NEGATIVE: (
        r"hidden|^hid$|hid$|hid|^hid|banner|combx|comment|com-|contact|foot|footer|footnote"
        r"|gdpr|masthead|media|meta|outbrain|promo|related|scroll|share|shoutbox|sidebar"
        r"|skyscraper|sponsor|shopping|tags|tool|widget"
    ),
    PatternCategory.BYLINE: r"byline|author|dateline|writtenby|p-author",
    PatternCategory.VIDEOS: (
        r"\/\/(www\.)?((dailymotion|youtube|youtube-nocookie|player\.vimeo|v\.qq)\.com"
        r"|(archive|upload\.wikimedia)\.org|player\.twitch\.tv)"
    ),
    PatternCategory.SHARE_ELEMENTS: r"(\b|_)(share|sharedaddy)(\b|_)",
}

# Terms kept inside the share group when it gets extended.
# Replacing the category makes the new expression the group content.
_SHARE_TERMS = "share|sharedaddy"


def _compile(expression: str) -> re.Pattern:
    return re.compile(expression, re.IGNORECASE)


@dataclass(frozen=True)
class PatternSet:
    """
    Immutable set of compiled patterns, one per category.

    Example:
        >>> patterns = PatternSet().extend(PatternCategory.POSITIVE, "story-body")
        >>> patterns.get(PatternCategory.POSITIVE).search("story-body") is not None
        True
    """

    expressions: Mapping[PatternCategory, str] = field(
        default_factory=lambda: dict(DEFAULT_PATTERNS))
    # Extra terms added to the share group, kept so repeated extends compose
    share_terms: str = _SHARE_TERMS
    _compiled: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for category, expression in self.expressions.items():
            self._compiled[PatternCategory(category)] = _compile(expression)

    def get(self, category: PatternCategory | str) -> re.Pattern:
        """Get the compiled pattern of a category."""
        return self._compiled[PatternCategory(category)]

    def expression(self, category: PatternCategory | str) -> str:
        """Get the source text of a category's pattern."""
        return self.expressions[PatternCategory(category)]

    def replace(self, category: PatternCategory | str, expression: str) -> "PatternSet":
        """
        Return a new set with one category replaced.

        Args:
            category: Slot to replace
            expression: New regular expression (matched case-insensitively)

        Raises:
            re.error: If the expression does not compile
        """
        category = PatternCategory(category)
        _compile(expression)
        expressions = dict(self.expressions)
        expressions[category] = expression
        if category is PatternCategory.SHARE_ELEMENTS:
            return dataclass_replace(self, expressions=expressions, share_terms=expression)
        return dataclass_replace(self, expressions=expressions)

    def extend(self, category: PatternCategory | str, option: str) -> "PatternSet":
        """
        Return a new set with an alternation term added to one category.

        The video allow-list gets the term inside its host group and the
        share pattern inside its word group; every other category gets a
        plain ``|option`` suffix.
        """
        category = PatternCategory(category)
        current = self.expressions[category]
        share_terms = self.share_terms

        if category is PatternCategory.VIDEOS:
            expression = f"{current[:-1]}|{option})"
        elif category is PatternCategory.SHARE_ELEMENTS:
            share_terms = f"{share_terms}|{option}"
            expression = rf"(\b|_)({share_terms})(\b|_)"
        else:
            expression = f"{current}|{option}"

        _compile(expression)
        expressions = dict(self.expressions)
        expressions[category] = expression
        return dataclass_replace(self, expressions=expressions, share_terms=share_terms)

    @classmethod
    def from_config(
        cls,
        overrides: Mapping[str, str] | None = None,
        extensions: Mapping[str, Iterable[str]] | None = None,
    ) -> "PatternSet":
        """
        Build a set from the ``pattern_overrides`` and ``pattern_extensions``
        settings. Overrides apply first.
        """
        patterns = cls()
        for category, expression in (overrides or {}).items():
            patterns = patterns.replace(category, expression)
        for category, options in (extensions or {}).items():
            for option in options:
                patterns = patterns.extend(category, option)
        return patterns
