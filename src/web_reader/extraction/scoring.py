"""
Per-parse scoring state.

Scores are never written onto the tree. They live in a ScoreTable
created fresh for each grab attempt and thrown away with it.
"""

from enum import IntFlag

from bs4 import Tag

from web_reader.extraction import dom
from web_reader.extraction.patterns import PatternCategory, PatternSet


class Flags(IntFlag):
    """How aggressively content gets removed. Relaxed one bit per retry."""

    NONE = 0
    STRIP_UNLIKELY_CANDIDATES = 1
    WEIGHT_CLASSES = 2
    CLEAN_CONDITIONALLY = 4

    @classmethod
    def all(cls) -> "Flags":
        return cls.STRIP_UNLIKELY_CANDIDATES | cls.WEIGHT_CLASSES | cls.CLEAN_CONDITIONALLY


# Order in which flags are dropped after a failed attempt
FLAG_RELAXATION_ORDER = (
    Flags.STRIP_UNLIKELY_CANDIDATES,
    Flags.WEIGHT_CLASSES,
    Flags.CLEAN_CONDITIONALLY,
)

_TAG_SEED_SCORES = {
    "div": 5,
    "pre": 3,
    "td": 3,
    "blockquote": 3,
    "address": -3,
    "ol": -3,
    "ul": -3,
    "dl": -3,
    "dd": -3,
    "dt": -3,
    "li": -3,
    "form": -3,
    "h1": -5,
    "h2": -5,
    "h3": -5,
    "h4": -5,
    "h5": -5,
    "h6": -5,
    "th": -5,
}


def class_weight(tag: Tag, patterns: PatternSet, flags: Flags) -> int:
    """
    Weight an element by its class and id: -25 per negative match,
    +25 per positive match. Zero when WEIGHT_CLASSES is off.
    """
    if not flags & Flags.WEIGHT_CLASSES:
        return 0

    negative = patterns.get(PatternCategory.NEGATIVE)
    positive = patterns.get(PatternCategory.POSITIVE)
    weight = 0

    for value in (dom.get_class(tag), dom.get_id(tag)):
        if not value:
            continue
        if negative.search(value):
            weight -= 25
        if positive.search(value):
            weight += 25

    return weight


class ScoreTable:
    """
    Content scores keyed by element identity.

    Holds a reference to every scored element so ids stay unique for
    the table's lifetime even when elements are detached.
    """

    def __init__(self, patterns: PatternSet, flags: Flags) -> None:
        self._patterns = patterns
        self._flags = flags
        self._scores: dict[int, float] = {}
        self._elements: dict[int, Tag] = {}

    def __contains__(self, tag: Tag) -> bool:
        return id(tag) in self._scores

    def __len__(self) -> int:
        return len(self._scores)

    def get(self, tag: Tag) -> float:
        return self._scores.get(id(tag), 0.0)

    def set(self, tag: Tag, score: float) -> None:
        self._elements[id(tag)] = tag
        self._scores[id(tag)] = score

    def add(self, tag: Tag, amount: float) -> None:
        self.set(tag, self.get(tag) + amount)

    def initialize(self, tag: Tag) -> float:
        """Seed an element with its tag bonus plus class weight."""
        score = _TAG_SEED_SCORES.get(tag.name, 0) + class_weight(tag, self._patterns, self._flags)
        self.set(tag, float(score))
        return score
