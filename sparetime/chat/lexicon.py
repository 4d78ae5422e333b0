"""Keyword tables used to route chat messages.

Category lookup and phrase lookup are separate objects so either can be
swapped or extended without touching the classifier's control flow.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping


@lru_cache(maxsize=256)
def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    # Whole words only, plurals allowed: "parks" matches, "parking" does not.
    return re.compile(rf"\b{re.escape(keyword.lower())}(?:e?s)?\b")


@dataclass(frozen=True)
class CategoryLexicon:
    """Maps message keywords to catalog categories."""

    keywords: Mapping[str, str]

    def detect(self, message: str) -> str | None:
        """Category of the earliest keyword in *message*; longest keyword wins a tie."""
        lowered = message.lower()
        best: tuple[int, int, str] | None = None
        for keyword, category in self.keywords.items():
            match = _keyword_pattern(keyword).search(lowered)
            if match is None:
                continue
            candidate = (match.start(), -len(keyword), category)
            if best is None or candidate < best:
                best = candidate
        return best[2] if best else None

    def extended(self, extra: Mapping[str, str]) -> CategoryLexicon:
        return CategoryLexicon({**self.keywords, **extra})


@dataclass(frozen=True)
class PhraseLexicon:
    """A set of phrases, any one of which marks an intent."""

    phrases: tuple[str, ...]

    def matches(self, message: str) -> bool:
        lowered = message.lower()
        return any(p.lower() in lowered for p in self.phrases)

    def extended(self, *phrases: str) -> PhraseLexicon:
        return PhraseLexicon(self.phrases + phrases)


CATEGORY_LEXICON = CategoryLexicon({
    "cafe": "cafe",
    "café": "cafe",
    "coffee": "cafe",
    "food": "food",
    "restaurant": "food",
    "dining": "food",
    "museum": "museum",
    "gallery": "museum",
    "park": "park",
    "garden": "park",
    "market": "market",
    "bookstore": "bookstore",
    "bookshop": "bookstore",
    "viewpoint": "viewpoint",
    "shopping": "shopping",
    "shop": "shop",
})

# "I no longer want this category."
FORGET_LEXICON = PhraseLexicon((
    "forget",
    "exclude",
    "don't want",
    "do not want",
    "no longer",
    "not interested",
    "no more",
    "skip",
    "remove",
))

# "Had my fill of this, show me something else."
RESUGGEST_LEXICON = PhraseLexicon((
    "enough",
    "something else",
    "something different",
    "other options",
    "instead",
    "tired of",
    "sick of",
))

GAP_SUBJECT_LEXICON = PhraseLexicon((
    "museum",
    "gallery",
    "exhibition",
    "tour",
    "show",
    "class",
    "meeting",
    "activity",
))

GAP_EARLY_LEXICON = PhraseLexicon((
    "finished early",
    "ended early",
    "done early",
    "over early",
    "out early",
    "wrapped up early",
    "finished sooner",
    "ended sooner",
))

SUGGEST_LEXICON = PhraseLexicon((
    "suggest",
    "recommend",
    "where should",
    "where can",
    "where to",
    "what should",
    "what can",
    "free",
    "spare",
    "ideas",
))
