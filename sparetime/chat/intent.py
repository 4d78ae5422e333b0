from __future__ import annotations

import logging
import re

from .lexicon import (
    CATEGORY_LEXICON,
    FORGET_LEXICON,
    GAP_EARLY_LEXICON,
    GAP_SUBJECT_LEXICON,
    RESUGGEST_LEXICON,
    SUGGEST_LEXICON,
    CategoryLexicon,
    PhraseLexicon,
)
from .models import ChatAction, Classification

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(
    r"(?<![\d.])(\d+(?:\.\d+)?)\s*(minutes?|mins?|m|hours?|hrs?|h)\b",
    re.IGNORECASE,
)
_ANCHOR_RE = re.compile(r"\banchor_\w+")


def parse_free_time(message: str) -> int | None:
    """Minutes named in *message*, e.g. "90 min" -> 90, "1.5 hours" -> 90."""
    match = _DURATION_RE.search(message)
    if not match:
        return None
    amount = float(match.group(1))
    unit = match.group(2).lower()
    if unit.startswith("h"):
        amount *= 60
    return round(amount)


def parse_anchor(message: str) -> str | None:
    match = _ANCHOR_RE.search(message)
    return match.group(0) if match else None


class IntentClassifier:
    """Decision table over a message; the first matching rule wins.

    Specific compound patterns run before the generic ones so a message that
    fits both is routed by the specific rule.
    """

    def __init__(
        self,
        categories: CategoryLexicon = CATEGORY_LEXICON,
        forget: PhraseLexicon = FORGET_LEXICON,
        resuggest: PhraseLexicon = RESUGGEST_LEXICON,
        gap_subjects: PhraseLexicon = GAP_SUBJECT_LEXICON,
        gap_early: PhraseLexicon = GAP_EARLY_LEXICON,
        suggest: PhraseLexicon = SUGGEST_LEXICON,
    ) -> None:
        self.categories = categories
        self.forget = forget
        self.resuggest = resuggest
        self.gap_subjects = gap_subjects
        self.gap_early = gap_early
        self.suggest = suggest

    def classify(self, message: str) -> Classification:
        result = self._classify(message)
        logger.debug("Classified %r as %s", message, result.action.value)
        return result

    def _classify(self, message: str) -> Classification:
        # 1. An activity ended early and left a gap to fill.
        if self.gap_subjects.matches(message) and self.gap_early.matches(message):
            return Classification(action=ChatAction.gap_fill)

        category = self.categories.detect(message)

        # 2. Had enough of a category: forget it and suggest again.
        if category and self.resuggest.matches(message):
            return Classification(action=ChatAction.forget_and_resuggest, category=category)

        # 3. Plain forget.
        if category and self.forget.matches(message):
            return Classification(action=ChatAction.forget, category=category)

        # 4. "<N> min free, any suggestions?"
        free_time = parse_free_time(message)
        if free_time is not None and self.suggest.matches(message):
            return Classification(
                action=ChatAction.suggest,
                free_time_min=free_time,
                anchor_id=parse_anchor(message),
            )

        return Classification(action=ChatAction.conversation)


DEFAULT_CLASSIFIER = IntentClassifier()
