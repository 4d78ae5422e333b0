from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from ..catalog.models import Source
from .models import Suggestion, SuggestDebug, SuggestResponse

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3
DEFAULT_DURATION_MIN = 30
HIGH_PRIORITY = 4

PRIORITY_WEIGHT = 10
ANCHOR_BONUS = 30.0
FIT_BONUS = 15.0
INTENT_BONUS = 20.0

REASON_SEPARATOR = " / "
FALLBACK_REASON = "usable nearby"

# Message keywords that boost a category (case-insensitive substring match).
INTENT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "cafe": ("cafe", "café", "coffee", "espresso", "latte", "tea room"),
    "museum": ("museum", "gallery", "exhibition", "exhibit"),
    "market": ("market", "bazaar", "stalls"),
}


class ExclusionLeakError(AssertionError):
    """An excluded category made it into computed suggestions."""


@dataclass(frozen=True)
class Ranking:
    suggestions: list[Suggestion]
    scores: list[float]
    total_sources: int
    excluded_source_count: int
    after_exclude: int
    after_duration: int


def match_intent_categories(
    message: str | None,
    keywords: Mapping[str, Iterable[str]] = INTENT_KEYWORDS,
) -> set[str]:
    """Return every category with at least one keyword hit in *message*."""
    if not message:
        return set()
    lowered = message.lower()
    return {
        category
        for category, words in keywords.items()
        if any(w.lower() in lowered for w in words)
    }


def _is_feasible(source: Source, free_time_min: int) -> bool:
    return source.duration_min is None or source.duration_min <= free_time_min


def _fits(source: Source, free_time_min: int) -> bool:
    return bool(source.duration_min) and free_time_min > 0 and source.duration_min <= free_time_min


def _score(
    source: Source,
    anchor_id: str,
    free_time_min: int,
    intent_categories: set[str],
) -> float:
    score = float(source.effective_priority * PRIORITY_WEIGHT)

    if source.anchor_id == anchor_id:
        score += ANCHOR_BONUS

    # Rewards filling the window, not merely fitting in it.
    if _fits(source, free_time_min):
        score += FIT_BONUS * (source.duration_min / free_time_min)

    if source.category in intent_categories:
        score += INTENT_BONUS

    return score


def build_reason(source: Source, anchor_id: str, free_time_min: int) -> str:
    parts: list[str] = []
    if source.anchor_id == anchor_id:
        parts.append("near current anchor")
    if _fits(source, free_time_min):
        parts.append(f"fits remaining time (~{source.duration_min}min)")
    if source.priority is not None and source.priority >= HIGH_PRIORITY:
        parts.append("high priority")
    if source.memo:
        parts.append(source.memo)
    return REASON_SEPARATOR.join(parts) or FALLBACK_REASON


def _to_suggestion(source: Source, anchor_id: str, free_time_min: int) -> Suggestion:
    return Suggestion(
        title=source.name,
        category=source.category,
        duration_min=source.duration_min if source.duration_min is not None else DEFAULT_DURATION_MIN,
        reason=build_reason(source, anchor_id, free_time_min),
        source_id=source.id,
        anchor_id=source.anchor_id,
        priority=source.effective_priority,
    )


def rank(
    sources: Sequence[Source],
    excluded_categories: Iterable[str],
    anchor_id: str,
    free_time_min: int,
    message: str | None = None,
    *,
    intent_keywords: Mapping[str, Iterable[str]] = INTENT_KEYWORDS,
    limit: int = MAX_SUGGESTIONS,
) -> Ranking:
    """Run the full pipeline and keep the intermediate counts."""
    if free_time_min < 0:
        raise ValueError(f"free_time_min must be >= 0, got {free_time_min}")

    excluded = set(excluded_categories)

    # Exclusion comes first and nothing after it may reintroduce a category.
    after_exclude = [s for s in sources if s.category not in excluded]
    after_duration = [s for s in after_exclude if _is_feasible(s, free_time_min)]

    intent_categories = match_intent_categories(message, intent_keywords)
    scored = [
        (s, _score(s, anchor_id, free_time_min, intent_categories))
        for s in after_duration
    ]
    # sorted() is stable: equal scores keep catalog order.
    scored = sorted(scored, key=lambda item: item[1], reverse=True)[:limit]

    logger.debug(
        "Ranked %d sources: after_exclude=%d after_duration=%d intent=%s",
        len(sources), len(after_exclude), len(after_duration), sorted(intent_categories),
    )

    return Ranking(
        suggestions=[_to_suggestion(s, anchor_id, free_time_min) for s, _ in scored],
        scores=[round(score, 2) for _, score in scored],
        total_sources=len(sources),
        excluded_source_count=len(sources) - len(after_exclude),
        after_exclude=len(after_exclude),
        after_duration=len(after_duration),
    )


def suggest(
    sources: Sequence[Source],
    excluded_categories: Iterable[str],
    anchor_id: str,
    free_time_min: int,
    message: str | None = None,
) -> list[Suggestion]:
    """Top suggestions for the given snapshots. Pure and deterministic."""
    return rank(sources, excluded_categories, anchor_id, free_time_min, message).suggestions


def verify_no_excluded(
    suggestions: Iterable[Suggestion],
    excluded_categories: Iterable[str],
) -> None:
    excluded = set(excluded_categories)
    leaked = [s.category for s in suggestions if s.category in excluded]
    if leaked:
        logger.error("Excluded categories leaked into suggestions: %s", leaked)
        raise ExclusionLeakError(f"Excluded categories in results: {leaked}")


def build_suggest_response(
    sources: Sequence[Source],
    excluded_categories: Iterable[str],
    anchor_id: str,
    free_time_min: int,
    message: str | None = None,
) -> SuggestResponse:
    excluded = list(dict.fromkeys(excluded_categories))
    ranking = rank(sources, excluded, anchor_id, free_time_min, message)
    verify_no_excluded(ranking.suggestions, excluded)

    logger.info(
        "Suggest anchor=%s free=%dmin: %d sources, %d after exclude %s, %d feasible, returned %s",
        anchor_id,
        free_time_min,
        ranking.total_sources,
        ranking.after_exclude,
        excluded,
        ranking.after_duration,
        [s.title for s in ranking.suggestions],
    )

    return SuggestResponse(
        suggestions=ranking.suggestions,
        debug=SuggestDebug(
            total_sources=ranking.total_sources,
            excluded_categories=excluded,
            excluded_source_count=ranking.excluded_source_count,
            after_exclude=ranking.after_exclude,
            after_duration=ranking.after_duration,
            result_categories=[s.category for s in ranking.suggestions],
            scores=ranking.scores,
        ),
    )
