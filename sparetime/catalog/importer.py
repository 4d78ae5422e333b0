from __future__ import annotations

import logging
from collections import Counter

from .models import Source, TripImportRequest, TripImportResponse

logger = logging.getLogger(__name__)


def sources_from_import(payload: TripImportRequest) -> list[Source]:
    """Map trip-file sources onto catalog records (title -> name, notes -> memo)."""
    return [
        Source(
            id=item.id,
            name=item.title,
            category=item.category or "other",
            memo=item.notes or "",
            duration_min=item.duration_min,
            anchor_id=item.anchor_id,
            priority=item.priority,
            tags=item.tags,
            type=item.type,
        )
        for item in payload.sources
    ]


def summarize_import(payload: TripImportRequest, sources: list[Source]) -> TripImportResponse:
    counts = Counter(s.category for s in sources)
    anchors = [a.anchor_id for a in payload.context.anchors] if payload.context else []

    logger.info(
        "Imported trip %r: %d sources, categories=%s, anchors=%d",
        payload.trip.title or payload.trip.id,
        len(sources),
        dict(counts),
        len(anchors),
    )

    return TripImportResponse(
        title=payload.trip.title,
        total_sources=len(sources),
        category_counts=dict(counts),
        anchors=anchors,
    )
