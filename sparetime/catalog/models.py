from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PRIORITY = 3


class Source(BaseModel):
    """A catalogued place or activity.

    Records are frozen: changing a category means replacing the record.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category: str = "other"
    memo: str = ""
    duration_min: int | None = Field(default=None, ge=0)
    anchor_id: str | None = None
    priority: int | None = None
    tags: list[str] = Field(default_factory=list)
    type: str | None = None

    @property
    def effective_priority(self) -> int:
        return self.priority if self.priority is not None else DEFAULT_PRIORITY


class SourceCreate(BaseModel):
    """Manual add; the id is generated server side when omitted."""

    id: str | None = Field(default=None, min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    category: str = "sightseeing"
    memo: str = ""
    duration_min: int | None = Field(default=None, ge=0)
    anchor_id: str | None = None
    priority: int | None = None
    tags: list[str] = Field(default_factory=list)


# ── Trip import format ───────────────────────────────────────────────────


class ImportedTrip(BaseModel):
    id: str | None = None
    title: str = ""
    city: str = ""
    country: str = ""
    start_date: str | None = None
    end_date: str | None = None


class ImportedAnchor(BaseModel):
    anchor_id: str
    label: str = ""
    lat: float | None = None
    lng: float | None = None


class ImportedContext(BaseModel):
    anchors: list[ImportedAnchor] = Field(default_factory=list)
    user_preferences: dict[str, Any] | None = None


class ImportedSource(BaseModel):
    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    category: str = "other"
    type: str | None = None
    tags: list[str] = Field(default_factory=list)
    anchor_id: str | None = None
    duration_min: int | None = Field(default=None, ge=0)
    priority: int | None = None
    notes: str | None = None


class TripImportRequest(BaseModel):
    trip: ImportedTrip = Field(default_factory=ImportedTrip)
    context: ImportedContext | None = None
    sources: list[ImportedSource] = Field(default_factory=list)
    # Timeline blocks belong to the itinerary UI and are accepted but ignored.
    timeline: list[dict[str, Any]] = Field(default_factory=list)


class TripImportResponse(BaseModel):
    title: str
    total_sources: int
    category_counts: dict[str, int]
    anchors: list[str]


class CategorySummary(BaseModel):
    category: str
    label: str
    icon: str
    count: int
    excluded: bool
