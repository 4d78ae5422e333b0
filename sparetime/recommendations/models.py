from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..catalog.models import Source


class SuggestRequest(BaseModel):
    """Stateless request: the caller supplies catalog and exclusions."""

    model_config = ConfigDict(populate_by_name=True)

    sources: list[Source] = Field(default_factory=list)
    excluded_categories: list[str] = Field(default_factory=list, alias="excludedCategories")
    anchor_id: str = Field(..., min_length=1, description="Opaque locality identifier")
    free_time_min: int = Field(..., ge=0, description="Free minutes available")
    message: str | None = Field(default=None, max_length=1000)


class SessionSuggestRequest(BaseModel):
    """Request against the caller's stored catalog and ledger."""

    anchor_id: str = Field(..., min_length=1)
    free_time_min: int = Field(..., ge=0)
    message: str | None = Field(default=None, max_length=1000)


class Suggestion(BaseModel):
    title: str
    category: str
    duration_min: int
    reason: str
    source_id: str
    anchor_id: str | None = None
    priority: int


class SuggestDebug(BaseModel):
    total_sources: int
    excluded_categories: list[str]
    excluded_source_count: int
    after_exclude: int
    after_duration: int
    result_categories: list[str]
    scores: list[float] = Field(default_factory=list)


class SuggestResponse(BaseModel):
    suggestions: list[Suggestion]
    debug: SuggestDebug
