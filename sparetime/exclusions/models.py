from __future__ import annotations

from pydantic import BaseModel, Field

from ..recommendations.models import SuggestResponse


class CategoryRequest(BaseModel):
    category: str = Field(..., min_length=1, max_length=100)


class ExclusionResponse(BaseModel):
    category: str
    changed: bool
    excluded_categories: list[str]
    affected_sources: list[str] = Field(default_factory=list)
    # Fresh suggestions for the last request, when there was one.
    results: SuggestResponse | None = None
