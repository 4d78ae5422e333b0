from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from ..recommendations.models import SuggestResponse


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=1000)


class ChatAction(str, Enum):
    gap_fill = "gap_fill"
    forget_and_resuggest = "forget_and_resuggest"
    forget = "forget"
    suggest = "suggest"
    conversation = "conversation"


class Classification(BaseModel):
    action: ChatAction
    category: str | None = None
    free_time_min: int | None = None
    anchor_id: str | None = None


class ChatResponseType(str, Enum):
    suggestions = "suggestions"
    forgotten = "forgotten"
    already_excluded = "already_excluded"
    conversation = "conversation"


class ChatResponse(BaseModel):
    type: ChatResponseType
    action: ChatAction
    message: str
    results: SuggestResponse | None = None
    category: str | None = None
    excluded_categories: list[str] = Field(default_factory=list)
