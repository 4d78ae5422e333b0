from __future__ import annotations

import logging

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import chat_reply
from ..recommendations.config import DEFAULT_SUGGEST_DEFAULTS, SuggestDefaults
from ..recommendations.models import SessionSuggestRequest, SuggestResponse
from ..sessions.state import TripSession
from .intent import DEFAULT_CLASSIFIER, IntentClassifier
from .models import ChatAction, ChatResponse, ChatResponseType, Classification

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reply formatting
# ---------------------------------------------------------------------------


def _anchor_name(anchor_id: str) -> str:
    return anchor_id.removeprefix("anchor_").replace("_", " ")


def format_suggestions(response: SuggestResponse, request: SessionSuggestRequest) -> str:
    lines = [
        f"**Suggestions** ({request.free_time_min} min free / around {_anchor_name(request.anchor_id)})",
        "",
    ]
    if not response.suggestions:
        lines.append("Nothing fits those conditions right now.")
    for i, s in enumerate(response.suggestions, start=1):
        lines.append(f"{i}. **{s.title}** [{s.category}]")
        lines.append(f"   ~{s.duration_min} min | {s.reason}")

    excluded = ", ".join(response.debug.excluded_categories) or "none"
    lines.append("")
    lines.append(f"Excluded: [{excluded}] | candidates: {response.debug.after_duration}")
    return "\n".join(lines)


def _forgot_message(category: str, label: str, affected: list[str], excluded: list[str]) -> str:
    hidden = ", ".join(affected) if affected else "none saved yet"
    return (
        f"Forgot {label} ({category}).\n"
        f"- Hidden sources ({len(affected)}): {hidden}\n"
        "- Sources are kept; restore the category to see them again.\n"
        f"- Excluded now: [{', '.join(excluded)}]"
    )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _suggestion_response(
    session: TripSession,
    request: SessionSuggestRequest,
    action: ChatAction,
    intro: str | None = None,
    category: str | None = None,
) -> ChatResponse:
    response = session.suggest(request)
    text = format_suggestions(response, request)
    return ChatResponse(
        type=ChatResponseType.suggestions,
        action=action,
        message=f"{intro}\n\n{text}" if intro else text,
        results=response,
        category=category,
        excluded_categories=response.debug.excluded_categories,
    )


def resuggest(
    session: TripSession,
    params: SessionSuggestRequest,
    intro: str,
    category: str | None = None,
) -> ChatResponse:
    """Repeat a suggestion with explicit parameters against the current ledger."""
    return _suggestion_response(session, params, ChatAction.forget_and_resuggest, intro, category)


def _already_excluded(session: TripSession, classification: Classification) -> ChatResponse:
    return ChatResponse(
        type=ChatResponseType.already_excluded,
        action=classification.action,
        message=f"{classification.category} is already forgotten.",
        category=classification.category,
        excluded_categories=session.ledger.list_categories(),
    )


def _recall_preferences(session: TripSession) -> str | None:
    if session.mirror is None:
        return None
    try:
        texts = session.mirror.recall_preferences()
    except Exception:
        logger.warning("Preference recall failed, continuing without", exc_info=True)
        return None
    return "\n".join(texts) or None


def _converse(session: TripSession, message: str, llm_config: LLMConfig) -> ChatResponse:
    session.append_turn("user", message)
    excluded = session.ledger.list_categories()
    reply = chat_reply(
        list(session.turns),
        preferences=_recall_preferences(session),
        sources=session.active_sources(),
        excluded_categories=excluded,
        config=llm_config,
    )
    session.append_turn("assistant", reply)
    session.mirror_exchange(message, reply)

    return ChatResponse(
        type=ChatResponseType.conversation,
        action=ChatAction.conversation,
        message=reply,
        excluded_categories=excluded,
    )


def handle_message(
    message: str,
    session: TripSession,
    classifier: IntentClassifier = DEFAULT_CLASSIFIER,
    defaults: SuggestDefaults = DEFAULT_SUGGEST_DEFAULTS,
    llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> ChatResponse:
    """Route one chat message to suggest, forget or the chat collaborator."""
    classification = classifier.classify(message)
    action = classification.action
    logger.info("Chat message routed to %s (category=%s)", action.value, classification.category)

    if action == ChatAction.gap_fill:
        request = session.gap_request(message, defaults)
        intro = (
            f"Looks like you have a gap: {request.free_time_min} min around "
            f"{_anchor_name(request.anchor_id)}. Searching nearby..."
        )
        return _suggestion_response(session, request, action, intro)

    if action == ChatAction.forget_and_resuggest:
        if classification.category in session.ledger:
            return _already_excluded(session, classification)
        outcome = session.forget_category(classification.category)
        params = session.last_request or session.gap_request(None, defaults)
        return resuggest(
            session,
            params,
            intro=_forgot_message(
                outcome.category, outcome.label, outcome.affected_sources,
                session.ledger.list_categories(),
            ),
            category=outcome.category,
        )

    if action == ChatAction.forget:
        if classification.category in session.ledger:
            return _already_excluded(session, classification)
        outcome = session.forget_category(classification.category)
        excluded = session.ledger.list_categories()
        return ChatResponse(
            type=ChatResponseType.forgotten,
            action=action,
            message=_forgot_message(outcome.category, outcome.label, outcome.affected_sources, excluded),
            category=outcome.category,
            excluded_categories=excluded,
        )

    if action == ChatAction.suggest:
        anchor_id = classification.anchor_id or session.gap_request(None, defaults).anchor_id
        request = SessionSuggestRequest(
            anchor_id=anchor_id,
            free_time_min=classification.free_time_min,
            message=message,
        )
        return _suggestion_response(session, request, action)

    return _converse(session, message, llm_config)
