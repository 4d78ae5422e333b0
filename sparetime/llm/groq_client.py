from __future__ import annotations

import logging
from typing import Sequence

from groq import Groq

from ..catalog.models import Source
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a travel planning assistant. Help the traveler plan and adjust "
    "their trip using the places they have saved as sources.\n\n"
    "For short questions such as \"I have 40 minutes free, where should I go?\" "
    "answer briefly with 2-3 of the saved sources, naming each as "
    "[source: <name>] with a rough duration.\n"
    "Prefer saved sources over places the traveler has not mentioned. "
    "Reflect known preferences when you have them."
)

FALLBACK_REPLY = (
    "I can suggest places for a free window (try \"90 min free, any suggestions?\") "
    "or stop suggesting a category (try \"forget cafes\")."
)


def build_system_prompt(
    preferences: str | None = None,
    sources: Sequence[Source] = (),
    excluded_categories: Sequence[str] = (),
) -> str:
    parts = [SYSTEM_PROMPT]

    # Exclusions go first: they override every other instruction.
    if excluded_categories:
        parts.append(
            "## Forgotten categories (hard rule)\n"
            "The traveler explicitly forgot these categories. Never suggest any "
            "place that belongs to them, however well known it is.\n"
            f"Forgotten: {', '.join(excluded_categories)}"
        )

    if sources:
        lines = [f"## Saved sources ({len(sources)})"]
        for s in sources:
            memo = f", memo: {s.memo}" if s.memo else ""
            lines.append(
                f"- {s.name} (id: {s.id}, category: {s.category}, "
                f"duration: {s.duration_min or '?'}min, anchor: {s.anchor_id or '?'}{memo})"
            )
        parts.append("\n".join(lines))

    if preferences:
        parts.append(f"## Known preferences\n{preferences}")

    return "\n\n".join(parts)


def chat_reply(
    turns: Sequence[dict[str, str]],
    preferences: str | None = None,
    sources: Sequence[Source] = (),
    excluded_categories: Sequence[str] = (),
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> str:
    """
    Ask Groq to answer the conversation so far.

    The caller passes only non-excluded sources; the exclusion list is also
    stated in the prompt. Returns ``FALLBACK_REPLY`` on any failure.
    """
    if not config.enabled or not config.api_key:
        return FALLBACK_REPLY

    if not turns:
        return FALLBACK_REPLY

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {
                    "role": "system",
                    "content": build_system_prompt(preferences, sources, excluded_categories),
                },
                *({"role": t["role"], "content": t["content"]} for t in turns),
            ],
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )

        content = (response.choices[0].message.content or "").strip()
        return content or FALLBACK_REPLY

    except Exception:
        logger.warning("Groq chat call failed, using fallback reply", exc_info=True)
        return FALLBACK_REPLY
