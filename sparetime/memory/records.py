"""Conversation records written to the memory service.

Exclusion records carry a machine-readable ``excluded_categories`` /
``restored_categories`` line so a later recall can be checked against the
local ledger.
"""
from __future__ import annotations

from datetime import datetime, timezone

EXCLUDED_QUERY = (
    "Which categories has the user forgotten or excluded? "
    "List the excluded_categories."
)
PREFERENCES_QUERY = (
    "What are the user's travel preferences, food preferences, budget and "
    "past trip experiences?"
)


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _exchange(user: str, assistant: str) -> list[dict[str, str]]:
    now = _timestamp()
    return [
        {"role": "user", "content": user, "created_at": now},
        {"role": "assistant", "content": assistant, "created_at": now},
    ]


def forget_category_records(
    category: str,
    label: str,
    source_names: list[str],
) -> list[dict[str, str]]:
    affected = f" Affected sources: {', '.join(source_names)}." if source_names else ""
    return _exchange(
        f"I'm done with {label} ({category}). Forget all of it.{affected}",
        (
            f"The user forgot the whole {label} ({category}) category.{affected} "
            f"Never suggest places in this category again; the user is no "
            f"longer interested in {label}. The sources themselves are kept.\n"
            f"excluded_categories: {category}"
        ),
    )


def restore_category_records(category: str, label: str) -> list[dict[str, str]]:
    return _exchange(
        f"Bring back {label} ({category}).",
        (
            f"The user restored the {label} ({category}) category. Places in "
            "it may be suggested again.\n"
            f"restored_categories: {category}"
        ),
    )


def source_added_records(name: str, category: str, memo: str) -> list[dict[str, str]]:
    note = f" Note: {memo}" if memo else ""
    return _exchange(
        f"I want to visit {name} (category: {category}).{note}",
        f"Recorded {name} as a source. It will be considered when planning.",
    )


def source_removed_records(name: str) -> list[dict[str, str]]:
    return _exchange(
        f"Remove {name}. I'm not going there anymore.",
        f"The user removed {name} from their sources. Leave it out of plans.",
    )


def conversation_records(turns: list[dict[str, str]]) -> list[dict[str, str]]:
    now = _timestamp()
    return [
        {"role": t["role"], "content": t["content"], "created_at": now}
        for t in turns
    ]
