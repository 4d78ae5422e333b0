from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable

from .client import MemoryClient, extract_memory_texts
from .records import (
    EXCLUDED_QUERY,
    PREFERENCES_QUERY,
    conversation_records,
    forget_category_records,
    restore_category_records,
    source_added_records,
    source_removed_records,
)

logger = logging.getLogger(__name__)

# One worker keeps mirror writes in submission order per process.
MIRROR_EXECUTOR = ThreadPoolExecutor(max_workers=1, thread_name_prefix="memory-mirror")


def dispatch_best_effort(
    executor: Executor,
    description: str,
    fn: Callable[..., Any],
    *args: Any,
) -> Future | None:
    """Run *fn* on *executor*; failures are logged and never reach the caller."""

    def _run() -> Any:
        try:
            return fn(*args)
        except Exception:
            logger.warning("Memory mirror %s failed, ignoring", description, exc_info=True)
            return None

    try:
        return executor.submit(_run)
    except RuntimeError:
        # Executor already shut down (application teardown).
        logger.warning("Memory mirror %s dropped, executor unavailable", description)
        return None


class MemoryMirror:
    """Writes session facts to the memory service on behalf of one user."""

    def __init__(self, client: MemoryClient, user_id: str) -> None:
        self.client = client
        self.user_id = user_id

    def record_forget(self, category: str, label: str, source_names: list[str]) -> dict[str, Any]:
        logger.info(
            "Mirroring forget of %s (%d sources) for %s",
            category, len(source_names), self.user_id,
        )
        return self.client.memorize(
            forget_category_records(category, label, source_names), self.user_id,
        )

    def record_restore(self, category: str, label: str) -> dict[str, Any]:
        return self.client.memorize(restore_category_records(category, label), self.user_id)

    def record_source_added(self, name: str, category: str, memo: str) -> dict[str, Any]:
        return self.client.memorize(source_added_records(name, category, memo), self.user_id)

    def record_source_removed(self, name: str) -> dict[str, Any]:
        return self.client.memorize(source_removed_records(name), self.user_id)

    def record_conversation(self, turns: list[dict[str, str]]) -> dict[str, Any]:
        return self.client.memorize(conversation_records(turns), self.user_id)

    def recall_excluded(self) -> list[str]:
        return extract_memory_texts(self.client.retrieve(EXCLUDED_QUERY, self.user_id))

    def recall_preferences(self) -> list[str]:
        return extract_memory_texts(self.client.retrieve(PREFERENCES_QUERY, self.user_id))
