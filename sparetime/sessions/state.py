from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor
from dataclasses import dataclass, field

from ..analytics.store import record_event
from ..catalog.categories import category_icon, category_label
from ..catalog.importer import sources_from_import, summarize_import
from ..catalog.models import CategorySummary, Source, TripImportRequest, TripImportResponse
from ..catalog.store import SourceCatalog
from ..exclusions.ledger import ExclusionLedger
from ..memory.client import MemoryClient
from ..memory.config import DEFAULT_MEMORY_CONFIG, MemoryConfig
from ..memory.mirror import MIRROR_EXECUTOR, MemoryMirror, dispatch_best_effort
from ..recommendations.config import DEFAULT_SUGGEST_DEFAULTS, SuggestDefaults
from ..recommendations.engine import build_suggest_response
from ..recommendations.models import SessionSuggestRequest, SuggestResponse

logger = logging.getLogger(__name__)

_MAX_TURNS = 6  # 3 exchanges


def record_suggest_event(
    response: SuggestResponse,
    anchor_id: str,
    free_time_min: int,
    start_time: float,
) -> None:
    debug = response.debug
    record_event("suggest", {
        "anchor_id": anchor_id,
        "free_time_min": free_time_min,
        "total_sources": debug.total_sources,
        "excluded_categories": debug.excluded_categories,
        "after_exclude": debug.after_exclude,
        "after_duration": debug.after_duration,
        "results_returned": len(response.suggestions),
        "response_time_ms": round((time.time() - start_time) * 1000, 1),
    })


@dataclass
class ForgetOutcome:
    category: str
    label: str
    changed: bool
    affected_sources: list[str] = field(default_factory=list)


class TripSession:
    """Everything one traveler's session owns.

    ``last_request`` is the one-slot cache of the most recent suggestion
    parameters; it is overwritten by every suggestion and cleared on reset.
    """

    def __init__(
        self,
        user_id: str,
        mirror: MemoryMirror | None = None,
        executor: Executor = MIRROR_EXECUTOR,
    ) -> None:
        self.user_id = user_id
        self.mirror = mirror
        self._executor = executor
        self._lock = threading.RLock()
        self.catalog = SourceCatalog()
        self.ledger = ExclusionLedger(mirror, executor)
        self.last_request: SessionSuggestRequest | None = None
        self.gap_context: SessionSuggestRequest | None = None
        self.turns: list[dict[str, str]] = []

    # ── Catalog ──────────────────────────────────────────────────────────

    def add_source(self, source: Source) -> Source:
        self.catalog.add(source)
        if self.mirror is not None:
            dispatch_best_effort(
                self._executor, f"add source {source.id}",
                self.mirror.record_source_added, source.name, source.category, source.memo,
            )
        return source

    def remove_source(self, source_id: str) -> Source | None:
        removed = self.catalog.remove(source_id)
        if removed is not None and self.mirror is not None:
            dispatch_best_effort(
                self._executor, f"remove source {source_id}",
                self.mirror.record_source_removed, removed.name,
            )
        return removed

    def import_trip(self, payload: TripImportRequest) -> TripImportResponse:
        sources = sources_from_import(payload)
        with self._lock:
            self.catalog.replace_all(sources)
            self.ledger.clear()
            self.last_request = None
        return summarize_import(payload, sources)

    def active_sources(self) -> list[Source]:
        with self._lock:
            excluded = self.ledger.snapshot()
            return [s for s in self.catalog.list_sources() if s.category not in excluded]

    def category_summaries(self) -> list[CategorySummary]:
        with self._lock:
            counts = self.catalog.category_counts()
            excluded = self.ledger.snapshot()
        categories = list(counts) + [c for c in self.ledger.list_categories() if c not in counts]
        return [
            CategorySummary(
                category=c,
                label=category_label(c),
                icon=category_icon(c),
                count=counts.get(c, 0),
                excluded=c in excluded,
            )
            for c in categories
        ]

    # ── Exclusions ───────────────────────────────────────────────────────

    def forget_category(self, category: str) -> ForgetOutcome:
        """Exclude *category*; its sources stay in the catalog."""
        with self._lock:
            affected = [s.name for s in self.catalog.list_by_category(category)]
            label = category_label(category)
            changed = self.ledger.add(category, label=label, source_names=affected)
            known = list(self.catalog.category_counts())

        if changed:
            logger.info(
                "Forgot %s for %s: %d sources hidden, catalog still holds %d",
                category, self.user_id, len(affected), len(self.catalog),
            )
            self.ledger.schedule_verify(known)
        record_event("forget", {
            "category": category,
            "changed": changed,
            "affected_sources": len(affected),
        })
        return ForgetOutcome(category=category, label=label, changed=changed, affected_sources=affected)

    def restore_category(self, category: str) -> bool:
        with self._lock:
            changed = self.ledger.remove(category, label=category_label(category))
        if changed:
            record_event("restore", {"category": category})
        return changed

    # ── Suggestions ──────────────────────────────────────────────────────

    def suggest(self, request: SessionSuggestRequest) -> SuggestResponse:
        """Suggest against the catalog and ledger as of this call."""
        start_time = time.time()
        with self._lock:
            sources = self.catalog.list_sources()
            excluded = self.ledger.list_categories()
            self.last_request = request
        response = build_suggest_response(
            sources, excluded, request.anchor_id, request.free_time_min, request.message,
        )
        record_suggest_event(response, request.anchor_id, request.free_time_min, start_time)
        return response

    def gap_request(
        self,
        message: str | None = None,
        defaults: SuggestDefaults = DEFAULT_SUGGEST_DEFAULTS,
    ) -> SessionSuggestRequest:
        """Anchor and budget for a "finished early" gap."""
        context = self.gap_context
        if context is None:
            return SessionSuggestRequest(
                anchor_id=defaults.anchor_id,
                free_time_min=defaults.free_time_min,
                message=message,
            )
        return context.model_copy(update={"message": message})

    # ── Conversation ─────────────────────────────────────────────────────

    def append_turn(self, role: str, content: str) -> None:
        with self._lock:
            self.turns.append({"role": role, "content": content})
            if len(self.turns) > _MAX_TURNS:
                self.turns = self.turns[-_MAX_TURNS:]

    def mirror_exchange(self, message: str, reply: str) -> None:
        if self.mirror is None:
            return
        dispatch_best_effort(
            self._executor, "conversation",
            self.mirror.record_conversation,
            [{"role": "user", "content": message}, {"role": "assistant", "content": reply}],
        )

    def reset(self) -> None:
        with self._lock:
            self.catalog.clear()
            self.ledger.clear()
            self.last_request = None
            self.gap_context = None
            self.turns = []
        logger.info("Session reset for %s", self.user_id)


# ---------------------------------------------------------------------------
# Per-user registry
# ---------------------------------------------------------------------------

_sessions: dict[str, TripSession] = {}
_registry_lock = threading.Lock()


def get_session(user_id: str, config: MemoryConfig = DEFAULT_MEMORY_CONFIG) -> TripSession:
    """Return the session for *user_id*, creating it on first use."""
    with _registry_lock:
        session = _sessions.get(user_id)
        if session is None:
            mirror = MemoryMirror(MemoryClient(config), user_id) if config.active else None
            session = TripSession(user_id, mirror=mirror)
            _sessions[user_id] = session
        return session


def clear_sessions() -> None:
    with _registry_lock:
        _sessions.clear()
