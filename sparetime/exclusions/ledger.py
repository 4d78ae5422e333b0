from __future__ import annotations

import logging
import re
import threading
from concurrent.futures import Executor, Future
from typing import Any, Iterable, Protocol

from pydantic import BaseModel, Field

from ..catalog.categories import category_label
from ..memory.mirror import MIRROR_EXECUTOR, dispatch_best_effort

logger = logging.getLogger(__name__)

# Categories are free-form, so the value runs to the end of the line.
_MARKER_RE = re.compile(
    r"(excluded|restored)_categories[ \t]*:[ \t]*([^\n]+?)[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)


class ExclusionMirror(Protocol):
    def record_forget(self, category: str, label: str, source_names: list[str]) -> Any: ...

    def record_restore(self, category: str, label: str) -> Any: ...

    def recall_excluded(self) -> list[str]: ...


class ExclusionVerification(BaseModel):
    local: list[str]
    remote_available: bool
    confirmed: list[str] = Field(default_factory=list)
    unconfirmed: list[str] = Field(default_factory=list)
    stale: list[str] = Field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return self.remote_available and not self.unconfirmed and not self.stale


def _marker_category(value: str, candidates: set[str]) -> str:
    """Category named by a marker value.

    Recalled text may run on after the marker, so a known category that
    prefixes the value wins over the raw text.
    """
    value = value.strip().rstrip(".,;")
    if value in candidates:
        return value
    prefixes = [
        c for c in candidates
        if c and value.startswith(c) and not value[len(c):len(c) + 1].isalnum()
    ]
    return max(prefixes, key=len) if prefixes else value


def _remote_exclusions(texts: list[str], candidates: set[str]) -> set[str]:
    """Read exclusions out of recalled memory text.

    Explicit ``excluded_categories`` / ``restored_categories`` markers are
    replayed in order. Without markers, any mention of a candidate category
    counts.
    """
    joined = "\n".join(texts)
    markers = _MARKER_RE.findall(joined)
    if markers:
        remote: set[str] = set()
        for kind, value in markers:
            category = _marker_category(value, candidates)
            if kind.lower() == "excluded":
                remote.add(category)
            else:
                remote.discard(category)
        return remote

    lowered = joined.lower()
    return {c for c in candidates if c and c.lower() in lowered}


class ExclusionLedger:
    """Authoritative, in-memory set of excluded categories.

    The remote mirror is a shadow copy for recall and audit. Nothing read
    back from it is ever written into the ledger.
    """

    def __init__(
        self,
        mirror: ExclusionMirror | None = None,
        executor: Executor = MIRROR_EXECUTOR,
    ) -> None:
        self._lock = threading.Lock()
        self._categories: list[str] = []
        self._mirror = mirror
        self._executor = executor

    def add(
        self,
        category: str,
        *,
        label: str | None = None,
        source_names: Iterable[str] = (),
    ) -> bool:
        """Exclude *category*. Returns ``False`` when it was already excluded."""
        with self._lock:
            if category in self._categories:
                return False
            self._categories.append(category)
            current = list(self._categories)

        logger.info("Excluded category %s, ledger now %s", category, current)
        if self._mirror is not None:
            dispatch_best_effort(
                self._executor,
                f"forget {category}",
                self._mirror.record_forget,
                category,
                label or category_label(category),
                list(source_names),
            )
        return True

    def remove(self, category: str, *, label: str | None = None) -> bool:
        """Restore *category*. Removing a non-member is a no-op."""
        with self._lock:
            if category not in self._categories:
                return False
            self._categories.remove(category)
            current = list(self._categories)

        logger.info("Restored category %s, ledger now %s", category, current)
        if self._mirror is not None:
            dispatch_best_effort(
                self._executor,
                f"restore {category}",
                self._mirror.record_restore,
                category,
                label or category_label(category),
            )
        return True

    def clear(self) -> None:
        with self._lock:
            self._categories = []

    def list_categories(self) -> list[str]:
        with self._lock:
            return list(self._categories)

    def snapshot(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._categories)

    def __contains__(self, category: object) -> bool:
        with self._lock:
            return category in self._categories

    def verify(self, known_categories: Iterable[str] = ()) -> ExclusionVerification:
        """Compare the remote recollection with local state. Never mutates."""
        local = self.list_categories()
        if self._mirror is None:
            return ExclusionVerification(local=local, remote_available=False, unconfirmed=local)

        try:
            texts = self._mirror.recall_excluded()
        except Exception:
            logger.warning("Exclusion verification failed, remote unavailable", exc_info=True)
            return ExclusionVerification(local=local, remote_available=False, unconfirmed=local)

        candidates = set(local) | set(known_categories)
        remote = _remote_exclusions(texts, candidates)
        report = ExclusionVerification(
            local=local,
            remote_available=True,
            confirmed=[c for c in local if c in remote],
            unconfirmed=[c for c in local if c not in remote],
            stale=sorted(remote - set(local)),
        )
        if report.unconfirmed or report.stale:
            logger.warning(
                "Remote memory diverges from ledger: unconfirmed=%s stale=%s",
                report.unconfirmed, report.stale,
            )
        else:
            logger.info("Remote memory agrees with ledger: %s", local)
        return report

    def schedule_verify(self, known_categories: Iterable[str] = ()) -> Future | None:
        """Run :meth:`verify` behind any pending mirror writes."""
        if self._mirror is None:
            return None
        return dispatch_best_effort(
            self._executor, "verify", self.verify, list(known_categories),
        )
