from __future__ import annotations

import threading
import time
import uuid
from collections import Counter
from typing import Iterable

from .models import Source


def generate_source_id() -> str:
    return f"{int(time.time() * 1000):x}{uuid.uuid4().hex[:6]}"


class SourceCatalog:
    """Insertion-ordered store of sources.

    Every read returns a copy taken under the lock, so a reader never sees a
    half-applied add or remove. Exclusions never touch this store.
    """

    def __init__(self, sources: Iterable[Source] = ()) -> None:
        self._lock = threading.Lock()
        self._sources: list[Source] = []
        for source in sources:
            self.add(source)

    def add(self, source: Source) -> Source:
        with self._lock:
            if any(s.id == source.id for s in self._sources):
                raise ValueError(f"Source id already exists: {source.id}")
            self._sources.append(source)
        return source

    def remove(self, source_id: str) -> Source | None:
        """Remove by id. Returns the removed record, or ``None`` if unknown."""
        with self._lock:
            for index, source in enumerate(self._sources):
                if source.id == source_id:
                    return self._sources.pop(index)
        return None

    def replace_all(self, sources: Iterable[Source]) -> None:
        incoming = list(sources)
        ids = [s.id for s in incoming]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate source ids in import")
        with self._lock:
            self._sources = incoming

    def clear(self) -> None:
        with self._lock:
            self._sources = []

    def get(self, source_id: str) -> Source | None:
        with self._lock:
            return next((s for s in self._sources if s.id == source_id), None)

    def list_sources(self) -> list[Source]:
        with self._lock:
            return list(self._sources)

    def list_by_category(self, category: str) -> list[Source]:
        return [s for s in self.list_sources() if s.category == category]

    def category_counts(self) -> dict[str, int]:
        return dict(Counter(s.category for s in self.list_sources()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)
