from __future__ import annotations

import logging
from typing import Any

import requests

from .config import DEFAULT_MEMORY_CONFIG, MemoryConfig

logger = logging.getLogger(__name__)


class MemoryServiceError(RuntimeError):
    """The memory service could not be reached or rejected the call."""


class MemoryClient:
    """Thin HTTP client for the remote long-term memory service."""

    def __init__(
        self,
        config: MemoryConfig = DEFAULT_MEMORY_CONFIG,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()

    def _post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.config.base_url.rstrip('/')}{endpoint}"
        try:
            response = self.session.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {self.config.api_key}"},
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            return response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise MemoryServiceError(f"Memory request to {endpoint} failed: {e}") from e

    def memorize(self, conversation: list[dict[str, str]], user_id: str) -> dict[str, Any]:
        return self._post("/api/v3/memory/memorize", {
            "conversation": conversation,
            "modality": "conversation",
            "user_id": user_id,
            "agent_id": self.config.agent_id,
        })

    def retrieve(self, query: str, user_id: str) -> dict[str, Any]:
        return self._post("/api/v3/memory/retrieve", {
            "query": query,
            "user_id": user_id,
            "agent_id": self.config.agent_id,
        })


def extract_memory_texts(result: Any) -> list[str]:
    """Pull the text of each retrieved item; malformed payloads yield ``[]``."""
    if not isinstance(result, dict):
        return []
    items = result.get("items")
    if not isinstance(items, list):
        return []

    texts: list[str] = []
    for item in items:
        if isinstance(item, dict):
            text = item.get("content") or item.get("text") or ""
        elif isinstance(item, str):
            text = item
        else:
            text = ""
        if text:
            texts.append(str(text))
    return texts
