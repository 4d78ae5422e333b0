from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class MemoryConfig:
    api_key: str = os.getenv("MEMU_API_KEY", "")
    base_url: str = os.getenv("MEMU_BASE_URL", "https://api.memu.so")
    agent_id: str = "sparetime-agent"
    timeout: float = 10.0
    enabled: bool = True

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.api_key)


DEFAULT_MEMORY_CONFIG = MemoryConfig()
