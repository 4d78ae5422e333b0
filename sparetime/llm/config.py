from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class LLMConfig:
    """Groq settings for the conversation fall-through."""

    api_key: str = os.getenv("GROQ_API_KEY", "")
    model: str = os.getenv("SPARETIME_CHAT_MODEL", "llama-3.3-70b-versatile")
    timeout: float = 15.0
    max_tokens: int = 768
    temperature: float = 0.5
    enabled: bool = os.getenv("SPARETIME_CHAT_ENABLED", "1") != "0"


DEFAULT_LLM_CONFIG = LLMConfig()
