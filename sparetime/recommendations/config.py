from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class SuggestDefaults:
    """Fallback anchor and budget used when a message carries neither."""

    anchor_id: str = os.getenv("SPARETIME_DEFAULT_ANCHOR", "anchor_city_center")
    free_time_min: int = int(os.getenv("SPARETIME_DEFAULT_FREE_TIME_MIN", "90"))


DEFAULT_SUGGEST_DEFAULTS = SuggestDefaults()
