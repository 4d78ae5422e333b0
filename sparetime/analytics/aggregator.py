from __future__ import annotations

from collections import Counter
from typing import Any


def _average(values: list[float]) -> float:
    return round(sum(values) / len(values), 1) if values else 0.0


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    suggests = [e for e in events if e["type"] == "suggest"]
    forgets = [e for e in events if e["type"] == "forget"]
    restores = [e for e in events if e["type"] == "restore"]
    chats = [e for e in events if e["type"] == "chat"]
    total = len(suggests)

    # Response time and funnel sizes
    avg_time = _average([s["response_time_ms"] for s in suggests if "response_time_ms" in s])
    avg_candidates = _average([s.get("after_duration", 0) for s in suggests])
    avg_results = _average([s.get("results_returned", 0) for s in suggests])
    empty = sum(1 for s in suggests if not s.get("results_returned"))

    # Which categories travelers drop
    forget_counter: Counter[str] = Counter(
        f["category"] for f in forgets if f.get("changed", True)
    )
    top_forgotten = [{"name": n, "count": c} for n, c in forget_counter.most_common(10)]

    restore_counter: Counter[str] = Counter(r["category"] for r in restores)

    # Chat routing mix
    action_counter: Counter[str] = Counter(c.get("action", "unknown") for c in chats)

    return {
        "total_suggestions": total,
        "avg_response_time_ms": avg_time,
        "avg_feasible_candidates": avg_candidates,
        "avg_results_returned": avg_results,
        "empty_result_rate": round(empty / total * 100, 1) if total else 0.0,
        "top_forgotten_categories": top_forgotten,
        "restores": dict(restore_counter),
        "chat_actions": dict(action_counter),
        "total_chat_messages": len(chats),
    }
