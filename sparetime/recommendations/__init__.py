"""
Suggestion engine.

Responsibilities:
- Accept a catalog snapshot, an exclusion snapshot, an anchor and a free-time budget.
- Drop excluded categories first, then anything that does not fit the budget.
- Score and rank candidates using deterministic heuristics.
- Return at most three suggestions plus debug counts for verification.
"""
