from __future__ import annotations

_FALLBACK_ICON = "📌"

CATEGORY_LABELS: dict[str, str] = {
    "cafe": "Cafés",
    "museum": "Museums",
    "market": "Markets",
    "viewpoint": "Viewpoints",
    "park": "Parks",
    "bookstore": "Bookstores",
    "neighborhood_walk": "Neighborhood walks",
    "food": "Food",
    "shop": "Shops",
    "sightseeing": "Sightseeing",
    "culture": "Culture",
    "nature": "Nature",
    "shopping": "Shopping",
    "other": "Other",
}

CATEGORY_ICONS: dict[str, str] = {
    "cafe": "☕",
    "museum": "🏛️",
    "market": "🛒",
    "viewpoint": "🔭",
    "park": "🌿",
    "bookstore": "📚",
    "neighborhood_walk": "🚶",
    "food": "🍽️",
    "shop": "🛍️",
    "sightseeing": "🏛️",
    "culture": "🎭",
    "nature": "🌿",
    "shopping": "🛍️",
    "other": _FALLBACK_ICON,
}


def category_label(category: str) -> str:
    """Human label for *category*; unknown tags are capitalized as-is."""
    if category in CATEGORY_LABELS:
        return CATEGORY_LABELS[category]
    cleaned = category.replace("_", " ").strip()
    return cleaned.capitalize() if cleaned else CATEGORY_LABELS["other"]


def category_icon(category: str) -> str:
    return CATEGORY_ICONS.get(category, _FALLBACK_ICON)
