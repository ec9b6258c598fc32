"""Canonical taxonomy definitions for decluttered items.

This module centralises the display labels for item categories and home spaces.
Both resolvers are total: category keys fall back to the generic "other" label,
while unknown space keys are echoed back so custom spaces still read naturally.
"""

from typing import Dict, Optional

CATEGORY_LABELS: Dict[str, str] = {
    "clothing": "👕 Clothing",
    "books": "📖 Books",
    "electronics": "📱 Electronics",
    "furniture": "🪑 Furniture",
    "kitchenware": "🍽️ Kitchenware",
    "shoes": "👟 Shoes",
    "food": "🥫 Food",
    "toys": "🧸 Toys",
    "digital": "📄 Digital Docs",
    "other": "📦 Other",
}

OTHER_CATEGORY_LABEL = CATEGORY_LABELS["other"]

SPACE_LABELS: Dict[str, str] = {
    "kitchen_space": "Kitchen",
    "bathroom": "Bathroom",
    "bedroom": "Bedroom",
    "living": "Living Room",
    "kids_room": "Kids Room",
    "closet": "Closet",
    "office": "Office",
    "garage": "Garage",
    "pantry": "Pantry",
}


def resolve_category_label(key: Optional[str]) -> str:
    """Return the display label for a category key, or the "other" label."""

    if not key:
        return OTHER_CATEGORY_LABEL
    return CATEGORY_LABELS.get(key, OTHER_CATEGORY_LABEL)


def resolve_space_label(key: Optional[str]) -> str:
    """Return the display label for a space key, or the key itself if unknown."""

    if not key:
        return ""
    return SPACE_LABELS.get(key, key)


__all__ = [
    "CATEGORY_LABELS",
    "OTHER_CATEGORY_LABEL",
    "SPACE_LABELS",
    "resolve_category_label",
    "resolve_space_label",
]
