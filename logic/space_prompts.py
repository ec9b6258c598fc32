"""Instructions for the space analysis call and the follow-up image edit."""

from __future__ import annotations

from typing import List, Tuple

from models.analysis import AnalysisResult

SCENE_PROMPT_VERSION = "tidy-space/2025-10.v2"
EDIT_PROMPT_VERSION = "tidy-edit/2025-10.v2"

SCENE_JSON_EXAMPLE = """{
  "spaceName": "Kitchen Island",
  "visibleItems": ["stack of mail", "fruit bowl", "coffee mug", "car keys", "empty chip bag"],
  "itemArrangements": [
    "mail gone, surface clear",
    "fruit bowl centered on the island",
    "mug rinsed and back in the cupboard",
    "keys moved to the hook by the door",
    "chip bag gone"
  ],
  "trashItems": ["empty chip bag"],
  "misplacedItems": ["stack of mail", "car keys"],
  "itemCount": 5,
  "steps": [
    { "text": "Mail & papers: recycle or file", "minutes": 2 },
    { "text": "Keys: back to the landing spot by the door", "minutes": 1 }
  ],
  "totalMinutes": 6,
  "mainTip": "The 'nothing lives here' rule: this surface is for cooking, not storing. A 60-second nightly sweep keeps it clear.",
  "encouragement": "About 5 things don't belong here. Clear them in ~6 minutes:"
}"""

SCENE_RULES: List[str] = [
    "visibleItems lists EVERY object you can see, one entry per object.",
    "itemArrangements has exactly one entry per visibleItems entry, in the same order, describing "
    "how that same object looks once neatened (or that it is gone). Never add or drop objects.",
    "trashItems and misplacedItems only use names that appear in visibleItems.",
    "NEVER suggest buying anything (no bins, organizers, containers, shelves, products).",
    "Steps only REMOVE items or RELOCATE them to where they already belong; give minutes per step.",
    "mainTip is ONE habit, not a purchase. encouragement is ONE sentence.",
    "Match the user's language for steps, mainTip and encouragement; keep item names in English.",
]


def build_scene_instruction(user_vision: str | None = None) -> str:
    """Render the JSON-only analysis instruction sent alongside the photo."""

    rules = "\n".join(f"- {rule}" for rule in SCENE_RULES)
    return (
        'You are "Tidy", an AI decluttering coach for a minimalism app.\n\n'
        "Analyze this photo of a messy space. Respond ONLY with valid JSON "
        "(no markdown, no backticks, no commentary).\n\n"
        f'USER\'S VISION: "{(user_vision or "").strip()}"\n\n'
        f"Use exactly this shape:\n{SCENE_JSON_EXAMPLE}\n\n"
        f"Rules:\n{rules}"
    )


def _normalise_name(value: str) -> str:
    return " ".join(value.lower().split())


def split_kept_and_removed(analysis: AnalysisResult) -> Tuple[List[Tuple[str, str]], List[str]]:
    """Pair every kept object with its arrangement and list removable objects."""

    removable = {_normalise_name(name) for name in analysis.removable_items}
    kept = [
        (item, arrangement)
        for item, arrangement in zip(analysis.visible_items, analysis.item_arrangements)
        if _normalise_name(item) not in removable
    ]
    return kept, analysis.removable_items


def build_edit_instruction(analysis: AnalysisResult) -> str:
    """Render the image-edit instruction for the "after" visualization."""

    kept, removed = split_kept_and_removed(analysis)
    space = analysis.space_name or "this space"
    kept_lines = "\n".join(f"- {item}: {arrangement}" for item, arrangement in kept) or "- (nothing else is visible)"
    removed_lines = "\n".join(f"- {item}" for item in removed) or "- (nothing)"
    return (
        f"Edit this photo of {space} to show the same room after a realistic tidy-up.\n\n"
        "KEEP every object listed below. Each one stays in the photo, neatened as described:\n"
        f"{kept_lines}\n\n"
        "REMOVE only these objects (trash, or things that belong in another room):\n"
        f"{removed_lines}\n\n"
        "Requirements:\n"
        "- Do not remove, replace or add any object other than the removals above.\n"
        "- Keep the same camera angle, framing, lighting, walls, floor and furniture.\n"
        "- This is a lived-in home after ten minutes of tidying, not a showroom: no staging, "
        "no new decor, no stylization.\n"
        "- Do not empty surfaces; kept objects remain visible where they belong.\n"
        "- Photorealistic, matching the original photo."
    )


__all__ = [
    "EDIT_PROMPT_VERSION",
    "SCENE_PROMPT_VERSION",
    "build_edit_instruction",
    "build_scene_instruction",
    "split_kept_and_removed",
]
