"""Prompt composition for coach comments and encouragement messages.

Templates are immutable module constants with named slots and are versioned by
:data:`PROMPT_VERSION`; bump it whenever wording changes so generated comments
can be traced back to the instruction that produced them. Everything here is a
pure function of its inputs, apart from the mode draw in :func:`pick_mode`.
"""

from __future__ import annotations

import json
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from logic.history import HistoryContext
from logic.safety import DETAILED_EMOJI_RULE, SHORT_EMOJI_RULE, system_instruction
from logic.validation import EncouragementRequest
from models.item_record import ItemRecord
from models.taxonomy import resolve_category_label, resolve_space_label

PROMPT_VERSION = "tidy-comment/2025-10.v3"
ENCOURAGEMENT_PROMPT_VERSION = "tidy-encouragement/2025-10.v1"
BEFORE_AFTER_BONUS = 30
DEFAULT_SHORT_WEIGHT = 0.8


class PromptMode(str, Enum):
    SHORT = "short"
    DETAILED = "detailed"


ModePicker = Callable[[], PromptMode]


def pick_mode(short_weight: float = DEFAULT_SHORT_WEIGHT, rng: Optional[random.Random] = None) -> PromptMode:
    """Weighted draw between the two reply lengths.

    The draw ignores item content on purpose; callers that need determinism
    inject their own :data:`ModePicker`.
    """

    draw = (rng or random).random()
    return PromptMode.SHORT if draw < short_weight else PromptMode.DETAILED


def weighted_mode_picker(short_weight: float, rng: Optional[random.Random] = None) -> ModePicker:
    return lambda: pick_mode(short_weight, rng)


@dataclass(frozen=True)
class RenderedPrompt:
    """A provider-agnostic instruction pair."""

    user: str
    system: Optional[str] = None
    mode: Optional[PromptMode] = None
    version: str = PROMPT_VERSION

    def as_single_text(self) -> str:
        return f"{self.system}\n\n{self.user}" if self.system else self.user


VISION_TEMPLATE = (
    'USER\'S VISION: "{vision}"\n'
    "This is their personal goal. Reference it naturally when it fits; do not force it."
)

HISTORY_TEMPLATE = """USER'S HISTORY:
- Total items decluttered: {total_items}
- Current streak: {current_streak} days
- Total points: {total_points}
- Items this week: {items_this_week}
- Most cleared space lately: {top_space}
- Most cleared category lately: {top_category}
- Recent items:
{recent_activity}"""

ITEM_TEMPLATE = """JUST NOW they decluttered{photo_suffix}:
- Item: {item_name}
- Category: {category}
- Space: {space}
- Points earned: {points}"""

NOTE_TEMPLATE = (
    '- User\'s note: "{note}"\n'
    "The note is the user's own voice. Respond to it like a friend who read it: "
    "recognise the effort, the feeling or the teamwork it mentions."
)

MILESTONE_GUIDANCE = (
    "Notice patterns and milestones yourself from the numbers above: every 5th item decluttered, "
    "streaks of 3, 7, 14 or 30 days, point totals of 50, 100, 200 or 500, or a run of items from "
    "the same space or category. Mention one only when the numbers actually show it."
)

SHORT_TASK = "TASK: Write a reaction of fewer than 8 words plus exactly 1 emoji. Nothing else."

DETAILED_TASK = (
    "TASK: Write a personalized comment of 2-3 sentences. Celebrate what they did and connect it "
    "to their history or vision. Do not give practical tips."
)

DETAILED_TASK_WITH_PHOTOS = (
    "TASK: Write a personalized comment of 2-3 sentences. First celebrate the effort, connecting to "
    "their history or vision. Then give exactly ONE tip for keeping this space clear, framed as a "
    "habit (one in, one out; a weekly 5-minute reset; grouping similar items; keeping surfaces "
    "clear), never as a purchase."
)

DETAILED_EXAMPLES = (
    "GOOD: \"팬트리 이어서 주방까지! 🍳 이번 주만 5개째, 모든 것이 제자리에 있는 집이 점점 가까워지고 있어요!\"\n"
    "GOOD (reads the note): note \"아이가 어릴때 입던건데 아깝다\" -> "
    "\"아이의 추억이 담긴 옷이라 쉽지 않았을 텐데, 정말 대단해요. 추억은 마음속에 남아있으니까요 🤍\""
)


def _history_block(history: HistoryContext) -> str:
    recent = "\n".join(history.recent_activity) if history.recent_activity else "  (none yet)"
    return HISTORY_TEMPLATE.format(
        total_items=history.total_items,
        current_streak=history.current_streak,
        total_points=history.total_points,
        items_this_week=history.items_this_week,
        top_space=history.top_space_label,
        top_category=history.top_category_label,
        recent_activity=recent,
    )


def _item_block(item: ItemRecord) -> str:
    points: object = item.points
    if item.has_before_after:
        points = f"{item.points} + {BEFORE_AFTER_BONUS} bonus for before & after photos"
    return ITEM_TEMPLATE.format(
        photo_suffix=" WITH before & after photos" if item.has_before_after else "",
        item_name=item.name,
        category=resolve_category_label(item.category),
        space=resolve_space_label(item.space) or "N/A",
        points=points,
    )


def _task(item: ItemRecord, mode: PromptMode) -> str:
    if mode is PromptMode.SHORT:
        return SHORT_TASK
    if item.has_before_after:
        return DETAILED_TASK_WITH_PHOTOS
    return DETAILED_TASK


def compose_prompt(item: ItemRecord, history: HistoryContext, mode: PromptMode) -> RenderedPrompt:
    """Render the coach comment instruction for one freshly logged item."""

    emoji_rule = SHORT_EMOJI_RULE if mode is PromptMode.SHORT else DETAILED_EMOJI_RULE
    sections: List[str] = []
    if history.vision.strip():
        sections.append(VISION_TEMPLATE.format(vision=history.vision.strip()))
    sections.append(_history_block(history))

    item_section = _item_block(item)
    if item.note_text:
        item_section = f"{item_section}\n{NOTE_TEMPLATE.format(note=item.note_text)}"
    sections.append(item_section)
    sections.append(MILESTONE_GUIDANCE)
    sections.append(_task(item, mode))
    if mode is PromptMode.DETAILED:
        sections.append(DETAILED_EXAMPLES)

    return RenderedPrompt(
        system=system_instruction(emoji_rule),
        user="\n\n".join(sections),
        mode=mode,
        version=PROMPT_VERSION,
    )


ENCOURAGEMENT_TEMPLATE = """User decluttered "{item_name}" ({category}) in a minimalism challenge.

Current status:
- Points earned: {points}
- Total points: {total_score}
- Streak: {streak} days
- Category stats: {category_counts}

Write a short, warm encouragement message in ONE sentence. Mention something specific from the
status above (the item, the category run or the streak). Be creative; do not reuse a template."""


def compose_encouragement_prompt(request: EncouragementRequest) -> RenderedPrompt:
    """Render the one-sentence encouragement instruction for a direct request."""

    counts = json.dumps(request.category_count or {}, ensure_ascii=False, sort_keys=True)
    user = ENCOURAGEMENT_TEMPLATE.format(
        item_name=request.item_name,
        category=resolve_category_label(request.category),
        points=request.points,
        total_score=request.total_score,
        streak=request.streak,
        category_counts=counts,
    )
    return RenderedPrompt(
        system=system_instruction("Use 1 or 2 emojis."),
        user=user,
        mode=None,
        version=ENCOURAGEMENT_PROMPT_VERSION,
    )


__all__ = [
    "PROMPT_VERSION",
    "ModePicker",
    "PromptMode",
    "RenderedPrompt",
    "compose_encouragement_prompt",
    "compose_prompt",
    "pick_mode",
    "weighted_mode_picker",
]
