"""Item, profile and comment records plus document mapping helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

COACH_NAME = "Tidy"
COACH_AVATAR = "🏠"


def _ensure_list(value: Any) -> List[Any]:
    """Coerce a scalar or iterable into a list."""

    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


@dataclass
class ItemRecord:
    """One decluttered possession as logged by the main application.

    ``created_at`` keeps whatever the store handed over (native datetime, ISO
    string or a store timestamp wrapper); read it through
    :func:`logic.history.normalize_timestamp`.
    """

    item_id: str
    user_id: Optional[str]
    name: Optional[str]
    category: Optional[str]
    space: Optional[str] = None
    note: Optional[str] = None
    points: int = 0
    has_before_after: bool = False
    created_at: Any = None
    comments: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_processable(self) -> bool:
        return bool(self.user_id and self.name and self.category)

    @property
    def has_automated_comment(self) -> bool:
        return any(isinstance(c, dict) and c.get("isAI") for c in self.comments)

    @property
    def note_text(self) -> str:
        return self.note.strip() if isinstance(self.note, str) else ""

    def to_document(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "name": self.name,
            "category": self.category,
            "space": self.space,
            "note": self.note,
            "points": self.points,
            "hasBeforeAfter": self.has_before_after,
            "createdAt": self.created_at,
            "comments": list(self.comments),
        }


def item_from_document(item_id: str, document: Dict[str, Any]) -> ItemRecord:
    """Build an :class:`ItemRecord` from a loose store document.

    Missing fields are tolerated here; callers decide whether the record is
    processable.
    """

    return ItemRecord(
        item_id=str(item_id),
        user_id=document.get("userId"),
        name=document.get("name"),
        category=document.get("category"),
        space=document.get("space"),
        note=document.get("note"),
        points=_as_int(document.get("points")),
        has_before_after=bool(document.get("hasBeforeAfter")),
        created_at=document.get("createdAt"),
        comments=[c for c in _ensure_list(document.get("comments")) if isinstance(c, dict)],
    )


@dataclass
class UserProfile:
    """Per-user aggregate state owned by the main application."""

    user_id: str
    vision: str = ""
    streak: int = 0
    score: int = 0

    def to_document(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "dreamVision": self.vision,
            "streak": self.streak,
            "score": self.score,
        }


def profile_from_document(document: Dict[str, Any]) -> UserProfile:
    return UserProfile(
        user_id=str(document.get("userId", "")),
        vision=str(document.get("dreamVision") or ""),
        streak=_as_int(document.get("streak")),
        score=_as_int(document.get("score")),
    )


@dataclass(frozen=True)
class GeneratedComment:
    """Automated coach comment appended to an item's comment list."""

    text: str
    user_name: str = COACH_NAME
    author_avatar: str = COACH_AVATAR
    is_automated: bool = True
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_document(self) -> Dict[str, Any]:
        return {
            "userName": self.user_name,
            "authorAvatar": self.author_avatar,
            "isAI": self.is_automated,
            "text": self.text,
            "createdAt": self.created_at,
        }


__all__ = [
    "COACH_AVATAR",
    "COACH_NAME",
    "GeneratedComment",
    "ItemRecord",
    "UserProfile",
    "item_from_document",
    "profile_from_document",
]
