"""Schemas for space analysis results and persisted coach sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AnalysisStep(BaseModel):
    """One actionable clean-up step with its estimated cost."""

    model_config = ConfigDict(extra="allow")

    text: str
    minutes: float = 0


class AnalysisResult(BaseModel):
    """Structured scene analysis returned by the image-understanding call.

    ``visible_items`` and ``item_arrangements`` are positional: entry ``i`` of
    the arrangements describes the neatened state of entry ``i`` of the visible
    items.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    space_name: str = Field(default="", alias="spaceName")
    visible_items: List[str] = Field(default_factory=list, alias="visibleItems")
    item_arrangements: List[str] = Field(default_factory=list, alias="itemArrangements")
    trash_items: List[str] = Field(default_factory=list, alias="trashItems")
    misplaced_items: List[str] = Field(default_factory=list, alias="misplacedItems")
    item_count: int = Field(default=0, alias="itemCount")
    steps: List[AnalysisStep] = Field(default_factory=list)
    total_minutes: float = Field(default=0, alias="totalMinutes")
    main_tip: str = Field(default="", alias="mainTip")
    encouragement: str = ""

    @model_validator(mode="after")
    def _arrangements_match_items(self) -> "AnalysisResult":
        if len(self.visible_items) != len(self.item_arrangements):
            raise ValueError(
                "itemArrangements must describe the same items as visibleItems "
                f"({len(self.item_arrangements)} != {len(self.visible_items)})"
            )
        return self

    @property
    def removable_items(self) -> List[str]:
        return list(self.trash_items) + list(self.misplaced_items)


@dataclass
class CoachSession:
    """Persisted record of one space analysis request and its outputs."""

    user_id: str
    before_image_url: Optional[str]
    after_image_url: Optional[str]
    analysis: Dict[str, Any]
    session_id: str = field(default_factory=lambda: str(uuid4()))
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_document(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "userId": self.user_id,
            "beforeImageUrl": self.before_image_url,
            "afterImageUrl": self.after_image_url,
            "analysis": self.analysis,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "CoachSession":
        return cls(
            session_id=str(document["sessionId"]),
            user_id=str(document["userId"]),
            before_image_url=document.get("beforeImageUrl"),
            after_image_url=document.get("afterImageUrl"),
            analysis=dict(document.get("analysis") or {}),
            created_at=str(document.get("createdAt", "")),
        )


__all__ = ["AnalysisStep", "AnalysisResult", "CoachSession"]
