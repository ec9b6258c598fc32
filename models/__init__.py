"""Model package exports."""

from models.taxonomy import (
    CATEGORY_LABELS,
    OTHER_CATEGORY_LABEL,
    SPACE_LABELS,
    resolve_category_label,
    resolve_space_label,
)
from models.item_record import GeneratedComment, ItemRecord, UserProfile, item_from_document
from models.analysis import AnalysisResult, CoachSession

__all__ = [
    "AnalysisResult",
    "CATEGORY_LABELS",
    "CoachSession",
    "GeneratedComment",
    "ItemRecord",
    "OTHER_CATEGORY_LABEL",
    "SPACE_LABELS",
    "UserProfile",
    "item_from_document",
    "resolve_category_label",
    "resolve_space_label",
]
