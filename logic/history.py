"""Deterministic history aggregation over a user's logged items."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from models.item_record import ItemRecord, UserProfile
from models.taxonomy import resolve_category_label, resolve_space_label

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
RECENT_WINDOW_SIZE = 7
TRAILING_WINDOW_DAYS = 7
NOT_AVAILABLE = "N/A"


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_timestamp(value: Any) -> datetime:
    """Convert any stored creation time into an aware UTC datetime.

    Accepts native datetimes and dates, ISO-8601 strings, epoch seconds, store
    timestamp objects exposing ``to_datetime``/``ToDatetime`` and
    ``{"seconds": ..., "nanos": ...}`` mappings. Anything else, including
    ``None``, maps to :data:`EPOCH` so such records sink in recency order.
    """

    try:
        if isinstance(value, datetime):
            return _aware(value)
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        if isinstance(value, bool) or value is None:
            return EPOCH
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value, tz=timezone.utc)
        if isinstance(value, str):
            text = value.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return _aware(datetime.fromisoformat(text))
        if isinstance(value, Mapping):
            seconds = value.get("seconds", value.get("_seconds"))
            nanos = value.get("nanos", value.get("_nanoseconds", 0)) or 0
            if seconds is None:
                return EPOCH
            return datetime.fromtimestamp(float(seconds) + float(nanos) / 1e9, tz=timezone.utc)
        for converter in ("to_datetime", "ToDatetime", "to_pydatetime"):
            method = getattr(value, converter, None)
            if callable(method):
                return _aware(method())
    except (TypeError, ValueError, OverflowError, OSError):
        return EPOCH
    return EPOCH


def sort_by_recency(records: Iterable[ItemRecord]) -> List[ItemRecord]:
    """Sort newest first on the normalized creation time.

    Ordering happens here rather than in the store query so the store never
    needs a composite (user, created_at) index.
    """

    return sorted(records, key=lambda record: normalize_timestamp(record.created_at), reverse=True)


def most_frequent(records: Iterable[Any], field_name: str) -> Optional[str]:
    """Return the most common non-empty value of ``field_name``.

    Ties go to the key encountered first in input order.
    """

    counts: Counter = Counter()
    for record in records:
        value = getattr(record, field_name, None)
        if value:
            counts[value] += 1

    top_key: Optional[str] = None
    top_count = 0
    for key, count in counts.items():
        if count > top_count:
            top_key, top_count = key, count
    return top_key


def items_in_trailing_window(
    records: Iterable[ItemRecord],
    window_days: int = TRAILING_WINDOW_DAYS,
    now: Optional[datetime] = None,
) -> int:
    """Count records created within ``[now - window_days, now]``."""

    anchor = _aware(now) if now else datetime.now(timezone.utc)
    lower_bound = anchor - timedelta(days=window_days)
    return sum(
        1
        for record in records
        if lower_bound <= normalize_timestamp(record.created_at) <= anchor
    )


def recent_window(sorted_records: Sequence[ItemRecord], n: int = RECENT_WINDOW_SIZE) -> List[ItemRecord]:
    """Return the ``n`` newest records from an already recency-sorted list."""

    return list(sorted_records[:n])


def format_activity_line(record: ItemRecord, now: Optional[datetime] = None) -> str:
    anchor = _aware(now) if now else datetime.now(timezone.utc)
    created = normalize_timestamp(record.created_at)
    days_ago = max((anchor - created) // timedelta(days=1), 0)
    when = "today" if days_ago == 0 else f"{days_ago}d ago"
    return (
        f'  - "{record.name}" ({resolve_category_label(record.category)}, '
        f"{resolve_space_label(record.space)}, {when})"
    )


@dataclass
class HistoryContext:
    """Aggregated user history rendered into coaching prompts."""

    total_items: int = 0
    items_this_week: int = 0
    top_space: Optional[str] = None
    top_category: Optional[str] = None
    recent_activity: List[str] = field(default_factory=list)
    vision: str = ""
    current_streak: int = 0
    total_points: int = 0

    @property
    def top_space_label(self) -> str:
        return resolve_space_label(self.top_space) if self.top_space else NOT_AVAILABLE

    @property
    def top_category_label(self) -> str:
        return resolve_category_label(self.top_category) if self.top_category else NOT_AVAILABLE


def build_history_context(
    records: Iterable[ItemRecord],
    profile: Optional[UserProfile] = None,
    now: Optional[datetime] = None,
    window_size: int = RECENT_WINDOW_SIZE,
) -> HistoryContext:
    """Aggregate an unordered item history plus profile into a prompt context."""

    ordered = sort_by_recency(records)
    recent = recent_window(ordered, window_size)
    return HistoryContext(
        total_items=len(ordered),
        items_this_week=items_in_trailing_window(ordered, now=now),
        top_space=most_frequent(recent, "space"),
        top_category=most_frequent(recent, "category"),
        recent_activity=[format_activity_line(record, now=now) for record in recent],
        vision=profile.vision if profile else "",
        current_streak=profile.streak if profile else 0,
        total_points=profile.score if profile else 0,
    )


__all__ = [
    "EPOCH",
    "HistoryContext",
    "build_history_context",
    "format_activity_line",
    "items_in_trailing_window",
    "most_frequent",
    "normalize_timestamp",
    "recent_window",
    "sort_by_recency",
]
