"""Taxonomy resolution and history aggregation tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from conftest import NOW, make_item
from logic.history import (
    EPOCH,
    build_history_context,
    format_activity_line,
    items_in_trailing_window,
    most_frequent,
    normalize_timestamp,
    recent_window,
    sort_by_recency,
)
from models.item_record import UserProfile
from models.taxonomy import (
    CATEGORY_LABELS,
    OTHER_CATEGORY_LABEL,
    SPACE_LABELS,
    resolve_category_label,
    resolve_space_label,
)


@pytest.mark.parametrize("key", ["furniture", "books", "digital"])
def test_known_category_keys_resolve_to_labels(key: str) -> None:
    assert resolve_category_label(key) == CATEGORY_LABELS[key]


@pytest.mark.parametrize("key", ["plants", "", None, "CLOTHING"])
def test_unknown_category_falls_back_to_other(key) -> None:
    assert resolve_category_label(key) == OTHER_CATEGORY_LABEL == "📦 Other"


def test_space_labels_echo_unknown_keys() -> None:
    assert resolve_space_label("kitchen_space") == SPACE_LABELS["kitchen_space"] == "Kitchen"
    assert resolve_space_label("attic") == "attic"
    assert resolve_space_label(None) == ""


class _StoreTimestamp:
    def __init__(self, value: datetime) -> None:
        self._value = value

    def to_datetime(self) -> datetime:
        return self._value


@pytest.mark.parametrize(
    "raw",
    [
        NOW,
        NOW.replace(tzinfo=None),
        "2025-10-20T12:00:00Z",
        "2025-10-20T14:00:00+02:00",
        NOW.timestamp(),
        {"seconds": int(NOW.timestamp()), "nanos": 0},
        {"_seconds": int(NOW.timestamp()), "_nanoseconds": 0},
        _StoreTimestamp(NOW),
    ],
)
def test_normalize_timestamp_accepts_every_stored_shape(raw) -> None:
    assert normalize_timestamp(raw) == NOW


def test_normalize_timestamp_dates_and_garbage() -> None:
    assert normalize_timestamp(date(2025, 10, 20)) == datetime(2025, 10, 20, tzinfo=timezone.utc)
    assert normalize_timestamp(None) is EPOCH
    assert normalize_timestamp("not a date") == EPOCH
    assert normalize_timestamp({"nanos": 5}) == EPOCH
    assert normalize_timestamp(object()) == EPOCH


def test_sort_by_recency_puts_missing_timestamps_last() -> None:
    records = [
        make_item("old", days_ago=3),
        make_item("missing", created_at=None),
        make_item("new", days_ago=0),
    ]
    assert [r.item_id for r in sort_by_recency(records)] == ["new", "old", "missing"]


def test_most_frequent_empty_uniform_and_ties() -> None:
    assert most_frequent([], "space") is None
    assert most_frequent([make_item(space=None)], "space") is None

    uniform = [make_item(str(i), space="pantry") for i in range(4)]
    assert most_frequent(uniform, "space") == "pantry"

    tied = [make_item("a", space="garage"), make_item("b", space="office"), make_item("c", space="office"),
            make_item("d", space="garage")]
    assert most_frequent(tied, "space") == "garage"


def test_trailing_window_boundary_is_inclusive() -> None:
    boundary = NOW - timedelta(days=7)
    records = [
        make_item("edge", created_at=boundary),
        make_item("outside", created_at=boundary - timedelta(milliseconds=1)),
        make_item("inside", created_at=NOW - timedelta(hours=1)),
        make_item("future", created_at=NOW + timedelta(hours=1)),
    ]
    assert items_in_trailing_window(records, now=NOW) == 2


def test_recent_window_takes_first_n() -> None:
    ordered = sort_by_recency(make_item(str(i), days_ago=i) for i in range(10))
    window = recent_window(ordered)
    assert [r.item_id for r in window] == [str(i) for i in range(7)]


def test_format_activity_line() -> None:
    assert format_activity_line(make_item(days_ago=0.2), now=NOW) == '  - "wool coat" (👕 Clothing, Closet, today)'
    line = format_activity_line(make_item(name="mugs", category="kitchenware", space="attic", days_ago=3.5), now=NOW)
    assert line == '  - "mugs" (🍽️ Kitchenware, attic, 3d ago)'


def test_future_records_read_as_today() -> None:
    line = format_activity_line(make_item(days_ago=-2), now=NOW)
    assert line == '  - "wool coat" (👕 Clothing, Closet, today)'


def test_build_history_context_with_profile() -> None:
    records = [make_item(str(i), days_ago=i, space="closet" if i % 2 else "pantry") for i in range(9)]
    profile = UserProfile(user_id="user-1", vision="A calm home", streak=3, score=120)

    context = build_history_context(records, profile=profile, now=NOW)

    assert context.total_items == 9
    assert context.items_this_week == 8
    assert context.top_space == "pantry"
    assert context.top_space_label == "Pantry"
    assert context.top_category_label == "👕 Clothing"
    assert len(context.recent_activity) == 7
    assert (context.vision, context.current_streak, context.total_points) == ("A calm home", 3, 120)


def test_build_history_context_without_profile_or_items() -> None:
    context = build_history_context([], now=NOW)
    assert context.total_items == 0
    assert context.top_space_label == "N/A"
    assert context.top_category_label == "N/A"
    assert (context.vision, context.current_streak, context.total_points) == ("", 0, 0)
