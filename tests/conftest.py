"""Shared fixtures for the Tidy coach test suite."""

from __future__ import annotations

import base64
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from memory.session_store import JSONCoachSessionStore  # noqa: E402
from memory.user_profile import UserProfileStore  # noqa: E402
from models.item_record import ItemRecord  # noqa: E402
from tidy_app.config import CoachConfig  # noqa: E402
from tools.blob_store import LocalBlobStore  # noqa: E402
from tools.item_store import SQLiteItemStore  # noqa: E402

NOW = datetime(2025, 10, 20, 12, 0, tzinfo=timezone.utc)
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
PNG_BASE64 = base64.b64encode(PNG_BYTES).decode("ascii")

ANALYSIS_PAYLOAD: Dict[str, Any] = {
    "spaceName": "Kitchen counter",
    "visibleItems": ["kettle", "mail pile", "empty can"],
    "itemArrangements": ["back left corner", "stacked by the door", "n/a"],
    "trashItems": ["empty can"],
    "misplacedItems": ["mail pile"],
    "itemCount": 3,
    "steps": [{"text": "Bin the can", "minutes": 1}, {"text": "Move the mail", "minutes": 2}],
    "totalMinutes": 3,
    "mainTip": "Clear the counter every evening.",
    "encouragement": "Three minutes and this counter breathes again.",
    "confidence": "high",
}


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def config(tmp_path: Path) -> CoachConfig:
    return CoachConfig(
        text_provider="mock",
        item_db_path=str(tmp_path / "items.db"),
        profile_dir=str(tmp_path / "profiles"),
        session_store_path=str(tmp_path / "sessions"),
        blob_dir=str(tmp_path / "blobs"),
        blob_public_base_url="https://cdn.test/blobs",
    )


@pytest.fixture
def item_store(config: CoachConfig) -> SQLiteItemStore:
    return SQLiteItemStore(config.item_db_path)


@pytest.fixture
def profile_store(config: CoachConfig) -> UserProfileStore:
    return UserProfileStore(config.profile_dir)


@pytest.fixture
def session_store(config: CoachConfig) -> JSONCoachSessionStore:
    return JSONCoachSessionStore(config.session_store_path)


@pytest.fixture
def blob_store(config: CoachConfig) -> LocalBlobStore:
    return LocalBlobStore(config.blob_dir, config.blob_public_base_url)


def make_item(item_id: str = "item-1", days_ago: float = 0, **overrides: Any) -> ItemRecord:
    values: Dict[str, Any] = {
        "item_id": item_id,
        "user_id": "user-1",
        "name": "wool coat",
        "category": "clothing",
        "space": "closet",
        "points": 10,
        "created_at": (NOW - timedelta(days=days_ago)).isoformat(),
    }
    values.update(overrides)
    return ItemRecord(**values)
