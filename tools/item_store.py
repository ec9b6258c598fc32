"""Item record storage abstractions and SQLite implementation."""
from __future__ import annotations

import contextlib
import json
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from models.errors import PersistenceError
from models.item_record import ItemRecord


class ItemStore:
    """Persistence interface for item records.

    ``list_items_for_user`` returns records in no particular order; callers
    sort client-side.
    """

    def create_item(self, item: ItemRecord) -> ItemRecord:
        raise NotImplementedError

    def get_item(self, item_id: str) -> Optional[ItemRecord]:
        raise NotImplementedError

    def list_items_for_user(self, user_id: str) -> List[ItemRecord]:
        raise NotImplementedError

    def append_comment(
        self, item_id: str, comment: Dict[str, Any], only_if_no_automated: bool = False
    ) -> bool:
        """Append one comment; return ``False`` if the conditional check blocked it."""
        raise NotImplementedError


@contextlib.contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        raise PersistenceError(f"item store {action} failed: {exc}") from exc


class SQLiteItemStore(ItemStore):
    """Local SQLite-backed store for item records."""

    def __init__(self, database_path: str | Path = "data/items.db") -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS items (
                    item_id TEXT PRIMARY KEY,
                    user_id TEXT,
                    name TEXT,
                    category TEXT,
                    space TEXT,
                    note TEXT,
                    points INTEGER,
                    has_before_after INTEGER,
                    created_at TEXT,
                    comments TEXT
                );
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_items_user ON items(user_id)")

    @staticmethod
    def _serialise_timestamp(value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        return str(value)

    @staticmethod
    def _deserialise_list(raw: str) -> List[Dict[str, Any]]:
        return json.loads(raw) if raw else []

    def create_item(self, item: ItemRecord) -> ItemRecord:
        with _store_errors("create"), self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO items (
                    item_id, user_id, name, category, space, note, points,
                    has_before_after, created_at, comments
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.item_id,
                    item.user_id,
                    item.name,
                    item.category,
                    item.space,
                    item.note,
                    item.points,
                    int(item.has_before_after),
                    self._serialise_timestamp(item.created_at),
                    json.dumps(item.comments, ensure_ascii=False),
                ),
            )
        return item

    def _row_to_item(self, row: sqlite3.Row) -> ItemRecord:
        return ItemRecord(
            item_id=row["item_id"],
            user_id=row["user_id"],
            name=row["name"],
            category=row["category"],
            space=row["space"],
            note=row["note"],
            points=row["points"] or 0,
            has_before_after=bool(row["has_before_after"]),
            created_at=row["created_at"],
            comments=self._deserialise_list(row["comments"]),
        )

    def get_item(self, item_id: str) -> Optional[ItemRecord]:
        with _store_errors("get"), self._connect() as conn:
            row = conn.execute("SELECT * FROM items WHERE item_id = ?", (item_id,)).fetchone()
            return self._row_to_item(row) if row else None

    def list_items_for_user(self, user_id: str) -> List[ItemRecord]:
        with _store_errors("list"), self._connect() as conn:
            rows = conn.execute("SELECT * FROM items WHERE user_id = ?", (user_id,)).fetchall()
            return [self._row_to_item(row) for row in rows]

    def append_comment(
        self, item_id: str, comment: Dict[str, Any], only_if_no_automated: bool = False
    ) -> bool:
        """Append inside one write transaction so the automated check and write are atomic."""

        with _store_errors("append_comment"), contextlib.closing(self._connect()) as conn:
            conn.isolation_level = None
            conn.execute("BEGIN IMMEDIATE")
            try:
                row = conn.execute("SELECT comments FROM items WHERE item_id = ?", (item_id,)).fetchone()
                if row is None:
                    raise PersistenceError(f"unknown item {item_id}")
                comments = self._deserialise_list(row["comments"])
                if only_if_no_automated and any(c.get("isAI") for c in comments if isinstance(c, dict)):
                    conn.execute("ROLLBACK")
                    return False
                comments.append(comment)
                conn.execute(
                    "UPDATE items SET comments = ? WHERE item_id = ?",
                    (json.dumps(comments, ensure_ascii=False), item_id),
                )
                conn.execute("COMMIT")
                return True
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise


__all__ = ["ItemStore", "SQLiteItemStore"]
