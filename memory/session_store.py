"""Coach session store abstractions with JSON and SQLite backends.

Sessions are written once per space analysis and never updated afterwards.
"""
from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import List, Optional

from models.analysis import CoachSession
from models.errors import PersistenceError


class CoachSessionStore:
    """Interface for coach session persistence."""

    def create_session(self, session: CoachSession) -> str:
        raise NotImplementedError

    def get_session(self, session_id: str) -> Optional[CoachSession]:
        raise NotImplementedError

    def list_sessions_for_user(self, user_id: str) -> List[CoachSession]:
        raise NotImplementedError


class JSONCoachSessionStore(CoachSessionStore):
    """JSON-file-backed store suitable for local runs."""

    def __init__(self, base_dir: str | Path = "data/coach_sessions") -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, session_id: str) -> Path:
        return self.base_dir / f"{session_id}.json"

    def create_session(self, session: CoachSession) -> str:
        path = self._path(session.session_id)
        if path.exists():
            raise PersistenceError(f"session {session.session_id} already exists")
        try:
            path.write_text(json.dumps(session.to_document(), indent=2, ensure_ascii=False), encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"session write failed: {exc}") from exc
        return session.session_id

    def get_session(self, session_id: str) -> Optional[CoachSession]:
        path = self._path(session_id)
        if not path.exists():
            return None
        return CoachSession.from_document(json.loads(path.read_text(encoding="utf-8")))

    def list_sessions_for_user(self, user_id: str) -> List[CoachSession]:
        sessions = []
        for path in sorted(self.base_dir.glob("*.json")):
            document = json.loads(path.read_text(encoding="utf-8"))
            if document.get("userId") == user_id:
                sessions.append(CoachSession.from_document(document))
        return sorted(sessions, key=lambda s: s.created_at)


class SQLiteCoachSessionStore(CoachSessionStore):
    """SQLite-backed session store for lightweight durability."""

    def __init__(self, db_path: str | Path = "data/coach_sessions.db") -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS coach_sessions (
                    session_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    before_image_url TEXT,
                    after_image_url TEXT,
                    analysis TEXT,
                    created_at TEXT
                );
                CREATE INDEX IF NOT EXISTS idx_coach_sessions_user ON coach_sessions(user_id);
                """
            )

    def create_session(self, session: CoachSession) -> str:
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO coach_sessions(session_id, user_id, before_image_url, after_image_url, "
                    "analysis, created_at) VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        session.session_id,
                        session.user_id,
                        session.before_image_url,
                        session.after_image_url,
                        json.dumps(session.analysis, ensure_ascii=False),
                        session.created_at,
                    ),
                )
        except (sqlite3.Error, TypeError, ValueError) as exc:
            raise PersistenceError(f"session write failed: {exc}") from exc
        return session.session_id

    def _row_to_session(self, row: sqlite3.Row) -> CoachSession:
        return CoachSession(
            session_id=row["session_id"],
            user_id=row["user_id"],
            before_image_url=row["before_image_url"],
            after_image_url=row["after_image_url"],
            analysis=json.loads(row["analysis"]) if row["analysis"] else {},
            created_at=row["created_at"],
        )

    def get_session(self, session_id: str) -> Optional[CoachSession]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM coach_sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
        return self._row_to_session(row) if row else None

    def list_sessions_for_user(self, user_id: str) -> List[CoachSession]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM coach_sessions WHERE user_id = ? ORDER BY created_at ASC", (user_id,)
            ).fetchall()
        return [self._row_to_session(row) for row in rows]


def build_session_store(backend: str, path: str | None = None) -> CoachSessionStore:
    if backend.lower() == "sqlite":
        return SQLiteCoachSessionStore(path or "data/coach_sessions.db")
    return JSONCoachSessionStore(path or "data/coach_sessions")


__all__ = [
    "CoachSessionStore",
    "JSONCoachSessionStore",
    "SQLiteCoachSessionStore",
    "build_session_store",
]
