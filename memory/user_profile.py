"""User profile storage; profiles are owned by the main application."""

import json
from pathlib import Path
from typing import Optional

from models.errors import PersistenceError
from models.item_record import UserProfile, profile_from_document


class UserProfileStore:
    """Simple JSON-backed profile store, one document per user."""

    def __init__(self, base_dir: str | Path = "data/profiles") -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _profile_path(self, user_id: str) -> Path:
        root = self.base_dir.resolve()
        path = (root / f"{user_id}.json").resolve()
        if path.parent != root:
            raise PersistenceError(f"invalid profile id: {user_id!r}")
        return path

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """Return the user's profile, or ``None`` when none exists."""

        path = self._profile_path(user_id)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"profile read failed for {user_id}: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceError(f"profile for {user_id} is not a JSON object")
        return profile_from_document({**data, "userId": user_id})

    def save_profile(self, profile: UserProfile) -> UserProfile:
        path = self._profile_path(profile.user_id)
        path.write_text(json.dumps(profile.to_document(), indent=2, ensure_ascii=False), encoding="utf-8")
        return profile
