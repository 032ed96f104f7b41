"""
User storage with JSON-based persistence.

One document file holds every user:

    {"users": [{"id": "...", "email": "...", ...}, ...]}

Writes go to a temp file in the same directory and are moved over the
original. A process-wide lock serializes read-modify-write sequences so
email uniqueness holds under concurrent requests.
"""

from __future__ import annotations

import json
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..exceptions import DuplicateEmailError, StoreError
from ..models import User, normalize_email
from ..utils.logger import get_logger

logger = get_logger(__name__)


class JsonUserStore:
    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.RLock()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _load_users(self) -> List[User]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return [User(**item) for item in data.get("users", [])]
        except (json.JSONDecodeError, OSError, ValidationError) as e:
            raise StoreError(f"Failed to load users from {self.path}: {e}")

    def _save_users(self, users: List[User]) -> None:
        payload = {"users": [u.model_dump(mode="json") for u in users]}
        self._atomic_write(payload)

    def _atomic_write(self, payload: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w", dir=str(self.path.parent), delete=False, encoding="utf-8"
        ) as tf:
            json.dump(payload, tf, indent=2, ensure_ascii=False)
            temp_path = Path(tf.name)
        try:
            shutil.move(str(temp_path), str(self.path))
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StoreError(f"Failed to save users to {self.path}: {e}")

    def find_by_email(self, email: str) -> Optional[User]:
        email = normalize_email(email)
        with self._lock:
            return next((u for u in self._load_users() if u.email == email), None)

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            return next((u for u in self._load_users() if u.id == user_id), None)

    def create(self, user: User) -> User:
        with self._lock:
            users = self._load_users()
            if any(u.email == user.email for u in users):
                raise DuplicateEmailError(user.email)
            users.append(user)
            self._save_users(users)
        logger.debug("User document created", user_id=user.id)
        return user

    def update_by_id(self, user_id: str, **fields: Any) -> Optional[User]:
        with self._lock:
            users = self._load_users()
            for i, user in enumerate(users):
                if user.id == user_id:
                    updated = User(**{**user.model_dump(), **fields})
                    users[i] = updated
                    self._save_users(users)
                    return updated
        return None
