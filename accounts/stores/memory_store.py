"""In-process user store (tests and STORE_BACKEND=memory)"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional

from ..exceptions import DuplicateEmailError
from ..models import User, normalize_email


class InMemoryUserStore:
    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._lock = threading.Lock()

    def find_by_email(self, email: str) -> Optional[User]:
        email = normalize_email(email)
        with self._lock:
            return next((u for u in self._users.values() if u.email == email), None)

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def create(self, user: User) -> User:
        with self._lock:
            if any(u.email == user.email for u in self._users.values()):
                raise DuplicateEmailError(user.email)
            self._users[user.id] = user
        return user

    def update_by_id(self, user_id: str, **fields: Any) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            updated = User(**{**user.model_dump(), **fields})
            self._users[user_id] = updated
            return updated

    def __len__(self) -> int:
        return len(self._users)
