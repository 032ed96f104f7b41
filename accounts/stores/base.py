"""
User store interface.

Implementations must enforce email uniqueness inside ``create`` itself
(raising DuplicateEmailError), so concurrent registrations cannot both win
between a lookup and an insert.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from ..models import User


class UserStore(Protocol):
    def find_by_email(self, email: str) -> Optional[User]:
        ...

    def find_by_id(self, user_id: str) -> Optional[User]:
        ...

    def create(self, user: User) -> User:
        ...

    def update_by_id(self, user_id: str, **fields: Any) -> Optional[User]:
        """Apply ``fields`` and return the updated user, or None if it does not exist"""
        ...
