"""User data models"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class Subscription(str, Enum):
    FREE = "free"
    PRO = "pro"
    PREMIUM = "premium"

    @classmethod
    def values(cls) -> list[str]:
        return [s.value for s in cls]


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class User(BaseModel):
    """Persisted user document"""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    id: str = Field(default_factory=lambda: str(uuid4()))
    email: str
    password_hash: str
    subscription: Subscription = Subscription.FREE
    avatar_url: str = ""
    token: Optional[str] = None  # current session token; None when logged out
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def public(self) -> Dict[str, Any]:
        """Fields safe to hand back to clients (no hash, no token)"""
        return {
            "id": self.id,
            "email": self.email,
            "subscription": self.subscription.value,
            "avatarURL": self.avatar_url,
        }
