"""User stores: the document-store seam of the session manager."""

from __future__ import annotations

from ..config import AccountsConfig
from .base import UserStore
from .json_store import JsonUserStore
from .memory_store import InMemoryUserStore

__all__ = ["UserStore", "JsonUserStore", "InMemoryUserStore", "build_store"]


def build_store(config: AccountsConfig) -> UserStore:
    """Create the store selected by STORE_BACKEND"""
    if config.store_backend == "memory":
        return InMemoryUserStore()
    return JsonUserStore(config.users_file)
