"""
Account sessions core.

Registration, login, bearer-token authorization and profile updates for a
single User entity stored in a document store. The HTTP layer lives in the
``web`` package and only talks to :class:`AccountSessionManager`.
"""

from .config import AccountsConfig, load_config
from .sessions import AccountSessionManager, AuthContext

__all__ = [
    "AccountsConfig",
    "AccountSessionManager",
    "AuthContext",
    "load_config",
]
