"""
Password hashing and session token signing.

- Passwords: bcrypt with a configurable work factor
- Tokens: itsdangerous URL-safe timed signatures over {"id": <user id>, "nonce": ...}

Tokens are checked for signature and age on every request; whether a token
is still the user's current one is decided by the session manager.
"""

from __future__ import annotations

import secrets
from typing import Any

import bcrypt
from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer

from .exceptions import BadRequestError, UnauthorizedError

TOKEN_SALT = "accounts-session-token"

# bcrypt only looks at the first 72 bytes; bcrypt>=5 rejects anything longer
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str, rounds: int) -> str:
    """Hash a password with bcrypt"""
    if password_too_long(password):
        raise BadRequestError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash"""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed hash
        return False


class TokenSigner:
    """Issues and verifies signed session tokens carrying a user id"""

    def __init__(self, secret: str, max_age_seconds: int):
        self.max_age_seconds = max_age_seconds
        self._serializer = URLSafeTimedSerializer(secret_key=secret, salt=TOKEN_SALT)

    def issue(self, user_id: str) -> str:
        # nonce keeps two tokens issued within the same second distinct
        return self._serializer.dumps({"id": user_id, "nonce": secrets.token_urlsafe(8)})

    def verify(self, token: str) -> str:
        """Return the user id carried by ``token`` or raise UnauthorizedError"""
        if not token:
            raise UnauthorizedError("Not authorized")
        try:
            data: Any = self._serializer.loads(token, max_age=self.max_age_seconds)
        except SignatureExpired:
            raise UnauthorizedError("Token expired")
        except BadData:
            raise UnauthorizedError("Not authorized")
        if not isinstance(data, dict) or not data.get("id"):
            raise UnauthorizedError("Not authorized")
        return str(data["id"])
