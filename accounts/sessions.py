"""
Account session manager.

Every operation of the service goes through AccountSessionManager:

- register / login issue credentials
- authorize turns an ``Authorization: Bearer <token>`` header into a user
- logout, current_user, update_subscription, update_avatar act on an
  already-authorized user

A user holds at most one live token. Login overwrites it and logout clears
it, and authorize only accepts the token currently stored on the user, so
any earlier token stops working as soon as it is replaced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .avatar import AvatarGenerator
from .config import AccountsConfig
from .exceptions import (
    BadRequestError,
    ConflictError,
    DuplicateEmailError,
    UnauthorizedError,
)
from .models import Subscription, User, normalize_email
from .security import TokenSigner, hash_password, verify_password
from .stores.base import UserStore
from .utils.logger import get_logger

logger = get_logger(__name__)

EMAIL_IN_USE = "User with such email already exists"
WRONG_CREDENTIALS = "Email or password is wrong"
AUTH_FAILED = "Authentication failed"
INVALID_SUBSCRIPTION = "Please choose from the list of available subscriptions"

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthContext:
    """Result of a successful authorize(): the user and the token they presented"""
    user: User
    token: str


def extract_bearer_token(header: Optional[str]) -> str:
    """Token part of ``Bearer <token>``; empty string for anything else"""
    if not header or not header.startswith(BEARER_PREFIX):
        return ""
    return header[len(BEARER_PREFIX):].strip()


class AccountSessionManager:
    def __init__(
        self,
        config: AccountsConfig,
        store: UserStore,
        avatars: Optional[AvatarGenerator] = None,
    ):
        self.config = config
        self.store = store
        self.avatars = avatars or AvatarGenerator(config.images_dir)
        self.tokens = TokenSigner(config.token_secret, config.token_ttl_seconds)

    def register(self, email: str, password: str) -> Dict[str, Any]:
        email = normalize_email(email)
        if self.store.find_by_email(email) is not None:
            raise ConflictError(EMAIL_IN_USE)

        password_hash = hash_password(password, self.config.cost_factor)
        avatar_name = self.avatars.generate()
        user = User(
            email=email,
            password_hash=password_hash,
            subscription=Subscription.FREE,
            avatar_url=self.config.image_url(avatar_name),
        )
        try:
            created = self.store.create(user)
        except DuplicateEmailError:
            # lost a race against a concurrent registration of the same email
            self.avatars.remove(avatar_name)
            raise ConflictError(EMAIL_IN_USE)
        except Exception:
            self.avatars.remove(avatar_name)
            raise

        logger.info("User registered", user_id=created.id)
        return {"email": created.email, "subscription": created.subscription.value}

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = self.store.find_by_email(email)
        if user is None:
            raise UnauthorizedError(WRONG_CREDENTIALS)
        if not verify_password(password, user.password_hash):
            logger.info("Login rejected", user_id=user.id, reason="password_mismatch")
            raise UnauthorizedError(AUTH_FAILED)

        token = self.tokens.issue(user.id)
        updated = self.store.update_by_id(user.id, token=token)
        if updated is None:
            raise UnauthorizedError(WRONG_CREDENTIALS)

        logger.info("User logged in", user_id=user.id)
        return {
            "token": token,
            "user": {
                "email": updated.email,
                "subscription": updated.subscription.value,
            },
        }

    def authorize(self, authorization_header: Optional[str]) -> AuthContext:
        """Resolve the bearer header to the user whose current token it is"""
        token = extract_bearer_token(authorization_header)
        user_id = self.tokens.verify(token)

        user = self.store.find_by_id(user_id)
        if user is None or user.token != token:
            raise UnauthorizedError(WRONG_CREDENTIALS)
        return AuthContext(user=user, token=token)

    def logout(self, user: User) -> None:
        self.store.update_by_id(user.id, token=None)
        logger.info("User logged out", user_id=user.id)

    def current_user(self, user: User) -> Dict[str, Any]:
        return {
            "id": user.id,
            "email": user.email,
            "subscription": user.subscription.value,
        }

    def update_subscription(self, user: User, requested: Optional[str]) -> Dict[str, Any]:
        if requested not in Subscription.values():
            raise BadRequestError(INVALID_SUBSCRIPTION)

        updated = self.store.update_by_id(user.id, subscription=Subscription(requested))
        if updated is None:
            raise UnauthorizedError(WRONG_CREDENTIALS)
        logger.info("Subscription updated", user_id=user.id, subscription=requested)
        return updated.public()

    def update_avatar(self, user: User, stored_filename: str) -> Dict[str, str]:
        avatar_url = self.config.image_url(stored_filename)
        updated = self.store.update_by_id(user.id, avatar_url=avatar_url)
        if updated is None:
            self.avatars.remove(stored_filename)
            raise UnauthorizedError(WRONG_CREDENTIALS)

        previous = self._local_image_name(user.avatar_url)
        if previous and previous != stored_filename:
            self.avatars.remove(previous)
        logger.info("Avatar updated", user_id=user.id)
        return {"avatarURL": updated.avatar_url}

    def _local_image_name(self, url: str) -> Optional[str]:
        """File name behind ``url`` when it points into our images directory"""
        prefix = self.config.image_url("")
        if not url or not url.startswith(prefix):
            return None
        name = url[len(prefix):]
        if not name or "/" in name or "\\" in name or name.startswith("."):
            return None
        return name
