"""
FastAPI routes for user accounts.

Prefix: /users

Request bodies are JSON except the avatar upload, which is multipart with
an ``avatar`` file field. Errors raised by the session manager are turned
into {"detail": ...} responses by the handlers installed in web.app.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Request, Response, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, EmailStr, Field, field_validator

from accounts.avatar import save_upload
from accounts.exceptions import BadRequestError
from accounts.security import MAX_PASSWORD_BYTES, password_too_long
from accounts.sessions import AccountSessionManager, AuthContext
from .auth_middleware import get_manager, require_login


router = APIRouter(prefix="/users", tags=["users"])


class Credentials(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if password_too_long(value):
            raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes in UTF-8")
        return value


class SubscriptionUpdate(BaseModel):
    # validated by the manager so unknown values answer 400, not 422
    subscription: Optional[Any] = None


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: Credentials,
    manager: AccountSessionManager = Depends(get_manager),
) -> Dict[str, Any]:
    """
    Register a new user.

    Response (201):
        {"email": "...", "subscription": "free"}
    """
    return await run_in_threadpool(manager.register, str(payload.email), payload.password)


@router.post("/login")
async def login(
    payload: Credentials,
    manager: AccountSessionManager = Depends(get_manager),
) -> Dict[str, Any]:
    """
    Log in and receive a bearer token valid for 2 days.

    Response:
        {"token": "...", "user": {"email": "...", "subscription": "..."}}
    """
    return await run_in_threadpool(manager.login, str(payload.email), payload.password)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    ctx: AuthContext = Depends(require_login),
    manager: AccountSessionManager = Depends(get_manager),
) -> Response:
    await run_in_threadpool(manager.logout, ctx.user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/current")
async def current(
    ctx: AuthContext = Depends(require_login),
    manager: AccountSessionManager = Depends(get_manager),
) -> Dict[str, Any]:
    return manager.current_user(ctx.user)


@router.patch("/subscription")
async def update_subscription(
    payload: SubscriptionUpdate,
    ctx: AuthContext = Depends(require_login),
    manager: AccountSessionManager = Depends(get_manager),
) -> Dict[str, Any]:
    return await run_in_threadpool(manager.update_subscription, ctx.user, payload.subscription)


@router.patch("/avatars")
@router.patch("/avatar")
async def update_avatar(
    request: Request,
    avatar: UploadFile = File(...),
    ctx: AuthContext = Depends(require_login),
    manager: AccountSessionManager = Depends(get_manager),
) -> Dict[str, str]:
    """Replace the user's avatar with an uploaded image"""
    if not avatar.content_type or not avatar.content_type.startswith("image/"):
        raise BadRequestError("Avatar must be an image")

    images_dir = request.app.state.config.images_dir
    filename = await run_in_threadpool(save_upload, avatar.file, avatar.filename, images_dir)
    return await run_in_threadpool(manager.update_avatar, ctx.user, filename)
