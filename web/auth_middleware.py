"""
Auth "middleware" helpers.

We expose require_login() as a FastAPI dependency that:
- Reads the token from the Authorization: Bearer <token> header
- Validates it via the session manager (signature, expiry, current token)
- Attaches the user and raw token to request.state for downstream handlers
"""

from __future__ import annotations

from fastapi import Request
from fastapi.concurrency import run_in_threadpool

from accounts.sessions import AccountSessionManager, AuthContext


def get_manager(request: Request) -> AccountSessionManager:
    return request.app.state.manager


async def require_login(request: Request) -> AuthContext:
    """
    Dependency for protected routes.

    Raises UnauthorizedError (401) if the token is missing, invalid, expired
    or no longer the user's current one.
    """
    manager = get_manager(request)
    ctx = await run_in_threadpool(manager.authorize, request.headers.get("Authorization"))
    request.state.user = ctx.user
    request.state.token = ctx.token
    return ctx
