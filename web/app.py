"""FastAPI application factory for the account sessions service"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from accounts.avatar import AvatarGenerator
from accounts.config import AccountsConfig, load_config
from accounts.exceptions import AccountsError
from accounts.sessions import AccountSessionManager
from accounts.stores import UserStore, build_store
from accounts.utils.logger import get_logger
from .user_routes import router as users_router

logger = get_logger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AccountsError)
    async def accounts_error_handler(request: Request, exc: AccountsError) -> JSONResponse:
        detail = exc.message
        if exc.status_code >= 500:
            logger.error("Request failed", path=request.url.path, error=exc.message)
            detail = "Internal server error"
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": detail},
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(
    config: Optional[AccountsConfig] = None,
    store: Optional[UserStore] = None,
) -> FastAPI:
    config = config or load_config()
    store = store if store is not None else build_store(config)

    config.images_dir.mkdir(parents=True, exist_ok=True)
    manager = AccountSessionManager(config, store, AvatarGenerator(config.images_dir))

    app = FastAPI(
        title="Account Sessions",
        description="User registration, login and bearer-token sessions",
        version="1.0.0",
    )
    app.state.config = config
    app.state.manager = manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)

    app.include_router(users_router)
    app.mount("/images", StaticFiles(directory=config.images_dir), name="images")

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app
