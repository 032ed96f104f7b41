"""
Account service configuration.

All values are loaded from environment variables (typically via .env):

- COST_FACTOR      bcrypt work factor (rounds)
- TOKEN_SECRET     secret for signing session tokens (JWT_SECRET is accepted too)
- HOST / PORT      bind address of the HTTP server
- PUBLIC_BASE_URL  base of avatar URLs (defaults to http://localhost:{PORT})
- DATA_DIR         directory of the JSON user store
- IMAGES_DIR       directory served under /images
- STORE_BACKEND    "json" or "memory"
- CORS_ORIGINS     comma-separated allowed origins (default "*")
- LOG_LEVEL / LOG_FORMAT / LOG_FILE
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from .exceptions import ConfigError

# Session tokens live for a fixed 2 days
TOKEN_TTL_SECONDS = 2 * 24 * 60 * 60

MIN_COST_FACTOR = 4
MAX_COST_FACTOR = 31

STORE_BACKENDS = ("json", "memory")
LOG_FORMATS = ("console", "json")


@dataclass(frozen=True)
class AccountsConfig:
    token_secret: str
    cost_factor: int = 10
    host: str = "0.0.0.0"
    port: int = 3000
    public_base_url: Optional[str] = None
    data_dir: Path = Path("data")
    images_dir: Path = Path("public") / "images"
    store_backend: str = "json"
    log_level: str = "INFO"
    log_format: str = "console"
    log_file: Optional[str] = None
    cors_origins: Tuple[str, ...] = ("*",)
    token_ttl_seconds: int = TOKEN_TTL_SECONDS

    def __post_init__(self) -> None:
        if not self.token_secret:
            raise ConfigError("TOKEN_SECRET must be set to sign session tokens.")
        if not MIN_COST_FACTOR <= self.cost_factor <= MAX_COST_FACTOR:
            raise ConfigError(
                f"COST_FACTOR must be between {MIN_COST_FACTOR} and {MAX_COST_FACTOR}, "
                f"got {self.cost_factor}"
            )
        if self.store_backend not in STORE_BACKENDS:
            raise ConfigError(f"STORE_BACKEND must be one of {STORE_BACKENDS}")
        if self.log_format not in LOG_FORMATS:
            raise ConfigError(f"LOG_FORMAT must be one of {LOG_FORMATS}")

    @property
    def base_url(self) -> str:
        """Base of every public URL the service hands out, without trailing slash"""
        if self.public_base_url:
            return self.public_base_url.rstrip("/")
        return f"http://localhost:{self.port}"

    @property
    def users_file(self) -> Path:
        return self.data_dir / "users.json"

    def image_url(self, filename: str) -> str:
        return f"{self.base_url}/images/{filename}"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"Environment variable {name} must be an integer, got {raw!r}")


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip()) or default


def load_config() -> AccountsConfig:
    """Build the config from the environment, loading a local .env first"""
    load_dotenv()

    port = _env_int("PORT", 3000)
    return AccountsConfig(
        token_secret=os.getenv("TOKEN_SECRET") or os.getenv("JWT_SECRET") or "",
        cost_factor=_env_int("COST_FACTOR", 10),
        host=os.getenv("HOST") or "0.0.0.0",
        port=port,
        public_base_url=os.getenv("PUBLIC_BASE_URL") or None,
        data_dir=Path(os.getenv("DATA_DIR") or "data"),
        images_dir=Path(os.getenv("IMAGES_DIR") or str(Path("public") / "images")),
        store_backend=(os.getenv("STORE_BACKEND") or "json").strip().lower(),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
        log_format=(os.getenv("LOG_FORMAT") or "console").strip().lower(),
        log_file=os.getenv("LOG_FILE") or None,
        cors_origins=_env_list("CORS_ORIGINS", ("*",)),
    )
