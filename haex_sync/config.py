"""
Centralized configuration for the sync server.

All configuration is loaded from environment variables with sensible defaults.
A ``.env`` file at the repository root is honoured for local development;
variables already present in the environment always win.

Usage:
    from haex_sync.config import get_config
    cfg = get_config()
    print(cfg.port)            # 3000
    print(cfg.cors_origins)    # ["*"]
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"


@dataclass(frozen=True)
class DatabaseConfig:
    """PostgreSQL connection parameters."""

    url: str = "postgresql://postgres@localhost:5432/postgres"
    pool_min: int = 1
    pool_max: int = 10
    # Role assumed per transaction so row-level policies bind; empty = keep login role
    role: str = ""

    @property
    def safe_url(self) -> str:
        """Connection string with any password masked, for log output."""
        if "@" not in self.url or "://" not in self.url:
            return self.url
        scheme, rest = self.url.split("://", 1)
        creds, host = rest.rsplit("@", 1)
        user = creds.split(":", 1)[0]
        return f"{scheme}://{user}:***@{host}" if ":" in creds else self.url


@dataclass(frozen=True)
class AuthConfig:
    """Identity provider (Supabase Auth) parameters."""

    url: str = ""
    api_key: str = ""
    timeout: float = 10.0

    @property
    def configured(self) -> bool:
        return bool(self.url and self.api_key)

    @property
    def user_endpoint(self) -> str:
        return f"{self.url.rstrip('/')}/auth/v1/user"


@dataclass(frozen=True)
class Config:
    """Top-level sync server configuration."""

    db: DatabaseConfig = field(default_factory=DatabaseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)

    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    env: str = "development"
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def allow_all_origins(self) -> bool:
        return "*" in self.cors_origins


def parse_cors_origins(raw: str) -> list[str]:
    """Parse ``CORS_ORIGIN``: ``*`` or a comma-separated origin list."""
    raw = raw.strip()
    if not raw or raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


# Singleton
_config: Config | None = None


def get_config() -> Config:
    """Get or create the singleton config from environment variables."""
    global _config
    if _config is not None:
        return _config
    _config = _load_from_env()
    return _config


def _load_from_env() -> Config:
    """Load configuration from environment variables."""
    if _ENV_PATH.exists():
        load_dotenv(_ENV_PATH, override=False)

    db = DatabaseConfig(
        url=os.environ.get("DATABASE_URL", "postgresql://postgres@localhost:5432/postgres"),
        pool_min=int(os.environ.get("HAEX_SYNC_DB_POOL_MIN", "1")),
        pool_max=int(os.environ.get("HAEX_SYNC_DB_POOL_MAX", "10")),
        role=os.environ.get("HAEX_SYNC_DB_ROLE", ""),
    )

    auth = AuthConfig(
        url=os.environ.get("SUPABASE_URL", ""),
        api_key=os.environ.get("SUPABASE_ANON_KEY", ""),
        timeout=float(os.environ.get("SUPABASE_TIMEOUT", "10")),
    )

    return Config(
        db=db,
        auth=auth,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "3000")),
        cors_origins=parse_cors_origins(os.environ.get("CORS_ORIGIN", "*")),
        env=os.environ.get("HAEX_SYNC_ENV") or os.environ.get("NODE_ENV") or "development",
        log_level=os.environ.get("HAEX_SYNC_LOG_LEVEL", "INFO").upper(),
    )


def reset_config() -> None:
    """Reset the singleton config (for testing)."""
    global _config
    _config = None
