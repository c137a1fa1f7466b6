"""
Configuration helpers for the admin panel.

Routers and services read configuration through get_settings() instead of
fetching os.environ directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    storage_path: str
    admin_email: str
    admin_password: str
    admin_session_ttl_seconds: int
    login_rate_limit: int
    login_rate_window_seconds: int
    log_level: str
    public_site_origins: tuple[str, ...]
    panel_state_idle_seconds: int


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./cms.db"),
        storage_path=os.getenv("STORAGE_PATH", "./cms_storage.json"),
        admin_email=(os.getenv("ADMIN_EMAIL") or "").strip().lower(),
        admin_password=os.getenv("ADMIN_PASSWORD", ""),
        admin_session_ttl_seconds=_int(os.getenv("ADMIN_SESSION_TTL_SECONDS", "0"), 0),
        login_rate_limit=_int(os.getenv("LOGIN_RATE_LIMIT", "10"), 10),
        login_rate_window_seconds=_int(os.getenv("LOGIN_RATE_WINDOW_SECONDS", "60"), 60),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        public_site_origins=tuple(
            o.strip().rstrip("/") for o in (os.getenv("PUBLIC_SITE_ORIGINS") or "").split(",") if o.strip()
        ),
        panel_state_idle_seconds=_int(os.getenv("PANEL_STATE_IDLE_SECONDS", "1800"), 1800),
    )
