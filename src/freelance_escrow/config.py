"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. All settings are validated
at startup. The escrow destination (ESCROW_ADDRESS) is optional:
the service starts without it and deposit-prepare answers MISCONFIGURED.

Usage:
    from freelance_escrow.config import get_settings
    settings = get_settings()
    print(settings.storage_backend)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the freelance escrow service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True
    app_log_level: str = "DEBUG"
    app_host: str = "0.0.0.0"
    app_port: int = 4000
    cors_origins: str = "http://localhost:5173"

    # --- Escrow ---
    escrow_address: str = ""
    currency: str = "XTZ"

    # --- Storage ---
    storage_backend: Literal["memory", "file", "database"] = "file"
    jobs_file_path: str = "/tmp/jobs.json"

    # --- Database (used when storage_backend == "database") ---
    database_url: str = "sqlite+aiosqlite:///./jobs.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_echo_sql: bool = False

    # --- Per-job locking ---
    lock_backend: Literal["local", "redis"] = "local"
    redis_url: str = "redis://localhost:6379/0"
    lock_timeout_seconds: float = 10.0
    lock_blocking_timeout_seconds: float = 5.0

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
