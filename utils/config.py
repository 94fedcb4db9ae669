"""Configuration management for the disposition tracking service.

Provides:
- Config: base class with dict export for startup logging
- AppConfig: application settings loaded from environment variables

All env vars have defaults so the service starts without any configuration.
"""

import os
from pathlib import Path
from typing import Any, Dict

from dispositions.catalog import SPECIAL_REASON_CODE


class Config:
    """Base configuration class for organizing application settings."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary (private attributes excluded)."""
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}


class AppConfig(Config):
    """Application-level configuration loaded from environment variables.

    Environment variables:
        APP_DB_PATH: Path to the SQLite record store (default: dispositions.sqlite)
        APP_PORT: API server port (default: 8000)
        APP_HOST: API server bind address (default: 127.0.0.1)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
        APP_REASON_CATALOG: JSON file replacing the built-in reason catalog
        APP_SPECIAL_REASON: Reason code counted by the all-time dashboard
            facet (default: EXP-01)
        APP_STATS_CACHE_TTL: Seconds to cache dashboard stats (default: 60)
    """

    def __init__(self) -> None:
        self.db_path = Path(os.getenv("APP_DB_PATH", "dispositions.sqlite"))
        self.api_port = int(os.getenv("APP_PORT", "8000"))
        self.api_host = os.getenv("APP_HOST", "127.0.0.1")
        self.log_format = os.getenv("APP_LOG_FORMAT", "text")
        raw_origins = os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )
        raw_catalog = os.getenv("APP_REASON_CATALOG", "")
        self.reason_catalog_path: Path | None = Path(raw_catalog) if raw_catalog else None
        self.special_reason_code = os.getenv("APP_SPECIAL_REASON", SPECIAL_REASON_CODE)
        self.stats_cache_ttl = float(os.getenv("APP_STATS_CACHE_TTL", "60"))

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()
