# backend/carenow/core/config.py
import logging
import os
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


class Settings(BaseSettings):
    """Runtime configuration, read from CARENOW_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_prefix="CARENOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field(default="development", description="Deployment tag")
    log_level: str = Field(default="INFO", description="Root log level")

    # Document store
    database_url: str = Field(
        default="sqlite+pysqlite:///./carenow.db",
        description="SQLAlchemy URL of the document store",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # Change feed and push delivery
    broadcast_url: str = Field(
        default="memory://",
        description="broadcaster backend URL used for realtime booking updates",
    )
    push_provider: Literal["console"] = Field(
        default="console", description="Push messaging provider"
    )
    push_console_history: int = Field(
        default=100, ge=0, description="Sends kept in memory by the console push gateway"
    )

    # Business rules
    cancellation_notice_hours: int = Field(
        default=2, ge=0, description="Bookings can be cancelled only this far ahead"
    )
    review_edit_window_hours: int = Field(
        default=24, ge=0, description="Reviews are editable for this long after creation"
    )
    partner_search_radius_km: float = Field(
        default=50.0, gt=0, description="Max partner distance when client coordinates are known"
    )
    service_catalog_cache_ttl_seconds: int = Field(
        default=300, ge=0, description="Lifetime of the in-process service catalog cache"
    )
    realtime_message_history: int = Field(
        default=10, ge=1, description="Messages kept in a realtime booking snapshot"
    )
    default_page_size: int = Field(default=20, ge=1, le=100)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in {"prod", "production"}


settings = Settings()
