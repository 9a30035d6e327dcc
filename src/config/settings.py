from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Runtime settings for reference loading, the ERP API and the dashboard."""

    model_config = SettingsConfigDict(
        env_prefix="IMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Source of hierarchy, tender and dashboard reads; deliveries always use the database.
    reference_source: Literal["database", "api"] = "database"
    api_base_url: str = "http://localhost:3001"
    api_timeout_seconds: float = Field(default=10.0, gt=0)

    # Reference lists are considered fresh for five minutes.
    reference_stale_seconds: float = Field(default=300.0, ge=0)
    reference_retry_attempts: int = Field(default=3, ge=1, le=10)
    reference_retry_wait_seconds: float = Field(default=1.0, ge=0)

    dashboard_recent_limit: int = Field(default=5, ge=0)
    db_schema: str = Field(default="public", min_length=1)

    @field_validator("api_base_url")
    @classmethod
    def normalize_api_base_url(cls, v: str) -> str:
        url = v.strip().rstrip("/")
        if not url.startswith(("http://", "https://")):
            raise ValueError("IMS_API_BASE_URL must start with http:// or https://")
        return url

    @field_validator("db_schema")
    @classmethod
    def validate_db_schema(cls, v: str) -> str:
        # Interpolated into SQL text by the gateways; keep it a bare identifier.
        if not v.replace("_", "").isalnum():
            raise ValueError("IMS_DB_SCHEMA must be a plain identifier")
        return v


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()
