from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PoolConfig(BaseSettings):
    """Configuration for the asyncpg connection pool."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = Field(..., alias="DATABASE_URL", min_length=1)
    db_pool_min_size: int = Field(default=1, alias="DB_POOL_MIN_SIZE", ge=1)
    db_pool_max_size: int = Field(default=10, alias="DB_POOL_MAX_SIZE", ge=1)
    db_command_timeout_seconds: float | None = Field(
        default=None, alias="DB_COMMAND_TIMEOUT_SECONDS", gt=0
    )
    db_application_name: str = Field(default="ims-tenders", alias="DB_APPLICATION_NAME")

    @property
    def dsn(self) -> str:
        return self.database_url

    @property
    def min_size(self) -> int:
        return self.db_pool_min_size

    @property
    def max_size(self) -> int:
        return self.db_pool_max_size

    @property
    def server_settings(self) -> dict[str, str]:
        # Shows up in pg_stat_activity next to the delivery RPC calls.
        return {"application_name": self.db_application_name}

    @property
    def command_timeout(self) -> float | None:
        return self.db_command_timeout_seconds

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Supabase hands out postgres:// URLs; asyncpg accepts both schemes."""
        url = v.strip()
        if not url:
            raise ValueError("DATABASE_URL cannot be empty")
        if not url.startswith(("postgresql://", "postgres://")):
            raise ValueError("DATABASE_URL must start with postgresql:// or postgres://")
        return url

    def model_post_init(self, __context: Any) -> None:
        if self.db_pool_max_size < self.db_pool_min_size:
            raise ValueError("DB_POOL_MAX_SIZE must be greater than or equal to DB_POOL_MIN_SIZE")
