from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.config.db_settings import PoolConfig
from src.config.settings import AppSettings, get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    get_settings.cache_clear()


@pytest.mark.unit
def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("IMS_REFERENCE_SOURCE", "IMS_API_BASE_URL", "IMS_DB_SCHEMA"):
        monkeypatch.delenv(name, raising=False)

    settings = AppSettings.model_validate({})

    assert settings.reference_source == "database"
    assert settings.reference_stale_seconds == 300.0
    assert settings.reference_retry_attempts == 3
    assert settings.dashboard_recent_limit == 5
    assert settings.db_schema == "public"


@pytest.mark.unit
def test_prefixed_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("IMS_REFERENCE_SOURCE", "api")
    monkeypatch.setenv("IMS_API_BASE_URL", "  https://erp.example.org/ ")
    monkeypatch.setenv("IMS_REFERENCE_STALE_SECONDS", "60")

    settings = get_settings()

    assert settings.reference_source == "api"
    assert settings.api_base_url == "https://erp.example.org"
    assert settings.reference_stale_seconds == 60.0
    assert get_settings() is settings


@pytest.mark.unit
@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("IMS_API_BASE_URL", "erp.example.org"),
        ("IMS_DB_SCHEMA", "public; drop table tenders"),
        ("IMS_REFERENCE_RETRY_ATTEMPTS", "0"),
        ("IMS_REFERENCE_SOURCE", "ldap"),
    ],
)
def test_invalid_values_rejected(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValidationError):
        AppSettings.model_validate({})


@pytest.mark.unit
def test_pool_config_accepts_postgres_scheme(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgres://ims@localhost/ims")
    monkeypatch.setenv("DB_POOL_MIN_SIZE", "2")
    monkeypatch.setenv("DB_POOL_MAX_SIZE", "4")

    config = PoolConfig()  # type: ignore[call-arg]

    assert config.dsn == "postgres://ims@localhost/ims"
    assert (config.min_size, config.max_size) == (2, 4)


@pytest.mark.unit
def test_pool_config_rejects_bad_sizes(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://ims@localhost/ims")
    monkeypatch.setenv("DB_POOL_MIN_SIZE", "5")
    monkeypatch.setenv("DB_POOL_MAX_SIZE", "2")

    with pytest.raises(ValueError):
        PoolConfig()  # type: ignore[call-arg]
