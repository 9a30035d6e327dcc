from __future__ import annotations

import os
from logging.config import fileConfig

import structlog
from alembic import context
from dotenv import load_dotenv
from sqlalchemy import create_engine, pool, text
from sqlalchemy.engine import Connection

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

LOGGER = structlog.get_logger(__name__)

_DRIVER_PREFIX = "postgresql+psycopg://"


def _database_url() -> str:
    """DATABASE_URL with the scheme SQLAlchemy needs for psycopg 3."""
    load_dotenv(override=False)
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL must be set to run database migrations.")
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return _DRIVER_PREFIX + url[len(prefix) :]
    return url


def _target_schema() -> str:
    """Schema the gateways read from; ``-x schema=...`` overrides IMS_DB_SCHEMA."""
    schema = context.get_x_argument(as_dictionary=True).get("schema") or os.getenv(
        "IMS_DB_SCHEMA", "public"
    )
    if not schema.replace("_", "").isalnum():
        raise RuntimeError(f"Refusing to migrate into schema {schema!r}")
    return schema


def run_migrations_offline() -> None:
    schema = _target_schema()
    context.configure(url=_database_url(), target_metadata=None, literal_binds=True)
    with context.begin_transaction():
        if schema != "public":
            context.execute(f"SET search_path TO {schema}, public")
        context.run_migrations()
    LOGGER.info("alembic.migrations.run", mode="offline", schema=schema)


def _run_on(connection: Connection, schema: str) -> None:
    if schema != "public":
        connection.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema}"))
        connection.execute(text(f"SET search_path TO {schema}, public"))
    # Revisions share one transaction so a failed backfill leaves nothing half-applied.
    context.configure(
        connection=connection,
        target_metadata=None,
        version_table_schema=schema,
        transaction_per_migration=False,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    schema = _target_schema()
    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        _run_on(connection, schema)
        connection.commit()
    LOGGER.info("alembic.migrations.run", mode="online", schema=schema)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
