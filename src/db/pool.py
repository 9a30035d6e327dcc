from __future__ import annotations

import asyncio
import json
from typing import Any, cast
from weakref import WeakKeyDictionary

import asyncpg
import structlog
from dotenv import load_dotenv

from src.config.db_settings import PoolConfig

LOGGER = structlog.get_logger(__name__)

_POOL_LOCKS: "WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = WeakKeyDictionary()
_POOLS: "WeakKeyDictionary[asyncio.AbstractEventLoop, asyncpg.Pool]" = WeakKeyDictionary()


async def init_pool(config: PoolConfig | None = None) -> asyncpg.Pool:
    """Initialise the asyncpg pool for the running loop if it does not exist yet."""
    loop = asyncio.get_running_loop()
    existing = _POOLS.get(loop)
    if existing is not None:
        return existing

    async with _get_pool_lock(loop):
        pool = _POOLS.get(loop)
        if pool is not None:
            return pool

        if config is None:
            load_dotenv(override=False)
            pool_config = PoolConfig.model_validate({})
        else:
            pool_config = config

        _apg = cast(Any, asyncpg)
        pool = await _apg.create_pool(
            dsn=pool_config.dsn,
            min_size=pool_config.min_size,
            max_size=pool_config.max_size,
            command_timeout=pool_config.command_timeout,
            server_settings=pool_config.server_settings,
            init=_configure_connection,
        )
        _POOLS[loop] = pool
        LOGGER.info(
            "db.pool.initialised",
            min_size=pool_config.min_size,
            max_size=pool_config.max_size,
        )
        return pool


def get_pool() -> asyncpg.Pool:
    """Return the pool of the running loop or raise if it has not been initialised."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None
    pool = _POOLS.get(loop) if loop is not None else None
    if pool is None:
        raise RuntimeError("Database pool not initialised. Call init_pool() first.")
    return pool


async def close_pool() -> None:
    loop = asyncio.get_running_loop()
    async with _get_pool_lock(loop):
        pool = _POOLS.pop(loop, None)

    if pool is not None:
        await pool.close()
        LOGGER.info("db.pool.closed")


def _get_pool_lock(loop: asyncio.AbstractEventLoop) -> asyncio.Lock:
    lock = _POOL_LOCKS.get(loop)
    if lock is None:
        lock = asyncio.Lock()
        _POOL_LOCKS[loop] = lock
    return lock


async def _configure_connection(connection: asyncpg.Connection) -> None:
    # RPC payloads (delivery items, save results) travel as json/jsonb.
    _conn_any = cast(Any, connection)
    for type_name in ("json", "jsonb"):
        await _conn_any.set_type_codec(
            type_name,
            schema="pg_catalog",
            encoder=json.dumps,
            decoder=json.loads,
            format="text",
        )
