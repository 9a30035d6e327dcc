"""Map asyncpg / PostgreSQL failures onto the ``Error`` hierarchy.

Gateways wrap their coroutines with ``returns_db_result`` so that a raised
``asyncpg.PostgresError`` arrives at the service layer as a ``DatabaseError`` carrying the SQLSTATE details.
"""

from __future__ import annotations

import functools
from typing import Any, Awaitable, Callable, Dict, ParamSpec, TypeVar, cast

import asyncpg
import structlog

from src.infra.result import DatabaseError, Err, Error, Ok, Result, SystemError

LOGGER = structlog.get_logger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

# Raised by asyncpg for pool misuse: acquire on a closed pool, released connection reuse.
PoolError: type[BaseException] = asyncpg.InterfaceError

POSTGRES_ERROR_CODES = {
    "08000": "connection_exception",
    "08003": "connection_does_not_exist",
    "08006": "connection_failure",
    "08001": "sqlclient_unable_to_establish_sqlconnection",
    "23502": "not_null_violation",
    "23503": "foreign_key_violation",
    "23505": "unique_violation",
    "23514": "check_violation",
    "22P02": "invalid_text_representation",
    "40001": "serialization_failure",
    "40P01": "deadlock_detected",
    "57014": "query_canceled",
    "42P01": "undefined_table",
    "42703": "undefined_column",
    "42883": "undefined_function",
    "P0001": "raise_exception",
}

_RETRYABLE_SQLSTATES = {"40001", "40P01"}


def map_postgres_error(error: asyncpg.PostgresError) -> DatabaseError:
    """Map a PostgreSQL error to a ``DatabaseError`` with SQLSTATE context."""
    raw_sqlstate = getattr(error, "sqlstate", None)
    sqlstate: str | None = str(raw_sqlstate) if raw_sqlstate is not None else None

    context: Dict[str, Any] = {
        "sqlstate": sqlstate,
        "error_type": POSTGRES_ERROR_CODES.get(sqlstate or "", "unknown_postgres_error"),
        "original_message": str(error),
    }

    for attr in ("table_name", "schema_name", "constraint_name", "column_name", "detail"):
        value = getattr(error, attr, None)
        if value:
            context[attr] = value

    if sqlstate in _RETRYABLE_SQLSTATES:
        context["retry_possible"] = True
    elif sqlstate == "57014":
        context["timeout"] = True
    elif sqlstate is not None and sqlstate.startswith("08"):
        context["connection_error"] = True

    return DatabaseError(message=str(error), context=context, cause=error)


def map_connection_pool_error(error: BaseException) -> SystemError:
    """Map pool exhaustion / closed-pool failures to ``SystemError``."""
    message = str(error)
    context: Dict[str, Any] = {
        "error_type": type(error).__name__,
        "original_message": message,
    }
    lowered = message.lower()
    if "timeout" in lowered:
        context["pool_timeout"] = True
    if "closed" in lowered:
        context["pool_closed"] = True
    return SystemError(message=f"Database pool error: {message}", context=context, cause=error)


def map_database_exception(error: BaseException) -> Error:
    """Pick the right mapping for any exception raised by a gateway call."""
    if isinstance(error, asyncpg.PostgresError):
        return map_postgres_error(error)
    if isinstance(error, (PoolError, ConnectionError, OSError)):
        return map_connection_pool_error(error)
    return DatabaseError(message=str(error), context={"error_type": type(error).__name__}, cause=error)


def returns_db_result(
    func: Callable[P, Awaitable[T]],
) -> Callable[P, Awaitable[Result[T, Error]]]:
    """Wrap a gateway coroutine so database failures come back as ``Err``.

    Unlike ``async_returns_result`` the mapped error keeps the SQLSTATE
    context produced by ``map_database_exception``.
    """

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T, Error]:
        try:
            value = await func(*args, **kwargs)
        except Error as exc:
            return Err(exc)
        except Exception as exc:
            error = map_database_exception(exc)
            LOGGER.error(
                "db.gateway.error",
                function=func.__name__,
                error=str(error),
                context=error.log_safe_context(),
            )
            return Err(error)
        if isinstance(value, (Ok, Err)):
            return cast(Result[T, Error], value)
        return Ok(value)

    return wrapper


__all__ = [
    "POSTGRES_ERROR_CODES",
    "map_connection_pool_error",
    "map_database_exception",
    "map_postgres_error",
    "returns_db_result",
]
