"""Result / error primitives shared by gateways and services.

Gateways that write to the store return ``Result`` values instead of raising,
so callers decide whether a failure is surfaced to the user or swallowed.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    Iterable,
    Iterator,
    Mapping,
    ParamSpec,
    TypeVar,
    Union,
    cast,
)

import structlog

LOGGER = structlog.get_logger(__name__)

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")
F = TypeVar("F")

P = ParamSpec("P")


_SENSITIVE_KEYS: tuple[str, ...] = (
    "password",
    "secret",
    "token",
    "api_key",
    "authorization",
)

_ERROR_COUNTERS: Counter[str] = Counter()


def _sanitize_context(context: Mapping[str, Any] | None) -> dict[str, Any]:
    """Mask values whose key looks secret-bearing, recursing into nested dicts."""
    if not context:
        return {}

    def _sanitize(key: str, value: Any) -> Any:
        if any(sk in key.lower() for sk in _SENSITIVE_KEYS):
            return "***redacted***"
        if isinstance(value, dict):
            mapping = cast(Mapping[str, Any], value)
            return {k: _sanitize(str(k), v) for k, v in mapping.items()}
        return value

    return {key: _sanitize(str(key), value) for key, value in context.items()}


def _record_error(error: "Error") -> None:
    key = type(error).__name__
    _ERROR_COUNTERS[key] += 1
    _ERROR_COUNTERS["__total__"] += 1


def get_error_metrics() -> dict[str, int]:
    """Return error counts grouped by error class name."""
    return dict(_ERROR_COUNTERS)


def reset_error_metrics() -> None:
    _ERROR_COUNTERS.clear()


# --- error hierarchy ---


class Error(Exception):
    """Base error carried by ``Err``: message, optional context and cause."""

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context or {})
        self.cause: BaseException | None = cause

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": type(self).__name__,
            "message": self.message,
            "context": dict(self.context),
            "cause": repr(self.cause) if self.cause is not None else None,
        }

    def __str__(self) -> str:  # pragma: no cover
        return self.message

    def log_safe_context(self) -> dict[str, Any]:
        return _sanitize_context(self.context)


class DatabaseError(Error):
    """Query or RPC failure reported by the store."""


class ExternalServiceError(Error):
    """HTTP failure talking to the ERP API."""


class ValidationError(Error):
    """Input rejected before reaching the store."""


class BusinessLogicError(Error):
    """The store accepted the call but refused the operation."""


class SystemError(Error):
    """Infrastructure failure (pool exhausted, connection refused, ...)."""


# --- Ok / Err ---


@dataclass(slots=True)
class Ok(Generic[T, E]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_err(self) -> E:
        raise RuntimeError("Called unwrap_err() on Ok value.")

    def map(self, fn: Callable[[T], U]) -> "Result[U, E]":
        return Ok(fn(self.value))

    def map_err(self, fn: Callable[[E], F]) -> "Result[T, F]":
        return Ok(self.value)

    def and_then(self, fn: Callable[[T], "Result[U, E]"]) -> "Result[U, E]":
        return fn(self.value)

    def unwrap_or(self, default: T) -> T:
        return self.value

    def __iter__(self) -> Iterator[T]:
        yield self.value


@dataclass(slots=True)
class Err(Generic[T, E]):
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        raise RuntimeError(f"Called unwrap() on Err value: {self.error!r}")

    def unwrap_err(self) -> E:
        return self.error

    def map(self, fn: Callable[[T], U]) -> "Result[U, E]":
        return Err(self.error)

    def map_err(self, fn: Callable[[E], F]) -> "Result[T, F]":
        return Err(fn(self.error))

    def and_then(self, fn: Callable[[T], "Result[U, E]"]) -> "Result[U, E]":
        return Err(self.error)

    def unwrap_or(self, default: T) -> T:
        return default

    def __iter__(self) -> Iterator[T]:
        return iter(())


Result = Union[Ok[T, E], Err[T, E]]


def collect(results: Iterable[Result[T, E]]) -> Result[list[T], E]:
    """Gather results into ``Ok[list]`` or return the first ``Err``."""
    values: list[T] = []
    for item in results:
        if isinstance(item, Ok):
            values.append(item.value)
        else:
            return Err(item.error)
    return Ok(values)


def _select_error_type(
    exc: Exception,
    default_error_type: type[Error],
    exception_map: Mapping[type[Exception], type[Error]] | None,
) -> type[Error]:
    if exception_map:
        for exc_type, err_type in exception_map.items():
            if isinstance(exc, exc_type):
                return err_type
    return default_error_type


def async_returns_result(
    error_type: type[Error] = Error,
    *,
    exception_map: Mapping[type[Exception], type[Error]] | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[Result[T, Error]]]]:
    """Wrap a coroutine so exceptions come back as ``Err`` instead of raising.

    A coroutine that already returns ``Ok``/``Err`` is passed through without
    being wrapped a second time. ``Error`` subclasses raised inside keep their
    own type.
    """

    def decorator(
        func: Callable[P, Awaitable[T]],
    ) -> Callable[P, Awaitable[Result[T, Error]]]:
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T, Error]:
            try:
                value = await func(*args, **kwargs)
                if isinstance(value, (Ok, Err)):
                    return cast(Result[T, Error], value)
                return Ok(value)
            except Error as exc:
                _record_error(exc)
                return Err(exc)
            except Exception as exc:
                selected_error_type = _select_error_type(exc, error_type, exception_map)
                error_obj = selected_error_type(str(exc), cause=exc)
                _record_error(error_obj)
                LOGGER.error(
                    "result.async_returns_result.error",
                    function=getattr(func, "__name__", "<unknown>"),
                    error=str(error_obj),
                    context=error_obj.log_safe_context(),
                )
                return Err(error_obj)

        wrapper.__name__ = getattr(func, "__name__", "wrapper")
        wrapper.__doc__ = func.__doc__
        return wrapper

    return decorator


__all__ = [
    "Ok",
    "Err",
    "Result",
    "Error",
    "DatabaseError",
    "ExternalServiceError",
    "ValidationError",
    "BusinessLogicError",
    "SystemError",
    "collect",
    "async_returns_result",
    "get_error_metrics",
    "reset_error_metrics",
]
