from __future__ import annotations

from typing import Callable, TypeVar, cast

import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

LOGGER = structlog.get_logger(__name__)

T = TypeVar("T")


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    LOGGER.warning(
        "retry.attempt_failed",
        function=getattr(retry_state.fn, "__name__", "<unknown>"),
        attempt=retry_state.attempt_number,
        error=str(error) if error is not None else None,
    )


def simple_retry(
    *,
    max_attempts: int = 3,
    wait_seconds: float = 1.0,
    retry_on: type[Exception] | tuple[type[Exception], ...] = Exception,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Create a retry decorator with a fixed wait between attempts.

    Works for plain functions and coroutine functions alike; tenacity switches
    to its async strategy (``asyncio.sleep``) when the wrapped callable is a
    coroutine function. The last exception is re-raised once attempts run out.

    Args:
        max_attempts: Total number of attempts, including the first call
        wait_seconds: Wait time between attempts in seconds
        retry_on: Exception types to retry on
    """
    return cast(
        Callable[[Callable[..., T]], Callable[..., T]],
        retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_fixed(wait_seconds),
            retry=retry_if_exception_type(retry_on),
            before_sleep=_log_retry,
            reraise=True,
        ),
    )


__all__ = ["simple_retry"]
