"""In-process cache for office / wing / DEC reference lists.

Entries are served without a round trip while fresh. Once stale they are still
served immediately and a single background refresh is started. A fetch that
keeps failing after its retries leaves the last good list in place and emits a
notification; callers never see the exception.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Hashable, Sequence

import structlog

from src.infra.notifications import LoggingNotifier, Notifier
from src.infra.retry import simple_retry

LOGGER = structlog.get_logger(__name__)

CacheKey = tuple[Hashable, ...]
Loader = Callable[[], Awaitable[Sequence[Any]]]

DEFAULT_STALE_AFTER = 300.0


@dataclass(slots=True)
class _Entry:
    data: list[Any]
    fetched_at: float


class ReferenceDataCache:
    """Stale-while-revalidate cache with one in-flight fetch per key."""

    def __init__(
        self,
        *,
        stale_after: float = DEFAULT_STALE_AFTER,
        retry_attempts: int = 3,
        retry_wait_seconds: float = 1.0,
        notifier: Notifier | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if retry_attempts < 1:
            raise ValueError("retry_attempts must be at least 1")
        self._stale_after = stale_after
        self._retry_attempts = retry_attempts
        self._retry_wait_seconds = retry_wait_seconds
        self._notifier: Notifier = notifier or LoggingNotifier()
        self._clock = clock
        self._entries: dict[CacheKey, _Entry] = {}
        self._errors: dict[CacheKey, str] = {}
        self._inflight: dict[CacheKey, asyncio.Task[list[Any]]] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def is_fresh(self, key: CacheKey) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() - entry.fetched_at < self._stale_after

    def peek(self, key: CacheKey) -> list[Any] | None:
        entry = self._entries.get(key)
        return list(entry.data) if entry is not None else None

    def last_error(self, key: CacheKey) -> str | None:
        return self._errors.get(key)

    def in_flight(self, key: CacheKey) -> bool:
        task = self._inflight.get(key)
        return task is not None and not task.done()

    async def get(self, key: CacheKey, loader: Loader, *, label: str) -> list[Any]:
        """Return the list for ``key``, loading it with ``loader`` when needed."""
        if self._closed:
            raise RuntimeError("reference cache is closed")

        entry = self._entries.get(key)
        if entry is not None:
            if self._clock() - entry.fetched_at >= self._stale_after:
                self._ensure_fetch(key, loader, label)
                LOGGER.debug("reference_cache.stale_served", key=key)
            return list(entry.data)

        task = self._ensure_fetch(key, loader, label)
        # Shield so that one cancelled caller does not cancel the fetch the
        # other waiters share.
        data = await asyncio.shield(task)
        return list(data)

    def invalidate(self, kind: str | None = None) -> None:
        """Drop cached entries, all of them or only those of one kind."""
        if kind is None:
            dropped = len(self._entries)
            self._entries.clear()
            self._errors.clear()
        else:
            keys = [key for key in self._entries if key and key[0] == kind]
            for key in keys:
                del self._entries[key]
                self._errors.pop(key, None)
            dropped = len(keys)
        LOGGER.info("reference_cache.invalidated", kind=kind, dropped=dropped)

    async def close(self) -> None:
        """Cancel outstanding fetches; no entry is written afterwards."""
        if self._closed:
            return
        self._closed = True
        tasks = [task for task in self._inflight.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
        LOGGER.info("reference_cache.closed", cancelled=len(tasks))

    def _ensure_fetch(self, key: CacheKey, loader: Loader, label: str) -> asyncio.Task[list[Any]]:
        task = self._inflight.get(key)
        if task is not None and not task.done():
            LOGGER.debug("reference_cache.coalesced", key=key)
            return task
        task = asyncio.create_task(self._fetch(key, loader, label))
        self._inflight[key] = task
        task.add_done_callback(lambda done, key=key: self._forget(key, done))
        return task

    def _forget(self, key: CacheKey, task: asyncio.Task[list[Any]]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _fetch(self, key: CacheKey, loader: Loader, label: str) -> list[Any]:
        @simple_retry(max_attempts=self._retry_attempts, wait_seconds=self._retry_wait_seconds)
        async def load_reference_list() -> Sequence[Any]:
            return await loader()

        try:
            data = list(await load_reference_list())
        except Exception as exc:
            LOGGER.warning(
                "reference_cache.fetch.failed",
                key=key,
                attempts=self._retry_attempts,
                error=str(exc),
            )
            self._errors[key] = str(exc) or type(exc).__name__
            self._notifier.notify(
                "error",
                f"Failed to load {label}",
                str(exc) or type(exc).__name__,
            )
            previous = self._entries.get(key)
            return list(previous.data) if previous is not None else []

        if self._closed:
            return data
        self._entries[key] = _Entry(data=data, fetched_at=self._clock())
        self._errors.pop(key, None)
        LOGGER.debug("reference_cache.stored", key=key, size=len(data))
        return data


__all__ = ["CacheKey", "DEFAULT_STALE_AFTER", "Loader", "ReferenceDataCache"]
