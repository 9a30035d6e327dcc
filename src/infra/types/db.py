"""Structural types for the slice of asyncpg the gateways use.

Real ``asyncpg`` pools and connections satisfy these protocols at runtime;
tests substitute ``AsyncMock`` objects built against the same surface.
"""

from __future__ import annotations

from typing import Any, AsyncContextManager, Protocol


class ConnectionProtocol(Protocol):
    async def fetchval(
        self,
        query: Any,
        *args: Any,
        column: int = 0,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> Any: ...

    async def fetchrow(
        self, query: Any, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> Any: ...

    async def fetch(
        self, query: Any, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> list[Any]: ...


class PoolProtocol(Protocol):
    def acquire(
        self, *, timeout: float | None = None
    ) -> AsyncContextManager[ConnectionProtocol]: ...


__all__ = ["ConnectionProtocol", "PoolProtocol"]
