from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import AsyncMock

import asyncpg
import pytest
from faker import Faker

from src.infra.notifications import CollectingNotifier
from src.models import Dec, Office, Wing


class FakePool:
    """Stand-in for ``asyncpg.Pool`` that always hands out the same mocked connection."""

    def __init__(self, connection: Any) -> None:
        self.connection = connection
        self.acquire_count = 0

    @asynccontextmanager
    async def _acquire(self) -> AsyncIterator[Any]:
        self.acquire_count += 1
        yield self.connection

    def acquire(self, *, timeout: float | None = None) -> Any:
        return self._acquire()


@pytest.fixture
def faker() -> Faker:
    return Faker("en_US")


@pytest.fixture
def mock_connection() -> AsyncMock:
    return AsyncMock(spec=asyncpg.Connection)


@pytest.fixture
def fake_pool(mock_connection: AsyncMock) -> FakePool:
    return FakePool(mock_connection)


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()


@pytest.fixture
def offices() -> list[Office]:
    return [
        Office(id=1, name="Head Office"),
        Office(id=2, name="Regional Office North", parent_id=1),
        Office(id=3, name="Regional Office South", parent_id=1),
    ]


@pytest.fixture
def wings() -> list[Wing]:
    return [
        Wing(id=10, name="Administration Wing", office_id=1),
        Wing(id=11, name="Finance Wing", office_id=1),
        Wing(id=12, name="Procurement Wing", office_id=2),
    ]


@pytest.fixture
def decs() -> list[Dec]:
    return [
        Dec(id=100, name="IT DEC", wing_id=10),
        Dec(id=101, name="Audit DEC", wing_id=11),
    ]

