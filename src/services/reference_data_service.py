"""Office / wing / DEC reference data behind a shared cache."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Protocol, Sequence, cast

import structlog

from src.db.gateway.org_hierarchy import OrgHierarchyGateway
from src.infra.types.db import PoolProtocol
from src.models import Dec, HierarchyIssue, Office, Wing
from src.services.hierarchy import validate_hierarchy
from src.services.name_resolver import NameResolver, create_name_resolver
from src.services.reference_cache import CacheKey, ReferenceDataCache

LOGGER = structlog.get_logger(__name__)


class ReferenceSource(Protocol):
    """Where reference lists come from: the database or the ERP API."""

    async def fetch_offices(self) -> Sequence[Office]: ...

    async def fetch_wings(self, office_id: int | None = None) -> Sequence[Wing]: ...

    async def fetch_decs(self, wing_id: int | None = None) -> Sequence[Dec]: ...


class DatabaseReferenceSource:
    """Read reference lists straight from Postgres."""

    def __init__(
        self,
        pool: PoolProtocol,
        *,
        gateway: OrgHierarchyGateway | None = None,
    ) -> None:
        self._pool = pool
        self._gateway = gateway or OrgHierarchyGateway()

    async def fetch_offices(self) -> Sequence[Office]:
        async with self._pool.acquire() as conn:
            return await self._gateway.fetch_offices(conn)

    async def fetch_wings(self, office_id: int | None = None) -> Sequence[Wing]:
        async with self._pool.acquire() as conn:
            return await self._gateway.fetch_wings(conn, office_id=office_id)

    async def fetch_decs(self, wing_id: int | None = None) -> Sequence[Dec]:
        async with self._pool.acquire() as conn:
            return await self._gateway.fetch_decs(conn, wing_id=wing_id)


@dataclass(slots=True, frozen=True)
class HierarchySnapshot:
    offices: list[Office] = field(default_factory=list)
    wings: list[Wing] = field(default_factory=list)
    decs: list[Dec] = field(default_factory=list)
    # List name -> error message, for lists that could not be refreshed.
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def name_resolver(self) -> NameResolver:
        return create_name_resolver(self.offices, self.wings, self.decs)

    def issues(self) -> list[HierarchyIssue]:
        return validate_hierarchy(self.offices, self.wings, self.decs)


def offices_key() -> CacheKey:
    return ("offices",)


def wings_key(office_id: int | None = None) -> CacheKey:
    return ("wings", office_id)


def decs_key(wing_id: int | None = None) -> CacheKey:
    return ("decs", wing_id)


class OrgHierarchyService:
    """Cached access to the office hierarchy; reads never raise."""

    def __init__(self, source: ReferenceSource, cache: ReferenceDataCache) -> None:
        self._source = source
        self._cache = cache

    @property
    def cache(self) -> ReferenceDataCache:
        return self._cache

    async def get_offices(self) -> list[Office]:
        async def load() -> Sequence[Office]:
            return await self._source.fetch_offices()

        data = await self._cache.get(offices_key(), load, label="offices")
        return cast(list[Office], data)

    async def get_wings(self, office_id: int | None = None) -> list[Wing]:
        async def load() -> Sequence[Wing]:
            return await self._source.fetch_wings(office_id)

        data = await self._cache.get(wings_key(office_id), load, label="wings")
        return cast(list[Wing], data)

    async def get_decs(self, wing_id: int | None = None) -> list[Dec]:
        async def load() -> Sequence[Dec]:
            return await self._source.fetch_decs(wing_id)

        data = await self._cache.get(decs_key(wing_id), load, label="DECs")
        return cast(list[Dec], data)

    async def load_hierarchy(self) -> HierarchySnapshot:
        """Load all three lists concurrently."""
        offices, wings, decs = await asyncio.gather(
            self.get_offices(), self.get_wings(), self.get_decs()
        )
        errors: dict[str, str] = {}
        for name, key in (("offices", offices_key()), ("wings", wings_key()), ("decs", decs_key())):
            message = self._cache.last_error(key)
            if message is not None:
                errors[name] = message
        if errors:
            LOGGER.warning("reference_data.hierarchy.degraded", failed=sorted(errors))
        return HierarchySnapshot(offices=offices, wings=wings, decs=decs, errors=errors)

    async def name_resolver(self) -> NameResolver:
        snapshot = await self.load_hierarchy()
        return snapshot.name_resolver()

    def invalidate(self, kind: str | None = None) -> None:
        self._cache.invalidate(kind)


__all__ = [
    "DatabaseReferenceSource",
    "HierarchySnapshot",
    "OrgHierarchyService",
    "ReferenceSource",
    "decs_key",
    "offices_key",
    "wings_key",
]
