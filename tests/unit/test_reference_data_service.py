"""Unit tests for OrgHierarchyService and the database reference source."""

from __future__ import annotations

from typing import Any, Sequence
from unittest.mock import AsyncMock

import pytest

from src.db.gateway.org_hierarchy import OrgHierarchyGateway
from src.infra.notifications import CollectingNotifier
from src.models import Dec, Office, Wing
from src.services.reference_cache import ReferenceDataCache
from src.services.reference_data_service import (
    DatabaseReferenceSource,
    OrgHierarchyService,
    decs_key,
    wings_key,
)


class StubSource:
    def __init__(self, offices: list[Office], wings: list[Wing], decs: list[Dec]) -> None:
        self.offices = offices
        self.wings = wings
        self.decs = decs
        self.fail_decs = False
        self.calls: list[tuple[str, int | None]] = []

    async def fetch_offices(self) -> Sequence[Office]:
        self.calls.append(("offices", None))
        return self.offices

    async def fetch_wings(self, office_id: int | None = None) -> Sequence[Wing]:
        self.calls.append(("wings", office_id))
        return [w for w in self.wings if office_id is None or w.office_id == office_id]

    async def fetch_decs(self, wing_id: int | None = None) -> Sequence[Dec]:
        self.calls.append(("decs", wing_id))
        if self.fail_decs:
            raise ConnectionError("decs unavailable")
        return [d for d in self.decs if wing_id is None or d.wing_id == wing_id]


@pytest.fixture
def source(offices: list[Office], wings: list[Wing], decs: list[Dec]) -> StubSource:
    return StubSource(offices, wings, decs)


@pytest.fixture
def service(source: StubSource, notifier: CollectingNotifier) -> OrgHierarchyService:
    cache = ReferenceDataCache(retry_attempts=2, retry_wait_seconds=0, notifier=notifier)
    return OrgHierarchyService(source, cache)


@pytest.mark.unit
class TestOrgHierarchyService:
    @pytest.mark.asyncio
    async def test_parent_filters_are_cached_separately(
        self, service: OrgHierarchyService, source: StubSource
    ) -> None:
        all_wings = await service.get_wings()
        office_wings = await service.get_wings(2)
        await service.get_wings(2)

        assert [w.id for w in all_wings] == [10, 11, 12]
        assert [w.id for w in office_wings] == [12]
        assert source.calls == [("wings", None), ("wings", 2)]
        assert service.cache.peek(wings_key(2)) == office_wings

    @pytest.mark.asyncio
    async def test_load_hierarchy_collects_partial_failures(
        self,
        service: OrgHierarchyService,
        source: StubSource,
        notifier: CollectingNotifier,
    ) -> None:
        source.fail_decs = True

        snapshot = await service.load_hierarchy()

        assert len(snapshot.offices) == 3
        assert len(snapshot.wings) == 3
        assert snapshot.decs == []
        assert snapshot.errors == {"decs": "decs unavailable"}
        assert not snapshot.ok
        assert [n.title for n in notifier.items] == ["Failed to load DECs"]

    @pytest.mark.asyncio
    async def test_name_resolver_uses_loaded_lists(self, service: OrgHierarchyService) -> None:
        resolver = await service.name_resolver()

        assert resolver.resolve_wing_names([12, 99]) == ["Procurement Wing", "Wing-99"]
        assert resolver.resolve_dec_names([101]) == ["Audit DEC"]

    @pytest.mark.asyncio
    async def test_invalidate_forces_refetch(
        self, service: OrgHierarchyService, source: StubSource
    ) -> None:
        await service.get_decs(10)
        service.invalidate("decs")
        assert service.cache.peek(decs_key(10)) is None

        await service.get_decs(10)

        assert source.calls.count(("decs", 10)) == 2

    @pytest.mark.asyncio
    async def test_snapshot_issues_report_orphans(
        self, service: OrgHierarchyService, source: StubSource
    ) -> None:
        source.decs = [Dec(id=300, name="Orphan DEC", wing_id=404)]

        snapshot = await service.load_hierarchy()

        assert [issue.entity_id for issue in snapshot.issues()] == [300]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_database_source_delegates_to_gateway(
    fake_pool: Any, mock_connection: AsyncMock
) -> None:
    gateway = AsyncMock(spec=OrgHierarchyGateway)
    gateway.fetch_wings.return_value = [Wing(id=1, name="W", office_id=5)]
    source = DatabaseReferenceSource(fake_pool, gateway=gateway)

    wings = await source.fetch_wings(5)

    assert [w.id for w in wings] == [1]
    gateway.fetch_wings.assert_awaited_once_with(mock_connection, office_id=5)
    assert fake_pool.acquire_count == 1
