"""Tender read path: rows, normalised associations and display labels."""

from __future__ import annotations

from typing import Protocol, Sequence

import structlog

from src.db.gateway.tenders import TenderGateway
from src.infra.result import DatabaseError, async_returns_result
from src.infra.session import SessionContext
from src.infra.types.db import PoolProtocol
from src.models import Tender, TenderView
from src.services.associations import describe_associations
from src.services.name_resolver import NameResolver, coerce_id
from src.services.reference_data_service import OrgHierarchyService

LOGGER = structlog.get_logger(__name__)


def visible_to(session: SessionContext | None, tender: Tender) -> bool:
    if session is None:
        return True
    office_ids = [
        key
        for key in (coerce_id(raw) for raw in tender.associations.office_ids)
        if key is not None
    ]
    return session.can_see_office(office_ids)


def build_views(tenders: Sequence[Tender], resolver: NameResolver) -> list[TenderView]:
    return [
        TenderView(tender=tender, display=describe_associations(tender.associations, resolver))
        for tender in tenders
    ]


class TenderSource(Protocol):
    """Where tenders come from: the database or the ERP API."""

    async def fetch_tenders(self) -> Sequence[Tender]: ...

    async def fetch_tender(self, tender_id: str) -> Tender | None: ...


class DatabaseTenderSource:
    def __init__(self, pool: PoolProtocol, *, gateway: TenderGateway | None = None) -> None:
        self._pool = pool
        self._gateway = gateway or TenderGateway()

    async def fetch_tenders(self) -> Sequence[Tender]:
        async with self._pool.acquire() as conn:
            return await self._gateway.fetch_tenders(conn)

    async def fetch_tender(self, tender_id: str) -> Tender | None:
        async with self._pool.acquire() as conn:
            return await self._gateway.fetch_tender(conn, tender_id=tender_id)


class TenderService:
    def __init__(self, source: TenderSource, hierarchy: OrgHierarchyService) -> None:
        self._source = source
        self._hierarchy = hierarchy

    @async_returns_result(DatabaseError)
    async def list_tenders(self, session: SessionContext | None = None) -> list[TenderView]:
        """Newest first; non-admin sessions only see their office's tenders."""
        tenders = await self._source.fetch_tenders()
        visible = [tender for tender in tenders if visible_to(session, tender)]
        if session is not None and len(visible) != len(tenders):
            LOGGER.debug(
                "tender.list.filtered",
                user_id=session.user_id,
                office_id=session.office_id,
                hidden=len(tenders) - len(visible),
            )
        resolver = await self._hierarchy.name_resolver()
        return build_views(visible, resolver)

    @async_returns_result(DatabaseError)
    async def get_tender(
        self, tender_id: str, session: SessionContext | None = None
    ) -> TenderView | None:
        tender = await self._source.fetch_tender(tender_id)
        if tender is None or not visible_to(session, tender):
            return None
        resolver = await self._hierarchy.name_resolver()
        return build_views([tender], resolver)[0]


__all__ = [
    "DatabaseTenderSource",
    "TenderService",
    "TenderSource",
    "build_views",
    "visible_to",
]
