"""Stock-transaction dashboard: per-tender rows folded into summary figures."""

from __future__ import annotations

from typing import Iterable, Protocol

import structlog

from src.db.gateway.tenders import TenderGateway
from src.infra.notifications import LoggingNotifier, Notifier
from src.infra.types.db import PoolProtocol
from src.models import (
    DEFAULT_ACQUISITION_TYPE,
    AcquisitionBucket,
    DashboardStats,
    TenderStockRow,
    TenderSummary,
)

LOGGER = structlog.get_logger(__name__)


def _is_fully_finalized(row: TenderStockRow) -> bool:
    return row.is_finalized and row.confirmed_items == row.item_count


def _summary(row: TenderStockRow, *, with_stock: bool) -> TenderSummary:
    return TenderSummary(
        id=row.id,
        title=row.title or f"Tender {row.tender_number}",
        tender_number=row.tender_number,
        acquisition_type=row.tender_spot_type or DEFAULT_ACQUISITION_TYPE,
        is_finalized=_is_fully_finalized(row) if with_stock else row.is_finalized,
        created_at=row.created_at,
        item_count=row.item_count if with_stock else 0,
        total_quantity=row.total_quantity if with_stock else 0,
        has_stock_transactions=with_stock,
        status=row.status,
    )


def build_dashboard_stats(
    rows: Iterable[TenderStockRow], recent_limit: int = 5
) -> DashboardStats:
    """Fold per-tender stock rows into dashboard figures.

    Item and quantity totals only count tenders that have stock transactions;
    tender counts cover every row. ``recent_tenders`` holds up to
    ``recent_limit`` tenders with stock followed by up to ``recent_limit``
    without.
    """
    all_rows = list(rows)
    with_stock = [row for row in all_rows if row.has_stock]
    without_stock = [row for row in all_rows if not row.has_stock]

    stats = DashboardStats(
        total_tenders=len(all_rows),
        tenders_with_stock_transactions=len(with_stock),
        tenders_without_stock_transactions=len(without_stock),
        total_items=sum(row.item_count for row in with_stock),
        total_quantity=sum(row.total_quantity for row in with_stock),
        active_tenders=sum(
            1 for row in with_stock if not row.is_finalized or row.confirmed_items < row.item_count
        ),
        finalized_tenders=sum(1 for row in with_stock if _is_fully_finalized(row)),
    )

    for row in all_rows:
        acquisition = row.tender_spot_type or DEFAULT_ACQUISITION_TYPE
        bucket = stats.acquisition_stats.get(acquisition)
        if bucket is None:
            # Only the two known acquisition types are reported.
            continue
        bucket.count += 1
        if row.has_stock:
            bucket.items += row.item_count
            bucket.quantity += row.total_quantity

    stats.tenders_with_stock = [_summary(row, with_stock=True) for row in with_stock]
    stats.tenders_awaiting_stock = [_summary(row, with_stock=False) for row in without_stock]
    limit = max(recent_limit, 0)
    stats.recent_tenders = stats.tenders_with_stock[:limit] + [
        _summary(row, with_stock=False) for row in without_stock[:limit]
    ]
    return stats


class DashboardSource(Protocol):
    """Where dashboard figures come from: aggregated locally or by the ERP API."""

    async def fetch_dashboard_stats(self) -> DashboardStats: ...


class DatabaseDashboardSource:
    """Aggregate the per-tender stock rows with ``build_dashboard_stats``."""

    def __init__(
        self,
        pool: PoolProtocol,
        *,
        gateway: TenderGateway | None = None,
        recent_limit: int = 5,
    ) -> None:
        self._pool = pool
        self._gateway = gateway or TenderGateway()
        self._recent_limit = recent_limit

    async def fetch_dashboard_stats(self) -> DashboardStats:
        async with self._pool.acquire() as conn:
            rows = await self._gateway.fetch_stock_summary(conn)
        return build_dashboard_stats(rows, recent_limit=self._recent_limit)


class DashboardService:
    def __init__(self, source: DashboardSource, *, notifier: Notifier | None = None) -> None:
        self._source = source
        self._notifier: Notifier = notifier or LoggingNotifier()

    async def get_stats(self) -> DashboardStats:
        """Return dashboard figures; zero-valued figures when the query fails."""
        try:
            stats = await self._source.fetch_dashboard_stats()
        except Exception as exc:
            LOGGER.error("dashboard.stats.failed", error=str(exc))
            self._notifier.notify(
                "error", "Failed to fetch dashboard statistics", str(exc) or type(exc).__name__
            )
            return DashboardStats()
        LOGGER.info(
            "dashboard.stats.built",
            total_tenders=stats.total_tenders,
            with_stock=stats.tenders_with_stock_transactions,
        )
        return stats


__all__ = [
    "DashboardService",
    "DashboardSource",
    "DatabaseDashboardSource",
    "build_dashboard_stats",
]
