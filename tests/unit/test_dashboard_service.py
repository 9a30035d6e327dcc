"""Unit tests for the stock-transaction dashboard aggregation."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.db.gateway.tenders import TenderGateway
from src.infra.notifications import CollectingNotifier
from src.models import DashboardStats, TenderStockRow
from src.services.dashboard_service import (
    DashboardService,
    DatabaseDashboardSource,
    build_dashboard_stats,
)


def _row(
    tender_id: str,
    *,
    items: int = 0,
    quantity: int = 0,
    confirmed: int = 0,
    finalized: bool = False,
    spot_type: str | None = None,
    title: str | None = "Title",
) -> TenderStockRow:
    return TenderStockRow(
        id=tender_id,
        tender_number=f"TND-{tender_id}",
        title=title,
        is_finalized=finalized,
        status="Open",
        tender_spot_type=spot_type,
        created_at=None,
        item_count=items,
        total_quantity=quantity,
        confirmed_items=confirmed,
    )


@pytest.fixture
def rows() -> list[TenderStockRow]:
    return [
        _row("1", items=3, quantity=30, confirmed=3, finalized=True),
        _row("2", items=2, quantity=5, confirmed=1, finalized=True, spot_type="Spot Purchase"),
        _row("3", items=1, quantity=4),
        _row("4", spot_type="Spot Purchase", title=None),
        _row("5", spot_type="Framework"),
    ]


@pytest.mark.unit
class TestBuildDashboardStats:
    def test_totals_only_count_tenders_with_stock(self, rows: list[TenderStockRow]) -> None:
        stats = build_dashboard_stats(rows)

        assert stats.total_tenders == 5
        assert stats.tenders_with_stock_transactions == 3
        assert stats.tenders_without_stock_transactions == 2
        assert stats.total_items == 6
        assert stats.total_quantity == 39

    def test_active_and_finalized(self, rows: list[TenderStockRow]) -> None:
        stats = build_dashboard_stats(rows)

        # "2" is finalized but not every item is confirmed, so it stays active.
        assert stats.active_tenders == 2
        assert stats.finalized_tenders == 1

    def test_acquisition_buckets(self, rows: list[TenderStockRow]) -> None:
        stats = build_dashboard_stats(rows)

        contract = stats.acquisition_stats["Contract/Tender"]
        spot = stats.acquisition_stats["Spot Purchase"]
        assert (contract.count, contract.items, contract.quantity) == (2, 4, 34)
        assert (spot.count, spot.items, spot.quantity) == (2, 2, 5)
        assert set(stats.acquisition_stats) == {"Contract/Tender", "Spot Purchase"}

    def test_summaries(self, rows: list[TenderStockRow]) -> None:
        stats = build_dashboard_stats(rows)

        assert [s.id for s in stats.tenders_with_stock] == ["1", "2", "3"]
        assert [s.is_finalized for s in stats.tenders_with_stock] == [True, False, False]
        awaiting = stats.tenders_awaiting_stock
        assert [s.id for s in awaiting] == ["4", "5"]
        assert awaiting[0].title == "Tender TND-4"
        assert awaiting[0].acquisition_type == "Spot Purchase"
        assert all(not s.has_stock_transactions and s.item_count == 0 for s in awaiting)

    def test_recent_tenders_take_limit_from_each_group(self, rows: list[TenderStockRow]) -> None:
        stats = build_dashboard_stats(rows, recent_limit=2)

        assert [s.id for s in stats.recent_tenders] == ["1", "2", "4", "5"]

    def test_empty_input(self) -> None:
        stats = build_dashboard_stats([])

        assert stats == DashboardStats()
        assert stats.to_dict()["acquisition_stats"]["Spot Purchase"] == {
            "count": 0,
            "items": 0,
            "quantity": 0,
        }


@pytest.mark.unit
class TestDashboardService:
    @pytest.mark.asyncio
    async def test_get_stats_uses_gateway_rows(
        self, fake_pool: Any, rows: list[TenderStockRow], notifier: CollectingNotifier
    ) -> None:
        gateway = AsyncMock(spec=TenderGateway)
        gateway.fetch_stock_summary.return_value = rows
        source = DatabaseDashboardSource(fake_pool, gateway=gateway, recent_limit=1)
        service = DashboardService(source, notifier=notifier)

        stats = await service.get_stats()

        assert stats.total_tenders == 5
        assert [s.id for s in stats.recent_tenders] == ["1", "4"]
        assert notifier.items == []

    @pytest.mark.asyncio
    async def test_get_stats_failure_returns_zero_stats(
        self, fake_pool: Any, notifier: CollectingNotifier
    ) -> None:
        gateway = AsyncMock(spec=TenderGateway)
        gateway.fetch_stock_summary.side_effect = ConnectionError("timeout")
        source = DatabaseDashboardSource(fake_pool, gateway=gateway)
        service = DashboardService(source, notifier=notifier)

        stats = await service.get_stats()

        assert stats == DashboardStats()
        assert [n.title for n in notifier.items] == ["Failed to fetch dashboard statistics"]

    @pytest.mark.asyncio
    async def test_get_stats_passes_through_precomputed_figures(
        self, notifier: CollectingNotifier
    ) -> None:
        source = AsyncMock()
        source.fetch_dashboard_stats.return_value = DashboardStats(total_tenders=7)
        service = DashboardService(source, notifier=notifier)

        stats = await service.get_stats()

        assert stats.total_tenders == 7
        assert notifier.items == []
