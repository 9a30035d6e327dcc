from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

__all__ = [
    "ACQUISITION_TYPES",
    "AcquisitionBucket",
    "DashboardStats",
    "DEFAULT_ACQUISITION_TYPE",
    "TenderStockRow",
    "TenderSummary",
]

DEFAULT_ACQUISITION_TYPE = "Contract/Tender"
ACQUISITION_TYPES: tuple[str, ...] = ("Contract/Tender", "Spot Purchase")


@dataclass(slots=True, frozen=True)
class TenderStockRow:
    """One tender joined with its stock-transaction counts."""

    id: str
    tender_number: str | None
    title: str | None
    is_finalized: bool
    status: str | None
    tender_spot_type: str | None
    created_at: datetime | None
    item_count: int = 0
    total_quantity: int = 0
    confirmed_items: int = 0

    @property
    def has_stock(self) -> bool:
        return self.item_count > 0


@dataclass(slots=True)
class AcquisitionBucket:
    count: int = 0
    items: int = 0
    quantity: int = 0


@dataclass(slots=True, frozen=True)
class TenderSummary:
    id: str
    title: str
    tender_number: str | None
    acquisition_type: str
    is_finalized: bool
    created_at: datetime | None
    item_count: int
    total_quantity: int
    has_stock_transactions: bool
    status: str | None


@dataclass(slots=True)
class DashboardStats:
    total_tenders: int = 0
    active_tenders: int = 0
    finalized_tenders: int = 0
    total_items: int = 0
    total_quantity: int = 0
    tenders_with_stock_transactions: int = 0
    tenders_without_stock_transactions: int = 0
    acquisition_stats: dict[str, AcquisitionBucket] = field(
        default_factory=lambda: {name: AcquisitionBucket() for name in ACQUISITION_TYPES}
    )
    tenders_with_stock: list[TenderSummary] = field(default_factory=list)
    tenders_awaiting_stock: list[TenderSummary] = field(default_factory=list)
    recent_tenders: list[TenderSummary] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
