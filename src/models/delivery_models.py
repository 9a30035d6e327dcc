from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

__all__ = ["DeliveryItem", "DeliveryRecord", "NewDeliveryRequest"]


@dataclass(slots=True, frozen=True)
class DeliveryItem:
    item_master_id: str
    item_name: str
    delivery_qty: int

    def to_payload(self) -> dict[str, object]:
        return {
            "item_master_id": self.item_master_id,
            "item_name": self.item_name,
            "delivery_qty": self.delivery_qty,
        }


@dataclass(slots=True, frozen=True)
class DeliveryRecord:
    id: str
    delivery_number: int
    tender_id: str
    delivery_personnel: str
    delivery_date: date
    delivery_items: tuple[DeliveryItem, ...] = ()
    delivery_notes: str | None = None
    delivery_chalan: str | None = None
    chalan_file_path: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_quantity(self) -> int:
        return sum(item.delivery_qty for item in self.delivery_items)


@dataclass(slots=True)
class NewDeliveryRequest:
    tender_id: str
    delivery_personnel: str
    delivery_date: date
    delivery_items: list[DeliveryItem] = field(default_factory=list)
    delivery_notes: str | None = None
    delivery_chalan: str | None = None
    chalan_file_path: str | None = None
