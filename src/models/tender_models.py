from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

__all__ = [
    "AssociationDisplay",
    "KindDisplay",
    "RawId",
    "Tender",
    "TenderAssociations",
    "TenderView",
]

# IDs arrive as integers from Postgres arrays and as text from JSON / the ERP API.
RawId = int | str


@dataclass(slots=True)
class TenderAssociations:
    office_ids: list[RawId] = field(default_factory=list)
    wing_ids: list[RawId] = field(default_factory=list)
    dec_ids: list[RawId] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class KindDisplay:
    names: tuple[str, ...]
    summary: str
    tooltip: str


@dataclass(slots=True, frozen=True)
class AssociationDisplay:
    offices: KindDisplay
    wings: KindDisplay
    decs: KindDisplay


@dataclass(slots=True)
class Tender:
    id: str
    title: str
    reference_number: str | None = None
    tender_number: str | None = None
    description: str | None = None
    estimated_value: Decimal | None = None
    tender_type: str | None = None
    tender_spot_type: str | None = None
    tender_status: str = "Open"
    is_finalized: bool = False
    vendor_id: str | None = None
    vendor_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    associations: TenderAssociations = field(default_factory=TenderAssociations)


@dataclass(slots=True, frozen=True)
class TenderView:
    tender: Tender
    display: AssociationDisplay
