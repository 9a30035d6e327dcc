"""Validated shapes of the ERP API payloads.

Each model maps the legacy column names exactly once through field aliases;
code past this module only sees the domain models.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from src.infra.session import SessionContext
from src.models import (
    DEFAULT_ACQUISITION_TYPE,
    AcquisitionBucket,
    DashboardStats,
    Dec,
    Office,
    RawId,
    Tender,
    TenderAssociations,
    TenderSummary,
    Wing,
)
from src.services.associations import normalize_id_list


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class OfficePayload(_Payload):
    id: int = Field(alias="intOfficeID")
    name: str = Field(default="", alias="strOfficeName")
    description: str = Field(default="", alias="strOfficeDescription")
    telephone: str = Field(default="", alias="strTelephoneNumber")
    email: str = Field(default="", alias="strEmail")
    code: str = Field(default="", alias="OfficeCode")
    parent_id: int | None = Field(default=None, alias="ParentOfficeID")
    is_active: bool | None = Field(default=True, alias="IS_ACT")
    is_deleted: bool | None = Field(default=False, alias="IS_DELETED")

    @field_validator("name", "description", "telephone", "email", "code", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _text(v)

    def to_model(self) -> Office:
        return Office(
            id=self.id,
            name=self.name,
            parent_id=self.parent_id,
            description=self.description,
            code=self.code,
            telephone=self.telephone,
            email=self.email,
            is_active=self.is_active is not False,
            is_deleted=bool(self.is_deleted),
        )


class WingPayload(_Payload):
    id: int = Field(alias="Id")
    name: str = Field(default="", alias="Name")
    short_name: str = Field(default="", alias="ShortName")
    office_id: int = Field(alias="OfficeID")
    code: str = Field(default="", alias="WingCode")
    is_active: bool | None = Field(default=True, alias="IS_ACT")
    created_at: datetime | None = Field(default=None, alias="CreateDate")
    updated_at: datetime | None = Field(default=None, alias="ModifyDate")

    @field_validator("name", "short_name", "code", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _text(v)

    def to_model(self) -> Wing:
        return Wing(
            id=self.id,
            name=self.name,
            office_id=self.office_id,
            short_name=self.short_name,
            code=self.code,
            is_active=self.is_active is not False,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class DecPayload(_Payload):
    id: int = Field(alias="intAutoID")
    name: str = Field(default="", alias="DECName")
    short_name: str = Field(default="", alias="DECAcronym")
    wing_id: int = Field(alias="WingID")
    code: str = Field(default="", alias="DECCode")
    is_active: bool | None = Field(default=True, alias="IS_ACT")

    @field_validator("name", "short_name", "code", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _text(v)

    def to_model(self) -> Dec:
        return Dec(
            id=self.id,
            name=self.name,
            wing_id=self.wing_id,
            short_name=self.short_name or self.name,
            code=self.code,
            is_active=self.is_active is not False,
        )


class TenderPayload(_Payload):
    id: str
    title: str = ""
    reference_number: str | None = None
    tender_number: str | None = None
    description: str | None = None
    estimated_value: Decimal | None = None
    tender_type: str | None = None
    tender_spot_type: str | None = None
    tender_status: str | None = None
    is_finalized: bool | None = False
    vendor_id: str | None = None
    vendor_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    # The routes send the parsed arrays as camelCase and echo the raw
    # comma-separated columns under the snake_case names.
    office_ids: list[RawId] = Field(
        default_factory=list, validation_alias=AliasChoices("officeIds", "office_ids")
    )
    wing_ids: list[RawId] = Field(
        default_factory=list, validation_alias=AliasChoices("wingIds", "wing_ids")
    )
    dec_ids: list[RawId] = Field(
        default_factory=list, validation_alias=AliasChoices("decIds", "dec_ids")
    )

    @field_validator("id", "vendor_id", "reference_number", "tender_number", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("title", mode="before")
    @classmethod
    def coerce_title(cls, v: Any) -> str:
        return _text(v)

    @field_validator("office_ids", "wing_ids", "dec_ids", mode="before")
    @classmethod
    def normalize_ids(cls, v: Any) -> list[RawId]:
        if isinstance(v, str) and not v.lstrip().startswith("["):
            return [part.strip() for part in v.split(",") if part.strip()]
        return normalize_id_list(v)

    def to_model(self) -> Tender:
        return Tender(
            id=self.id,
            title=self.title,
            reference_number=self.reference_number,
            tender_number=self.tender_number,
            description=self.description,
            estimated_value=self.estimated_value,
            tender_type=self.tender_type,
            tender_spot_type=self.tender_spot_type,
            tender_status=self.tender_status or "Open",
            is_finalized=bool(self.is_finalized),
            vendor_id=self.vendor_id,
            vendor_name=self.vendor_name,
            created_at=self.created_at,
            updated_at=self.updated_at,
            associations=TenderAssociations(
                office_ids=list(self.office_ids),
                wing_ids=list(self.wing_ids),
                dec_ids=list(self.dec_ids),
            ),
        )


class AcquisitionBucketPayload(_Payload):
    count: int = 0
    items: int = 0
    quantity: int = 0


class TenderSummaryPayload(_Payload):
    id: str
    title: str = ""
    tender_number: str | None = Field(default=None, alias="tenderNumber")
    acquisition_type: str = Field(default=DEFAULT_ACQUISITION_TYPE, alias="acquisitionType")
    is_finalized: bool | None = False
    created_at: datetime | None = Field(default=None, alias="createdAt")
    item_count: int = Field(default=0, alias="itemCount")
    total_quantity: int = Field(default=0, alias="totalQuantity")
    has_stock_transactions: bool = Field(default=False, alias="hasStockTransactions")
    status: str | None = None

    @field_validator("id", "tender_number", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    def to_model(self) -> TenderSummary:
        return TenderSummary(
            id=self.id,
            title=self.title,
            tender_number=self.tender_number,
            acquisition_type=self.acquisition_type,
            is_finalized=bool(self.is_finalized),
            created_at=self.created_at,
            item_count=self.item_count,
            total_quantity=self.total_quantity,
            has_stock_transactions=self.has_stock_transactions,
            status=self.status,
        )


class DashboardStatsPayload(_Payload):
    total_tenders: int = Field(default=0, alias="totalTenders")
    active_tenders: int = Field(default=0, alias="activeTenders")
    finalized_tenders: int = Field(default=0, alias="finalizedTenders")
    total_items: int = Field(default=0, alias="totalItems")
    total_quantity: int = Field(default=0, alias="totalQuantity")
    tenders_with_stock_transactions: int = Field(default=0, alias="tendersWithStockTransactions")
    tenders_without_stock_transactions: int = Field(
        default=0, alias="tendersWithoutStockTransactions"
    )
    acquisition_stats: dict[str, AcquisitionBucketPayload] = Field(
        default_factory=dict, alias="acquisitionStats"
    )
    tenders_with_stock: list[TenderSummaryPayload] = Field(
        default_factory=list, alias="tendersWithStock"
    )
    tenders_awaiting_stock: list[TenderSummaryPayload] = Field(
        default_factory=list, alias="tendersAwaitingStock"
    )
    recent_tenders: list[TenderSummaryPayload] = Field(default_factory=list, alias="recentTenders")

    def to_model(self) -> DashboardStats:
        stats = DashboardStats(
            total_tenders=self.total_tenders,
            active_tenders=self.active_tenders,
            finalized_tenders=self.finalized_tenders,
            total_items=self.total_items,
            total_quantity=self.total_quantity,
            tenders_with_stock_transactions=self.tenders_with_stock_transactions,
            tenders_without_stock_transactions=self.tenders_without_stock_transactions,
            tenders_with_stock=[item.to_model() for item in self.tenders_with_stock],
            tenders_awaiting_stock=[item.to_model() for item in self.tenders_awaiting_stock],
            recent_tenders=[item.to_model() for item in self.recent_tenders],
        )
        for name, bucket in self.acquisition_stats.items():
            if name in stats.acquisition_stats:
                stats.acquisition_stats[name] = AcquisitionBucket(
                    count=bucket.count, items=bucket.items, quantity=bucket.quantity
                )
        return stats


class SessionPayload(_Payload):
    user_id: str
    user_name: str = ""
    role: str = "user"
    email: str | None = None
    office_id: int | None = None
    wing_id: int | None = None

    def to_session(self) -> SessionContext:
        return SessionContext(
            user_id=self.user_id,
            user_name=self.user_name,
            role=self.role,
            office_id=self.office_id,
            wing_id=self.wing_id,
        )


__all__ = [
    "AcquisitionBucketPayload",
    "DashboardStatsPayload",
    "DecPayload",
    "OfficePayload",
    "SessionPayload",
    "TenderPayload",
    "TenderSummaryPayload",
    "WingPayload",
]
