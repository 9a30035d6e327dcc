from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Sequence, cast

from src.infra.types.db import ConnectionProtocol
from src.models import Tender, TenderStockRow
from src.services.associations import normalize_associations


def _optional_str(value: Any) -> str | None:
    return str(value) if value is not None else None


def _tender_from_row(row: Mapping[str, Any]) -> Tender:
    estimated = row.get("estimated_value")
    return Tender(
        id=str(row["id"]),
        title=str(row.get("title") or ""),
        reference_number=_optional_str(row.get("reference_number")),
        tender_number=_optional_str(row.get("tender_number")),
        description=_optional_str(row.get("description")),
        estimated_value=Decimal(str(estimated)) if estimated is not None else None,
        tender_type=_optional_str(row.get("tender_type")),
        tender_spot_type=_optional_str(row.get("tender_spot_type")),
        tender_status=str(row.get("tender_status") or "Open"),
        is_finalized=bool(row.get("is_finalized") or False),
        vendor_id=_optional_str(row.get("vendor_id")),
        vendor_name=_optional_str(row.get("vendor_name")),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        associations=normalize_associations(row),
    )


def _stock_row_from_record(row: Mapping[str, Any]) -> TenderStockRow:
    return TenderStockRow(
        id=str(row["id"]),
        tender_number=_optional_str(row.get("tender_number")),
        title=_optional_str(row.get("title")),
        is_finalized=bool(row.get("is_finalized") or False),
        status=_optional_str(row.get("status")),
        tender_spot_type=_optional_str(row.get("tender_spot_type")),
        created_at=row.get("created_at"),
        item_count=int(row.get("item_count") or 0),
        total_quantity=int(row.get("total_quantity") or 0),
        confirmed_items=int(row.get("confirmed_items") or 0),
    )


class TenderGateway:
    """Tender reads and the per-tender stock summary behind the dashboard."""

    def __init__(self, *, schema: str = "public") -> None:
        self._schema = schema

    def _select(self) -> str:
        return f"""
            SELECT t.id, t.title, t.reference_number, t.tender_number, t.description,
                   t.estimated_value, t.tender_type, t.tender_spot_type, t.tender_status,
                   t.is_finalized, t.vendor_id, v.vendor_name, t.created_at, t.updated_at,
                   t.office_ids, t.wing_ids, t.dec_ids
            FROM {self._schema}.tenders t
            LEFT JOIN {self._schema}.vendors v ON v.id = t.vendor_id
        """

    async def fetch_tenders(self, connection: ConnectionProtocol) -> Sequence[Tender]:
        sql = self._select() + " ORDER BY t.created_at DESC"
        rows = await connection.fetch(sql)
        return [_tender_from_row(cast(Mapping[str, Any], row)) for row in rows]

    async def fetch_tender(
        self, connection: ConnectionProtocol, *, tender_id: str
    ) -> Tender | None:
        sql = self._select() + " WHERE t.id::text = $1"
        row = await connection.fetchrow(sql, tender_id)
        if row is None:
            return None
        return _tender_from_row(cast(Mapping[str, Any], row))

    async def fetch_stock_summary(
        self, connection: ConnectionProtocol
    ) -> Sequence[TenderStockRow]:
        """One row per tender; tenders with stock transactions come first."""
        sql = f"""
            SELECT t.id, t.reference_number AS tender_number, t.title, t.is_finalized,
                   t.tender_status AS status, t.tender_spot_type, t.created_at,
                   COALESCE(s.item_count, 0) AS item_count,
                   COALESCE(s.total_quantity, 0) AS total_quantity,
                   COALESCE(s.confirmed_items, 0) AS confirmed_items
            FROM {self._schema}.tenders t
            LEFT JOIN (
                SELECT tender_id,
                       COUNT(item_master_id) AS item_count,
                       SUM(total_quantity_received) AS total_quantity,
                       COUNT(*) FILTER (WHERE pricing_confirmed) AS confirmed_items
                FROM {self._schema}.stock_transactions
                WHERE NOT COALESCE(is_deleted, FALSE)
                GROUP BY tender_id
            ) s ON s.tender_id = t.id
            ORDER BY CASE WHEN COALESCE(s.item_count, 0) > 0 THEN 0 ELSE 1 END,
                     t.updated_at DESC
        """
        rows = await connection.fetch(sql)
        return [_stock_row_from_record(cast(Mapping[str, Any], row)) for row in rows]


__all__ = ["TenderGateway"]
