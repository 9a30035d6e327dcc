from __future__ import annotations

import json
from datetime import date
from typing import Any, Mapping, Sequence, cast

from src.infra.db_errors import returns_db_result
from src.infra.result import BusinessLogicError, DatabaseError, Err, Ok, Result
from src.infra.types.db import ConnectionProtocol
from src.models import DeliveryItem, DeliveryRecord, NewDeliveryRequest


def _items_from_value(value: Any) -> tuple[DeliveryItem, ...]:
    if value is None:
        return ()
    if isinstance(value, (str, bytes)):
        value = json.loads(value)
    items: list[DeliveryItem] = []
    for raw in cast(Sequence[Mapping[str, Any]], value):
        items.append(
            DeliveryItem(
                item_master_id=str(raw["item_master_id"]),
                item_name=str(raw.get("item_name") or ""),
                delivery_qty=int(raw.get("delivery_qty") or 0),
            )
        )
    return tuple(items)


def _delivery_from_row(row: Mapping[str, Any]) -> DeliveryRecord:
    delivery_date = row["delivery_date"]
    if isinstance(delivery_date, str):
        delivery_date = date.fromisoformat(delivery_date[:10])
    return DeliveryRecord(
        id=str(row["id"]),
        delivery_number=int(row["delivery_number"]),
        tender_id=str(row["tender_id"]),
        delivery_personnel=str(row["delivery_personnel"]),
        delivery_date=delivery_date,
        delivery_items=_items_from_value(row.get("delivery_items")),
        delivery_notes=cast(str | None, row.get("delivery_notes")),
        delivery_chalan=cast(str | None, row.get("delivery_chalan")),
        chalan_file_path=cast(str | None, row.get("chalan_file_path")),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class DeliveryGateway:
    """Delivery reads and writes through the delivery SQL functions."""

    def __init__(self, *, schema: str = "public") -> None:
        self._schema = schema

    @returns_db_result
    async def fetch_tender_deliveries(
        self, connection: ConnectionProtocol, *, tender_id: str
    ) -> Sequence[DeliveryRecord]:
        sql = f"SELECT * FROM {self._schema}.get_tender_deliveries(p_tender_id => $1::uuid)"
        rows = await connection.fetch(sql, tender_id)
        return [_delivery_from_row(cast(Mapping[str, Any], row)) for row in rows]

    @returns_db_result
    async def fetch_delivery(
        self, connection: ConnectionProtocol, *, delivery_id: str
    ) -> DeliveryRecord | None:
        sql = f"SELECT * FROM {self._schema}.get_delivery_by_id(p_delivery_id => $1::uuid)"
        row = await connection.fetchrow(sql, delivery_id)
        if row is None:
            return None
        return _delivery_from_row(cast(Mapping[str, Any], row))

    @returns_db_result
    async def save_delivery_with_items(
        self,
        connection: ConnectionProtocol,
        *,
        request: NewDeliveryRequest,
        created_by: str,
    ) -> Result[str, DatabaseError | BusinessLogicError]:
        """Insert a delivery and its items atomically; returns the new delivery id."""
        sql = f"""
            SELECT {self._schema}.save_delivery_with_items(
                p_tender_id => $1::uuid,
                p_delivery_personnel => $2,
                p_delivery_items => $3::jsonb,
                p_delivery_date => $4,
                p_delivery_notes => $5,
                p_delivery_chalan => $6,
                p_chalan_file_path => $7,
                p_created_by => $8
            )
        """
        payload = await connection.fetchval(
            sql,
            request.tender_id,
            request.delivery_personnel,
            [item.to_payload() for item in request.delivery_items],
            request.delivery_date,
            request.delivery_notes,
            request.delivery_chalan,
            request.chalan_file_path,
            created_by,
        )
        if isinstance(payload, (str, bytes)):
            payload = json.loads(payload)
        if not isinstance(payload, Mapping):
            return Err(
                DatabaseError(
                    "save_delivery_with_items returned no payload",
                    context={"tender_id": request.tender_id},
                )
            )
        if not payload.get("success"):
            return Err(
                BusinessLogicError(
                    str(payload.get("message") or "Delivery was not saved"),
                    context={"tender_id": request.tender_id},
                )
            )
        return Ok(str(payload["delivery_id"]))


__all__ = ["DeliveryGateway"]
