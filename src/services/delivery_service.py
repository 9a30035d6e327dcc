"""Deliveries recorded against a tender."""

from __future__ import annotations

import structlog

from src.db.gateway.deliveries import DeliveryGateway
from src.infra.notifications import LoggingNotifier, Notifier
from src.infra.result import DatabaseError, Err, Error, Ok, Result, ValidationError
from src.infra.session import SessionContext
from src.infra.types.db import PoolProtocol
from src.models import DeliveryRecord, NewDeliveryRequest

LOGGER = structlog.get_logger(__name__)


def validate_delivery_request(request: NewDeliveryRequest) -> ValidationError | None:
    if not request.tender_id:
        return ValidationError("Tender is required", context={"field": "tender_id"})
    if not request.delivery_personnel.strip():
        return ValidationError(
            "Delivery personnel is required", context={"field": "delivery_personnel"}
        )
    if not request.delivery_items:
        return ValidationError(
            "At least one delivery item is required", context={"field": "delivery_items"}
        )
    for item in request.delivery_items:
        if item.delivery_qty <= 0:
            return ValidationError(
                "Delivery quantity must be greater than zero",
                context={"field": "delivery_qty", "item_master_id": item.item_master_id},
            )
    return None


class DeliveryService:
    """Reads degrade to empty results; writes are attempted once."""

    def __init__(
        self,
        pool: PoolProtocol,
        *,
        gateway: DeliveryGateway | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._pool = pool
        self._gateway = gateway or DeliveryGateway()
        self._notifier: Notifier = notifier or LoggingNotifier()

    async def get_tender_deliveries(self, tender_id: str) -> Result[list[DeliveryRecord], Error]:
        async with self._pool.acquire() as conn:
            result = await self._gateway.fetch_tender_deliveries(conn, tender_id=tender_id)
        if result.is_err():
            error = result.unwrap_err()
            LOGGER.warning("delivery.list.failed", tender_id=tender_id, error=str(error))
            self._notifier.notify("error", "Failed to load deliveries", str(error))
            return Ok([])
        return Ok(list(result.unwrap()))

    async def get_delivery(self, delivery_id: str) -> Result[DeliveryRecord | None, Error]:
        async with self._pool.acquire() as conn:
            result = await self._gateway.fetch_delivery(conn, delivery_id=delivery_id)
        if result.is_err():
            error = result.unwrap_err()
            LOGGER.warning("delivery.get.failed", delivery_id=delivery_id, error=str(error))
            self._notifier.notify("error", "Failed to load delivery", str(error))
            return Ok(None)
        return Ok(result.unwrap())

    async def create_delivery(
        self, request: NewDeliveryRequest, session: SessionContext
    ) -> Result[DeliveryRecord, Error]:
        """Save a delivery with its items and return the stored record."""
        invalid = validate_delivery_request(request)
        if invalid is not None:
            LOGGER.info(
                "delivery.create.rejected", tender_id=request.tender_id, reason=invalid.message
            )
            return Err(invalid)

        async with self._pool.acquire() as conn:
            saved = await self._gateway.save_delivery_with_items(
                conn, request=request, created_by=session.user_id
            )
            if saved.is_err():
                error = saved.unwrap_err()
                LOGGER.error(
                    "delivery.create.failed",
                    tender_id=request.tender_id,
                    user_id=session.user_id,
                    error=str(error),
                )
                return Err(error)
            delivery_id = saved.unwrap()
            fetched = await self._gateway.fetch_delivery(conn, delivery_id=delivery_id)

        if fetched.is_err():
            return Err(fetched.unwrap_err())
        record = fetched.unwrap()
        if record is None:
            return Err(
                DatabaseError(
                    "Delivery was saved but could not be read back",
                    context={"delivery_id": delivery_id},
                )
            )
        LOGGER.info(
            "delivery.created",
            delivery_id=delivery_id,
            tender_id=request.tender_id,
            items=len(request.delivery_items),
            user_id=session.user_id,
        )
        return Ok(record)


__all__ = ["DeliveryService", "validate_delivery_request"]
