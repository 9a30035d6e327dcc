"""Async client for the ERP REST API."""

from __future__ import annotations

from typing import Any, Sequence, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError as PydanticValidationError

from src.api.schemas import (
    DashboardStatsPayload,
    DecPayload,
    OfficePayload,
    SessionPayload,
    TenderPayload,
    WingPayload,
)
from src.infra.result import ExternalServiceError
from src.infra.session import SessionContext
from src.models import DashboardStats, Dec, Office, Tender, Wing

LOGGER = structlog.get_logger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class ErpApiClient:
    """Reference, tender and dashboard reads over HTTP.

    Implements the same reference-source interface as the database source,
    so the hierarchy service does not care which one it is given. Transport
    and payload errors are raised as ``ExternalServiceError``.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def create(cls, base_url: str, *, timeout: float = 10.0) -> "ErpApiClient":
        return cls(httpx.AsyncClient(base_url=base_url, timeout=timeout))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str) -> Any:
        try:
            response = await self._client.get(path)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            LOGGER.warning(
                "erp_api.request.failed", path=path, status=exc.response.status_code
            )
            raise ExternalServiceError(
                f"GET {path} returned HTTP {exc.response.status_code}",
                context={"path": path, "status": exc.response.status_code},
                cause=exc,
            ) from exc
        except httpx.HTTPError as exc:
            LOGGER.warning("erp_api.request.failed", path=path, error=str(exc))
            raise ExternalServiceError(
                f"GET {path} failed: {exc}", context={"path": path}, cause=exc
            ) from exc
        except ValueError as exc:
            raise ExternalServiceError(
                f"GET {path} returned invalid JSON", context={"path": path}, cause=exc
            ) from exc

    def _parse(self, path: str, model: type[PayloadT], data: Any) -> PayloadT:
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            LOGGER.warning(
                "erp_api.payload.invalid", path=path, model=model.__name__, errors=exc.error_count()
            )
            raise ExternalServiceError(
                f"GET {path} returned an unexpected {model.__name__} payload",
                context={"path": path},
                cause=exc,
            ) from exc

    async def _get_list(self, path: str, model: type[PayloadT]) -> list[PayloadT]:
        data = await self._get_json(path)
        if not isinstance(data, list):
            raise ExternalServiceError(
                f"GET {path} did not return a list", context={"path": path}
            )
        return [self._parse(path, model, item) for item in data]

    async def fetch_offices(self) -> Sequence[Office]:
        payloads = await self._get_list("/api/offices", OfficePayload)
        return [payload.to_model() for payload in payloads]

    async def fetch_wings(self, office_id: int | None = None) -> Sequence[Wing]:
        path = "/api/wings" if office_id is None else f"/api/offices/{office_id}/wings"
        payloads = await self._get_list(path, WingPayload)
        return [payload.to_model() for payload in payloads]

    async def fetch_decs(self, wing_id: int | None = None) -> Sequence[Dec]:
        path = "/api/decs" if wing_id is None else f"/api/wings/{wing_id}/decs"
        payloads = await self._get_list(path, DecPayload)
        return [payload.to_model() for payload in payloads]

    async def fetch_tenders(self) -> list[Tender]:
        payloads = await self._get_list("/api/tenders", TenderPayload)
        return [payload.to_model() for payload in payloads]

    async def fetch_tender(self, tender_id: str) -> Tender | None:
        path = f"/api/tenders/{tender_id}"
        try:
            data = await self._get_json(path)
        except ExternalServiceError as exc:
            if exc.context.get("status") == 404:
                return None
            raise
        return self._parse(path, TenderPayload, data).to_model()

    async def fetch_dashboard_stats(self) -> DashboardStats:
        path = "/api/stock-transaction-dashboard-stats"
        data = await self._get_json(path)
        return self._parse(path, DashboardStatsPayload, data).to_model()

    async def fetch_session(self) -> SessionContext:
        path = "/api/session"
        data = await self._get_json(path)
        body = data.get("session") if isinstance(data, dict) else None
        return self._parse(path, SessionPayload, body).to_session()


__all__ = ["ErpApiClient"]
