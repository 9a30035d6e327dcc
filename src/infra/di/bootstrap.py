"""Wire settings, gateways, the reference cache and services together."""

from __future__ import annotations

from typing import cast

import httpx
import structlog

from src.api.client import ErpApiClient
from src.config.settings import AppSettings, get_settings
from src.db import pool as db_pool
from src.db.gateway.deliveries import DeliveryGateway
from src.db.gateway.org_hierarchy import OrgHierarchyGateway
from src.db.gateway.tenders import TenderGateway
from src.infra.di.container import DependencyContainer
from src.infra.notifications import LoggingNotifier, Notifier
from src.infra.types.db import PoolProtocol
from src.services.dashboard_service import (
    DashboardService,
    DashboardSource,
    DatabaseDashboardSource,
)
from src.services.delivery_service import DeliveryService
from src.services.reference_cache import ReferenceDataCache
from src.services.reference_data_service import (
    DatabaseReferenceSource,
    OrgHierarchyService,
    ReferenceSource,
)
from src.services.tender_service import DatabaseTenderSource, TenderService, TenderSource

LOGGER = structlog.get_logger(__name__)

# Protocol keys for the container; mypy rejects abstract types as ``type[T]``.
NOTIFIER_KEY = cast(type[Notifier], Notifier)
POOL_KEY = cast(type[PoolProtocol], PoolProtocol)
REFERENCE_SOURCE_KEY = cast(type[ReferenceSource], ReferenceSource)
TENDER_SOURCE_KEY = cast(type[TenderSource], TenderSource)
DASHBOARD_SOURCE_KEY = cast(type[DashboardSource], DashboardSource)


def bootstrap_container(
    settings: AppSettings | None = None,
    *,
    pool: PoolProtocol | None = None,
    http_client: httpx.AsyncClient | None = None,
    notifier: Notifier | None = None,
) -> DependencyContainer:
    """Build the application container.

    Without an explicit ``pool`` the process-wide pool from ``src.db.pool`` is
    used, so ``init_pool()`` must have run unless reads come from the API.
    ``IMS_REFERENCE_SOURCE=api`` sends hierarchy, tender and dashboard reads to
    the ERP API; deliveries always need the pool.

    Call ``await container.aclose()`` on shutdown to stop background refreshes
    and close an owned HTTP client.
    """
    settings = settings or get_settings()
    container = DependencyContainer()

    container.register_instance(AppSettings, settings)
    container.register_instance(NOTIFIER_KEY, notifier or LoggingNotifier())
    if pool is None:
        try:
            pool = db_pool.get_pool()
        except RuntimeError:
            # API-only setups can still serve every read except deliveries.
            if settings.reference_source != "api":
                raise
            LOGGER.info("di.container.no_pool")
    if pool is not None:
        container.register_instance(POOL_KEY, pool)

    schema = settings.db_schema
    container.register(OrgHierarchyGateway, lambda: OrgHierarchyGateway(schema=schema))
    container.register(TenderGateway, lambda: TenderGateway(schema=schema))
    container.register(DeliveryGateway, lambda: DeliveryGateway(schema=schema))

    if settings.reference_source == "api" or http_client is not None:
        owns_client = http_client is None
        client = http_client or httpx.AsyncClient(
            base_url=settings.api_base_url, timeout=settings.api_timeout_seconds
        )
        erp_client = ErpApiClient(client)
        container.register_instance(ErpApiClient, erp_client)
        if owns_client:
            container.register_closer("erp_api_client", erp_client.aclose)

    def create_reference_source() -> ReferenceSource:
        if settings.reference_source == "api":
            return container.resolve(ErpApiClient)
        return DatabaseReferenceSource(
            container.resolve(POOL_KEY), gateway=container.resolve(OrgHierarchyGateway)
        )

    container.register(REFERENCE_SOURCE_KEY, create_reference_source)

    cache = ReferenceDataCache(
        stale_after=settings.reference_stale_seconds,
        retry_attempts=settings.reference_retry_attempts,
        retry_wait_seconds=settings.reference_retry_wait_seconds,
        notifier=container.resolve(NOTIFIER_KEY),
    )
    container.register_instance(ReferenceDataCache, cache)
    container.register_closer("reference_cache", cache.close)

    container.register(
        OrgHierarchyService,
        lambda: OrgHierarchyService(
            container.resolve(REFERENCE_SOURCE_KEY), container.resolve(ReferenceDataCache)
        ),
    )
    def create_tender_source() -> TenderSource:
        if settings.reference_source == "api":
            return container.resolve(ErpApiClient)
        return DatabaseTenderSource(
            container.resolve(POOL_KEY), gateway=container.resolve(TenderGateway)
        )

    def create_dashboard_source() -> DashboardSource:
        if settings.reference_source == "api":
            return container.resolve(ErpApiClient)
        return DatabaseDashboardSource(
            container.resolve(POOL_KEY),
            gateway=container.resolve(TenderGateway),
            recent_limit=settings.dashboard_recent_limit,
        )

    container.register(TENDER_SOURCE_KEY, create_tender_source)
    container.register(DASHBOARD_SOURCE_KEY, create_dashboard_source)
    container.register(
        TenderService,
        lambda: TenderService(
            container.resolve(TENDER_SOURCE_KEY), container.resolve(OrgHierarchyService)
        ),
    )
    container.register(
        DashboardService,
        lambda: DashboardService(
            container.resolve(DASHBOARD_SOURCE_KEY), notifier=container.resolve(NOTIFIER_KEY)
        ),
    )
    container.register(
        DeliveryService,
        lambda: DeliveryService(
            container.resolve(POOL_KEY),
            gateway=container.resolve(DeliveryGateway),
            notifier=container.resolve(NOTIFIER_KEY),
        ),
    )

    LOGGER.info(
        "di.container.bootstrapped",
        reference_source=settings.reference_source,
        db_schema=schema,
    )
    return container


__all__ = [
    "DASHBOARD_SOURCE_KEY",
    "NOTIFIER_KEY",
    "POOL_KEY",
    "REFERENCE_SOURCE_KEY",
    "TENDER_SOURCE_KEY",
    "bootstrap_container",
]
