"""Command line entry point: ``python -m src.cli {hierarchy,tenders,dashboard,deliveries}``."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

import structlog

from src.api.client import ErpApiClient
from src.config.settings import get_settings
from src.db.pool import close_pool, init_pool
from src.infra.di import DependencyContainer
from src.infra.di.bootstrap import bootstrap_container
from src.infra.logging.config import configure_logging
from src.infra.notifications import CollectingNotifier
from src.infra.result import Err, ExternalServiceError
from src.infra.session import SYSTEM_SESSION, SessionContext
from src.services.dashboard_service import DashboardService
from src.services.delivery_service import DeliveryService
from src.services.reference_data_service import OrgHierarchyService
from src.services.tender_service import TenderService

LOGGER = structlog.get_logger(__name__)


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, default=_json_default, ensure_ascii=False, indent=2))


def _session_from_args(args: argparse.Namespace) -> SessionContext:
    if args.user_id is None:
        return SYSTEM_SESSION
    return SessionContext(
        user_id=args.user_id,
        user_name=args.user_name or args.user_id,
        role=args.role,
        office_id=args.office,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ims",
        description="Inspect office hierarchy, tenders, deliveries and dashboard figures.",
    )
    parser.add_argument("--log-level", default="WARNING", help="structlog level (default: WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    hierarchy = sub.add_parser("hierarchy", help="Print offices, wings and DECs")
    hierarchy.add_argument("--office-id", type=int, help="Only wings of this office")
    hierarchy.add_argument("--wing-id", type=int, help="Only DECs of this wing")
    hierarchy.add_argument(
        "--validate", action="store_true", help="Print hierarchy consistency issues instead"
    )

    tenders = sub.add_parser("tenders", help="Print tenders with resolved associations")
    tenders.add_argument("--tender-id", help="Print a single tender")
    tenders.add_argument("--user-id", help="Act as this user instead of the system session")
    tenders.add_argument("--user-name")
    tenders.add_argument("--role", default="user")
    tenders.add_argument("--office", type=int, help="Office of the acting user")
    tenders.add_argument(
        "--api-session",
        action="store_true",
        help="Act as the user reported by the ERP API session endpoint",
    )

    sub.add_parser("dashboard", help="Print stock-transaction dashboard figures")

    deliveries = sub.add_parser("deliveries", help="Print deliveries of a tender")
    group = deliveries.add_mutually_exclusive_group(required=True)
    group.add_argument("--tender-id")
    group.add_argument("--delivery-id")
    return parser


async def _run_hierarchy(container: DependencyContainer, args: argparse.Namespace) -> int:
    service = container.resolve(OrgHierarchyService)
    if args.validate:
        snapshot = await service.load_hierarchy()
        _print_json({"issues": snapshot.issues(), "errors": snapshot.errors})
        return 0
    if args.office_id is not None or args.wing_id is not None:
        payload: dict[str, Any] = {}
        if args.office_id is not None:
            payload["wings"] = await service.get_wings(args.office_id)
        if args.wing_id is not None:
            payload["decs"] = await service.get_decs(args.wing_id)
        _print_json(payload)
        return 0
    snapshot = await service.load_hierarchy()
    _print_json(snapshot)
    return 0 if snapshot.ok else 1


async def _run_tenders(container: DependencyContainer, args: argparse.Namespace) -> int:
    service = container.resolve(TenderService)
    if args.api_session:
        if not container.is_registered(ErpApiClient):
            _print_json({"error": "--api-session needs IMS_REFERENCE_SOURCE=api"})
            return 2
        try:
            session = await container.resolve(ErpApiClient).fetch_session()
        except ExternalServiceError as exc:
            _print_json({"error": exc.to_dict()})
            return 1
    else:
        session = _session_from_args(args)
    if args.tender_id:
        result = await service.get_tender(args.tender_id, session)
    else:
        result = await service.list_tenders(session)
    if isinstance(result, Err):
        _print_json({"error": result.error.to_dict()})
        return 1
    _print_json(result.value)
    return 0


async def _run_dashboard(container: DependencyContainer, args: argparse.Namespace) -> int:
    stats = await container.resolve(DashboardService).get_stats()
    _print_json(stats.to_dict())
    return 0


async def _run_deliveries(container: DependencyContainer, args: argparse.Namespace) -> int:
    service = container.resolve(DeliveryService)
    if args.delivery_id:
        result: Any = await service.get_delivery(args.delivery_id)
    else:
        result = await service.get_tender_deliveries(args.tender_id)
    if isinstance(result, Err):
        _print_json({"error": result.error.to_dict()})
        return 1
    _print_json(result.value)
    return 0


_COMMANDS = {
    "hierarchy": _run_hierarchy,
    "tenders": _run_tenders,
    "dashboard": _run_dashboard,
    "deliveries": _run_deliveries,
}


async def _amain(argv: list[str]) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, stream=sys.stderr)
    settings = get_settings()
    notifier = CollectingNotifier()

    needs_pool = args.command == "deliveries" or settings.reference_source == "database"
    pool = await init_pool() if needs_pool else None
    container = bootstrap_container(settings, pool=pool, notifier=notifier)
    try:
        return await _COMMANDS[args.command](container, args)
    finally:
        await container.aclose()
        if needs_pool:
            await close_pool()
        for note in notifier.drain():
            print(f"[{note.level}] {note.title}: {note.description}", file=sys.stderr)


def main() -> None:  # pragma: no cover - console entry
    raise SystemExit(asyncio.run(_amain(sys.argv[1:])))


if __name__ == "__main__":  # pragma: no cover
    main()
