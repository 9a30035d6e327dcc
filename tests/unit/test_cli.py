"""Unit tests for the command line entry point."""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
import functools
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from src import cli
from src.config.settings import AppSettings
from src.db import pool as db_pool
from src.infra.di.bootstrap import bootstrap_container
from src.infra.session import SYSTEM_SESSION
from src.models import OrgKind, TenderAssociations


@pytest.mark.unit
def test_parser_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


@pytest.mark.unit
def test_deliveries_needs_exactly_one_selector() -> None:
    parser = cli.build_parser()

    with pytest.raises(SystemExit):
        parser.parse_args(["deliveries"])
    with pytest.raises(SystemExit):
        parser.parse_args(["deliveries", "--tender-id", "a", "--delivery-id", "b"])
    assert parser.parse_args(["deliveries", "--delivery-id", "b"]).delivery_id == "b"


@pytest.mark.unit
def test_session_from_args() -> None:
    parser = cli.build_parser()

    anonymous = parser.parse_args(["tenders"])
    clerk = parser.parse_args(["tenders", "--user-id", "u7", "--office", "583"])

    assert cli._session_from_args(anonymous) is SYSTEM_SESSION
    session = cli._session_from_args(clerk)
    assert (session.user_id, session.user_name, session.role, session.office_id) == (
        "u7",
        "u7",
        "user",
        583,
    )


@pytest.mark.unit
def test_json_default_handles_domain_values() -> None:
    payload = {
        "when": date(2024, 3, 1),
        "value": Decimal("10.50"),
        "kind": OrgKind.DEC,
        "assoc": TenderAssociations(office_ids=[1]),
    }

    decoded = json.loads(json.dumps(payload, default=cli._json_default))

    assert decoded == {
        "when": "2024-03-01",
        "value": "10.50",
        "kind": "dec",
        "assoc": {"office_ids": [1], "wing_ids": [], "dec_ids": []},
    }
    with pytest.raises(TypeError):
        cli._json_default(object())


@pytest.fixture
def patched_runtime(monkeypatch: pytest.MonkeyPatch, fake_pool: Any) -> Any:
    fake_pool.connection.fetch.return_value = []
    monkeypatch.setattr(cli, "get_settings", lambda: AppSettings(reference_source="database"))
    monkeypatch.setattr(cli, "init_pool", AsyncMock(return_value=fake_pool))
    close = AsyncMock()
    monkeypatch.setattr(cli, "close_pool", close)
    return close


@pytest.mark.unit
@pytest.mark.asyncio
async def test_dashboard_command_prints_stats(patched_runtime: AsyncMock, capsys: Any) -> None:
    code = await cli._amain(["dashboard"])

    out = json.loads(capsys.readouterr().out)
    assert code == 0
    assert out["total_tenders"] == 0
    assert set(out["acquisition_stats"]) == {"Contract/Tender", "Spot Purchase"}
    patched_runtime.assert_awaited_once()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_hierarchy_validate_command(patched_runtime: AsyncMock, capsys: Any) -> None:
    code = await cli._amain(["hierarchy", "--validate"])

    out = json.loads(capsys.readouterr().out)
    assert code == 0
    assert out == {"issues": [], "errors": {}}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_api_session_needs_api_source(patched_runtime: AsyncMock, capsys: Any) -> None:
    code = await cli._amain(["tenders", "--api-session"])

    assert code == 2
    assert "IMS_REFERENCE_SOURCE=api" in json.loads(capsys.readouterr().out)["error"]


def _no_pool() -> Any:
    raise RuntimeError("Database pool not initialised. Call init_pool() first.")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_tenders_in_api_mode_use_api_session(
    monkeypatch: pytest.MonkeyPatch, capsys: Any
) -> None:
    routes: dict[str, Any] = {
        "/api/session": {
            "success": True,
            "session": {"user_id": "u-9", "user_name": "Clerk", "role": "user", "office_id": 583},
        },
        "/api/tenders": [
            {"id": "t-1", "title": "Printers", "office_ids": "583", "officeIds": ["583"]},
            {"id": "t-2", "title": "Chairs", "office_ids": "7", "officeIds": ["7"]},
        ],
    }
    client = httpx.AsyncClient(
        base_url="http://erp.test",
        transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json=routes.get(request.url.path, []))
        ),
    )
    init = AsyncMock()
    monkeypatch.setattr(cli, "get_settings", lambda: AppSettings(reference_source="api"))
    monkeypatch.setattr(cli, "init_pool", init)
    monkeypatch.setattr(db_pool, "get_pool", _no_pool)
    monkeypatch.setattr(
        cli, "bootstrap_container", functools.partial(bootstrap_container, http_client=client)
    )

    try:
        code = await cli._amain(["tenders", "--api-session"])
    finally:
        await client.aclose()

    out = json.loads(capsys.readouterr().out)
    assert code == 0
    assert [view["tender"]["id"] for view in out] == ["t-1"]
    init.assert_not_awaited()
