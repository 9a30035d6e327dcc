from __future__ import annotations

from typing import Any, Mapping, Sequence, cast

from src.infra.types.db import ConnectionProtocol
from src.models import Dec, Office, Wing


def _office_from_row(row: Mapping[str, Any]) -> Office:
    parent_id = row.get("parent_id")
    return Office(
        id=int(row["id"]),
        name=str(row["name"] or ""),
        parent_id=int(parent_id) if parent_id is not None else None,
        description=str(row.get("description") or ""),
        code=str(row.get("code") or ""),
        telephone=str(row.get("telephone") or ""),
        email=str(row.get("email") or ""),
        is_active=bool(row.get("is_active", True)),
        is_deleted=bool(row.get("is_deleted", False)),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _wing_from_row(row: Mapping[str, Any]) -> Wing:
    return Wing(
        id=int(row["id"]),
        name=str(row["name"] or ""),
        office_id=int(row["office_id"]),
        short_name=str(row.get("short_name") or ""),
        code=str(row.get("code") or ""),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _dec_from_row(row: Mapping[str, Any]) -> Dec:
    return Dec(
        id=int(row["id"]),
        name=str(row["name"] or ""),
        wing_id=int(row["wing_id"]),
        short_name=str(row.get("short_name") or ""),
        code=str(row.get("code") or ""),
        is_active=bool(row.get("is_active", True)),
    )


class OrgHierarchyGateway:
    """Read-only queries over the office / wing / DEC tables."""

    def __init__(self, *, schema: str = "public") -> None:
        self._schema = schema

    async def fetch_offices(self, connection: ConnectionProtocol) -> Sequence[Office]:
        sql = f"""
            SELECT id, name, parent_id, description, code, telephone, email,
                   is_active, is_deleted, created_at, updated_at
            FROM {self._schema}.offices
            WHERE is_active AND NOT is_deleted
            ORDER BY name
        """
        rows = await connection.fetch(sql)
        return [_office_from_row(cast(Mapping[str, Any], row)) for row in rows]

    async def fetch_wings(
        self, connection: ConnectionProtocol, *, office_id: int | None = None
    ) -> Sequence[Wing]:
        sql = f"""
            SELECT id, name, office_id, short_name, code, is_active, created_at, updated_at
            FROM {self._schema}.wings
            WHERE is_active AND ($1::integer IS NULL OR office_id = $1)
            ORDER BY name
        """
        rows = await connection.fetch(sql, office_id)
        return [_wing_from_row(cast(Mapping[str, Any], row)) for row in rows]

    async def fetch_decs(
        self, connection: ConnectionProtocol, *, wing_id: int | None = None
    ) -> Sequence[Dec]:
        sql = f"""
            SELECT id, name, wing_id, short_name, code, is_active
            FROM {self._schema}.decs
            WHERE is_active AND ($1::integer IS NULL OR wing_id = $1)
            ORDER BY name
        """
        rows = await connection.fetch(sql, wing_id)
        return [_dec_from_row(cast(Mapping[str, Any], row)) for row in rows]


__all__ = ["OrgHierarchyGateway"]
