from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol

__all__ = ["Dec", "HierarchyIssue", "NamedEntity", "Office", "OrgKind", "Wing"]


class OrgKind(str, Enum):
    """The three levels of the organisational hierarchy."""

    OFFICE = "office"
    WING = "wing"
    DEC = "dec"

    @property
    def label(self) -> str:
        """Prefix used for placeholder labels, e.g. ``Office-7``."""
        return {"office": "Office", "wing": "Wing", "dec": "DEC"}[self.value]

    @property
    def plural(self) -> str:
        return {"office": "offices", "wing": "wings", "dec": "DECs"}[self.value]


class NamedEntity(Protocol):
    @property
    def id(self) -> int: ...

    @property
    def name(self) -> str: ...


@dataclass(slots=True, frozen=True)
class Office:
    id: int
    name: str
    parent_id: int | None = None
    description: str = ""
    code: str = ""
    telephone: str = ""
    email: str = ""
    is_active: bool = True
    is_deleted: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class Wing:
    id: int
    name: str
    office_id: int
    short_name: str = ""
    code: str = ""
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class Dec:
    id: int
    name: str
    wing_id: int
    short_name: str = ""
    code: str = ""
    is_active: bool = True


@dataclass(slots=True, frozen=True)
class HierarchyIssue:
    kind: OrgKind
    entity_id: int
    message: str
