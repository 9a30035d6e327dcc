"""Resolve office / wing / DEC identifiers to display names.

A resolver is built from the three reference lists each time a view needs
labels and is discarded afterwards. Unknown identifiers are not an error: they
resolve to a placeholder such as ``Office-7`` so that stale associations stay
visible instead of disappearing from reports.
"""

from __future__ import annotations

import math
import re
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from src.models import NamedEntity, OrgKind, RawId

_LEADING_INT = re.compile(r"\s*([+-]?)([0-9]+)")

# Ids are bigint at most; longer digit runs cannot match any row.
_MAX_ID_DIGITS = 18


def coerce_id(raw: object) -> int | None:
    """Coerce an identifier to ``int`` the lenient way the web client does.

    Text is parsed up to the first non-digit (``"12abc"`` -> 12); anything that
    does not start with ASCII digits yields ``None``, as does a float with a
    fractional part.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) and raw.is_integer() else None
    if isinstance(raw, str):
        match = _LEADING_INT.match(raw)
        if match is None or len(match.group(2)) > _MAX_ID_DIGITS:
            return None
        return int(match.group(1) + match.group(2))
    return None


def _build_lookup(entities: Iterable[NamedEntity]) -> dict[int, str]:
    lookup: dict[int, str] = {}
    for entity in entities:
        # Duplicate ids: the later row wins.
        lookup[int(entity.id)] = entity.name
    return lookup


class NameResolver:
    """Lookup maps for the three hierarchy levels."""

    def __init__(
        self,
        offices: Iterable[NamedEntity],
        wings: Iterable[NamedEntity],
        decs: Iterable[NamedEntity],
    ) -> None:
        self._maps: dict[OrgKind, dict[int, str]] = {
            OrgKind.OFFICE: _build_lookup(offices),
            OrgKind.WING: _build_lookup(wings),
            OrgKind.DEC: _build_lookup(decs),
        }

    def mapping(self, kind: OrgKind) -> Mapping[int, str]:
        return MappingProxyType(self._maps[kind])

    def resolve(self, kind: OrgKind, ids: Sequence[RawId]) -> list[str]:
        lookup = self._maps[kind]
        names: list[str] = []
        for raw in ids:
            key = coerce_id(raw)
            name = lookup.get(key) if key is not None else None
            names.append(name if name else f"{kind.label}-{raw}")
        return names

    def resolve_office_names(self, ids: Sequence[RawId]) -> list[str]:
        return self.resolve(OrgKind.OFFICE, ids)

    def resolve_wing_names(self, ids: Sequence[RawId]) -> list[str]:
        return self.resolve(OrgKind.WING, ids)

    def resolve_dec_names(self, ids: Sequence[RawId]) -> list[str]:
        return self.resolve(OrgKind.DEC, ids)

    def unresolved(self, kind: OrgKind, ids: Sequence[RawId]) -> list[RawId]:
        """Return the ids that would fall back to a placeholder label."""
        lookup = self._maps[kind]
        missing: list[RawId] = []
        for raw in ids:
            key = coerce_id(raw)
            if key is None or not lookup.get(key):
                missing.append(raw)
        return missing


def create_name_resolver(
    offices: Iterable[NamedEntity],
    wings: Iterable[NamedEntity],
    decs: Iterable[NamedEntity],
) -> NameResolver:
    return NameResolver(offices, wings, decs)


def format_names_for_display(names: Sequence[str], type_name: str) -> str:
    """Compact one-line summary of a name list.

    >>> format_names_for_display([], "offices")
    'No offices'
    >>> format_names_for_display(["A", "B", "C", "D"], "offices")
    'A, B + 2 more'
    """
    if not names:
        return f"No {type_name}"
    if len(names) == 1:
        return names[0]
    if len(names) <= 3:
        return ", ".join(names)
    return f"{', '.join(names[:2])} + {len(names) - 2} more"


def format_names_with_ids(names: Sequence[str], ids: Sequence[RawId]) -> str:
    """Tooltip text pairing each name with its id; empty when the lists disagree."""
    if len(names) != len(ids):
        return ""
    return ", ".join(f"{name} (ID: {raw})" for name, raw in zip(names, ids))


__all__ = [
    "NameResolver",
    "coerce_id",
    "create_name_resolver",
    "format_names_for_display",
    "format_names_with_ids",
]
