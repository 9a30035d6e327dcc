"""Normalise tender association columns and turn them into display text.

``office_ids`` / ``wing_ids`` / ``dec_ids`` were singular foreign keys before
they became arrays. Depending on the reader they arrive as Postgres arrays,
JSON text written by the old web client, or ``NULL``; all three fields go
through the same normalisation.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from src.models import (
    AssociationDisplay,
    KindDisplay,
    OrgKind,
    RawId,
    TenderAssociations,
)
from src.services.name_resolver import (
    NameResolver,
    format_names_for_display,
    format_names_with_ids,
)


def normalize_id_list(value: Any) -> list[RawId]:
    """Return the association ids as a list; never raises.

    ``None`` -> ``[]``; JSON text -> the parsed array (``[]`` when the text is
    not JSON or not an array); list/tuple -> a list with the same elements.
    """
    if value is None:
        return []
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            parsed = json.loads(text)
        except ValueError:
            return []
        return list(parsed) if isinstance(parsed, list) else []
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def normalize_associations(row: Mapping[str, Any]) -> TenderAssociations:
    return TenderAssociations(
        office_ids=normalize_id_list(row.get("office_ids")),
        wing_ids=normalize_id_list(row.get("wing_ids")),
        dec_ids=normalize_id_list(row.get("dec_ids")),
    )


def describe_kind(resolver: NameResolver, kind: OrgKind, ids: list[RawId]) -> KindDisplay:
    names = resolver.resolve(kind, ids)
    return KindDisplay(
        names=tuple(names),
        summary=format_names_for_display(names, kind.plural),
        tooltip=format_names_with_ids(names, ids),
    )


def describe_associations(
    associations: TenderAssociations, resolver: NameResolver
) -> AssociationDisplay:
    return AssociationDisplay(
        offices=describe_kind(resolver, OrgKind.OFFICE, associations.office_ids),
        wings=describe_kind(resolver, OrgKind.WING, associations.wing_ids),
        decs=describe_kind(resolver, OrgKind.DEC, associations.dec_ids),
    )


__all__ = [
    "describe_associations",
    "describe_kind",
    "normalize_associations",
    "normalize_id_list",
]
