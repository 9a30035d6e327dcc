"""Consistency checks for the office / wing / DEC reference lists."""

from __future__ import annotations

from typing import Sequence

import structlog

from src.models import Dec, HierarchyIssue, Office, OrgKind, Wing

LOGGER = structlog.get_logger(__name__)


def _office_issues(offices: Sequence[Office]) -> list[HierarchyIssue]:
    by_id = {office.id: office for office in offices}
    issues: list[HierarchyIssue] = []
    for office in offices:
        if office.parent_id is None:
            continue
        parent = by_id.get(office.parent_id)
        if parent is None:
            issues.append(
                HierarchyIssue(
                    OrgKind.OFFICE,
                    office.id,
                    f"parent office {office.parent_id} does not exist",
                )
            )
            continue
        if not parent.is_active or parent.is_deleted:
            issues.append(
                HierarchyIssue(
                    OrgKind.OFFICE,
                    office.id,
                    f"parent office {office.parent_id} is not active",
                )
            )

    # Walk each parent chain once; a revisit within the same walk is a cycle.
    reported: set[int] = set()
    for office in offices:
        seen: list[int] = []
        current: Office | None = office
        while current is not None and current.parent_id is not None:
            if current.id in seen:
                cycle = seen[seen.index(current.id) :]
                if not reported.intersection(cycle):
                    reported.update(cycle)
                    issues.append(
                        HierarchyIssue(
                            OrgKind.OFFICE,
                            min(cycle),
                            "parent chain forms a cycle: "
                            + " -> ".join(str(item) for item in cycle),
                        )
                    )
                break
            seen.append(current.id)
            current = by_id.get(current.parent_id)
    return issues


def validate_hierarchy(
    offices: Sequence[Office],
    wings: Sequence[Wing],
    decs: Sequence[Dec],
) -> list[HierarchyIssue]:
    """Return every hierarchy invariant violation found; never raises.

    Orphans are reported, not repaired: tenders that reference them keep
    resolving to placeholder labels.
    """
    issues = _office_issues(offices)
    office_ids = {office.id for office in offices}
    wing_ids = {wing.id for wing in wings}
    for wing in wings:
        if wing.office_id not in office_ids:
            issues.append(
                HierarchyIssue(OrgKind.WING, wing.id, f"office {wing.office_id} does not exist")
            )
    for dec in decs:
        if dec.wing_id not in wing_ids:
            issues.append(
                HierarchyIssue(OrgKind.DEC, dec.id, f"wing {dec.wing_id} does not exist")
            )
    if issues:
        LOGGER.warning("hierarchy.validation.issues", count=len(issues))
    return issues


__all__ = ["validate_hierarchy"]
