"""Unit tests for tender association normalisation and display."""

from __future__ import annotations

from typing import Any

import pytest

from src.models import Dec, Office, TenderAssociations, Wing
from src.services.associations import (
    describe_associations,
    normalize_associations,
    normalize_id_list,
)
from src.services.name_resolver import create_name_resolver


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, []),
        ("[1,2,3]", [1, 2, 3]),
        (' ["4", 5] ', ["4", 5]),
        (b"[6]", [6]),
        ("not-json", []),
        ("1,2,3", []),
        ("", []),
        ('{"a": 1}', []),
        ("7", []),
        ([8, "9"], [8, "9"]),
        ((10, 11), [10, 11]),
        (12, []),
    ],
)
def test_normalize_id_list(value: Any, expected: list[Any]) -> None:
    assert normalize_id_list(value) == expected


@pytest.mark.unit
def test_normalize_id_list_returns_a_copy() -> None:
    original = [1, 2]
    normalized = normalize_id_list(original)
    normalized.append(3)
    assert original == [1, 2]


@pytest.mark.unit
def test_normalize_associations_applies_to_all_fields() -> None:
    row = {"office_ids": "[1]", "wing_ids": [10, 11], "dec_ids": None}

    associations = normalize_associations(row)

    assert associations == TenderAssociations(office_ids=[1], wing_ids=[10, 11], dec_ids=[])


@pytest.mark.unit
def test_normalize_associations_missing_columns() -> None:
    assert normalize_associations({}) == TenderAssociations()


@pytest.mark.unit
def test_describe_associations(offices: list[Office], wings: list[Wing], decs: list[Dec]) -> None:
    resolver = create_name_resolver(offices, wings, decs)
    associations = TenderAssociations(office_ids=[1, 2, 3, 42], wing_ids=[10], dec_ids=[])

    display = describe_associations(associations, resolver)

    assert display.offices.names == (
        "Head Office",
        "Regional Office North",
        "Regional Office South",
        "Office-42",
    )
    assert display.offices.summary == "Head Office, Regional Office North + 2 more"
    assert display.wings.summary == "Administration Wing"
    assert display.wings.tooltip == "Administration Wing (ID: 10)"
    assert display.decs.summary == "No DECs"
    assert display.decs.tooltip == ""
