"""Tests for extract_id (single, composite and missing keys)."""

from dataclasses import dataclass

from autohistory.application.services.identity_extractor import extract_id


@dataclass
class _Item:
    tenant_id: int | None = None
    local_id: int | None = None


def test_single_key() -> None:
    assert extract_id(_Item(tenant_id=42), ["tenant_id"]) == "42"


def test_composite_key_joined_in_declared_order() -> None:
    item = _Item(tenant_id=7, local_id=3)
    assert extract_id(item, ["tenant_id", "local_id"]) == "7,3"
    assert extract_id(item, ["local_id", "tenant_id"]) == "3,7"


def test_missing_key_value_written_as_zero() -> None:
    assert extract_id(_Item(tenant_id=7), ["tenant_id", "local_id"]) == "7,0"


def test_unknown_attribute_written_as_zero() -> None:
    assert extract_id(_Item(tenant_id=1), ["nope"]) == "0"


def test_no_key_fields_gives_empty_string() -> None:
    assert extract_id(_Item(tenant_id=1), []) == ""


def test_string_and_uuid_like_values_use_str() -> None:
    assert extract_id({"code": "ab-1"}, ["code"], getter=lambda e, n: e[n]) == "ab-1"
