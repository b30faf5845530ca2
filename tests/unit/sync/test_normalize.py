from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.core.exceptions import ValidationError
from app.sync.normalize import normalize_field_value, parse_amount, parse_count


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("₱12,000", 12000.0),
        ("12,500.75", 12500.75),
        (" 300 ", 300.0),
        ("1.2.3", 1.2),
        (4500, 4500.0),
        ("", None),
        ("abc", None),
        (".", None),
        (None, None),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


def test_parse_count_falls_back_to_zero():
    assert parse_count("3") == 3
    assert parse_count("x") == 0
    assert parse_count(None) == 0
    assert parse_count(-2) == 0


def test_text_fields_are_trimmed_and_blank_becomes_null():
    assert normalize_field_value("contact_name", "  Ana  ") == "Ana"
    assert normalize_field_value("email", "   ") is None
    assert normalize_field_value("notes", "") is None


def test_business_name_never_becomes_null():
    assert normalize_field_value("business_name", "   ") == ""
    assert normalize_field_value("business_name", None) == ""


def test_numeric_fields_go_through_amount_parser():
    assert normalize_field_value("value", "₱8,000") == 8000.0
    assert normalize_field_value("deposit", "n/a") is None
    assert normalize_field_value("contact_count", "7") == 7


def test_last_contacted_at_accepts_iso_strings():
    parsed = normalize_field_value("last_contacted_at", "2026-02-01T10:00:00Z")
    assert parsed == datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc)
    assert normalize_field_value("last_contacted_at", "2026-02-01 10:00").tzinfo is timezone.utc
    assert normalize_field_value("last_contacted_at", "  ") is None


def test_last_contacted_at_rejects_garbage():
    with pytest.raises(ValidationError):
        normalize_field_value("last_contacted_at", "yesterday-ish")
    with pytest.raises(ValidationError):
        normalize_field_value("last_contacted_at", 12)
