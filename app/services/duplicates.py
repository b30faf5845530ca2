"""Duplicate detection across one active view.

Views are bounded to one category's one-phase working set, so a linear scan
is enough.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from app.core.enums import DuplicateField


def _fold(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().casefold()


def find_duplicates(records: Iterable[Any], field: DuplicateField | str, contact_id: str, value: str | None) -> list[Any]:
    """Other records whose ``field`` equals ``value`` after trimming and case-folding."""
    field_name = DuplicateField(field).value
    needle = _fold(value)
    if not needle:
        return []
    return [
        record
        for record in records
        if record.id != contact_id and _fold(getattr(record, field_name, None)) == needle
    ]


def duplicate_report(records: Iterable[Any], contact: Any) -> dict[str, list[Any]]:
    """Duplicates of ``contact`` on every identity field that has any."""
    pool = list(records)
    report: dict[str, list[Any]] = {}
    for field in DuplicateField:
        matches = find_duplicates(pool, field, contact.id, getattr(contact, field.value, None))
        if matches:
            report[field.value] = matches
    return report


def duplicate_warning(field: DuplicateField | str, duplicates: Iterable[Any]) -> str | None:
    names = [record.business_name or "Unnamed" for record in duplicates]
    if not names:
        return None
    label = DuplicateField(field).value.replace("_", " ")
    return f"Duplicate {label} found in: {', '.join(names)}"
