"""Field-value normalization applied before any local or persisted write."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from app.core.exceptions import ValidationError

NUMERIC_FIELDS = frozenset({"value", "deposit"})
INTEGER_FIELDS = frozenset({"contact_count"})
TEXT_FIELDS = frozenset(
    {
        "business_name",
        "contact_name",
        "mobile_number",
        "email",
        "link",
        "demo_link",
        "output_link",
        "lead_source",
        "assigned_to",
        "notes",
        "demo_instructions",
        "sales_stage",
    }
)
# business_name is NOT NULL; blank stays an empty string.
NON_NULL_TEXT_FIELDS = frozenset({"business_name"})

TIMESTAMP_FIELDS = frozenset({"last_contacted_at"})

EDITABLE_FIELDS = NUMERIC_FIELDS | INTEGER_FIELDS | TEXT_FIELDS | TIMESTAMP_FIELDS

_NON_NUMERIC = re.compile(r"[^\d.]")


def parse_amount(value: Any) -> float | None:
    """Parse free text such as ``"₱12,000"`` into a number; None when unparseable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = _NON_NUMERIC.sub("", str(value))
    # "1.2.3" keeps the leading valid prefix, the way parseFloat-style readers do.
    match = re.match(r"\d*\.?\d*", cleaned)
    candidate = match.group(0) if match else ""
    if candidate in {"", "."}:
        return None
    return float(candidate)


def parse_count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        return max(int(value), 0)
    match = re.match(r"\s*[+-]?\d+", str(value or ""))
    if not match:
        return 0
    return max(int(match.group(0)), 0)


def parse_timestamp(field: str, value: Any) -> datetime | None:
    """Accept a datetime or an ISO-8601 string; naive values are taken as UTC."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValidationError(f"{field} must be an ISO-8601 timestamp, got {value!r}.") from exc
    else:
        raise ValidationError(f"{field} must be an ISO-8601 timestamp, got {value!r}.")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_text(field: str, value: Any) -> str | None:
    if value is None and field in NON_NULL_TEXT_FIELDS:
        return ""
    if not isinstance(value, str):
        return value
    stripped = value.strip()
    if stripped:
        return stripped
    return "" if field in NON_NULL_TEXT_FIELDS else None


def normalize_field_value(field: str, value: Any) -> Any:
    if field in NUMERIC_FIELDS:
        return parse_amount(value)
    if field in INTEGER_FIELDS:
        return parse_count(value)
    if field in TEXT_FIELDS:
        return normalize_text(field, value)
    if field in TIMESTAMP_FIELDS:
        return parse_timestamp(field, value)
    return value
