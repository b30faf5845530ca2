"""In-memory active working set for one category/phase table."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from app.schemas.contacts import ContactRecord


class ActiveViewStore:
    """Ordered cache of the contacts visible in one phase view.

    Two mutations exist: ``apply_local`` for optimistic edits and ``reconcile``
    to replace the cache with what the record store returned. ``remove`` and
    ``append`` are the membership variants of ``apply_local``.
    """

    def __init__(self, category_id: str, phase: int, records: Iterable[ContactRecord] = ()) -> None:
        self.category_id = category_id
        self.phase = phase
        self._records: list[ContactRecord] = list(records)
        self.version = 0

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, contact_id: object) -> bool:
        return any(record.id == contact_id for record in self._records)

    def records(self) -> list[ContactRecord]:
        return list(self._records)

    def ids(self) -> list[str]:
        return [record.id for record in self._records]

    def get(self, contact_id: str) -> ContactRecord | None:
        for record in self._records:
            if record.id == contact_id:
                return record
        return None

    def apply_local(self, contact_id: str, patch: dict[str, Any]) -> ContactRecord | None:
        """Apply a field patch and stamp a local ``updated_at``; None if not in view."""
        for index, record in enumerate(self._records):
            if record.id == contact_id:
                changes = dict(patch)
                changes.setdefault("updated_at", datetime.now(timezone.utc))
                updated = record.with_changes(changes)
                self._records[index] = updated
                self.version += 1
                return updated
        return None

    def append(self, record: ContactRecord) -> None:
        self._records.append(record)
        self.version += 1

    def remove(self, contact_id: str) -> ContactRecord | None:
        for index, record in enumerate(self._records):
            if record.id == contact_id:
                del self._records[index]
                self.version += 1
                return record
        return None

    def reconcile(self, server_view: Iterable[Any]) -> None:
        """Replace the cache with the authoritative rows from the record store."""
        self._records = [ContactRecord.model_validate(row) for row in server_view]
        self.version += 1
