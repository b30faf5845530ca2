from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.enums import ARCHIVED_STAGES
from app.database.models import Base
from app.orchestration.pipeline_machine import PipelineStateMachine
from app.pipeline.stages import StageVocabulary
from app.schemas.contacts import ContactRecord

_EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)
_SEQUENCE = itertools.count()


def make_record(contact_id: str, **fields: Any) -> ContactRecord:
    """Contact snapshot with stable ordering by creation time."""
    data: dict[str, Any] = {
        "id": contact_id,
        "category_id": "cat-1",
        "current_phase": 1,
        "sales_stage": "Lead",
        "business_name": f"Business {contact_id}",
        "created_at": _EPOCH + timedelta(minutes=next(_SEQUENCE)),
    }
    data.update(fields)
    return ContactRecord(**data)


class FakeRecordStore:
    """Async record store over a dict, recording every patch it receives."""

    def __init__(self, records=()) -> None:
        self.rows: dict[str, ContactRecord] = {record.id: record for record in records}
        self.patches: list[tuple[str, dict[str, Any]]] = []
        self.fail_patches = False
        self.fail_deletes = False

    async def query(self, category_id: str, phase: int, active_only: bool = True) -> list[ContactRecord]:
        rows = [
            row
            for row in self.rows.values()
            if row.category_id == category_id and row.current_phase == phase
        ]
        if active_only:
            rows = [row for row in rows if row.sales_stage not in ARCHIVED_STAGES]
        return sorted(rows, key=lambda row: row.created_at)

    async def get(self, contact_id: str) -> ContactRecord | None:
        return self.rows.get(contact_id)

    async def patch(self, contact_id: str, fields: dict[str, Any]) -> ContactRecord:
        if self.fail_patches:
            raise OSError("record store unreachable")
        self.patches.append((contact_id, dict(fields)))
        self.rows[contact_id] = self.rows[contact_id].with_changes(fields)
        return self.rows[contact_id]

    async def insert(self, category_id: str, initial_fields: dict[str, Any] | None = None) -> ContactRecord:
        record = make_record(
            f"new-{len(self.rows) + 1}",
            category_id=category_id,
            created_at=datetime.now(timezone.utc),
            **(initial_fields or {}),
        )
        self.rows[record.id] = record
        return record

    async def delete(self, contact_id: str) -> bool:
        if self.fail_deletes:
            raise OSError("record store unreachable")
        return self.rows.pop(contact_id, None) is not None


@pytest.fixture
def vocabulary() -> StageVocabulary:
    return StageVocabulary()


@pytest.fixture
def machine(vocabulary) -> PipelineStateMachine:
    return PipelineStateMachine(vocabulary=vocabulary, currency_symbol="₱")


@pytest.fixture
def notices() -> list:
    return []


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def store_factory():
    return FakeRecordStore
