"""Working set for one category's one-phase contact table."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from app.core.enums import ContactAction, DuplicateField, Phase
from app.core.exceptions import NotFoundError, ValidationError
from app.orchestration.pipeline_machine import (
    PendingSideEffect,
    PipelineStateMachine,
    SideEffectInput,
    StageChangeOutcome,
)
from app.schemas.contacts import ContactRecord
from app.services.duplicates import duplicate_report, find_duplicates
from app.sync.view_store import ActiveViewStore
from app.sync.write_through import PERSISTENCE_ERRORS, Notifier, SyncNotice, WriteThroughSync, resolve_result

logger = logging.getLogger(__name__)

STAGE_FIELDS = frozenset({"sales_stage", "current_phase"})


class PipelineBoard:
    """Ties the active view, the stage machine, and write-through sync together.

    All view mutations go through ``WriteThroughSync``; callers read the view
    but never mutate it.
    """

    def __init__(
        self,
        store: Any,
        category_id: str,
        phase: int,
        machine: PipelineStateMachine | None = None,
        debounce_seconds: float | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.store = store
        self.phase = Phase(phase)
        self.view = ActiveViewStore(category_id=category_id, phase=self.phase.value)
        self.machine = machine or PipelineStateMachine()
        self.notifier = notifier
        self.sync = WriteThroughSync(store, self.view, debounce_seconds=debounce_seconds, notifier=notifier)

    @classmethod
    async def open(cls, store: Any, category_id: str, phase: int, **kwargs: Any) -> "PipelineBoard":
        board = cls(store, category_id, phase, **kwargs)
        await board.refresh()
        return board

    @property
    def category_id(self) -> str:
        return self.view.category_id

    def records(self) -> list[ContactRecord]:
        return self.view.records()

    def get(self, contact_id: str) -> ContactRecord:
        record = self.view.get(contact_id)
        if record is None:
            raise NotFoundError(f"Contact {contact_id} is not in the phase {self.phase.value} view.")
        return record

    async def refresh(self) -> bool:
        return await self.sync.refetch()

    async def edit_field(self, contact_id: str, field: str, value: Any, immediate: bool = False) -> bool | None:
        """Keystroke-level edit; ``immediate`` on blur or confirm."""
        if field in STAGE_FIELDS:
            raise ValidationError(f"{field} changes go through change_stage().")
        self.get(contact_id)
        return await self.sync.update_field(contact_id, field, value, immediate=immediate)

    async def flush(self, contact_id: str, field: str) -> bool | None:
        return await self.sync.flush(contact_id, field)

    async def change_stage(self, contact_id: str, stage: str) -> PendingSideEffect | StageChangeOutcome:
        result = self.machine.request_stage_change(self.get(contact_id), stage)
        if isinstance(result, PendingSideEffect):
            return result
        await self._commit(result)
        return result

    async def supply_side_effect(self, payload: SideEffectInput) -> StageChangeOutcome:
        outcome = self.machine.supply(payload)
        await self._commit(outcome)
        return outcome

    def cancel_side_effect(self) -> None:
        self.machine.cancel()

    async def track_contact_activity(self, contact_id: str, action: ContactAction = ContactAction.CALL) -> bool:
        """Call/email stamp: attempts + 1 and last-contacted now, in one immediate write."""
        record = self.get(contact_id)
        logger.info(
            "contact.activity.tracked",
            extra={"event": "contact.activity.tracked", "contact_id": contact_id, "action": ContactAction(action).value},
        )
        return await self.sync.update_fields(
            contact_id,
            {
                "contact_count": (record.contact_count or 0) + 1,
                "last_contacted_at": datetime.now(timezone.utc),
            },
        )

    async def increment_attempts(self, contact_id: str) -> bool | None:
        record = self.get(contact_id)
        return await self.sync.update_field(contact_id, "contact_count", (record.contact_count or 0) + 1, immediate=True)

    async def mark_last_updated(self, contact_id: str) -> bool | None:
        self.get(contact_id)
        return await self.sync.update_field(
            contact_id, "last_contacted_at", datetime.now(timezone.utc), immediate=True
        )

    async def add_contact(self, **fields: Any) -> ContactRecord:
        if self.phase is not Phase.LEAD:
            raise ValidationError("New contacts start in phase 1.")
        row = await resolve_result(self.store.insert(self.category_id, fields))
        record = ContactRecord.model_validate(row)
        self.view.append(record)
        return record

    async def delete_contact(self, contact_id: str) -> bool:
        try:
            deleted = await resolve_result(self.store.delete(contact_id))
        except PERSISTENCE_ERRORS:
            logger.exception("contact.delete.failed", extra={"event": "contact.delete.failed", "contact_id": contact_id})
            deleted = False
        if not deleted:
            self._notify(SyncNotice(contact_id, (), ok=False, message="Failed to delete contact"))
            return False
        self.sync.discard(contact_id)
        self.view.remove(contact_id)
        self._notify(SyncNotice(contact_id, (), ok=True, message="Contact deleted"))
        return True

    def find_duplicates(self, field: DuplicateField | str, contact_id: str, value: str | None) -> list[ContactRecord]:
        return find_duplicates(self.view.records(), field, contact_id, value)

    def duplicate_report(self, contact_id: str) -> dict[str, list[ContactRecord]]:
        return duplicate_report(self.view.records(), self.get(contact_id))

    async def aclose(self) -> None:
        self.machine.cancel()
        await self.sync.aclose()

    async def _commit(self, outcome: StageChangeOutcome) -> bool:
        return await self.sync.update_fields(
            outcome.contact_id,
            outcome.patch,
            leaves_view=outcome.removed_from_view,
            success_message=_outcome_message(outcome),
        )

    def _notify(self, notice: SyncNotice) -> None:
        if self.notifier is not None:
            self.notifier(notice)


def _outcome_message(outcome: StageChangeOutcome) -> str | None:
    if outcome.transitioned:
        return f"Contact moved to Phase {outcome.to_phase}"
    if outcome.archived:
        return f"Contact marked as {outcome.to_stage.lower()}"
    return None
