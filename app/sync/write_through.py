"""Optimistic, debounced write-through of table edits to the record store.

Edits land in the ``ActiveViewStore`` immediately. Persisted writes are keyed
by ``(contact_id, field)``: a newer edit to the same key cancels the scheduled
write and replaces it, so only the latest value is sent. Writes for different
keys carry only their own field and may land in any order.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from app.core.config import get_config
from app.core.exceptions import CRMException, ServiceError
from app.sync.normalize import normalize_field_value
from app.sync.view_store import ActiveViewStore

logger = logging.getLogger(__name__)

WriteKey = tuple[str, str]
PERSISTENCE_ERRORS = (CRMException, SQLAlchemyError, OSError)


@dataclass(frozen=True)
class SyncNotice:
    """One user-facing notification about a persisted write."""

    contact_id: str
    fields: tuple[str, ...]
    ok: bool
    message: str


Notifier = Callable[[SyncNotice], None]


@dataclass
class _ScheduledWrite:
    task: asyncio.Task
    value: Any


async def resolve_result(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class WriteThroughSync:
    def __init__(
        self,
        store: Any,
        view: ActiveViewStore,
        debounce_seconds: float | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.store = store
        self.view = view
        self.debounce_seconds = (
            debounce_seconds if debounce_seconds is not None else get_config().SAVE_DEBOUNCE_SECONDS
        )
        self.notifier = notifier
        self._scheduled: dict[WriteKey, _ScheduledWrite] = {}
        self._in_flight: set[asyncio.Task] = set()

    def pending_keys(self) -> set[WriteKey]:
        return set(self._scheduled)

    async def update_field(self, contact_id: str, field: str, value: Any, immediate: bool = False) -> bool | None:
        """Apply one field edit locally and persist it now or after the quiet period.

        Returns the write result when ``immediate`` is set, otherwise None.
        """
        normalized = normalize_field_value(field, value)
        self.view.apply_local(contact_id, {field: normalized})

        key = (contact_id, field)
        self._cancel(key)

        if immediate:
            return await self._persist(contact_id, {field: normalized})

        task = asyncio.create_task(self._write_later(key, contact_id, field, normalized))
        self._scheduled[key] = _ScheduledWrite(task=task, value=normalized)
        logger.debug(
            "sync.write.scheduled",
            extra={"event": "sync.write.scheduled", "contact_id": contact_id, "field": field},
        )
        return None

    async def update_fields(
        self,
        contact_id: str,
        fields: dict[str, Any],
        leaves_view: bool = False,
        success_message: str | None = None,
    ) -> bool:
        """Write several fields together, immediately, as one patch.

        Used for stage transitions and engagement stamps whose fields must not be
        split across writes. Pending debounced writes for the same keys are
        superseded.
        """
        normalized = {field: normalize_field_value(field, value) for field, value in fields.items()}
        if leaves_view:
            self.view.remove(contact_id)
        else:
            self.view.apply_local(contact_id, normalized)

        for field in normalized:
            self._cancel((contact_id, field))

        return await self._persist(
            contact_id,
            normalized,
            reconcile_on_failure=leaves_view,
            success_message=success_message,
        )

    async def flush(self, contact_id: str, field: str) -> bool | None:
        """Send a scheduled write now (blur/confirm); None when nothing was pending."""
        scheduled = self._scheduled.pop((contact_id, field), None)
        if scheduled is None:
            return None
        scheduled.task.cancel()
        return await self._persist(contact_id, {field: scheduled.value})

    async def flush_all(self) -> None:
        for contact_id, field in list(self._scheduled):
            await self.flush(contact_id, field)

    async def aclose(self) -> None:
        """Send every scheduled write and wait for debounced writes already in flight."""
        await self.flush_all()
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    def discard(self, contact_id: str) -> None:
        """Drop scheduled writes for a contact that no longer exists."""
        for key in [key for key in self._scheduled if key[0] == contact_id]:
            self._cancel(key)

    async def refetch(self) -> bool:
        """Replace the view with the store's current active set."""
        try:
            rows = await resolve_result(self.store.query(self.view.category_id, self.view.phase))
        except PERSISTENCE_ERRORS:
            logger.exception(
                "sync.refetch.failed",
                extra={
                    "event": "sync.refetch.failed",
                    "category_id": self.view.category_id,
                    "phase": self.view.phase,
                },
            )
            return False
        self.view.reconcile(rows)
        return True

    def _cancel(self, key: WriteKey) -> None:
        scheduled = self._scheduled.pop(key, None)
        if scheduled is not None:
            scheduled.task.cancel()

    async def _write_later(self, key: WriteKey, contact_id: str, field: str, value: Any) -> None:
        await asyncio.sleep(self.debounce_seconds)
        # Past this point the write is in flight and no longer cancellable.
        task = asyncio.current_task()
        scheduled = self._scheduled.get(key)
        if scheduled is not None and scheduled.task is task:
            del self._scheduled[key]
        self._in_flight.add(task)
        try:
            await self._persist(contact_id, {field: value})
        finally:
            self._in_flight.discard(task)

    async def _persist(
        self,
        contact_id: str,
        fields: dict[str, Any],
        reconcile_on_failure: bool = False,
        success_message: str | None = None,
    ) -> bool:
        field_names = tuple(sorted(fields))
        try:
            result = await resolve_result(self.store.patch(contact_id, dict(fields)))
            if result is None or result is False:
                raise ServiceError(f"Record store refused the write for contact {contact_id}.")
        except PERSISTENCE_ERRORS as exc:
            logger.error(
                "sync.write.failed",
                extra={
                    "event": "sync.write.failed",
                    "contact_id": contact_id,
                    "fields": list(field_names),
                    "error": str(exc),
                },
            )
            self._notify(SyncNotice(contact_id, field_names, ok=False, message="Failed to save changes"))
            if reconcile_on_failure:
                await self.refetch()
            return False

        logger.debug(
            "sync.write.persisted",
            extra={"event": "sync.write.persisted", "contact_id": contact_id, "fields": list(field_names)},
        )
        if success_message:
            self._notify(SyncNotice(contact_id, field_names, ok=True, message=success_message))
        return True

    def _notify(self, notice: SyncNotice) -> None:
        if self.notifier is not None:
            self.notifier(notice)
