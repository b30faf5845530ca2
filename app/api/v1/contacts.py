"""Contact editing and stage-change endpoints for API v1."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.v1._errors import raise_http
from app.core.dependencies import get_contact_service, get_state_machine
from app.core.enums import DuplicateField
from app.core.exceptions import CRMException, NotFoundError, ValidationError
from app.orchestration.pipeline_machine import PendingSideEffect, PipelineStateMachine, SideEffectInput
from app.orchestration.state_machine import InvalidTransitionError
from app.schemas.contacts import (
    ActivityRequest,
    ContactFieldUpdateRequest,
    ContactRecord,
    StageChangeRequest,
)
from app.services.contact_service import ContactService
from app.services.developer_brief import build_developer_brief
from app.services.duplicates import find_duplicates

logger = logging.getLogger(__name__)

router = APIRouter(tags=["contacts"])


def _load(service: ContactService, contact_id: str):
    try:
        return service.require(contact_id)
    except NotFoundError as exc:
        raise_http(exc)


@router.get("/contacts/{contact_id}", response_model=ContactRecord)
def get_contact(contact_id: str, service: ContactService = Depends(get_contact_service)) -> ContactRecord:
    return ContactRecord.model_validate(_load(service, contact_id))


@router.patch("/contacts/{contact_id}", response_model=ContactRecord)
def patch_contact_field(
    contact_id: str,
    payload: ContactFieldUpdateRequest,
    service: ContactService = Depends(get_contact_service),
) -> ContactRecord:
    if payload.field in {"sales_stage", "current_phase"}:
        raise_http(ValidationError(f"{payload.field} changes go through POST /contacts/{{id}}/stage."))
    try:
        contact = service.patch(contact_id, {payload.field: payload.value})
    except CRMException as exc:
        raise_http(exc)
    return ContactRecord.model_validate(contact)


@router.delete("/contacts/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contact(contact_id: str, service: ContactService = Depends(get_contact_service)) -> Response:
    try:
        deleted = service.delete(contact_id)
    except CRMException as exc:
        raise_http(exc)
    if not deleted:
        raise_http(NotFoundError(f"Contact {contact_id} not found."))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/contacts/{contact_id}/stage")
def change_stage(
    contact_id: str,
    payload: StageChangeRequest,
    service: ContactService = Depends(get_contact_service),
    machine: PipelineStateMachine = Depends(get_state_machine),
) -> dict:
    """Apply a stage change; gated stages without operator input report what is needed."""
    contact = _load(service, contact_id)
    side_effect = SideEffectInput(
        instructions=payload.instructions,
        assigned_to=payload.assigned_to,
        reason=payload.reason,
        price=payload.price,
        amount=payload.amount,
    )
    try:
        result = machine.request_stage_change(contact, payload.stage)
        if isinstance(result, PendingSideEffect):
            if side_effect == SideEffectInput():
                machine.cancel()
                return {"status": "awaiting_input", "kind": result.kind.value, "stage": result.requested_stage}
            result = machine.supply(side_effect)
        updated = service.patch(contact_id, result.patch)
    except (CRMException, InvalidTransitionError) as exc:
        machine.cancel()
        raise_http(exc)

    return {
        "status": "committed",
        "transitioned": result.transitioned,
        "archived": result.archived,
        "removed_from_view": result.removed_from_view,
        "contact": ContactRecord.model_validate(updated).model_dump(mode="json"),
    }


@router.post("/contacts/{contact_id}/activity", response_model=ContactRecord)
def track_activity(
    contact_id: str,
    payload: ActivityRequest,
    service: ContactService = Depends(get_contact_service),
) -> ContactRecord:
    contact = _load(service, contact_id)
    try:
        updated = service.patch(
            contact_id,
            {
                "contact_count": (contact.contact_count or 0) + 1,
                "last_contacted_at": datetime.now(timezone.utc),
            },
        )
    except CRMException as exc:
        raise_http(exc)
    logger.info(
        "contact.activity.tracked",
        extra={"event": "contact.activity.tracked", "contact_id": contact_id, "action": payload.action.value},
    )
    return ContactRecord.model_validate(updated)


@router.get("/contacts/{contact_id}/duplicates", response_model=list[ContactRecord])
def list_duplicates(
    contact_id: str,
    field: DuplicateField = Query(...),
    service: ContactService = Depends(get_contact_service),
) -> list[ContactRecord]:
    contact = _load(service, contact_id)
    view = service.query(contact.category_id, contact.current_phase)
    matches = find_duplicates(view, field, contact.id, getattr(contact, field.value))
    return [ContactRecord.model_validate(row) for row in matches]


@router.get("/contacts/{contact_id}/developer-brief")
def developer_brief(contact_id: str, service: ContactService = Depends(get_contact_service)) -> dict:
    contact = _load(service, contact_id)
    return {"contact_id": contact_id, "brief": build_developer_brief(contact)}
