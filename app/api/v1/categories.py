"""Category-scoped contact views for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from app.api.v1._errors import raise_http
from app.core.dependencies import get_contact_service
from app.core.enums import Phase
from app.core.exceptions import CRMException
from app.schemas.contacts import CategoryCreateRequest, ContactCreateRequest, ContactRecord
from app.services.contact_service import ContactService

router = APIRouter(tags=["categories"])


def _require_category(service: ContactService, category_id: str) -> None:
    if service.get_category(category_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Category {category_id} not found.")


@router.post("/categories", status_code=status.HTTP_201_CREATED)
def create_category(payload: CategoryCreateRequest, service: ContactService = Depends(get_contact_service)) -> dict:
    try:
        category = service.create_category(payload.name)
    except CRMException as exc:
        raise_http(exc)
    return {"id": category.id, "name": category.name}


@router.get("/categories")
def list_categories(service: ContactService = Depends(get_contact_service)) -> dict:
    return {"items": [{"id": c.id, "name": c.name} for c in service.list_categories()]}


@router.get("/categories/{category_id}/phases/{phase}/contacts", response_model=list[ContactRecord])
def list_active_contacts(
    category_id: str,
    phase: int = Path(ge=1, le=3),
    service: ContactService = Depends(get_contact_service),
) -> list[ContactRecord]:
    _require_category(service, category_id)
    return [ContactRecord.model_validate(row) for row in service.query(category_id, phase)]


@router.get("/categories/{category_id}/archived", response_model=list[ContactRecord])
def list_archived_contacts(
    category_id: str,
    stage: str | None = Query(default=None, max_length=40),
    service: ContactService = Depends(get_contact_service),
) -> list[ContactRecord]:
    _require_category(service, category_id)
    return [ContactRecord.model_validate(row) for row in service.list_archived(category_id, stage=stage)]


@router.get("/categories/{category_id}/pipeline")
def pipeline_summary(category_id: str, service: ContactService = Depends(get_contact_service)) -> dict:
    _require_category(service, category_id)
    try:
        counts = service.phase_counts(category_id)
    except CRMException as exc:
        raise_http(exc)
    return {
        "category_id": category_id,
        "phases": [
            {"phase": phase.value, "name": phase.slug, "title": phase.label, "active": counts[phase.value]}
            for phase in Phase
        ],
    }


@router.post(
    "/categories/{category_id}/contacts",
    response_model=ContactRecord,
    status_code=status.HTTP_201_CREATED,
)
def create_contact(
    category_id: str,
    payload: ContactCreateRequest,
    service: ContactService = Depends(get_contact_service),
) -> ContactRecord:
    try:
        contact = service.insert(category_id, payload.model_dump(exclude_none=True))
    except CRMException as exc:
        raise_http(exc)
    return ContactRecord.model_validate(contact)
