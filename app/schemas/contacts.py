"""Contact request/response schemas and the in-memory contact record."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import ContactAction, Phase


class ContactRecord(BaseModel):
    """Snapshot of one contact row as held in an active view."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    category_id: str
    current_phase: int = Phase.LEAD.value
    sales_stage: str = "Lead"
    business_name: str = ""
    contact_name: str | None = None
    mobile_number: str | None = None
    email: str | None = None
    link: str | None = None
    demo_link: str | None = None
    output_link: str | None = None
    lead_source: str | None = None
    assigned_to: str | None = None
    notes: str | None = None
    demo_instructions: str | None = None
    value: float | None = None
    deposit: float | None = None
    contact_count: int = 0
    last_contacted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def with_changes(self, changes: dict[str, Any]) -> "ContactRecord":
        return self.model_copy(update=changes)


class ContactCreateRequest(BaseModel):
    business_name: str = Field(default="", max_length=255)
    contact_name: str | None = Field(default=None, max_length=255)
    mobile_number: str | None = Field(default=None, max_length=64)
    email: str | None = Field(default=None, max_length=320)
    link: str | None = Field(default=None, max_length=2000)
    lead_source: str | None = Field(default=None, max_length=120)
    assigned_to: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None, max_length=10000)


class ContactFieldUpdateRequest(BaseModel):
    field: str = Field(min_length=1, max_length=64)
    value: Any = None


class StageChangeRequest(BaseModel):
    stage: str = Field(min_length=1, max_length=40)
    instructions: str | None = Field(default=None, max_length=10000)
    assigned_to: str | None = Field(default=None, max_length=255)
    reason: str | None = Field(default=None, max_length=2000)
    price: str | float | None = None
    amount: str | float | None = None


class ActivityRequest(BaseModel):
    action: ContactAction = ContactAction.CALL


class CategoryCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
