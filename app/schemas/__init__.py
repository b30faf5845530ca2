"""Pydantic schema package for API contracts."""

from app.schemas.contacts import (
    ActivityRequest,
    CategoryCreateRequest,
    ContactCreateRequest,
    ContactFieldUpdateRequest,
    ContactRecord,
    StageChangeRequest,
)

__all__ = [
    "ActivityRequest",
    "CategoryCreateRequest",
    "ContactCreateRequest",
    "ContactFieldUpdateRequest",
    "ContactRecord",
    "StageChangeRequest",
]
