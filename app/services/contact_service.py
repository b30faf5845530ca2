"""Contact record store backed by SQLAlchemy."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Literal, Protocol

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from app.core.enums import ARCHIVED_STAGES, Phase
from app.core.exceptions import DatabaseError, InvalidStageError, NotFoundError, ValidationError
from app.database.models import Contact, ContactCategory, utcnow
from app.pipeline.stages import StageVocabulary, get_vocabulary
from app.services.base_service import BaseService
from app.sync.normalize import EDITABLE_FIELDS, normalize_field_value

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = EDITABLE_FIELDS | {"current_phase"}


class RecordStore(Protocol):
    """Record-store contract consumed by the pipeline core."""

    def query(self, category_id: str, phase: int, active_only: bool = True) -> Sequence[Any]: ...

    def get(self, contact_id: str) -> Any | None: ...

    def patch(self, contact_id: str, fields: dict[str, Any]) -> Any | Literal[False]:
        """Return the updated row; False or None reports a write that did not land."""
        ...

    def insert(self, category_id: str, initial_fields: dict[str, Any] | None = None) -> Any: ...

    def delete(self, contact_id: str) -> bool: ...


class ContactService(BaseService):
    """Service for category/contact CRUD scoped to one category and phase."""

    def __init__(self, db=None, vocabulary: StageVocabulary | None = None) -> None:
        super().__init__(db=db)
        self.vocabulary = vocabulary or get_vocabulary()

    def create_category(self, name: str) -> ContactCategory:
        cleaned = name.strip()
        if not cleaned:
            raise ValidationError("Category name must not be blank.")
        category = ContactCategory(name=cleaned)
        self.db.add(category)
        self.commit("category.create.failed")
        self.db.refresh(category)
        return category

    def get_category(self, category_id: str) -> ContactCategory | None:
        return self.db.query(ContactCategory).filter(ContactCategory.id == category_id).first()

    def list_categories(self) -> list[ContactCategory]:
        return self.db.query(ContactCategory).order_by(ContactCategory.created_at.asc()).all()

    def query(self, category_id: str, phase: int, active_only: bool = True) -> list[Contact]:
        q = (
            self.db.query(Contact)
            .filter(Contact.category_id == category_id)
            .filter(Contact.current_phase == int(phase))
        )
        if active_only:
            q = q.filter(Contact.sales_stage.notin_(sorted(ARCHIVED_STAGES)))
        return q.order_by(Contact.created_at.asc()).all()

    def get(self, contact_id: str) -> Contact | None:
        return self.db.query(Contact).filter(Contact.id == contact_id).first()

    def require(self, contact_id: str) -> Contact:
        contact = self.get(contact_id)
        if contact is None:
            raise NotFoundError(f"Contact {contact_id} not found.")
        return contact

    def insert(self, category_id: str, initial_fields: dict[str, Any] | None = None) -> Contact:
        if self.get_category(category_id) is None:
            raise NotFoundError(f"Category {category_id} not found.")

        fields = self._normalize(initial_fields or {})
        for guarded in ("current_phase", "sales_stage", "contact_count", "last_contacted_at"):
            fields.pop(guarded, None)

        contact = Contact(
            category_id=category_id,
            current_phase=Phase.LEAD.value,
            sales_stage=self.vocabulary.initial_stage(Phase.LEAD),
            contact_count=0,
            **fields,
        )
        if contact.business_name is None:
            contact.business_name = ""
        self.db.add(contact)
        self.commit("contact.insert.failed", category_id=category_id)
        self.db.refresh(contact)
        logger.info(
            "contact.inserted",
            extra={"event": "contact.inserted", "contact_id": contact.id, "category_id": category_id},
        )
        return contact

    def patch(self, contact_id: str, fields: dict[str, Any]) -> Contact:
        """Partial, field-scoped update; only the given columns are written."""
        contact = self.require(contact_id)
        changes = self._normalize(fields)

        phase = int(changes.get("current_phase", contact.current_phase))
        if phase < int(contact.current_phase):
            raise ValidationError(f"Contact {contact_id} cannot move back to phase {phase}.")
        stage = changes.get("sales_stage", contact.sales_stage)
        if ("current_phase" in changes or "sales_stage" in changes) and not self.vocabulary.is_valid(phase, stage):
            raise InvalidStageError(stage=stage, phase=phase)

        for field, value in changes.items():
            setattr(contact, field, value)
        contact.updated_at = utcnow()
        self.commit("contact.patch.failed", contact_id=contact_id, fields=sorted(changes))
        self.db.refresh(contact)
        return contact

    def delete(self, contact_id: str) -> bool:
        contact = self.get(contact_id)
        if contact is None:
            return False
        self.db.delete(contact)
        self.commit("contact.delete.failed", contact_id=contact_id)
        logger.info("contact.deleted", extra={"event": "contact.deleted", "contact_id": contact_id})
        return True

    def list_archived(self, category_id: str, stage: str | None = None) -> list[Contact]:
        """Archived contacts of a category, most recently updated first."""
        stages = [stage] if stage else sorted(ARCHIVED_STAGES)
        return (
            self.db.query(Contact)
            .filter(Contact.category_id == category_id)
            .filter(Contact.sales_stage.in_(stages))
            .order_by(Contact.updated_at.desc())
            .all()
        )

    def phase_counts(self, category_id: str) -> dict[int, int]:
        """Active working-set size per phase."""
        counts = {phase.value: 0 for phase in Phase}
        try:
            rows = (
                self.db.query(Contact.current_phase, func.count(Contact.id))
                .filter(Contact.category_id == category_id)
                .filter(Contact.sales_stage.notin_(sorted(ARCHIVED_STAGES)))
                .group_by(Contact.current_phase)
                .all()
            )
        except SQLAlchemyError as exc:
            raise DatabaseError(str(exc)) from exc
        for phase, count in rows:
            if phase in counts:
                counts[phase] = count
        return counts

    @staticmethod
    def _normalize(fields: dict[str, Any]) -> dict[str, Any]:
        unknown = set(fields) - PATCHABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown contact field(s): {', '.join(sorted(unknown))}")
        return {field: normalize_field_value(field, value) for field, value in fields.items()}
