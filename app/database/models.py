from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .db import Base


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp helper."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class ContactCategory(Base):
    __tablename__ = "contact_categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    contacts = relationship("Contact", back_populates="category", cascade="all, delete-orphan")


class Contact(Base):
    __tablename__ = "contacts"
    __table_args__ = (
        Index("idx_contacts_category_phase", "category_id", "current_phase"),
        Index("idx_contacts_sales_stage", "sales_stage"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    category_id = Column(
        String(36),
        ForeignKey("contact_categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    current_phase = Column(Integer, nullable=False, default=1)
    sales_stage = Column(String, nullable=False, default="Lead")

    business_name = Column(String, nullable=False, default="")
    contact_name = Column(String)
    mobile_number = Column(String)
    email = Column(String)
    link = Column(String)
    demo_link = Column(String)
    output_link = Column(String)
    lead_source = Column(String)
    assigned_to = Column(String)
    notes = Column(Text)
    demo_instructions = Column(Text)

    value = Column(Numeric(14, 2, asdecimal=False))
    deposit = Column(Numeric(14, 2, asdecimal=False))

    contact_count = Column(Integer, nullable=False, default=0)
    last_contacted_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    category = relationship("ContactCategory", back_populates="contacts")
