"""contact categories and three-phase contacts

Revision ID: 20260201_0001
Revises:
Create Date: 2026-02-01 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20260201_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "contact_categories",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "contacts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("category_id", sa.String(length=36), nullable=False),
        sa.Column("current_phase", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("sales_stage", sa.String(), nullable=False, server_default="Lead"),
        sa.Column("business_name", sa.String(), nullable=False, server_default=""),
        sa.Column("contact_name", sa.String(), nullable=True),
        sa.Column("mobile_number", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("link", sa.String(), nullable=True),
        sa.Column("demo_link", sa.String(), nullable=True),
        sa.Column("output_link", sa.String(), nullable=True),
        sa.Column("lead_source", sa.String(), nullable=True),
        sa.Column("assigned_to", sa.String(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("demo_instructions", sa.Text(), nullable=True),
        sa.Column("value", sa.Numeric(14, 2), nullable=True),
        sa.Column("deposit", sa.Numeric(14, 2), nullable=True),
        sa.Column("contact_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_contacted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["category_id"], ["contact_categories.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_contacts_category_id", "contacts", ["category_id"])
    op.create_index("idx_contacts_category_phase", "contacts", ["category_id", "current_phase"])
    op.create_index("idx_contacts_sales_stage", "contacts", ["sales_stage"])


def downgrade() -> None:
    op.drop_index("idx_contacts_sales_stage", table_name="contacts")
    op.drop_index("idx_contacts_category_phase", table_name="contacts")
    op.drop_index("ix_contacts_category_id", table_name="contacts")
    op.drop_table("contacts")
    op.drop_table("contact_categories")
