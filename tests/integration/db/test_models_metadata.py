from __future__ import annotations

from alembic import command
from sqlalchemy import create_engine, inspect

from app.database.init_db import _build_alembic_config
from app.database.models import Base


def test_model_metadata_contains_crm_tables():
    assert {"contact_categories", "contacts"}.issubset(set(Base.metadata.tables.keys()))


def test_migration_creates_the_same_columns_as_the_models(tmp_path):
    url = f"sqlite:///{tmp_path / 'crm.db'}"
    command.upgrade(_build_alembic_config(url), "head")

    inspector = inspect(create_engine(url))
    migrated = {column["name"] for column in inspector.get_columns("contacts")}
    modelled = {column.name for column in Base.metadata.tables["contacts"].columns}
    assert migrated == modelled
    assert "idx_contacts_category_phase" in {index["name"] for index in inspector.get_indexes("contacts")}
