"""Create or upgrade the CRM schema."""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig
from sqlalchemy import inspect

from app.core.startup import bootstrap
import app.database.db as db_module
from app.database.models import Base

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]
BASELINE_REVISION = "20260201_0001"
CORE_TABLES = {"contact_categories", "contacts"}


def _build_alembic_config(database_url: str) -> AlembicConfig:
    cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def _requires_baseline_stamp() -> bool:
    """Tables created by ``create_all`` before migrations existed need a stamp, not a re-create."""
    table_names = set(inspect(db_module.get_engine()).get_table_names())
    return CORE_TABLES.issubset(table_names) and "alembic_version" not in table_names


def init_db() -> None:
    bootstrap()
    active_url = db_module.get_active_database_url()
    alembic_cfg = _build_alembic_config(active_url)
    if _requires_baseline_stamp():
        command.stamp(alembic_cfg, BASELINE_REVISION)
        logger.info(
            "database.schema.stamped",
            extra={"event": "database.schema.stamped", "revision": BASELINE_REVISION},
        )

    command.upgrade(alembic_cfg, "head")
    Base.metadata.create_all(bind=db_module.get_engine())
    logger.info(
        "database.tables.created",
        extra={
            "event": "database.tables.created",
            "database_url": active_url,
        },
    )


if __name__ == "__main__":
    init_db()
