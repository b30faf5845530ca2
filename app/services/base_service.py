"""Shared service base owning one SQLAlchemy session."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import app.database.db as db_module
from app.core.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class BaseService:
    """Base class for record-store services.

    Callers may pass their own session (tests, request scope); otherwise a
    fresh one is opened from the active session factory.
    """

    def __init__(self, db: Session | None = None) -> None:
        self.db = db or db_module.SessionLocal()

    def commit(self, failure_event: str | None = None, **context: Any) -> None:
        """Commit, or roll back and raise ``DatabaseError``.

        ``failure_event`` names the structured log line emitted on failure.
        """
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            if failure_event:
                logger.error(failure_event, extra={"event": failure_event, "error": str(exc), **context})
            raise DatabaseError(str(exc)) from exc

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> "BaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.db.rollback()
        self.close()
