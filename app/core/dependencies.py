"""Dependency providers for API handlers."""

from __future__ import annotations

from collections.abc import Generator

from app.database.db import get_db
from app.orchestration.pipeline_machine import PipelineStateMachine
from app.services.contact_service import ContactService


def get_contact_service() -> Generator[ContactService, None, None]:
    """Yield a request-scoped contact service bound to its own session."""
    for session in get_db():
        yield ContactService(db=session)


def get_state_machine() -> PipelineStateMachine:
    """A fresh machine per request; HTTP stage changes never span requests."""
    return PipelineStateMachine()
