"""Shared error mapping helpers for API v1 route modules."""

from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException, status

from app.core.exceptions import DatabaseError, NotFoundError, ValidationError
from app.orchestration.state_machine import InvalidTransitionError


def map_service_error(exc: Exception) -> tuple[int, str]:
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND, str(exc)
    if isinstance(exc, (ValidationError, InvalidTransitionError)):
        return status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc)
    if isinstance(exc, DatabaseError):
        return status.HTTP_503_SERVICE_UNAVAILABLE, "Record store unavailable."
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal error."


def raise_http(exc: Exception) -> NoReturn:
    code, detail = map_service_error(exc)
    raise HTTPException(status_code=code, detail=detail) from exc
