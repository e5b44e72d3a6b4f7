"""Booking workflow error taxonomy and the FastAPI handlers that render it."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError


class WorkflowError(Exception):
    """Base class for recoverable, request-level workflow failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "workflow_error"

    def __init__(self, detail: str, **extra: Any) -> None:
        super().__init__(detail)
        self.detail = detail
        self.extra = extra

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.detail, "code": self.code, **self.extra}


class InvalidInterval(WorkflowError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_interval"

    def __init__(self, start: datetime, end: datetime) -> None:
        super().__init__("End time must be after start time", start=start.isoformat(), end=end.isoformat())


class NotFound(WorkflowError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, entity: str, identifier: Optional[int] = None) -> None:
        detail = f"{entity} not found" if identifier is None else f"{entity} {identifier} not found"
        super().__init__(detail)


class Forbidden(WorkflowError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(detail)


class ResourceConflict(WorkflowError):
    status_code = status.HTTP_409_CONFLICT
    code = "resource_conflict"

    def __init__(self, resource_id: int, conflicting_id: int, start: datetime, end: datetime) -> None:
        super().__init__(
            "Resource already booked for that slot",
            resource_id=resource_id,
            conflicting_booking_id=conflicting_id,
            conflicting_start=start.isoformat(),
            conflicting_end=end.isoformat(),
        )


class InvalidTransition(WorkflowError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Invalid booking transition: {current} -> {target}", **{"from": current, "to": target})


def add_error_handlers(app: FastAPI, logger: logging.Logger) -> None:
    """Render workflow errors as JSON and hide infrastructure failures behind a 500."""

    @app.exception_handler(WorkflowError)
    async def workflow_error_handler(_: Request, exc: WorkflowError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("database failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )
