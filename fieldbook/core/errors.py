"""Translate core outcomes into HTTP responses."""

import logging
from typing import NoReturn

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from fieldbook.services.booking_rules import BookingViolation, ConflictError, StateError, ValidationError

logger = logging.getLogger(__name__)

VIOLATION_STATUS = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ConflictError: status.HTTP_409_CONFLICT,
    StateError: status.HTTP_409_CONFLICT,
}


def raise_for_violation(violation: BookingViolation) -> NoReturn:
    """Turn a returned violation into an HTTPException with a structured body."""
    code = VIOLATION_STATUS.get(type(violation), status.HTTP_400_BAD_REQUEST)
    raise HTTPException(status_code=code, detail=[violation.as_dict()])


async def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Service temporarily unavailable, please try again."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)
