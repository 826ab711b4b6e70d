"""Error Handlers — global exception handlers for the workshop booking API.

Invariants:
    - BookingError → envelope plus a `slots` list (refreshed by the route, [] if not)
    - WorkshopError → structured JSON with error code, message, severity
    - RequestValidationError → field-level error details
    - Exception (catch-all) → never leaks internal details

Design Decisions:
    - Three-layer handler: domain (WorkshopError), validation (Pydantic), catch-all (Exception)
    - BookingError gets its own domain layer: only booking outcomes carry slots
    - Extracted from main.py to keep its import fan-out small
    - 5xx domain errors logged at error level, expected 4xx outcomes at warning
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from workshop_engine.core.errors import BookingError, ErrorSeverity, WorkshopError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_booking_error_handler(app)
    _register_workshop_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_workshop_error_handler(app: FastAPI) -> None:
    """Register booking-engine domain/infrastructure error handler."""

    @app.exception_handler(WorkshopError)
    async def workshop_error_handler(request: Request, exc: WorkshopError):
        """Handle all booking-engine domain/infrastructure errors."""
        level = logging.ERROR if exc.http_status >= 500 else logging.WARNING
        logger.log(
            level,
            f"WorkshopError: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_booking_error_handler(app: FastAPI) -> None:
    """Register booking-outcome handler (slot full, vanished, write conflict)."""

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        """Envelope plus the refreshed slot list the route attached, if any."""
        ctx = exc.context
        logger.warning(
            f"Booking rejected: {exc.message}",
            extra={
                "error_code": exc.code, "path": request.url.path,
                "template_id": ctx.template_id, "slot_date": ctx.slot_date,
            },
        )
        content = exc.to_response()
        content["slots"] = getattr(request.state, "refreshed_slots", [])
        return JSONResponse(status_code=exc.http_status, content=content)


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
