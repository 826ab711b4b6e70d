"""Error Hierarchy — typed, categorized exceptions for all booking-engine failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with WorkshopError base: FastAPI global handler catches all
    - BookingError groups the three outcomes of a failed booking attempt; every one
      of them resolves to "show the user an updated slot list and let them re-choose"
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    CAPACITY = "capacity"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    template_id: str | None = None
    slot_id: str | None = None
    slot_date: date | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class WorkshopError(Exception):
    """Base exception for all booking-engine errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "template_id": self.context.template_id,
                    "slot_id": self.context.slot_id,
                    "slot_date": (
                        self.context.slot_date.isoformat()
                        if self.context.slot_date else None
                    ),
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Validation Errors (400-level) ──────────────────────────────

class BookingValidationError(WorkshopError):
    """Booking contact fields failed validation. Raised before any transaction."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "BOOKING_VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class TemplateValidationError(WorkshopError):
    """Template definition is malformed (admin authoring only)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "TEMPLATE_VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class CapacityOverrideError(WorkshopError):
    """Admin tried to shrink a slot below its current bookings."""
    def __init__(self, capacity: int, booked_count: int, context: ErrorContext | None = None):
        super().__init__(
            f"Capacity {capacity} is below the {booked_count} seat(s) already booked",
            "CAPACITY_BELOW_BOOKED", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.capacity = capacity
        self.booked_count = booked_count


class ResourceNotFoundError(WorkshopError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Booking Outcomes ───────────────────────────────────────────

class BookingError(WorkshopError):
    """A booking attempt failed; nothing was written."""


class SlotFullError(BookingError):
    """Capacity exhausted at commit time. Never retried automatically."""
    def __init__(self, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.user_message = ctx.user_message or "This time is not available anymore."
        super().__init__(
            "Slot capacity exhausted",
            "SLOT_FULL", ErrorCategory.CAPACITY,
            ErrorSeverity.WARNING, ctx, 409,
        )


class SlotVanishedError(BookingError):
    """Template or slot was deactivated/cancelled between selection and commit."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.user_message = ctx.user_message or "Please pick another time."
        super().__init__(
            f"Slot no longer bookable: {reason}",
            "SLOT_VANISHED", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx, 410,
        )
        self.reason = reason


class WriteConflictError(BookingError):
    """Promotion kept colliding with concurrent writers past the retry budget."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.user_message = ctx.user_message or "Please try again."
        super().__init__(
            f"Slot promotion conflicted {attempts} time(s)",
            "WRITE_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx, 409,
        )
        self.attempts = attempts


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(WorkshopError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
