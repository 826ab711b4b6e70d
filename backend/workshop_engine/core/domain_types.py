"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - TemplateId, SlotId, BookingId wrap UUIDs — never use bare UUID in domain logic
    - Weekday numbers follow the academy calendar: 0=Sunday … 6=Saturday
    - All valid states encoded as Enums — no raw string matching
    - Dates are datetime.date and times are datetime.time at the core boundary;
      strings exist only in schemas and the database

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
    - Frozen dataclasses for the read-models: expansion never mutates its inputs
"""

from dataclasses import dataclass, field
import datetime as dt
from datetime import date, datetime, time
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

TemplateId = NewType("TemplateId", UUID)
SlotId = NewType("SlotId", UUID)
BookingId = NewType("BookingId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class RecurrenceType(str, Enum):
    """How a template repeats."""
    ONE_TIME = "one-time"
    WEEKLY = "weekly"


class SlotStatus(str, Enum):
    """Persisted slot states — maps to DB `status` column."""
    AVAILABLE = "available"
    FULL = "full"
    CANCELLED = "cancelled"


class BookingStatus(str, Enum):
    """Booking states. The engine only ever writes CONFIRMED."""
    CONFIRMED = "confirmed"
    ATTENDED = "attended"
    NO_SHOW = "no-show"
    CANCELLED = "cancelled"


class TargetAudience(str, Enum):
    """Who a workshop is for — drives which booking fields are required."""
    CHILD = "Child"
    SCHOOL = "School"
    TEACHER = "Teacher"
    PROFESSIONAL = "Professional"


# ─── Records ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class RecurrencePattern:
    """When a template occurs. Which fields matter depends on RecurrenceType."""
    date: dt.date | None = None
    time: dt.time | None = None
    days: frozenset[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class WorkshopTemplate:
    """Recurring workshop definition as seen by the expander."""
    id: TemplateId
    title: str
    recurrence_type: RecurrenceType
    recurrence_pattern: RecurrencePattern
    duration: int
    capacity_per_slot: int
    is_active: bool = True
    target_audience: TargetAudience = TargetAudience.CHILD
    description: str = ""
    shareable_slug: str | None = None


@dataclass(frozen=True)
class WorkshopSlot:
    """Persisted slot override — the unit of capacity truth."""
    id: SlotId
    workshop_template_id: TemplateId
    date: date
    start_time: time
    end_time: time
    capacity: int
    booked_count: int
    status: SlotStatus


@dataclass(frozen=True)
class VirtualSlot:
    """One template occurrence joined with its persisted slot, if any."""
    workshop_template_id: TemplateId
    template_title: str
    date: date
    start_time: time
    end_time: time
    capacity: int
    booked_count: int
    status: SlotStatus
    slot_id: SlotId | None = None

    @property
    def is_materialized(self) -> bool:
        return self.slot_id is not None

    @property
    def spots_left(self) -> int:
        return max(self.capacity - self.booked_count, 0)

    @property
    def is_bookable(self) -> bool:
        """Client-side fast-fail check; the ledger decides for real."""
        return (
            self.status != SlotStatus.CANCELLED
            and self.booked_count < self.capacity
        )


@dataclass(frozen=True)
class BookingDetails:
    """Validated contact fields for one reservation."""
    parent_name: str
    phone_number: str
    kid_name: str | None = None
    kid_age: int | None = None
    kid_interests: str | None = None


@dataclass(frozen=True)
class Booking:
    """Immutable reservation record."""
    id: BookingId
    workshop_slot_id: SlotId
    workshop_template_id: TemplateId
    details: BookingDetails
    status: BookingStatus
    booked_at: datetime
