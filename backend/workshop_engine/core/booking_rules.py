"""Booking Rules — audience-aware contact-field validation and slot capacity transitions.

Invariants:
    - validate_booking_details is PURE: returns BookingDetails or raises BookingValidationError
    - Validation always happens before any ledger transaction begins
    - apply_booking never returns a slot with booked_count > capacity
    - Status becomes FULL exactly when booked_count reaches capacity

Design Decisions:
    - Numeric field accepts int or digit string: form posts arrive as text
    - One rule table per audience over if-chains per field: mirrors the form
      the public booking page renders for that audience
"""

from dataclasses import dataclass, replace

from workshop_engine.core.domain_types import (
    BookingDetails, SlotStatus, TargetAudience, WorkshopSlot,
)
from workshop_engine.core.errors import (
    BookingValidationError, CapacityOverrideError, ErrorContext,
    SlotFullError, SlotVanishedError,
)

MAX_NOTES_LENGTH: int = 2000
MAX_NAME_LENGTH: int = 200


@dataclass(frozen=True)
class AudienceFields:
    """Which optional booking fields an audience must fill in."""
    secondary_required: bool
    numeric_required: bool


AUDIENCE_FIELDS: dict[TargetAudience, AudienceFields] = {
    TargetAudience.CHILD: AudienceFields(secondary_required=True, numeric_required=True),
    TargetAudience.SCHOOL: AudienceFields(secondary_required=True, numeric_required=True),
    TargetAudience.TEACHER: AudienceFields(secondary_required=True, numeric_required=False),
    TargetAudience.PROFESSIONAL: AudienceFields(secondary_required=False, numeric_required=False),
}


def _required_text(value: str | None, field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise BookingValidationError(f"{field} is required", field=field)
    if len(text) > MAX_NAME_LENGTH:
        raise BookingValidationError(
            f"{field} exceeds {MAX_NAME_LENGTH} characters", field=field,
        )
    return text


def _optional_text(value: str | None, field: str, limit: int) -> str | None:
    text = (value or "").strip()
    if len(text) > limit:
        raise BookingValidationError(f"{field} exceeds {limit} characters", field=field)
    return text or None


def parse_non_negative_int(value: int | str | None, field: str) -> int:
    """Parse a form number. Rejects bools, blanks, negatives and non-digits."""
    if isinstance(value, bool) or value is None:
        raise BookingValidationError(f"{field} must be a non-negative integer", field=field)
    if isinstance(value, int):
        number = value
    else:
        text = str(value).strip()
        if not text.isdigit():
            raise BookingValidationError(
                f"{field} must be a non-negative integer", field=field,
            )
        number = int(text)
    if number < 0:
        raise BookingValidationError(f"{field} must be a non-negative integer", field=field)
    return number


def validate_booking_details(
    audience: TargetAudience,
    parent_name: str | None,
    phone_number: str | None,
    kid_name: str | None = None,
    kid_age: int | str | None = None,
    kid_interests: str | None = None,
) -> BookingDetails:
    """Validate raw contact fields for the template's audience."""
    rules = AUDIENCE_FIELDS[audience]
    primary = _required_text(parent_name, "parent_name")
    phone = _required_text(phone_number, "phone_number")

    if rules.secondary_required:
        secondary = _required_text(kid_name, "kid_name")
    else:
        secondary = _optional_text(kid_name, "kid_name", MAX_NAME_LENGTH)

    if rules.numeric_required:
        age = parse_non_negative_int(kid_age, "kid_age")
    else:
        age = None

    return BookingDetails(
        parent_name=primary,
        phone_number=phone,
        kid_name=secondary,
        kid_age=age,
        kid_interests=_optional_text(kid_interests, "kid_interests", MAX_NOTES_LENGTH),
    )


def status_for(capacity: int, booked_count: int, current: SlotStatus) -> SlotStatus:
    """Derived status after a capacity or count change. Cancelled is sticky."""
    if current == SlotStatus.CANCELLED:
        return current
    return SlotStatus.FULL if booked_count >= capacity else SlotStatus.AVAILABLE


def apply_booking(slot: WorkshopSlot, context: ErrorContext | None = None) -> WorkshopSlot:
    """One seat taken. Raises instead of ever exceeding capacity."""
    if slot.status == SlotStatus.CANCELLED:
        raise SlotVanishedError("slot cancelled", context)
    if slot.booked_count >= slot.capacity:
        raise SlotFullError(context)
    booked = slot.booked_count + 1
    return replace(
        slot,
        booked_count=booked,
        status=status_for(slot.capacity, booked, slot.status),
    )


def apply_override(
    slot: WorkshopSlot,
    capacity: int | None = None,
    status: SlotStatus | None = None,
    context: ErrorContext | None = None,
) -> WorkshopSlot:
    """Admin override of capacity and/or status, keeping 0 <= booked_count <= capacity."""
    new_capacity = slot.capacity if capacity is None else capacity
    if new_capacity < slot.booked_count:
        raise CapacityOverrideError(new_capacity, slot.booked_count, context)

    if status == SlotStatus.CANCELLED:
        new_status = SlotStatus.CANCELLED
    else:
        # Re-opening or a plain capacity change recomputes available/full.
        base = SlotStatus.AVAILABLE if status is not None else slot.status
        new_status = status_for(new_capacity, slot.booked_count, base)
    return replace(slot, capacity=new_capacity, status=new_status)
