"""Booking Rules — verifies audience-aware field validation and capacity transitions.

Tests cover:
    - Required fields per target audience
    - Numeric field parsing (int or digit string, non-negative)
    - apply_booking: increment, FULL at capacity, SlotFull / SlotVanished
    - apply_override: shrink guard, cancel, re-open recomputes status
"""

from datetime import date, time
from uuid import uuid4

import pytest

from workshop_engine.core.booking_rules import (
    MAX_NOTES_LENGTH, apply_booking, apply_override, parse_non_negative_int,
    status_for, validate_booking_details,
)
from workshop_engine.core.domain_types import (
    SlotId, SlotStatus, TargetAudience, TemplateId, WorkshopSlot,
)
from workshop_engine.core.errors import (
    BookingValidationError, CapacityOverrideError, ErrorContext,
    SlotFullError, SlotVanishedError,
)


def slot(capacity=2, booked=0, status=SlotStatus.AVAILABLE) -> WorkshopSlot:
    return WorkshopSlot(
        id=SlotId(uuid4()),
        workshop_template_id=TemplateId(uuid4()),
        date=date(2024, 1, 2),
        start_time=time(10, 0),
        end_time=time(11, 0),
        capacity=capacity,
        booked_count=booked,
        status=status,
    )


# ─── Field validation ───────────────────────────────────────────

def test_child_booking_requires_kid_name_and_age():
    details = validate_booking_details(
        TargetAudience.CHILD, " Amina ", "+212600000000", "Yasmine", "7", "  robots ",
    )
    assert details.parent_name == "Amina"
    assert details.kid_name == "Yasmine"
    assert details.kid_age == 7
    assert details.kid_interests == "robots"


def test_child_booking_without_age_is_rejected():
    with pytest.raises(BookingValidationError) as exc_info:
        validate_booking_details(TargetAudience.CHILD, "Amina", "0600", "Yasmine", None)
    assert exc_info.value.field == "kid_age"
    assert exc_info.value.http_status == 400


def test_school_booking_without_kid_name_is_rejected():
    with pytest.raises(BookingValidationError) as exc_info:
        validate_booking_details(TargetAudience.SCHOOL, "Ms. Idrissi", "0600", "  ", 25)
    assert exc_info.value.field == "kid_name"


def test_teacher_booking_ignores_age():
    details = validate_booking_details(
        TargetAudience.TEACHER, "Omar", "0600", "Lycee Descartes", "not-a-number",
    )
    assert details.kid_name == "Lycee Descartes"
    assert details.kid_age is None


def test_professional_booking_needs_only_contact():
    details = validate_booking_details(TargetAudience.PROFESSIONAL, "Sara", "0600")
    assert details.kid_name is None
    assert details.kid_age is None
    assert details.kid_interests is None


@pytest.mark.parametrize("audience", list(TargetAudience))
def test_blank_primary_contact_is_rejected_for_every_audience(audience):
    with pytest.raises(BookingValidationError) as exc_info:
        validate_booking_details(audience, "   ", "0600", "Kid", 8)
    assert exc_info.value.field == "parent_name"


def test_missing_phone_is_rejected():
    with pytest.raises(BookingValidationError) as exc_info:
        validate_booking_details(TargetAudience.PROFESSIONAL, "Sara", None)
    assert exc_info.value.field == "phone_number"


def test_overlong_interests_are_rejected():
    with pytest.raises(BookingValidationError) as exc_info:
        validate_booking_details(
            TargetAudience.PROFESSIONAL, "Sara", "0600",
            kid_interests="x" * (MAX_NOTES_LENGTH + 1),
        )
    assert exc_info.value.field == "kid_interests"


@pytest.mark.parametrize("value, expected", [(0, 0), (12, 12), ("9", 9), (" 10 ", 10)])
def test_parse_non_negative_int_accepts(value, expected):
    assert parse_non_negative_int(value, "kid_age") == expected


@pytest.mark.parametrize("value", [-1, "-3", "7.5", "seven", "", None, True])
def test_parse_non_negative_int_rejects(value):
    with pytest.raises(BookingValidationError):
        parse_non_negative_int(value, "kid_age")


# ─── Capacity transitions ───────────────────────────────────────

def test_apply_booking_increments_and_keeps_available():
    taken = apply_booking(slot(capacity=3, booked=1))
    assert taken.booked_count == 2
    assert taken.status == SlotStatus.AVAILABLE


def test_apply_booking_flips_to_full_on_last_seat():
    taken = apply_booking(slot(capacity=2, booked=1))
    assert taken.booked_count == 2
    assert taken.status == SlotStatus.FULL


def test_apply_booking_on_full_slot_raises_slot_full():
    ctx = ErrorContext(template_id="t-1")
    with pytest.raises(SlotFullError) as exc_info:
        apply_booking(slot(capacity=2, booked=2, status=SlotStatus.FULL), ctx)
    assert exc_info.value.context is ctx


def test_apply_booking_on_cancelled_slot_raises_vanished():
    with pytest.raises(SlotVanishedError):
        apply_booking(slot(status=SlotStatus.CANCELLED))


def test_apply_booking_does_not_mutate_input():
    original = slot(capacity=2, booked=0)
    apply_booking(original)
    assert original.booked_count == 0


def test_status_for_keeps_cancelled_sticky():
    assert status_for(5, 0, SlotStatus.CANCELLED) == SlotStatus.CANCELLED
    assert status_for(5, 5, SlotStatus.AVAILABLE) == SlotStatus.FULL
    assert status_for(6, 5, SlotStatus.FULL) == SlotStatus.AVAILABLE


def test_override_below_booked_count_is_rejected():
    with pytest.raises(CapacityOverrideError) as exc_info:
        apply_override(slot(capacity=5, booked=3), capacity=2)
    assert exc_info.value.http_status == 400


def test_override_to_booked_count_marks_full():
    updated = apply_override(slot(capacity=5, booked=3), capacity=3)
    assert (updated.capacity, updated.status) == (3, SlotStatus.FULL)


def test_raising_capacity_reopens_full_slot():
    updated = apply_override(slot(capacity=2, booked=2, status=SlotStatus.FULL), capacity=4)
    assert updated.status == SlotStatus.AVAILABLE


def test_cancel_keeps_bookings_and_capacity():
    updated = apply_override(slot(capacity=4, booked=1), status=SlotStatus.CANCELLED)
    assert (updated.capacity, updated.booked_count, updated.status) == (
        4, 1, SlotStatus.CANCELLED,
    )


def test_reopen_cancelled_slot_recomputes_status():
    full = apply_override(
        slot(capacity=2, booked=2, status=SlotStatus.CANCELLED),
        status=SlotStatus.AVAILABLE,
    )
    assert full.status == SlotStatus.FULL

    open_ = apply_override(
        slot(capacity=3, booked=2, status=SlotStatus.CANCELLED),
        status=SlotStatus.AVAILABLE,
    )
    assert open_.status == SlotStatus.AVAILABLE


def test_capacity_change_on_cancelled_slot_stays_cancelled():
    updated = apply_override(slot(capacity=3, status=SlotStatus.CANCELLED), capacity=6)
    assert updated.status == SlotStatus.CANCELLED
