"""Workshop Schemas — verifies template authoring rules and slot serialization.

Tests cover:
    - Pattern shape cross-validated against recurrence_type
    - Weekday range 0..6 and same-day end time
    - SlotOverride / TemplateUpdate require at least one change
    - VirtualSlotResponse renders HH:MM and YYYY-MM-DD
    - BookingRequest names the occurrence by (template, date), never by slot id
"""

from datetime import date, time
from uuid import uuid4

import pytest
from pydantic import ValidationError

from workshop_engine.core.domain_types import SlotId, SlotStatus, TemplateId, VirtualSlot
from workshop_engine.schemas.booking import BookingRequest
from workshop_engine.schemas.workshop import (
    SlotOverride, TemplateCreate, TemplateUpdate, VirtualSlotResponse,
)


def weekly_body(**overrides) -> dict:
    body = {
        "title": "  Robotics Club ",
        "recurrence_type": "weekly",
        "recurrence_pattern": {"days": [3, 1, 1], "time": "14:00"},
        "duration": 60,
        "capacity_per_slot": 6,
    }
    body.update(overrides)
    return body


# ─── TemplateCreate ──────────────────────────────────────────────

def test_weekly_template_is_parsed():
    template = TemplateCreate(**weekly_body())
    assert template.title == "Robotics Club"
    assert template.recurrence_pattern.days == [1, 3]
    assert template.recurrence_pattern.time == time(14, 0)
    assert template.target_audience == "Child"

    pattern = template.recurrence_pattern.to_domain()
    assert pattern.days == frozenset({1, 3})


def test_one_time_template_requires_date():
    with pytest.raises(ValidationError, match="recurrence_pattern.date"):
        TemplateCreate(
            title="Open Day", recurrence_type="one-time",
            recurrence_pattern={"time": "10:00"}, duration=60, capacity_per_slot=20,
        )


def test_one_time_template_without_time_is_accepted():
    template = TemplateCreate(
        title="Open Day", recurrence_type="one-time",
        recurrence_pattern={"date": "2024-03-09"}, duration=120, capacity_per_slot=20,
    )
    assert template.recurrence_pattern.date == date(2024, 3, 9)


def test_weekly_template_requires_days_and_time():
    with pytest.raises(ValidationError, match="days"):
        TemplateCreate(**weekly_body(recurrence_pattern={"time": "14:00"}))
    with pytest.raises(ValidationError, match="time"):
        TemplateCreate(**weekly_body(recurrence_pattern={"days": [1]}))


def test_weekday_out_of_range_is_rejected():
    with pytest.raises(ValidationError):
        TemplateCreate(**weekly_body(recurrence_pattern={"days": [7], "time": "14:00"}))


def test_workshop_ending_at_midnight_is_rejected():
    with pytest.raises(ValidationError, match="same day"):
        TemplateCreate(**weekly_body(
            recurrence_pattern={"days": [5], "time": "23:30"}, duration=30,
        ))


def test_workshop_ending_at_23_59_is_accepted():
    template = TemplateCreate(**weekly_body(
        recurrence_pattern={"days": [5], "time": "23:00"}, duration=59,
    ))
    assert template.duration == 59


@pytest.mark.parametrize("field, value", [
    ("duration", 0), ("capacity_per_slot", 0), ("title", "   "),
    ("target_audience", "Adults"),
])
def test_invalid_scalar_fields_are_rejected(field, value):
    with pytest.raises(ValidationError):
        TemplateCreate(**weekly_body(**{field: value}))


# ─── Partial updates ────────────────────────────────────────────

def test_template_update_requires_a_field():
    with pytest.raises(ValidationError):
        TemplateUpdate()
    assert TemplateUpdate(is_active=False).model_dump(exclude_none=True) == {"is_active": False}


def test_slot_override_requires_capacity_or_status():
    with pytest.raises(ValidationError):
        SlotOverride()
    with pytest.raises(ValidationError):
        SlotOverride(status="full")
    with pytest.raises(ValidationError):
        SlotOverride(capacity=-1)
    assert SlotOverride(capacity=0).capacity == 0
    assert SlotOverride(status="cancelled").status == "cancelled"


# ─── Serialization ──────────────────────────────────────────────

def test_virtual_slot_response_formats_times():
    slot_id = SlotId(uuid4())
    slot = VirtualSlot(
        workshop_template_id=TemplateId(uuid4()),
        template_title="Robotics Club",
        date=date(2024, 1, 2),
        start_time=time(9, 5),
        end_time=time(10, 35),
        capacity=6,
        booked_count=4,
        status=SlotStatus.AVAILABLE,
        slot_id=slot_id,
    )

    body = VirtualSlotResponse.from_virtual(slot).model_dump(mode="json")

    assert body["date_str"] == "2024-01-02"
    assert (body["start_time"], body["end_time"]) == ("09:05", "10:35")
    assert body["spots_left"] == 2
    assert body["status"] == "available"
    assert body["slot_id"] == str(slot_id)


def test_booking_request_keeps_age_as_sent():
    request = BookingRequest(
        workshop_template_id=uuid4(), date="2024-01-02",
        parent_name="Amina", phone_number="0600", kid_age="7",
    )
    assert request.date == date(2024, 1, 2)
    assert request.kid_age in (7, "7")


def test_booking_request_is_keyed_by_template_and_date_only():
    request = BookingRequest(
        workshop_template_id=uuid4(), date="2024-01-02",
        parent_name="Amina", phone_number="0600", slot_id=str(uuid4()),
    )
    assert "slot_id" not in BookingRequest.model_fields
    assert "slot_id" not in request.model_dump()
