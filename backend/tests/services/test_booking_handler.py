"""Booking Transaction Handler — verifies fast-fail, validation order and retry budget.

Tests cover:
    - Full or cancelled virtual slots never reach the ledger
    - WriteConflictError retried up to max_retries, then surfaced
    - SlotFullError never retried
    - submit_booking validates for the template audience before booking
    - Weekly dates past the public booking window vanish; one-time dates do not
"""

from datetime import date, datetime, time, timezone
from uuid import uuid4

import pytest

from workshop_engine.core.domain_types import (
    Booking, BookingDetails, BookingId, BookingStatus, RecurrencePattern,
    RecurrenceType, SlotId, SlotStatus,
    TargetAudience, TemplateId, VirtualSlot,
)
from workshop_engine.core.errors import (
    BookingValidationError, SlotFullError, SlotVanishedError, WriteConflictError,
)
from workshop_engine.infrastructure.clock import FixedClock
from workshop_engine.services.booking_handler import BookingTransactionHandler

TODAY = date(2024, 1, 1)
TUESDAY = date(2024, 1, 2)
DETAILS = BookingDetails(parent_name="Amina", phone_number="0600", kid_name="Y", kid_age=7)


class ScriptedLedger:
    """Ledger whose promote_and_book raises the scripted errors in order, then books."""

    def __init__(self, *outcomes: Exception):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def promote_and_book(self, *, template_id, day, details, today, booked_at):
        self.calls += 1
        if self.outcomes:
            raise self.outcomes.pop(0)
        return Booking(
            id=BookingId(uuid4()),
            workshop_slot_id=SlotId(uuid4()),
            workshop_template_id=template_id,
            details=details,
            status=BookingStatus.CONFIRMED,
            booked_at=booked_at,
        )


def virtual(capacity=2, booked=0, status=SlotStatus.AVAILABLE) -> VirtualSlot:
    return VirtualSlot(
        workshop_template_id=TemplateId(uuid4()),
        template_title="Robotics Club",
        date=TUESDAY,
        start_time=time(10, 0),
        end_time=time(11, 0),
        capacity=capacity,
        booked_count=booked,
        status=status,
    )


def handler_for(
    ledger, store=None, max_retries=3, horizon_days=None,
) -> BookingTransactionHandler:
    return BookingTransactionHandler(
        store, ledger, FixedClock(TODAY), max_retries, horizon_days,
    )


# ─── Fast-fail ───────────────────────────────────────────────────

async def test_full_virtual_slot_fails_without_ledger_call():
    ledger = ScriptedLedger()
    with pytest.raises(SlotFullError):
        await handler_for(ledger).book(virtual(capacity=2, booked=2), DETAILS)
    assert ledger.calls == 0


async def test_cancelled_virtual_slot_vanishes_without_ledger_call():
    ledger = ScriptedLedger()
    with pytest.raises(SlotVanishedError):
        await handler_for(ledger).book(virtual(status=SlotStatus.CANCELLED), DETAILS)
    assert ledger.calls == 0


# ─── Retry budget ───────────────────────────────────────────────

async def test_write_conflict_is_retried_until_success():
    ledger = ScriptedLedger(WriteConflictError(1), WriteConflictError(1))

    booking = await handler_for(ledger, max_retries=3).book(virtual(), DETAILS)

    assert ledger.calls == 3
    assert booking.details == DETAILS
    assert booking.booked_at == datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


async def test_write_conflict_surfaces_after_budget():
    ledger = ScriptedLedger(*(WriteConflictError(1) for _ in range(10)))

    with pytest.raises(WriteConflictError) as exc_info:
        await handler_for(ledger, max_retries=2).book(virtual(), DETAILS)

    assert ledger.calls == 3
    assert exc_info.value.attempts == 3


async def test_zero_retries_means_single_attempt():
    ledger = ScriptedLedger(WriteConflictError(1))
    with pytest.raises(WriteConflictError):
        await handler_for(ledger, max_retries=0).book(virtual(), DETAILS)
    assert ledger.calls == 1


async def test_slot_full_is_never_retried():
    ledger = ScriptedLedger(SlotFullError())
    with pytest.raises(SlotFullError):
        await handler_for(ledger).book(virtual(), DETAILS)
    assert ledger.calls == 1


# ─── submit_booking ─────────────────────────────────────────────

async def test_submit_booking_end_to_end(memory_store, create_weekly):
    template = await create_weekly(memory_store, capacity=2)
    handler = handler_for(memory_store, memory_store)

    booking = await handler.submit_booking(
        template.id, TUESDAY,
        parent_name="Amina", phone_number="0600", kid_name="Yasmine", kid_age="7",
    )

    assert booking.details.kid_age == 7
    current = await handler.current_slot(template.id, TUESDAY)
    assert current.booked_count == 1
    assert current.slot_id == booking.workshop_slot_id


async def test_submit_booking_validates_before_touching_the_ledger(
    memory_store, create_weekly,
):
    template = await create_weekly(memory_store, audience=TargetAudience.CHILD)
    handler = handler_for(memory_store, memory_store)

    with pytest.raises(BookingValidationError) as exc_info:
        await handler.submit_booking(
            template.id, TUESDAY, parent_name="Amina", phone_number="0600",
            kid_name="Yasmine",
        )

    assert exc_info.value.field == "kid_age"
    assert await memory_store.get_slot(template.id, TUESDAY) is None


async def test_submit_booking_for_professionals_needs_no_kid(memory_store, create_weekly):
    template = await create_weekly(memory_store, audience=TargetAudience.PROFESSIONAL)
    handler = handler_for(memory_store, memory_store)

    booking = await handler.submit_booking(
        template.id, TUESDAY, parent_name="Sara", phone_number="0600",
    )

    assert booking.details.kid_name is None


async def test_submit_booking_on_full_slot_fails_fast(memory_store, create_weekly):
    template = await create_weekly(memory_store, capacity=1)
    handler = handler_for(memory_store, memory_store)
    await handler.submit_booking(
        template.id, TUESDAY, parent_name="A", phone_number="1", kid_name="K", kid_age=5,
    )

    with pytest.raises(SlotFullError):
        await handler.submit_booking(
            template.id, TUESDAY, parent_name="B", phone_number="2", kid_name="L", kid_age=6,
        )


async def test_submit_booking_for_unknown_or_paused_template_vanishes(
    memory_store, create_weekly,
):
    handler = handler_for(memory_store, memory_store)
    with pytest.raises(SlotVanishedError):
        await handler.submit_booking(
            TemplateId(uuid4()), TUESDAY, parent_name="A", phone_number="1",
        )

    template = await create_weekly(memory_store)
    await memory_store.update(template.id, is_active=False)
    with pytest.raises(SlotVanishedError):
        await handler.submit_booking(
            template.id, TUESDAY, parent_name="A", phone_number="1",
            kid_name="K", kid_age=5,
        )


async def test_submit_booking_on_day_without_occurrence_vanishes(
    memory_store, create_weekly,
):
    template = await create_weekly(memory_store, days=(2,))
    handler = handler_for(memory_store, memory_store)

    with pytest.raises(SlotVanishedError):
        await handler.submit_booking(
            template.id, date(2024, 1, 3), parent_name="A", phone_number="1",
            kid_name="K", kid_age=5,
        )


# ─── Booking window ─────────────────────────────────────────────

async def test_weekly_date_past_the_booking_window_vanishes(memory_store, create_weekly):
    template = await create_weekly(memory_store, days=(2,))
    handler = handler_for(memory_store, memory_store, horizon_days=14)
    kid = {"parent_name": "A", "phone_number": "1", "kid_name": "K", "kid_age": 5}

    inside = await handler.submit_booking(template.id, date(2024, 1, 9), **kid)
    with pytest.raises(SlotVanishedError) as exc_info:
        await handler.submit_booking(template.id, date(2024, 1, 16), **kid)

    assert inside.workshop_template_id == template.id
    assert exc_info.value.http_status == 410
    assert await memory_store.get_slot(template.id, date(2024, 1, 16)) is None


async def test_one_time_date_is_bookable_beyond_the_window(memory_store):
    template = await memory_store.create(
        title="Summer Camp Day",
        description="",
        recurrence_type=RecurrenceType.ONE_TIME,
        recurrence_pattern=RecurrencePattern(date=date(2024, 6, 1), time=time(9, 0)),
        duration=120,
        capacity_per_slot=10,
        target_audience=TargetAudience.PROFESSIONAL,
        is_active=True,
        shareable_slug="summer-camp-day-x1y2z",
    )
    handler = handler_for(memory_store, memory_store, horizon_days=14)

    booking = await handler.submit_booking(
        template.id, date(2024, 6, 1), parent_name="Sara", phone_number="0600",
    )

    assert booking.workshop_template_id == template.id
