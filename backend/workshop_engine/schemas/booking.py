"""Booking Schemas — public booking request and the confirmed booking response.

Invariants:
    - BookingRequest only bounds lengths; required-ness per audience is decided
      by core.booking_rules once the template is known
    - kid_age accepts int or digit string (form posts arrive as text)
    - The occurrence is named by (workshop_template_id, date); the ledger
      resolves the slot row, so a client-held slot id is never accepted
"""

import datetime as dt
from uuid import UUID

from pydantic import BaseModel, Field

from workshop_engine.core.booking_rules import MAX_NAME_LENGTH, MAX_NOTES_LENGTH
from workshop_engine.core.domain_types import Booking


class BookingRequest(BaseModel):
    """Selected occurrence plus contact fields."""
    workshop_template_id: UUID
    date: dt.date
    parent_name: str = Field(max_length=MAX_NAME_LENGTH)
    phone_number: str = Field(max_length=50)
    kid_name: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    kid_age: int | str | None = None
    kid_interests: str | None = Field(None, max_length=MAX_NOTES_LENGTH)


class BookingResponse(BaseModel):
    """Confirmed booking."""
    id: UUID
    workshop_slot_id: UUID
    workshop_template_id: UUID
    parent_name: str
    phone_number: str
    kid_name: str | None
    kid_age: int | None
    kid_interests: str | None
    status: str
    booked_at: dt.datetime

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingResponse":
        details = booking.details
        return cls(
            id=booking.id,
            workshop_slot_id=booking.workshop_slot_id,
            workshop_template_id=booking.workshop_template_id,
            parent_name=details.parent_name,
            phone_number=details.phone_number,
            kid_name=details.kid_name,
            kid_age=details.kid_age,
            kid_interests=details.kid_interests,
            status=booking.status.value,
            booked_at=booking.booked_at,
        )
