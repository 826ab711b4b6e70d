"""Bookings — public booking submission.

Invariants:
    - 201 only after the ledger committed slot increment and booking together
    - Every BookingError answers with its envelope plus a refreshed `slots`
      list, so the page can re-render without a second request
    - Field validation failures (400) carry no slot list: the slot is untouched

Design Decisions:
    - The route only attaches the refreshed slots to request.state; the
      BookingError handler in api/error_handlers.py logs and renders
"""

from fastapi import APIRouter, Depends, Request, status

from workshop_engine.api.dependencies import (
    Backend, get_backend, get_booking_handler, get_clock,
)
from workshop_engine.config import Settings, get_settings
from workshop_engine.core.domain_types import TemplateId
from workshop_engine.core.errors import BookingError
from workshop_engine.core.repository_protocols import Clock
from workshop_engine.schemas.booking import BookingRequest, BookingResponse
from workshop_engine.schemas.workshop import VirtualSlotResponse
from workshop_engine.services.booking_handler import BookingTransactionHandler
from workshop_engine.services.slot_listing import expand_for

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


@router.post(
    "", response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    body: BookingRequest,
    request: Request,
    handler: BookingTransactionHandler = Depends(get_booking_handler),
    backend: Backend = Depends(get_backend),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    """Book one seat in the selected occurrence."""
    template_id = TemplateId(body.workshop_template_id)
    try:
        booking = await handler.submit_booking(
            template_id,
            body.date,
            parent_name=body.parent_name,
            phone_number=body.phone_number,
            kid_name=body.kid_name,
            kid_age=body.kid_age,
            kid_interests=body.kid_interests,
        )
    except BookingError:
        request.state.refreshed_slots = await _refreshed_slots(
            backend, template_id, clock, settings.public_lookahead_days,
        )
        raise
    return BookingResponse.from_domain(booking)


async def _refreshed_slots(
    backend: Backend, template_id: TemplateId, clock: Clock, days_ahead: int,
) -> list[dict]:
    template = await backend.store.get(template_id)
    if template is None:
        return []
    today = clock.today()
    slots = await expand_for(backend.ledger, [template], today, days_ahead, today)
    return [VirtualSlotResponse.from_virtual(s).model_dump(mode="json") for s in slots]
