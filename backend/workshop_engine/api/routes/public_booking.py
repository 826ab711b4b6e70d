"""Public Booking Page — template card and slot list behind a shareable slug.

Invariants:
    - Inactive or unknown slugs answer 404; nothing about them is exposed
    - Slot list uses the public lookahead unless `days` is given
"""

from fastapi import APIRouter, Depends, Query

from workshop_engine.api.dependencies import Backend, get_backend, get_clock
from workshop_engine.config import Settings, get_settings
from workshop_engine.core.repository_protocols import Clock
from workshop_engine.schemas.workshop import PublicTemplateCard, VirtualSlotResponse
from workshop_engine.services.slot_listing import (
    get_public_template, list_slots_by_slug, window_end,
)

router = APIRouter(prefix="/api/v1/public/workshops", tags=["public"])


@router.get("/{slug}", response_model=PublicTemplateCard)
async def get_workshop_card(
    slug: str, backend: Backend = Depends(get_backend),
):
    template = await get_public_template(backend.store, slug)
    return PublicTemplateCard.from_domain(template)


@router.get("/{slug}/slots")
async def get_workshop_slots(
    slug: str,
    days: int | None = Query(None, ge=1, le=366),
    backend: Backend = Depends(get_backend),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    """Bookable occurrences for the public page."""
    today = clock.today()
    days_ahead = days or settings.public_lookahead_days
    slots = await list_slots_by_slug(
        backend.store, backend.ledger, slug, days_ahead, today,
    )
    return {
        "window_start": today.isoformat(),
        "window_end": window_end(today, days_ahead).isoformat(),
        "slots": [VirtualSlotResponse.from_virtual(s) for s in slots],
    }
