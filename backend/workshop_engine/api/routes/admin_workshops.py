"""Admin Workshops — template authoring, slot overrides and the admin calendar.

Invariants:
    - Template bodies are fully validated by TemplateCreate before reaching the store
    - Slot overrides go through the ledger, never around it
    - Calendar window starts on the first of the requested month

Design Decisions:
    - shareable_slug generated server-side on create and never edited afterwards:
      published links keep working after a rename
"""

import datetime as dt
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from workshop_engine.api.dependencies import Backend, get_backend, get_clock
from workshop_engine.config import Settings, get_settings
from workshop_engine.core.domain_types import (
    RecurrenceType, SlotId, SlotStatus, TargetAudience, TemplateId,
)
from workshop_engine.core.errors import ResourceNotFoundError
from workshop_engine.core.repository_protocols import Clock
from workshop_engine.core.slugs import shareable_slug
from workshop_engine.schemas.booking import BookingResponse
from workshop_engine.schemas.workshop import (
    SlotOverride, TemplateCreate, TemplateResponse, TemplateUpdate,
    VirtualSlotResponse, WorkshopSlotResponse,
)
from workshop_engine.services.slot_listing import admin_calendar, month_start, window_end

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


# ─── Templates ───────────────────────────────────────────────────

@router.post(
    "/templates", response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_template(
    body: TemplateCreate, backend: Backend = Depends(get_backend),
):
    """Create a workshop template with a fresh public slug."""
    template = await backend.store.create(
        title=body.title,
        description=body.description,
        recurrence_type=RecurrenceType(body.recurrence_type),
        recurrence_pattern=body.recurrence_pattern.to_domain(),
        duration=body.duration,
        capacity_per_slot=body.capacity_per_slot,
        target_audience=TargetAudience(body.target_audience),
        is_active=body.is_active,
        shareable_slug=shareable_slug(body.title),
    )
    return TemplateResponse.from_domain(template)


@router.get("/templates", response_model=list[TemplateResponse])
async def list_templates(backend: Backend = Depends(get_backend)):
    templates = await backend.store.list_all()
    return [TemplateResponse.from_domain(t) for t in templates]


@router.patch("/templates/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: UUID,
    body: TemplateUpdate,
    backend: Backend = Depends(get_backend),
):
    """Edit title, description, default capacity, audience or active flag."""
    fields = body.model_dump(exclude_none=True)
    if "target_audience" in fields:
        fields["target_audience"] = TargetAudience(fields["target_audience"])
    template = await backend.store.update(TemplateId(template_id), **fields)
    if template is None:
        raise ResourceNotFoundError("WorkshopTemplate", str(template_id))
    logger.info(
        f"Workshop template updated: {sorted(fields)}",
        extra={"template_id": template_id},
    )
    return TemplateResponse.from_domain(template)


# ─── Slots ───────────────────────────────────────────────────────

@router.put(
    "/templates/{template_id}/slots/{day}",
    response_model=WorkshopSlotResponse,
)
async def override_slot(
    template_id: UUID,
    day: dt.date,
    body: SlotOverride,
    backend: Backend = Depends(get_backend),
    clock: Clock = Depends(get_clock),
):
    """Set capacity and/or cancel / re-open one occurrence."""
    slot = await backend.ledger.override_slot(
        template_id=TemplateId(template_id),
        day=day,
        today=clock.today(),
        capacity=body.capacity,
        status=SlotStatus(body.status) if body.status else None,
    )
    return WorkshopSlotResponse.from_domain(slot)


@router.get(
    "/slots/{slot_id}/bookings", response_model=list[BookingResponse],
)
async def list_slot_bookings(
    slot_id: UUID, backend: Backend = Depends(get_backend),
):
    bookings = await backend.ledger.bookings_for_slot(SlotId(slot_id))
    return [BookingResponse.from_domain(b) for b in bookings]


@router.get("/calendar")
async def get_calendar(
    month: str | None = Query(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    backend: Backend = Depends(get_backend),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    """Virtual slots of all active templates from the first of `month`."""
    today = clock.today()
    start = month_start(month, today)
    slots = await admin_calendar(
        backend.store, backend.ledger, start, settings.admin_calendar_days, today,
    )
    return {
        "window_start": start.isoformat(),
        "window_end": window_end(start, settings.admin_calendar_days).isoformat(),
        "slots": [VirtualSlotResponse.from_virtual(s) for s in slots],
    }
