"""Workshop Slots — upcoming virtual slots of one template.

Invariants:
    - Read-only; expansion runs on every request
    - Window starts at the academy's today
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from workshop_engine.api.dependencies import Backend, get_backend, get_clock
from workshop_engine.config import Settings, get_settings
from workshop_engine.core.domain_types import TemplateId
from workshop_engine.core.repository_protocols import Clock
from workshop_engine.schemas.workshop import VirtualSlotResponse
from workshop_engine.services.slot_listing import list_available_slots, window_end

router = APIRouter(prefix="/api/v1/workshops", tags=["workshops"])


@router.get("/{template_id}/slots")
async def get_template_slots(
    template_id: UUID,
    days: int | None = Query(None, ge=1, le=366),
    backend: Backend = Depends(get_backend),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    """Virtual slots of one template from today for `days` days."""
    today = clock.today()
    days_ahead = days or settings.default_lookahead_days
    slots = await list_available_slots(
        backend.store, backend.ledger, TemplateId(template_id), days_ahead, today,
    )
    return {
        "template_id": str(template_id),
        "window_start": today.isoformat(),
        "window_end": window_end(today, days_ahead).isoformat(),
        "slots": [VirtualSlotResponse.from_virtual(s) for s in slots],
    }
