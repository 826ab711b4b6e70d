"""In-Memory Workshop Store — TemplateStore + SlotLedger for dev and tests.

Invariants:
    - promote_and_book holds the lock of exactly one (template_id, date) key;
      bookings on different slots never wait on each other
    - Slot and booking writes happen together under that lock, after
      apply_booking() succeeded — a failed attempt leaves no trace
    - Records stored are frozen dataclasses; readers get snapshots
    - A key lock lives only while some task holds or awaits it; _locks never
      outgrows the number of in-flight bookings

Design Decisions:
    - One asyncio.Lock per key over a global lock: mirrors the row-level
      contention of the SQL ledger
    - State lost on restart; selected with LEDGER_BACKEND=memory, single
      process only
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import AsyncIterator

from workshop_engine.core.booking_rules import apply_booking, apply_override
from workshop_engine.core.domain_types import (
    Booking, BookingDetails, BookingId, BookingStatus, RecurrencePattern,
    RecurrenceType, SlotId, SlotStatus, TargetAudience, TemplateId,
    WorkshopSlot, WorkshopTemplate,
)
from workshop_engine.core.errors import (
    ErrorContext, ResourceNotFoundError, SlotVanishedError,
)
from workshop_engine.core.recurrence import compute_end_time, occurs_on, start_time_of

logger = logging.getLogger(__name__)

SlotKey = tuple[TemplateId, date]


class InMemoryWorkshopStore:
    """Process-local templates, slots and bookings."""

    def __init__(self):
        self._templates: dict[TemplateId, WorkshopTemplate] = {}
        self._slots: dict[SlotKey, WorkshopSlot] = {}
        self._bookings: list[Booking] = []
        self._locks: dict[SlotKey, asyncio.Lock] = {}
        self._lock_users: dict[SlotKey, int] = {}

    # ─── TemplateStore ───────────────────────────────────────────

    async def get(self, template_id: TemplateId) -> WorkshopTemplate | None:
        return self._templates.get(template_id)

    async def get_by_slug(self, slug: str) -> WorkshopTemplate | None:
        return next(
            (t for t in self._templates.values() if t.shareable_slug == slug), None,
        )

    async def list_active(self) -> list[WorkshopTemplate]:
        return [t for t in self._templates.values() if t.is_active]

    async def list_all(self) -> list[WorkshopTemplate]:
        return list(self._templates.values())

    async def create(
        self,
        *,
        title: str,
        description: str,
        recurrence_type: RecurrenceType,
        recurrence_pattern: RecurrencePattern,
        duration: int,
        capacity_per_slot: int,
        target_audience: TargetAudience,
        is_active: bool,
        shareable_slug: str,
    ) -> WorkshopTemplate:
        template = WorkshopTemplate(
            id=TemplateId(uuid.uuid4()),
            title=title,
            description=description,
            recurrence_type=recurrence_type,
            recurrence_pattern=recurrence_pattern,
            duration=duration,
            capacity_per_slot=capacity_per_slot,
            target_audience=target_audience,
            is_active=is_active,
            shareable_slug=shareable_slug,
        )
        self._templates[template.id] = template
        return template

    def add_template(self, template: WorkshopTemplate) -> WorkshopTemplate:
        """Seed an already-built template (tests, demo data)."""
        self._templates[template.id] = template
        return template

    async def update(
        self, template_id: TemplateId, **fields: object,
    ) -> WorkshopTemplate | None:
        template = self._templates.get(template_id)
        if template is None:
            return None
        updated = replace(template, **fields)
        self._templates[template_id] = updated
        return updated

    # ─── SlotLedger ──────────────────────────────────────────────

    async def slots_for_templates(
        self, template_ids: list[TemplateId], since: date,
    ) -> list[WorkshopSlot]:
        wanted = set(template_ids)
        return [
            slot for (tid, day), slot in self._slots.items()
            if tid in wanted and day >= since
        ]

    async def get_slot(
        self, template_id: TemplateId, day: date,
    ) -> WorkshopSlot | None:
        return self._slots.get((template_id, day))

    async def bookings_for_slot(self, slot_id: SlotId) -> list[Booking]:
        return [b for b in self._bookings if b.workshop_slot_id == slot_id]

    async def promote_and_book(
        self,
        *,
        template_id: TemplateId,
        day: date,
        details: BookingDetails,
        today: date,
        booked_at: datetime | None = None,
    ) -> Booking:
        key = (template_id, day)
        ctx = ErrorContext(template_id=str(template_id), slot_date=day)
        async with self._slot_lock(key):
            template = self._templates.get(template_id)
            if template is None or not occurs_on(template, day, today):
                raise SlotVanishedError("template inactive or occurrence removed", ctx)

            slot = self._slots.get(key) or self._promoted(template, day)
            ctx.slot_id = str(slot.id)
            # Yield like a real round-trip would; the key lock keeps this atomic.
            await asyncio.sleep(0)
            taken = apply_booking(slot, ctx)

            booking = Booking(
                id=BookingId(uuid.uuid4()),
                workshop_slot_id=taken.id,
                workshop_template_id=template_id,
                details=details,
                status=BookingStatus.CONFIRMED,
                booked_at=booked_at or datetime.now(timezone.utc),
            )
            self._slots[key] = taken
            self._bookings.append(booking)

        logger.info(
            "Booking committed",
            extra={"template_id": template_id, "slot_id": taken.id, "booking_id": booking.id},
        )
        return booking

    async def override_slot(
        self,
        *,
        template_id: TemplateId,
        day: date,
        today: date,
        capacity: int | None = None,
        status: SlotStatus | None = None,
    ) -> WorkshopSlot:
        key = (template_id, day)
        ctx = ErrorContext(template_id=str(template_id), slot_date=day)
        async with self._slot_lock(key):
            template = self._templates.get(template_id)
            if template is None:
                raise ResourceNotFoundError("WorkshopTemplate", str(template_id), ctx)
            if not occurs_on(replace(template, is_active=True), day, today):
                raise ResourceNotFoundError(
                    "Occurrence", f"{template_id}@{day.isoformat()}", ctx,
                )
            slot = self._slots.get(key) or self._promoted(template, day)
            updated = apply_override(slot, capacity=capacity, status=status, context=ctx)
            self._slots[key] = updated
        return updated

    # ─── Internals ───────────────────────────────────────────────

    @asynccontextmanager
    async def _slot_lock(self, key: SlotKey) -> AsyncIterator[None]:
        """Hold the lock of one (template, date) key; drop it once nobody waits."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] == 0:
                del self._lock_users[key]
                del self._locks[key]

    @staticmethod
    def _promoted(template: WorkshopTemplate, day: date) -> WorkshopSlot:
        start = start_time_of(template)
        return WorkshopSlot(
            id=SlotId(uuid.uuid4()),
            workshop_template_id=template.id,
            date=day,
            start_time=start,
            end_time=compute_end_time(start, template.duration),
            capacity=template.capacity_per_slot,
            booked_count=0,
            status=SlotStatus.AVAILABLE,
        )
