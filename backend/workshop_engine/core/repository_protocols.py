"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - promote_and_book is the ONLY way to take a seat: promotion, capacity check,
      increment and booking insert are one atomic unit, or nothing is written

Design Decisions:
    - Protocol over ABC: structural subtyping, SQL and in-memory ledgers share no base
    - Async in Protocol: implementations do IO, while the pure functions that
      consume their results (expand_slots, apply_booking) are never async
    - The ledger re-reads the template inside its own transaction, so a template
      deactivated between selection and commit is seen at commit time
"""

from datetime import date, datetime
from typing import Protocol

from workshop_engine.core.domain_types import (
    Booking, BookingDetails, SlotId, SlotStatus, TargetAudience,
    TemplateId, WorkshopSlot, WorkshopTemplate, RecurrencePattern, RecurrenceType,
)


class TemplateStore(Protocol):
    """Contract for workshop template persistence — implemented by shell."""
    async def get(self, template_id: TemplateId) -> WorkshopTemplate | None: ...
    async def get_by_slug(self, slug: str) -> WorkshopTemplate | None: ...
    async def list_active(self) -> list[WorkshopTemplate]: ...
    async def list_all(self) -> list[WorkshopTemplate]: ...
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
    ) -> WorkshopTemplate: ...
    async def update(
        self, template_id: TemplateId, **fields: object,
    ) -> WorkshopTemplate | None: ...


class SlotLedger(Protocol):
    """Contract for persisted slot overrides and bookings — implemented by shell."""
    async def slots_for_templates(
        self, template_ids: list[TemplateId], since: date,
    ) -> list[WorkshopSlot]: ...
    async def get_slot(
        self, template_id: TemplateId, day: date,
    ) -> WorkshopSlot | None: ...
    async def promote_and_book(
        self,
        *,
        template_id: TemplateId,
        day: date,
        details: BookingDetails,
        today: date,
        booked_at: datetime,
    ) -> Booking: ...
    async def override_slot(
        self,
        *,
        template_id: TemplateId,
        day: date,
        today: date,
        capacity: int | None = None,
        status: SlotStatus | None = None,
    ) -> WorkshopSlot: ...
    async def bookings_for_slot(self, slot_id: SlotId) -> list[Booking]: ...


class Clock(Protocol):
    """Source of "now" for the shell. Core functions take dates as parameters."""
    def today(self) -> date: ...
    def now(self) -> datetime: ...

