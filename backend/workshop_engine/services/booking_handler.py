"""Booking Transaction Handler — validates, fast-fails, then books through the ledger.

Invariants:
    - Contact fields are validated before any ledger call
    - A slot the caller already sees as cancelled or full never reaches the ledger
    - WriteConflictError is retried up to max_retries times; SlotFullError and
      SlotVanishedError are surfaced on the first occurrence
    - Nothing is written unless promote_and_book returns
    - With horizon_days set, a weekly date is bookable only inside the window
      the public listing shows (today .. today + horizon_days - 1)

Design Decisions:
    - Retry lives here rather than in the ledger: one ledger call is one
      transaction, and a fresh transaction is what a retry needs
    - "today" and "now" come from the injected Clock, never from the core
"""

import logging
from datetime import date, timedelta

from workshop_engine.core.booking_rules import validate_booking_details
from workshop_engine.core.domain_types import (
    Booking, BookingDetails, RecurrenceType, SlotStatus, TemplateId,
    VirtualSlot, WorkshopTemplate,
)
from workshop_engine.core.errors import (
    ErrorContext, SlotFullError, SlotVanishedError, WriteConflictError,
)
from workshop_engine.core.recurrence import merge_occurrence, occurs_on
from workshop_engine.core.repository_protocols import Clock, SlotLedger, TemplateStore

logger = logging.getLogger(__name__)


class BookingTransactionHandler:
    """Books one seat in a virtual slot with a bounded conflict-retry budget."""

    def __init__(
        self,
        store: TemplateStore,
        ledger: SlotLedger,
        clock: Clock,
        max_retries: int = 3,
        horizon_days: int | None = None,
    ):
        self.store = store
        self.ledger = ledger
        self.clock = clock
        self.max_retries = max_retries
        self.horizon_days = horizon_days

    async def book(self, slot: VirtualSlot, details: BookingDetails) -> Booking:
        """Take one seat in `slot` for already-validated `details`."""
        ctx = ErrorContext(
            template_id=str(slot.workshop_template_id),
            slot_id=str(slot.slot_id) if slot.slot_id else None,
            slot_date=slot.date,
        )
        if not slot.is_bookable:
            if slot.status == SlotStatus.CANCELLED:
                raise SlotVanishedError("slot cancelled", ctx)
            raise SlotFullError(ctx)

        attempts = 0
        while True:
            attempts += 1
            try:
                return await self.ledger.promote_and_book(
                    template_id=slot.workshop_template_id,
                    day=slot.date,
                    details=details,
                    today=self.clock.today(),
                    booked_at=self.clock.now(),
                )
            except WriteConflictError:
                logger.warning(
                    "Slot promotion conflicted",
                    extra={
                        "template_id": slot.workshop_template_id,
                        "slot_date": slot.date, "attempt": attempts,
                    },
                )
                if attempts > self.max_retries:
                    raise WriteConflictError(attempts, ctx)

    async def current_slot(self, template_id: TemplateId, day: date) -> VirtualSlot:
        """Fresh view of one occurrence. Raises SlotVanishedError if it is gone."""
        ctx = ErrorContext(template_id=str(template_id), slot_date=day)
        template = await self.store.get(template_id)
        if template is None or not occurs_on(template, day, self.clock.today()):
            raise SlotVanishedError("template inactive or occurrence removed", ctx)
        if self._beyond_horizon(template, day):
            raise SlotVanishedError("date outside the booking window", ctx)
        existing = await self.ledger.get_slot(template_id, day)
        return merge_occurrence(template, day, existing)

    def _beyond_horizon(self, template: WorkshopTemplate, day: date) -> bool:
        # One-time occurrences are listed whatever their date, weekly ones only
        # inside [today, today + horizon_days).
        if self.horizon_days is None or template.recurrence_type != RecurrenceType.WEEKLY:
            return False
        return day >= self.clock.today() + timedelta(days=self.horizon_days)

    async def submit_booking(
        self,
        template_id: TemplateId,
        day: date,
        *,
        parent_name: str | None,
        phone_number: str | None,
        kid_name: str | None = None,
        kid_age: int | str | None = None,
        kid_interests: str | None = None,
    ) -> Booking:
        """Public booking entry point: validate for the audience, then book."""
        template = await self.store.get(template_id)
        if template is None or not template.is_active:
            raise SlotVanishedError(
                "template inactive or missing",
                ErrorContext(template_id=str(template_id), slot_date=day),
            )
        details = validate_booking_details(
            template.target_audience,
            parent_name, phone_number, kid_name, kid_age, kid_interests,
        )
        slot = await self.current_slot(template_id, day)
        return await self.book(slot, details)
