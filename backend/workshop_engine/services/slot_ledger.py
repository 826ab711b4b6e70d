"""SQL Slot Ledger — atomic promote-and-book against workshop_slots.

Invariants:
    - promote_and_book runs in ONE transaction: template re-read, promote-if-absent,
      conditional seat increment, booking insert, commit — or rollback of all of it
    - Promotion is idempotent: INSERT … ON CONFLICT DO NOTHING on
      (workshop_template_id, date), then every caller adopts the surviving row
    - The seat increment is a single conditional UPDATE
      (booked_count < capacity AND status != 'cancelled'); rowcount 0 means no seat
    - Contention is per slot row; no lock spans more than one (template, date) key

Design Decisions:
    - Conditional write over SELECT … then UPDATE: the read and the write cannot
      be interleaved by another booking, on PostgreSQL or SQLite
    - Dialect-specific insert() for ON CONFLICT: both supported dialects
      implement on_conflict_do_nothing with the same signature
    - WriteConflictError raised for a single failed promotion; the booking
      handler owns the retry budget
"""

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime

from sqlalchemy import case, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from workshop_engine.core.booking_rules import apply_override
from workshop_engine.core.domain_types import (
    Booking, BookingDetails, BookingStatus, SlotId, SlotStatus,
    TemplateId, WorkshopSlot, WorkshopTemplate,
)
from workshop_engine.core.errors import (
    BookingError, DatabaseError, ErrorContext, ResourceNotFoundError,
    SlotFullError, SlotVanishedError, WorkshopError, WriteConflictError,
)
from workshop_engine.core.recurrence import compute_end_time, occurs_on, start_time_of
from workshop_engine.models.booking import BookingModel
from workshop_engine.models.workshop_slot import WorkshopSlotModel
from workshop_engine.models.workshop_template import WorkshopTemplateModel

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class SqlSlotLedger:
    """SlotLedger backed by workshop_slots + bookings on one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Reads ───────────────────────────────────────────────────

    async def slots_for_templates(
        self, template_ids: list[TemplateId], since: date,
    ) -> list[WorkshopSlot]:
        if not template_ids:
            return []
        result = await self.db.execute(
            select(WorkshopSlotModel)
            .where(WorkshopSlotModel.workshop_template_id.in_(template_ids))
            .where(WorkshopSlotModel.date >= since)
            .execution_options(populate_existing=True),
        )
        return [row.to_domain() for row in result.scalars().all()]

    async def get_slot(
        self, template_id: TemplateId, day: date,
    ) -> WorkshopSlot | None:
        row = await self._slot_row(template_id, day)
        return row.to_domain() if row else None

    async def bookings_for_slot(self, slot_id: SlotId) -> list[Booking]:
        result = await self.db.execute(
            select(BookingModel)
            .where(BookingModel.workshop_slot_id == slot_id)
            .order_by(BookingModel.booked_at),
        )
        return [row.to_domain() for row in result.scalars().all()]

    # ─── Booking transaction ─────────────────────────────────────

    async def promote_and_book(
        self,
        *,
        template_id: TemplateId,
        day: date,
        details: BookingDetails,
        today: date,
        booked_at: datetime,
    ) -> Booking:
        """Take one seat in the (template, day) slot and record the booking."""
        ctx = ErrorContext(template_id=str(template_id), slot_date=day)
        try:
            template = await self._load_template(template_id)
            if template is None or not occurs_on(template, day, today):
                raise SlotVanishedError("template inactive or occurrence removed", ctx)

            slot_id = await self._promote_if_absent(template, day, ctx)
            ctx.slot_id = str(slot_id)
            await self._take_seat(slot_id, ctx)

            booking = BookingModel(
                id=uuid.uuid4(),
                workshop_slot_id=slot_id,
                workshop_template_id=template.id,
                parent_name=details.parent_name,
                phone_number=details.phone_number,
                kid_name=details.kid_name,
                kid_age=details.kid_age,
                kid_interests=details.kid_interests,
                status=BookingStatus.CONFIRMED.value,
                booked_at=booked_at,
            )
            self.db.add(booking)
            await self.db.commit()
        except BookingError:
            await self.db.rollback()
            raise

        logger.info(
            "Booking committed",
            extra={
                "template_id": template_id, "slot_id": slot_id,
                "slot_date": day, "booking_id": booking.id,
            },
        )
        return booking.to_domain()

    # ─── Admin override ──────────────────────────────────────────

    async def override_slot(
        self,
        *,
        template_id: TemplateId,
        day: date,
        today: date,
        capacity: int | None = None,
        status: SlotStatus | None = None,
    ) -> WorkshopSlot:
        """Create or update the persisted slot for one occurrence."""
        ctx = ErrorContext(template_id=str(template_id), slot_date=day)
        try:
            template = await self._load_template(template_id)
            if template is None:
                raise ResourceNotFoundError("WorkshopTemplate", str(template_id), ctx)
            # Overrides may be prepared while a template is paused.
            if not occurs_on(replace(template, is_active=True), day, today):
                raise ResourceNotFoundError(
                    "Occurrence", f"{template_id}@{day.isoformat()}", ctx,
                )

            slot_id = await self._promote_if_absent(template, day, ctx)
            ctx.slot_id = str(slot_id)
            result = await self.db.execute(
                select(WorkshopSlotModel)
                .where(WorkshopSlotModel.id == slot_id)
                .with_for_update()
                .execution_options(populate_existing=True),
            )
            current = result.scalar_one().to_domain()
            updated = apply_override(
                current, capacity=capacity, status=status, context=ctx,
            )

            # Compare-and-swap on booked_count: a booking landing in between wins.
            swap = await self.db.execute(
                update(WorkshopSlotModel)
                .where(WorkshopSlotModel.id == slot_id)
                .where(WorkshopSlotModel.booked_count == current.booked_count)
                .values(capacity=updated.capacity, status=updated.status.value)
                .execution_options(synchronize_session=False),
            )
            if swap.rowcount != 1:
                raise WriteConflictError(1, ctx)
            await self.db.commit()
        except WorkshopError:
            await self.db.rollback()
            raise

        logger.info(
            f"Slot override applied: capacity={updated.capacity} status={updated.status.value}",
            extra={"template_id": template_id, "slot_id": slot_id, "slot_date": day},
        )
        return updated

    # ─── Internals ───────────────────────────────────────────────

    async def _load_template(self, template_id: TemplateId) -> WorkshopTemplate | None:
        result = await self.db.execute(
            select(WorkshopTemplateModel)
            .where(WorkshopTemplateModel.id == template_id)
            .execution_options(populate_existing=True),
        )
        row = result.scalar_one_or_none()
        return row.to_domain() if row else None

    async def _slot_row(
        self, template_id: TemplateId, day: date,
    ) -> WorkshopSlotModel | None:
        result = await self.db.execute(
            select(WorkshopSlotModel)
            .where(WorkshopSlotModel.workshop_template_id == template_id)
            .where(WorkshopSlotModel.date == day)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        insert_fn = _INSERTS.get(dialect)
        if insert_fn is None:
            raise DatabaseError(f"unsupported dialect '{dialect}'", "promote")
        return insert_fn(WorkshopSlotModel)

    async def _promote_if_absent(
        self, template: WorkshopTemplate, day: date, ctx: ErrorContext,
    ) -> SlotId:
        """Materialize the (template, day) slot with template defaults unless it exists."""
        start = start_time_of(template)
        stmt = (
            self._insert()
            .values(
                id=uuid.uuid4(),
                workshop_template_id=template.id,
                date=day,
                start_time=start,
                end_time=compute_end_time(start, template.duration),
                capacity=template.capacity_per_slot,
                booked_count=0,
                status=SlotStatus.AVAILABLE.value,
            )
            .on_conflict_do_nothing(index_elements=["workshop_template_id", "date"])
        )
        await self.db.execute(stmt)

        result = await self.db.execute(
            select(WorkshopSlotModel.id)
            .where(WorkshopSlotModel.workshop_template_id == template.id)
            .where(WorkshopSlotModel.date == day),
        )
        slot_id = result.scalar_one_or_none()
        if slot_id is None:
            # The competing insert is not visible to this transaction yet.
            raise WriteConflictError(1, ctx)
        return SlotId(slot_id)

    async def _take_seat(self, slot_id: SlotId, ctx: ErrorContext) -> None:
        """Conditional increment; flips status to full when the last seat goes."""
        result = await self.db.execute(
            update(WorkshopSlotModel)
            .where(WorkshopSlotModel.id == slot_id)
            .where(WorkshopSlotModel.booked_count < WorkshopSlotModel.capacity)
            .where(WorkshopSlotModel.status != SlotStatus.CANCELLED.value)
            .values(
                booked_count=WorkshopSlotModel.booked_count + 1,
                status=case(
                    (
                        WorkshopSlotModel.booked_count + 1 >= WorkshopSlotModel.capacity,
                        SlotStatus.FULL.value,
                    ),
                    else_=WorkshopSlotModel.status,
                ),
            )
            .execution_options(synchronize_session=False),
        )
        if result.rowcount == 1:
            return

        status = (await self.db.execute(
            select(WorkshopSlotModel.status).where(WorkshopSlotModel.id == slot_id),
        )).scalar_one()
        if status == SlotStatus.CANCELLED.value:
            raise SlotVanishedError("slot cancelled", ctx)
        raise SlotFullError(ctx)
