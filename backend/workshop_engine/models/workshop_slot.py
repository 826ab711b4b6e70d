"""WorkshopSlot ORM — persisted slot overrides, the unit of capacity truth.

Invariants:
    - Unique on (workshop_template_id, date): one persisted slot per occurrence
    - 0 <= booked_count <= capacity, enforced by CHECK constraints as well as
      by the conditional UPDATE in the slot ledger
    - status in ('available', 'full', 'cancelled'); rows are never deleted

Design Decisions:
    - The unique key is what makes promotion idempotent: concurrent first
      bookings race on INSERT … ON CONFLICT DO NOTHING and all adopt one row
"""

import datetime as dt
import uuid

from sqlalchemy import (
    String, Integer, Date, Time, ForeignKey, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from workshop_engine.core.domain_types import SlotId, SlotStatus, TemplateId, WorkshopSlot
from workshop_engine.db.base import Base


class WorkshopSlotModel(Base):
    """Concrete occurrence of a template that diverged from its defaults."""
    __tablename__ = "workshop_slots"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    workshop_template_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("workshop_templates.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    start_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    end_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    booked_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SlotStatus.AVAILABLE.value,
    )

    template: Mapped["WorkshopTemplateModel"] = relationship(
        "WorkshopTemplateModel", back_populates="slots", lazy="raise",
    )

    __table_args__ = (
        UniqueConstraint("workshop_template_id", "date", name="uq_slot_template_date"),
        CheckConstraint("capacity >= 0", name="ck_slot_capacity_non_negative"),
        CheckConstraint(
            "booked_count >= 0 AND booked_count <= capacity",
            name="ck_slot_booked_within_capacity",
        ),
        CheckConstraint(
            "status in ('available', 'full', 'cancelled')", name="ck_slot_status_valid",
        ),
    )

    def to_domain(self) -> WorkshopSlot:
        return WorkshopSlot(
            id=SlotId(self.id),
            workshop_template_id=TemplateId(self.workshop_template_id),
            date=self.date,
            start_time=self.start_time,
            end_time=self.end_time,
            capacity=self.capacity,
            booked_count=self.booked_count,
            status=SlotStatus(self.status),
        )
