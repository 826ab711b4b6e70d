"""Booking ORM — immutable reservation records.

Invariants:
    - Always belongs to a WorkshopSlot (workshop_slot_id FK)
    - Inserted only inside the slot ledger's promote_and_book transaction
    - workshop_template_id denormalized for per-template queries
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from workshop_engine.core.domain_types import (
    Booking, BookingDetails, BookingId, BookingStatus, SlotId, TemplateId,
)
from workshop_engine.db.base import Base


class BookingModel(Base):
    """One confirmed seat in a workshop slot."""
    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    workshop_slot_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("workshop_slots.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    workshop_template_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("workshop_templates.id", ondelete="CASCADE"),
        nullable=False,
    )
    parent_name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(200), nullable=False)
    kid_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    kid_age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    kid_interests: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookingStatus.CONFIRMED.value,
    )
    booked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_domain(self) -> Booking:
        return Booking(
            id=BookingId(self.id),
            workshop_slot_id=SlotId(self.workshop_slot_id),
            workshop_template_id=TemplateId(self.workshop_template_id),
            details=BookingDetails(
                parent_name=self.parent_name,
                phone_number=self.phone_number,
                kid_name=self.kid_name,
                kid_age=self.kid_age,
                kid_interests=self.kid_interests,
            ),
            status=BookingStatus(self.status),
            booked_at=self.booked_at,
        )
