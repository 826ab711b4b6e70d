"""WorkshopTemplate ORM — persists recurring workshop definitions.

Invariants:
    - id is UUID primary key
    - shareable_slug is unique: it is the public booking link key
    - recurrence_* columns hold the pattern; which ones are set depends on
      recurrence_type ("one-time": date (+ time), "weekly": days + time)
    - recurrence_days uses 0=Sunday … 6=Saturday
    - template <-> slots relationship is lazy="raise": slots are read through
      the ledger with explicit queries, never by attribute access

Design Decisions:
    - Pattern flattened into columns over one JSON blob: date and time get real
      column types, so the core never branches on the shape of a timestamp
    - Days as JSON list: at most 7 small ints, never queried by value
"""

import uuid
from datetime import date, datetime, time, timezone

from sqlalchemy import String, Text, Integer, Boolean, Date, Time, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from workshop_engine.core.domain_types import (
    RecurrencePattern, RecurrenceType, TargetAudience, TemplateId, WorkshopTemplate,
)
from workshop_engine.db.base import Base


class WorkshopTemplateModel(Base):
    """Recurring workshop definition owned by an administrator."""
    __tablename__ = "workshop_templates"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    recurrence_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RecurrenceType.ONE_TIME.value,
    )
    recurrence_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    recurrence_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    recurrence_days: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    capacity_per_slot: Mapped[int] = mapped_column(
        Integer, nullable=False, default=10,
    )
    target_audience: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TargetAudience.CHILD.value,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    shareable_slug: Mapped[str] = mapped_column(
        String(120), nullable=False, unique=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    slots: Mapped[list["WorkshopSlotModel"]] = relationship(
        "WorkshopSlotModel", back_populates="template", lazy="raise",
    )

    def to_domain(self) -> WorkshopTemplate:
        return WorkshopTemplate(
            id=TemplateId(self.id),
            title=self.title,
            description=self.description or "",
            recurrence_type=RecurrenceType(self.recurrence_type),
            recurrence_pattern=RecurrencePattern(
                date=self.recurrence_date,
                time=self.recurrence_time,
                days=frozenset(self.recurrence_days or ()),
            ),
            duration=self.duration,
            capacity_per_slot=self.capacity_per_slot,
            is_active=self.is_active,
            target_audience=TargetAudience(self.target_audience),
            shareable_slug=self.shareable_slug,
        )
