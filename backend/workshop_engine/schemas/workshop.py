"""Workshop Schemas — Pydantic models for templates, slot overrides and virtual slots.

Invariants:
    - TemplateCreate cross-validates recurrence_pattern against recurrence_type
    - Weekday numbers are 0=Sunday … 6=Saturday
    - A slot may not run past midnight: start + duration must end by 23:59
    - Times leave the API as "HH:MM", dates as "YYYY-MM-DD"

Design Decisions:
    - Strings parsed to datetime.date / datetime.time here and nowhere else;
      the core only sees typed values
    - Literal types over str enums: Pydantic handles validation natively
"""

import datetime as dt
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from workshop_engine.core.domain_types import (
    RecurrencePattern, VirtualSlot, WorkshopSlot, WorkshopTemplate,
)
from workshop_engine.core.recurrence import MIDNIGHT, compute_end_time

AudienceLiteral = Literal["Child", "School", "Teacher", "Professional"]


def format_hhmm(value: dt.time | None) -> str | None:
    return value.strftime("%H:%M") if value is not None else None


# --- Templates ----------------------------------------------------------------

class RecurrencePatternIn(BaseModel):
    """When a template occurs. date for one-time, days + time for weekly."""
    date: dt.date | None = None
    time: dt.time | None = None
    days: list[int] | None = None

    @field_validator("days")
    @classmethod
    def check_weekdays(cls, v: list[int] | None) -> list[int] | None:
        if v is None:
            return v
        if any(d < 0 or d > 6 for d in v):
            raise ValueError("days must be weekday numbers 0 (Sunday) to 6 (Saturday)")
        return sorted(set(v))

    def to_domain(self) -> RecurrencePattern:
        return RecurrencePattern(
            date=self.date, time=self.time, days=frozenset(self.days or ()),
        )


class TemplateCreate(BaseModel):
    """Template creation — validates pattern shape and the same-day rule."""
    title: str = Field(min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    recurrence_type: Literal["one-time", "weekly"]
    recurrence_pattern: RecurrencePatternIn
    duration: int = Field(gt=0, le=24 * 60)
    capacity_per_slot: int = Field(ge=1, le=10_000)
    target_audience: AudienceLiteral = "Child"
    is_active: bool = True

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty or whitespace")
        return v

    @model_validator(mode="after")
    def validate_pattern(self):
        pattern = self.recurrence_pattern
        if self.recurrence_type == "one-time" and pattern.date is None:
            raise ValueError("one-time templates require recurrence_pattern.date")
        if self.recurrence_type == "weekly":
            if not pattern.days:
                raise ValueError("weekly templates require recurrence_pattern.days")
            if pattern.time is None:
                raise ValueError("weekly templates require recurrence_pattern.time")
        start = pattern.time or MIDNIGHT
        if compute_end_time(start, self.duration) is None:
            raise ValueError("workshop must end on the same day it starts")
        return self


class TemplateUpdate(BaseModel):
    """Partial template edit. Recurrence is fixed once a template exists."""
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    capacity_per_slot: int | None = Field(None, ge=1, le=10_000)
    is_active: bool | None = None
    target_audience: AudienceLiteral | None = None

    @model_validator(mode="after")
    def require_one_field(self):
        if not self.model_fields_set:
            raise ValueError("at least one field must be provided")
        return self


class RecurrencePatternOut(BaseModel):
    date: str | None = None
    time: str | None = None
    days: list[int] = []


class TemplateResponse(BaseModel):
    """Admin view of a template."""
    id: UUID
    title: str
    description: str
    recurrence_type: str
    recurrence_pattern: RecurrencePatternOut
    duration: int
    capacity_per_slot: int
    target_audience: str
    is_active: bool
    shareable_slug: str | None

    @classmethod
    def from_domain(cls, template: WorkshopTemplate) -> "TemplateResponse":
        pattern = template.recurrence_pattern
        return cls(
            id=template.id,
            title=template.title,
            description=template.description,
            recurrence_type=template.recurrence_type.value,
            recurrence_pattern=RecurrencePatternOut(
                date=pattern.date.isoformat() if pattern.date else None,
                time=format_hhmm(pattern.time),
                days=sorted(pattern.days),
            ),
            duration=template.duration,
            capacity_per_slot=template.capacity_per_slot,
            target_audience=template.target_audience.value,
            is_active=template.is_active,
            shareable_slug=template.shareable_slug,
        )


class PublicTemplateCard(BaseModel):
    """What the public booking page shows above the slot list."""
    id: UUID
    title: str
    description: str
    duration: int
    target_audience: str
    shareable_slug: str

    @classmethod
    def from_domain(cls, template: WorkshopTemplate) -> "PublicTemplateCard":
        return cls(
            id=template.id,
            title=template.title,
            description=template.description,
            duration=template.duration,
            target_audience=template.target_audience.value,
            shareable_slug=template.shareable_slug or "",
        )


# --- Slots --------------------------------------------------------------------

class SlotOverride(BaseModel):
    """Admin override for one occurrence: new capacity, cancel or re-open."""
    capacity: int | None = Field(None, ge=0, le=10_000)
    status: Literal["available", "cancelled"] | None = None

    @model_validator(mode="after")
    def require_change(self):
        if self.capacity is None and self.status is None:
            raise ValueError("capacity or status must be provided")
        return self


class VirtualSlotResponse(BaseModel):
    """One bookable occurrence as rendered by the public page and admin calendar."""
    workshop_template_id: UUID
    template_title: str
    date_str: str
    start_time: str
    end_time: str
    capacity: int
    booked_count: int
    spots_left: int
    status: str
    slot_id: UUID | None = None

    @classmethod
    def from_virtual(cls, slot: VirtualSlot) -> "VirtualSlotResponse":
        return cls(
            workshop_template_id=slot.workshop_template_id,
            template_title=slot.template_title,
            date_str=slot.date.isoformat(),
            start_time=format_hhmm(slot.start_time),
            end_time=format_hhmm(slot.end_time),
            capacity=slot.capacity,
            booked_count=slot.booked_count,
            spots_left=slot.spots_left,
            status=slot.status.value,
            slot_id=slot.slot_id,
        )


class WorkshopSlotResponse(BaseModel):
    """Persisted slot after an admin override."""
    id: UUID
    workshop_template_id: UUID
    date_str: str
    start_time: str
    end_time: str
    capacity: int
    booked_count: int
    status: str

    @classmethod
    def from_domain(cls, slot: WorkshopSlot) -> "WorkshopSlotResponse":
        return cls(
            id=slot.id,
            workshop_template_id=slot.workshop_template_id,
            date_str=slot.date.isoformat(),
            start_time=format_hhmm(slot.start_time),
            end_time=format_hhmm(slot.end_time),
            capacity=slot.capacity,
            booked_count=slot.booked_count,
            status=slot.status.value,
        )
