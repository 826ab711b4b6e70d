"""Recurrence Expander — turns workshop templates into bookable virtual slots.

Invariants:
    - expand_slots is PURE: no clock, no IO, inputs never mutated
    - Never raises for bad templates — inactive or malformed templates yield nothing
    - Output sorted by (date, start_time); ties keep input order (sorted() is stable)
    - A persisted slot for (template_id, date) is authoritative for capacity,
      booked_count, status and slot_id, even when it shrank below the template default
    - One-time eligibility is day-granular against `today`; time of day is ignored

Design Decisions:
    - Weekday numbering 0=Sunday: templates are authored against the academy
      calendar, so the conversion from date.isoweekday() lives here only
    - Slots that would run past midnight count as malformed: the admin schema
      rejects them up front, so any survivor in storage is legacy data
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timedelta

from workshop_engine.core.domain_types import (
    RecurrenceType, SlotStatus, TemplateId, VirtualSlot,
    WorkshopSlot, WorkshopTemplate,
)

DEFAULT_LOOKAHEAD_DAYS: int = 30
MIDNIGHT = time(0, 0)


def academy_weekday(day: date) -> int:
    """Weekday number with 0=Sunday … 6=Saturday."""
    return day.isoweekday() % 7


def compute_end_time(start: time, duration_minutes: int) -> time | None:
    """start + duration on the same calendar day, or None if it would cross midnight."""
    if duration_minutes <= 0:
        return None
    start_dt = datetime.combine(date.min, start)
    end_dt = start_dt + timedelta(minutes=duration_minutes)
    if end_dt.date() != start_dt.date():
        return None
    return end_dt.time()


def start_time_of(template: WorkshopTemplate) -> time | None:
    """Start time of every occurrence. One-time templates default to midnight."""
    pattern = template.recurrence_pattern
    if template.recurrence_type == RecurrenceType.ONE_TIME:
        return pattern.time or MIDNIGHT
    return pattern.time


def is_well_formed(template: WorkshopTemplate) -> bool:
    """Pattern shape matches recurrence type and every occurrence fits in its day."""
    pattern = template.recurrence_pattern
    if template.capacity_per_slot < 1:
        return False
    if template.recurrence_type == RecurrenceType.ONE_TIME:
        if pattern.date is None:
            return False
    elif template.recurrence_type == RecurrenceType.WEEKLY:
        if not pattern.days or pattern.time is None:
            return False
    else:
        return False
    start = start_time_of(template)
    return compute_end_time(start, template.duration) is not None


def occurrence_dates(
    template: WorkshopTemplate,
    window_start: date,
    days_ahead: int,
    today: date,
) -> list[date]:
    """Calendar dates on which an active, well-formed template occurs."""
    if not template.is_active or not is_well_formed(template):
        return []

    pattern = template.recurrence_pattern
    if template.recurrence_type == RecurrenceType.ONE_TIME:
        return [pattern.date] if pattern.date >= today else []

    dates = []
    for offset in range(max(days_ahead, 0)):
        day = window_start + timedelta(days=offset)
        if academy_weekday(day) in pattern.days:
            dates.append(day)
    return dates


def occurs_on(template: WorkshopTemplate, day: date, today: date) -> bool:
    """True if the template still produces a bookable occurrence on `day`.

    Not bounded by any lookahead window: used at commit time to detect
    templates that were deactivated or re-patterned after selection.
    """
    if not template.is_active or not is_well_formed(template) or day < today:
        return False
    pattern = template.recurrence_pattern
    if template.recurrence_type == RecurrenceType.ONE_TIME:
        return pattern.date == day
    return academy_weekday(day) in pattern.days


def index_slots(
    persisted_slots: Iterable[WorkshopSlot],
) -> dict[tuple[TemplateId, date], WorkshopSlot]:
    """Key persisted slots by (template_id, date). First record wins on duplicates."""
    index: dict[tuple[TemplateId, date], WorkshopSlot] = {}
    for slot in persisted_slots:
        index.setdefault((slot.workshop_template_id, slot.date), slot)
    return index


def merge_occurrence(
    template: WorkshopTemplate,
    day: date,
    existing: WorkshopSlot | None,
) -> VirtualSlot:
    """Join one occurrence with its persisted override, if any."""
    start = start_time_of(template)
    end = compute_end_time(start, template.duration)
    if existing is not None:
        return VirtualSlot(
            workshop_template_id=template.id,
            template_title=template.title,
            date=day,
            start_time=start,
            end_time=end,
            capacity=existing.capacity,
            booked_count=existing.booked_count,
            status=existing.status,
            slot_id=existing.id,
        )
    return VirtualSlot(
        workshop_template_id=template.id,
        template_title=template.title,
        date=day,
        start_time=start,
        end_time=end,
        capacity=template.capacity_per_slot,
        booked_count=0,
        status=SlotStatus.AVAILABLE,
    )


def expand_slots(
    templates: Iterable[WorkshopTemplate],
    persisted_slots: Iterable[WorkshopSlot] | Mapping,
    window_start: date,
    days_ahead: int = DEFAULT_LOOKAHEAD_DAYS,
    today: date | None = None,
) -> list[VirtualSlot]:
    """Expand templates over [window_start, window_start + days_ahead) into virtual slots.

    `today` drives one-time eligibility and defaults to `window_start`.
    `persisted_slots` may be pre-indexed with index_slots().
    """
    today = today or window_start
    index = (
        persisted_slots if isinstance(persisted_slots, Mapping)
        else index_slots(persisted_slots)
    )

    slots: list[VirtualSlot] = []
    for template in templates:
        for day in occurrence_dates(template, window_start, days_ahead, today):
            slots.append(
                merge_occurrence(template, day, index.get((template.id, day))),
            )
    return sorted(slots, key=lambda s: (s.date, s.start_time))
