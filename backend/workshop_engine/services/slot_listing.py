"""Slot Listing — reads templates and persisted slots, hands them to the expander.

Invariants:
    - Read-only: never promotes, never writes
    - Persisted slots are loaded from min(today, window_start) so that a
      window opening in the past still sees its overrides
    - Every call recomputes; nothing is cached between requests
"""

import logging
from datetime import date, timedelta

from workshop_engine.core.domain_types import TemplateId, VirtualSlot, WorkshopTemplate
from workshop_engine.core.errors import ResourceNotFoundError
from workshop_engine.core.recurrence import expand_slots
from workshop_engine.core.repository_protocols import SlotLedger, TemplateStore

logger = logging.getLogger(__name__)


async def expand_for(
    ledger: SlotLedger,
    templates: list[WorkshopTemplate],
    window_start: date,
    days_ahead: int,
    today: date,
) -> list[VirtualSlot]:
    """Load the persisted overrides for `templates` and expand them."""
    persisted = await ledger.slots_for_templates(
        [t.id for t in templates], since=min(today, window_start),
    )
    return expand_slots(templates, persisted, window_start, days_ahead, today)


async def list_available_slots(
    store: TemplateStore,
    ledger: SlotLedger,
    template_id: TemplateId,
    days_ahead: int,
    today: date,
) -> list[VirtualSlot]:
    """Upcoming occurrences of one template, starting today."""
    template = await store.get(template_id)
    if template is None:
        raise ResourceNotFoundError("WorkshopTemplate", str(template_id))
    return await expand_for(ledger, [template], today, days_ahead, today)


async def get_public_template(store: TemplateStore, slug: str) -> WorkshopTemplate:
    """Active template behind a shareable link."""
    template = await store.get_by_slug(slug)
    if template is None or not template.is_active:
        raise ResourceNotFoundError("Workshop", slug)
    return template


async def list_slots_by_slug(
    store: TemplateStore,
    ledger: SlotLedger,
    slug: str,
    days_ahead: int,
    today: date,
) -> list[VirtualSlot]:
    template = await get_public_template(store, slug)
    return await expand_for(ledger, [template], today, days_ahead, today)


def month_start(month: str | None, today: date) -> date:
    """First day of `YYYY-MM`, or of the current month when omitted."""
    if not month:
        return today.replace(day=1)
    year, _, mon = month.partition("-")
    return date(int(year), int(mon), 1)


async def admin_calendar(
    store: TemplateStore,
    ledger: SlotLedger,
    window_start: date,
    days_ahead: int,
    today: date,
) -> list[VirtualSlot]:
    """Virtual slots of every active template from `window_start`."""
    templates = await store.list_active()
    slots = await expand_for(ledger, templates, window_start, days_ahead, today)
    logger.debug(
        f"Admin calendar expanded: {len(templates)} templates, {len(slots)} slots "
        f"from {window_start.isoformat()}",
    )
    return slots


def window_end(window_start: date, days_ahead: int) -> date:
    """Last day covered by a window (inclusive)."""
    return window_start + timedelta(days=days_ahead - 1)
