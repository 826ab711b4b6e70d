"""API Dependencies — wires stores, ledger, clock and booking handler per request.

Invariants:
    - One request sees one store/ledger pair; in SQL mode both share one session
    - The configured backend is read per request from get_settings()

Design Decisions:
    - _memory_store as module-level singleton: deliberate exception to the
      no-global-state rule (LEDGER_BACKEND=memory is single-process, dev only,
      state lost on restart)
    - Session taken from database.db_manager at call time, so a manager
      swapped in after import (tests) is picked up
"""

from dataclasses import dataclass
from typing import AsyncGenerator

from fastapi import Depends

from workshop_engine.config import Settings, get_settings
from workshop_engine.core.repository_protocols import Clock, SlotLedger, TemplateStore
from workshop_engine.infrastructure import database
from workshop_engine.infrastructure.clock import AcademyClock
from workshop_engine.infrastructure.memory_store import InMemoryWorkshopStore
from workshop_engine.services.booking_handler import BookingTransactionHandler
from workshop_engine.services.slot_ledger import SqlSlotLedger
from workshop_engine.services.template_store import SqlTemplateStore

_memory_store: InMemoryWorkshopStore | None = None


@dataclass(frozen=True)
class Backend:
    store: TemplateStore
    ledger: SlotLedger


def memory_store() -> InMemoryWorkshopStore:
    global _memory_store
    if _memory_store is None:
        _memory_store = InMemoryWorkshopStore()
    return _memory_store


async def get_backend(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[Backend, None]:
    """Template store + slot ledger for the configured LEDGER_BACKEND."""
    if settings.ledger_backend == "memory":
        store = memory_store()
        yield Backend(store=store, ledger=store)
        return
    if database.db_manager is None:
        raise RuntimeError("Database not initialized")
    async with database.db_manager.session() as db:
        yield Backend(store=SqlTemplateStore(db), ledger=SqlSlotLedger(db))


def get_clock(settings: Settings = Depends(get_settings)) -> Clock:
    return AcademyClock(settings.academy_timezone)


def get_booking_handler(
    backend: Backend = Depends(get_backend),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> BookingTransactionHandler:
    return BookingTransactionHandler(
        backend.store, backend.ledger, clock,
        max_retries=settings.promotion_max_retries,
        horizon_days=settings.public_lookahead_days,
    )
