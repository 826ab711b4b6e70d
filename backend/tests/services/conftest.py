"""Service test fixtures — async DB, stores, clock + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - db_manager patched so get_backend() opens sessions on the test engine
    - Clock frozen at Monday 2024-01-01 for every route

Design Decisions:
    - SQLite in-memory: fast, no external dependency; ON CONFLICT DO NOTHING and
      conditional UPDATE behave the same as on PostgreSQL for sequential calls
    - file_db_manager for concurrent callers: one :memory: connection cannot
      hold two transactions, a database file under tmp_path can
    - Templates seeded through the stores, not raw rows: keeps to_domain()
      mapping under test too
"""

from datetime import date, time

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from workshop_engine.api.dependencies import get_clock
from workshop_engine.core.domain_types import (
    RecurrencePattern, RecurrenceType, TargetAudience,
)
from workshop_engine.db.base import Base
from workshop_engine.infrastructure.clock import FixedClock
from workshop_engine.infrastructure.database import DatabaseSessionManager
from workshop_engine.infrastructure.memory_store import InMemoryWorkshopStore
from workshop_engine.services.slot_ledger import SqlSlotLedger
from workshop_engine.services.template_store import SqlTemplateStore
import workshop_engine.infrastructure.database as db_module
from workshop_engine.main import app

TODAY = date(2024, 1, 1)  # Monday


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def template_store(test_db) -> SqlTemplateStore:
    return SqlTemplateStore(test_db)


@pytest.fixture
def slot_ledger(test_db) -> SqlSlotLedger:
    return SqlSlotLedger(test_db)


@pytest.fixture
async def file_db_manager(tmp_path):
    """Session manager on a SQLite file: each session gets its own connection."""
    manager = DatabaseSessionManager(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
    )
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    await manager.close()


@pytest.fixture
def memory_store() -> InMemoryWorkshopStore:
    return InMemoryWorkshopStore()


async def _create_weekly(
    store, *, days=(2,), at=time(10, 0), duration=60, capacity=2,
    audience=TargetAudience.CHILD, title="Robotics Club", slug="robotics-club-ab12c",
):
    """Create a weekly template through any TemplateStore."""
    return await store.create(
        title=title,
        description="Build and program small robots.",
        recurrence_type=RecurrenceType.WEEKLY,
        recurrence_pattern=RecurrencePattern(time=at, days=frozenset(days)),
        duration=duration,
        capacity_per_slot=capacity,
        target_audience=audience,
        is_active=True,
        shareable_slug=slug,
    )


@pytest.fixture
def create_weekly():
    return _create_weekly


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client on the test DB with a frozen clock."""
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    app.dependency_overrides[get_clock] = lambda: FixedClock(TODAY)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
