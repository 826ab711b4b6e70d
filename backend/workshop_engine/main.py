"""Workshop Engine API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map WorkshopError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager, unless
      LEDGER_BACKEND=memory

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Three error handler layers (api/error_handlers.py): WorkshopError (domain),
      RequestValidationError (Pydantic), Exception (catch-all)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workshop_engine.api.error_handlers import register_error_handlers
from workshop_engine.api.routes import (
    admin_workshops, bookings, health, public_booking, workshop_slots,
)
from workshop_engine.config import get_settings
from workshop_engine.infrastructure import database
from workshop_engine.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    if settings.ledger_backend == "sql":
        database.init_db(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
    logger.info(
        f"Workshop Engine API started (ledger={settings.ledger_backend}, "
        f"timezone={settings.academy_timezone})",
    )
    yield
    if database.db_manager is not None:
        await database.db_manager.close()
    logger.info("Workshop Engine API shutting down")


app = FastAPI(
    title="Workshop Engine API", version="1.0.0", lifespan=lifespan,
)

# CORS: configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes: explicit registration
app.include_router(health.router)
app.include_router(workshop_slots.router)
app.include_router(public_booking.router)
app.include_router(bookings.router)
app.include_router(admin_workshops.router)

register_error_handlers(app)
