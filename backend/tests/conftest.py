"""Root conftest — shared test configuration."""

import os

# Tests never reach a real database or an operator's .env choices
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("LEDGER_BACKEND", "sql")
os.environ.setdefault("ACADEMY_TIMEZONE", "Africa/Casablanca")
os.environ.setdefault("LOG_FORMAT", "text")
