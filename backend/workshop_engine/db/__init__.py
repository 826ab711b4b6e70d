"""Database Infrastructure — SQLAlchemy Base shared by models and migrations.

Invariants:
    - All sessions are async (AsyncSession)

Design Decisions:
    - asyncpg driver for PostgreSQL, aiosqlite for tests and local runs
"""
