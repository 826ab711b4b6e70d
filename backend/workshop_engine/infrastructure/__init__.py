"""Infrastructure Layer — database engine, clock, logging and the in-memory ledger.

Invariants:
    - Infrastructure may use core types and pure rules, never services/ or api/
    - All database errors mapped to core DatabaseError

Design Decisions:
    - Wall-clock access confined to clock.py so the core stays deterministic
"""
