"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Functions are pure and deterministic ("today" is always a parameter);
      slugs.random_suffix is the one source of randomness

Design Decisions:
    - Functional core separated from imperative shell: expansion and booking
      rules are plain functions, the shell owns transactions and the clock
"""
