"""API Schemas — Pydantic models at the HTTP boundary.

Invariants:
    - Strings become typed dates/times here; the core never parses text
"""
