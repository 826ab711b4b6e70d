"""Academy Clock — the single place the shell reads wall-clock time.

Invariants:
    - today() is the calendar date in the academy timezone, not UTC
    - Core functions never call this; services pass its results in

Design Decisions:
    - FixedClock for tests and scripted demos instead of patching datetime
"""

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo


class AcademyClock:
    """Wall clock bound to the academy's timezone."""

    def __init__(self, timezone_name: str):
        self._tz = ZoneInfo(timezone_name)

    def today(self) -> date:
        return datetime.now(self._tz).date()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock frozen at a given day."""

    def __init__(self, day: date, at: time = time(9, 0)):
        self._day = day
        self._now = datetime.combine(day, at, tzinfo=timezone.utc)

    def today(self) -> date:
        return self._day

    def now(self) -> datetime:
        return self._now
