"""
Injectable wall-clock so reservation expiry can be driven deterministically.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ..config import get_settings


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def calendar_date(moment: datetime, tz_name: Optional[str] = None) -> date:
    """Calendar date of ``moment`` in the center's configured timezone."""
    zone = ZoneInfo(tz_name or get_settings().calendar_timezone)
    return as_utc(moment).astimezone(zone).date()


class Clock:
    """Source of the current time."""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return calendar_date(self.now())


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, start: datetime):
        self._now = as_utc(start)

    def now(self) -> datetime:
        return self._now

    def set(self, moment: datetime) -> None:
        self._now = as_utc(moment)

    def advance(self, **delta) -> datetime:
        """Move forward by ``timedelta(**delta)`` and return the new time."""
        self._now = self._now + timedelta(**delta)
        return self._now


system_clock = SystemClock()


def get_clock() -> Clock:
    """FastAPI dependency returning the process clock."""
    return system_clock
