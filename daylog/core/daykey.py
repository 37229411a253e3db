# daylog/core/daykey.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Union
from zoneinfo import ZoneInfo

DEFAULT_TZ = timezone.utc


@dataclass(frozen=True, order=True)
class DayKey:
    """
    Calendar-day identifier; the only lookup key for sessions and statuses.

    Aware timestamps are converted into the reference zone before the time
    of day is dropped. Naive timestamps are taken as already being local to
    that zone.
    """

    day: date

    @classmethod
    def from_timestamp(cls, ts: datetime, tz=DEFAULT_TZ) -> "DayKey":
        if ts.tzinfo is not None:
            try:
                ts = ts.astimezone(tz)
            except OverflowError:
                # Shifting past date.min/date.max; keep the day in ts's own zone.
                pass
        return cls(ts.date())

    @classmethod
    def from_value(cls, value: Union["DayKey", datetime, date, str], tz=DEFAULT_TZ) -> "DayKey":
        if isinstance(value, DayKey):
            return value
        # datetime is a subclass of date, so it has to be checked first
        if isinstance(value, datetime):
            return cls.from_timestamp(value, tz)
        if isinstance(value, date):
            return cls(value)
        return cls.parse(value)

    @classmethod
    def parse(cls, raw: str) -> "DayKey":
        """Parse 'YYYY-MM-DD'. Raises ValueError on anything else."""
        return cls(date.fromisoformat(raw.strip()))

    @classmethod
    def today(cls, tz=DEFAULT_TZ) -> "DayKey":
        return cls.from_timestamp(datetime.now(tz), tz)

    @property
    def weekday_name(self) -> str:
        return self.day.strftime("%A")

    def __str__(self) -> str:
        return self.day.isoformat()


def resolve_timezone(name: str):
    """Map a zone name from settings to a tzinfo; 'UTC' short-circuits."""
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)
