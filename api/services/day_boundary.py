"""Canonical day boundary for streak bookkeeping.

Every "which day is this?" question in the engine goes through one
DayBoundary, configured with a single fixed UTC offset. Completions,
lapse detection and the "time until lapse" countdown all agree on where
a day starts.

Naive datetimes are treated as UTC (SQLite hands timestamps back naive).
"""

from datetime import UTC, date, datetime, time, timedelta, timezone

from core.config import get_settings


class DayBoundary:
    """Maps instants to day keys under a fixed UTC offset."""

    def __init__(self, utc_offset: timedelta = timedelta(0)) -> None:
        self.tz = timezone(utc_offset)

    @classmethod
    def from_settings(cls) -> "DayBoundary":
        return cls(get_settings().day_boundary_offset)

    @property
    def utc_offset(self) -> timedelta:
        return self.tz.utcoffset(None)

    def _localize(self, instant: datetime) -> datetime:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        return instant.astimezone(self.tz)

    def day_key(self, instant: datetime) -> date:
        """Return the calendar day containing ``instant``."""
        return self._localize(instant).date()

    @staticmethod
    def days_between(a: date, b: date) -> int:
        """Signed number of whole days from ``a`` to ``b``."""
        return (b - a).days

    def next_boundary(self, instant: datetime) -> datetime:
        """Return the (UTC) instant at which the day containing ``instant`` ends."""
        next_day = self.day_key(instant) + timedelta(days=1)
        return datetime.combine(next_day, time.min, tzinfo=self.tz).astimezone(UTC)

    def seconds_until_next_boundary(self, instant: datetime) -> int:
        """Whole seconds left before the current day key rolls over."""
        remaining = self.next_boundary(instant) - self._localize(instant)
        return max(int(remaining.total_seconds()), 0)
