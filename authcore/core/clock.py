"""Injectable clock.

Datetimes handed to the database are naive UTC, matching the ``DateTime``
columns; token timestamps are integer epoch seconds.
"""

import calendar
from datetime import datetime, timezone
from typing import Optional


class Clock:
    """System clock returning naive UTC datetimes."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


def to_timestamp(dt: datetime) -> int:
    """Epoch seconds for a naive-UTC or aware datetime."""
    return calendar.timegm(dt.utctimetuple())


def from_timestamp(ts: int) -> datetime:
    """Naive UTC datetime for epoch seconds."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetimes converted to naive UTC; naive ones pass through."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


system_clock = Clock()
