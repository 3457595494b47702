"""UTC timestamp helpers.

Timestamps cross the gateway boundary as ISO-8601 strings with a fixed
microsecond precision and a "Z" suffix, so that lexicographic order equals
chronological order.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(UTC)


def to_iso(value: datetime) -> str:
    """Format a datetime as a sortable UTC ISO-8601 string.

    Naive datetimes are assumed to already be in UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return to_iso(utc_now())


def epoch_millis(value: datetime) -> int:
    """Return a datetime as milliseconds since the epoch."""
    return int(value.timestamp() * 1000)
