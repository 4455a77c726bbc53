"""
Time bucketing for tip aggregates.

Maps an event timestamp to the day and week identifiers used in aggregate
keys. The write path (tip consumer) and the read path (tip queries) must derive
keys with the same functions, so the week formula is kept exactly as written
even where it disagrees with ISO-8601 week numbering around year boundaries
(`W53`/`W54` do occur).
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Union

Timestamp = Union[datetime, str]

DAY_PREFIX = "DAY#"
WEEK_PREFIX = "WEEK#"


def as_utc(timestamp: Timestamp) -> datetime:
    """Normalize an ISO-8601 string or datetime to an aware UTC datetime."""
    if isinstance(timestamp, str):
        timestamp = datetime.fromisoformat(timestamp)
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=UTC)
    return timestamp.astimezone(UTC)


def day_bucket(timestamp: Timestamp) -> str:
    """UTC calendar date as `YYYY-MM-DD`."""
    return as_utc(timestamp).strftime("%Y-%m-%d")


def week_bucket(timestamp: Timestamp) -> str:
    """
    Week identifier as `YYYY-Www`.

    week = ceil((days since Jan 1 UTC + weekday of the timestamp + 1) / 7),
    where weekday counts from Sunday = 0.
    """
    ts = as_utc(timestamp)
    first_day = datetime(ts.year, 1, 1, tzinfo=UTC)
    days = (ts - first_day).days
    weekday = ts.isoweekday() % 7
    week = math.ceil((days + weekday + 1) / 7)
    return f"{ts.year}-W{week:02d}"


def day_key(timestamp: Timestamp) -> str:
    return DAY_PREFIX + day_bucket(timestamp)


def week_key(timestamp: Timestamp) -> str:
    return WEEK_PREFIX + week_bucket(timestamp)


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_iso(value: datetime) -> str:
    """Render a UTC instant with millisecond precision and a `Z` suffix."""
    value = as_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


__all__ = [
    "DAY_PREFIX",
    "WEEK_PREFIX",
    "Timestamp",
    "as_utc",
    "day_bucket",
    "week_bucket",
    "day_key",
    "week_key",
    "utc_now",
    "to_iso",
]
