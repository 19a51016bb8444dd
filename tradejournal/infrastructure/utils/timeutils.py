"""Time helpers.

Trade timestamps may arrive naive (journal exports) or timezone aware.
Naive values are treated as UTC so that ordering never mixes the two.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_epoch(dt: Optional[datetime]) -> float:
    """Sort key for optional timestamps; missing values sort first."""
    if dt is None:
        return float("-inf")
    return as_utc(dt).timestamp()


def js_weekday(dt: datetime) -> int:
    """Day of week with Sunday = 0 ... Saturday = 6."""
    return (dt.weekday() + 1) % 7


def week_start(dt: datetime) -> datetime:
    """Sunday that starts the week containing `dt`."""
    return dt - timedelta(days=js_weekday(dt))
