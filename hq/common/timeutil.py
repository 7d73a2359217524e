"""Timestamp helpers shared by the store, policies and drafts.

Timestamps are ISO-8601 UTC strings with millisecond precision and a ``Z``
suffix, so that records written by other tools sort correctly as strings.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now(timezone.utc)


def iso(dt: datetime) -> str:
    """Format ``dt`` as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now(clock: Clock = system_clock) -> str:
    return iso(clock())


def today(clock: Clock = system_clock) -> str:
    """Current UTC date as ``YYYY-MM-DD``."""
    return clock().astimezone(timezone.utc).date().isoformat()


def days_before(date: str, days: int) -> str:
    return (datetime.strptime(date, "%Y-%m-%d") - timedelta(days=days)).date().isoformat()
