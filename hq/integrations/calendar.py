"""Calendar event sources.

Events are read from the ``calendar-cache`` document, which an external sync
job fills. Other sources (e.g. a hosted calendar API) can be chained behind
it. Callers on read paths use ``fetch_events_safe`` so a broken source shows
up as "no events" rather than an error.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Protocol

from hq.common.timeutil import Clock, system_clock, utc_now
from hq.store.documents import DocumentStore

logger = logging.getLogger("hq.calendar")

CACHE_DOCUMENT = "calendar-cache"


@dataclass
class CalendarEvent:
    id: str
    title: str
    start: str
    end: str
    all_day: bool = False
    location: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "CalendarEvent":
        return cls(
            id=str(raw.get("id", "")),
            title=raw.get("title", ""),
            start=raw.get("start", ""),
            end=raw.get("end", ""),
            all_day=bool(raw.get("allDay", False)),
            location=raw.get("location") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["allDay"] = d.pop("all_day")
        return d


class CalendarSource(Protocol):
    def fetch_events(self, start_iso: str, end_iso: str) -> list[CalendarEvent] | None:
        """Events in range, or ``None`` when the source has nothing to say."""
        ...


class CachedCalendarSource:
    """Serve events from the calendar-cache document, filtered by date."""

    def __init__(self, store: DocumentStore, clock: Clock = system_clock) -> None:
        self._store = store
        self._clock = clock

    def fetch_events(self, start_iso: str, end_iso: str) -> list[CalendarEvent] | None:
        cache = self._store.read(CACHE_DOCUMENT)
        if not cache.get("fetchedAt") and not cache.get("events"):
            return None
        start_day, end_day = start_iso[:10], end_iso[:10]
        return [
            CalendarEvent.from_dict(e)
            for e in cache.get("events") or []
            if start_day <= (e.get("start") or "")[:10] <= end_day
        ]

    def update_cache(self, events: Iterable[CalendarEvent]) -> dict[str, Any]:
        payload = [e.to_dict() for e in events]
        now = utc_now(self._clock)
        return self._store.update(
            CACHE_DOCUMENT, lambda doc: {**doc, "events": payload, "fetchedAt": now}
        )

    def status(self) -> dict[str, Any]:
        cache = self._store.read(CACHE_DOCUMENT)
        if cache.get("fetchedAt"):
            return {"connected": True, "source": "cache", "cachedAt": cache["fetchedAt"]}
        return {"connected": False, "source": "none"}


class ChainedCalendarSource:
    """Ask each source in turn; the first non-``None`` answer wins."""

    def __init__(self, *sources: CalendarSource) -> None:
        self._sources = sources

    def fetch_events(self, start_iso: str, end_iso: str) -> list[CalendarEvent] | None:
        for source in self._sources:
            try:
                events = source.fetch_events(start_iso, end_iso)
            except Exception as exc:
                logger.warning("Calendar source %s failed: %s", type(source).__name__, exc)
                continue
            if events is not None:
                return events
        return None


def fetch_events_safe(source: CalendarSource | None, start_iso: str, end_iso: str) -> list[CalendarEvent]:
    if source is None:
        return []
    try:
        return source.fetch_events(start_iso, end_iso) or []
    except Exception as exc:
        logger.warning("Calendar fetch failed, continuing without events: %s", exc)
        return []
