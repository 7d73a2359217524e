"""Memory log policies.

The live log can be bounded by a retention window: when ``retention_days``
is positive, each insert moves entries dated before the window to the head
of the archive (oldest first). ``0`` keeps everything live.
"""

from __future__ import annotations

from collections import Counter
from typing import Any

from hq.common.timeutil import days_before
from hq.policies.common import clean_updates, new_id, patch_by_id, without_id

DEFAULT_AUTHOR = "ivan"
DEFAULT_TYPE = "manual-note"


def _entries(doc: dict[str, Any]) -> dict[str, Any]:
    return {**doc, "entries": list(doc.get("entries") or []), "archive": list(doc.get("archive") or [])}


def apply_retention(doc: dict[str, Any], *, today: str, retention_days: int) -> dict[str, Any]:
    doc = _entries(doc)
    if retention_days <= 0:
        return doc
    cutoff = days_before(today, retention_days)
    expired = [e for e in doc["entries"] if (e.get("date") or today) < cutoff]
    if not expired:
        return doc
    expired_ids = {id(e) for e in expired}
    expired.sort(key=lambda e: (e.get("date") or "", e.get("createdAt") or ""))
    return {
        **doc,
        "entries": [e for e in doc["entries"] if id(e) not in expired_ids],
        "archive": expired + doc["archive"],
    }


def add_entry(
    doc: dict[str, Any],
    fields: dict[str, Any],
    *,
    now: str,
    today: str,
    retention_days: int = 0,
) -> dict[str, Any]:
    doc = _entries(doc)
    entry = {
        "id": new_id(),
        "date": fields.get("date") or today,
        "author": fields.get("author") or DEFAULT_AUTHOR,
        "type": fields.get("type") or DEFAULT_TYPE,
        "title": fields.get("title") or "",
        "content": fields.get("content") or "",
        "tags": list(fields.get("tags") or []),
        "createdAt": now,
    }
    if fields.get("relatedTo"):
        entry["relatedTo"] = fields["relatedTo"]
    doc = {**doc, "entries": doc["entries"] + [entry]}
    return apply_retention(doc, today=today, retention_days=retention_days)


def update_entry(doc: dict[str, Any], entry_id: str, updates: dict[str, Any]) -> dict[str, Any]:
    doc = _entries(doc)
    updates = clean_updates(updates, ("id", "createdAt"))
    return {**doc, "entries": patch_by_id(doc["entries"], entry_id, lambda e: {**e, **updates})}


def delete_entry(doc: dict[str, Any], entry_id: str) -> dict[str, Any]:
    doc = _entries(doc)
    return {**doc, "entries": without_id(doc["entries"], entry_id)}


def recent_entries(doc: dict[str, Any], *, today: str, days: int) -> list[dict[str, Any]]:
    cutoff = days_before(today, days)
    return [e for e in doc.get("entries") or [] if (e.get("date") or "") >= cutoff]


def activity_by_day(doc: dict[str, Any], *, today: str, days: int = 90) -> list[dict[str, Any]]:
    """Entry counts per day for the last ``days`` days, oldest first."""
    counts = Counter(e.get("date") for e in recent_entries(doc, today=today, days=days))
    return [
        {"date": date, "count": counts.get(date, 0)}
        for date in (days_before(today, offset) for offset in range(days - 1, -1, -1))
    ]
