"""Daily agenda policies: one entry per date holding notes and send state."""

from __future__ import annotations

from typing import Any

from hq.policies.common import Item, clean_updates, new_id, patch_by_id


def _new_entry(date: str, now: str, notes: str = "") -> Item:
    return {
        "id": new_id(),
        "date": date,
        "apolloNotes": notes,
        "sentToTelegram": False,
        "sentAt": None,
        "createdAt": now,
        "updatedAt": now,
    }


def entry_for_date(doc: dict[str, Any], date: str) -> Item | None:
    return next((e for e in doc.get("entries") or [] if e.get("date") == date), None)


def upsert_notes(doc: dict[str, Any], date: str, notes: str | None, *, now: str) -> dict[str, Any]:
    entries = list(doc.get("entries") or [])
    if entry_for_date(doc, date) is None:
        return {**doc, "entries": entries + [_new_entry(date, now, notes or "")]}
    return {
        **doc,
        "entries": [
            {**e, "apolloNotes": notes or "", "updatedAt": now} if e.get("date") == date else e
            for e in entries
        ],
    }


def update_entry(doc: dict[str, Any], entry_id: str, updates: dict[str, Any], *, now: str) -> dict[str, Any]:
    updates = clean_updates(updates, ("id", "createdAt"))
    entries = patch_by_id(list(doc.get("entries") or []), entry_id, lambda e: {**e, **updates, "updatedAt": now})
    return {**doc, "entries": entries}


def mark_sent(doc: dict[str, Any], date: str, *, now: str) -> dict[str, Any]:
    """Record a successful send for ``date``, creating the entry if needed."""
    entries = list(doc.get("entries") or [])
    if entry_for_date(doc, date) is None:
        entries.append(_new_entry(date, now))
    return {
        **doc,
        "entries": [
            {**e, "sentToTelegram": True, "sentAt": now, "updatedAt": now} if e.get("date") == date else e
            for e in entries
        ],
    }
