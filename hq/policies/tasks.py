"""Task list policies, including normalization of externally written tasks.

Tasks may be written by a cooperating agent that omits fields, adds its own,
or still uses the old ``done: bool`` schema. Reads go through
``normalize_task``; mutations work on the stored records and leave fields
they do not own untouched.
"""

from __future__ import annotations

from typing import Any

from hq.policies.common import Item, clean_updates, new_id, patch_by_id, without_id

DEFAULT_PRIORITY = "medium"
DEFAULT_CATEGORY = "deeper-prime"
DONE = "done"
TODO = "todo"


def task_status(raw: Item) -> str:
    return raw.get("status") or (DONE if raw.get("done") is True else TODO)


def normalize_task(raw: Item) -> Item:
    """Read view of a stored task: defaults filled, legacy flag folded into status."""
    return {
        **{k: v for k, v in raw.items() if k != "done"},
        "id": raw.get("id"),
        "title": raw.get("title", ""),
        "date": raw.get("date"),
        "priority": raw.get("priority") or DEFAULT_PRIORITY,
        "status": task_status(raw),
        "category": raw.get("category") or DEFAULT_CATEGORY,
        "notes": raw.get("notes") or "",
        "createdAt": raw.get("createdAt"),
        "completedAt": raw.get("completedAt") or None,
    }


def normalize_tasks(doc: dict[str, Any]) -> dict[str, Any]:
    return {**doc, "tasks": [normalize_task(t) for t in doc.get("tasks") or []]}


def _stored(doc: dict[str, Any]) -> list[Item]:
    return list(doc.get("tasks") or [])


def add_task(doc: dict[str, Any], fields: dict[str, Any], *, now: str, today: str) -> dict[str, Any]:
    task = {
        "id": new_id(),
        "title": fields.get("title", ""),
        "date": fields.get("date") or today,
        "priority": fields.get("priority") or DEFAULT_PRIORITY,
        "status": fields.get("status") or TODO,
        "category": fields.get("category") or DEFAULT_CATEGORY,
        "notes": fields.get("notes") or "",
        "createdAt": now,
        "completedAt": now if fields.get("status") == DONE else None,
    }
    return {**doc, "tasks": _stored(doc) + [task]}


def update_task(doc: dict[str, Any], task_id: str, updates: dict[str, Any], *, now: str) -> dict[str, Any]:
    """Apply ``updates`` to one task.

    Entering ``done`` stamps ``completedAt``; leaving ``done`` clears it, so a
    reopened task never looks completed. A legacy ``done`` flag on the record
    counts as its previous status.
    """
    updates = clean_updates(updates, ("id", "createdAt", "completedAt"))

    def apply(task: Item) -> Item:
        merged = {**task, **updates}
        if "status" in updates:
            if updates["status"] == DONE:
                merged["completedAt"] = now
            elif task_status(task) == DONE:
                merged["completedAt"] = None
        return merged

    return {**doc, "tasks": patch_by_id(_stored(doc), task_id, apply)}


def delete_task(doc: dict[str, Any], task_id: str) -> dict[str, Any]:
    return {**doc, "tasks": without_id(_stored(doc), task_id)}


def tasks_for_date(doc: dict[str, Any], date: str) -> list[Item]:
    return [t for t in normalize_tasks(doc)["tasks"] if t["date"] == date]
