"""Kanban board policies.

The "done" column is capped: whenever a card lands there and the column
grows past the cap, the least recently updated cards move to the head of the
board's archive. Restoring from the archive puts the card back at the top of
"done" without re-checking the cap; the next card moved into "done"
enforces it again.
"""

from __future__ import annotations

from typing import Any

from hq.policies.common import (
    Item,
    add_tag,
    archive_overflow,
    clean_updates,
    find,
    new_id,
    patch_by_id,
    remove_tag,
    without_id,
)
from hq.store.registry import KANBAN_LABELS

DONE_CAP = 6
DONE_COLUMN = "done"
DEFAULT_COLUMN = "backlog"


def _by_updated(card: Item) -> str:
    return card.get("updatedAt") or ""


def _columns(doc: dict[str, Any]) -> list[Item]:
    return [{**col, "cards": list(col.get("cards") or [])} for col in doc.get("columns") or []]


def _enforce_done_cap(
    columns: list[Item], archive: list[Item], cap: int
) -> tuple[list[Item], list[Item]]:
    done = find(columns, DONE_COLUMN)
    if done is None:
        return columns, archive
    done["cards"], archive = archive_overflow(done["cards"], archive, cap, _by_updated)
    return columns, archive


def with_label_seed(doc: dict[str, Any]) -> dict[str, Any]:
    """Read-time view: seed labels when the stored board has none."""
    if doc.get("labels"):
        return doc
    return {**doc, "labels": list(KANBAN_LABELS)}


def add_card(
    doc: dict[str, Any],
    fields: dict[str, Any],
    *,
    now: str,
    column_id: str | None = None,
    cap: int = DONE_CAP,
) -> dict[str, Any]:
    target = column_id or DEFAULT_COLUMN
    columns = _columns(doc)
    col = find(columns, target)
    if col is None:
        return doc

    col["cards"].append({
        "id": new_id(),
        "title": fields.get("title", ""),
        "description": fields.get("description") or "",
        "priority": fields.get("priority") or "medium",
        "createdAt": now,
        "updatedAt": now,
        "labels": list(fields.get("labels") or []),
        "apolloNotes": fields.get("apolloNotes") or "",
    })
    archive = list(doc.get("archive") or [])
    if target == DONE_COLUMN:
        columns, archive = _enforce_done_cap(columns, archive, cap)
    return {**doc, "columns": columns, "archive": archive}


def move_card(
    doc: dict[str, Any],
    card_id: str,
    from_column: str,
    to_column: str,
    to_index: int | None = None,
    *,
    now: str,
    cap: int = DONE_CAP,
) -> dict[str, Any]:
    columns = _columns(doc)
    src = find(columns, from_column)
    dst = find(columns, to_column)
    if src is None or dst is None:
        return doc
    card = find(src["cards"], card_id)
    if card is None:
        return doc

    src["cards"] = without_id(src["cards"], card_id)
    moved = {**card, "updatedAt": now}
    index = len(dst["cards"]) if to_index is None else max(0, to_index)
    dst["cards"].insert(index, moved)

    archive = list(doc.get("archive") or [])
    if to_column == DONE_COLUMN:
        columns, archive = _enforce_done_cap(columns, archive, cap)
    return {**doc, "columns": columns, "archive": archive}


def update_card(doc: dict[str, Any], card_id: str, updates: dict[str, Any], *, now: str) -> dict[str, Any]:
    updates = clean_updates(updates, ("id", "createdAt"))
    columns = [
        {**col, "cards": patch_by_id(col["cards"], card_id, lambda c: {**c, **updates, "updatedAt": now})}
        for col in _columns(doc)
    ]
    return {**doc, "columns": columns}


def archive_card(doc: dict[str, Any], card_id: str, column_id: str) -> dict[str, Any]:
    """Manually archive a card; it is appended to the archive tail."""
    columns = _columns(doc)
    col = find(columns, column_id)
    card = find(col["cards"], card_id) if col else None
    if card is None:
        return doc
    col["cards"] = without_id(col["cards"], card_id)
    return {**doc, "columns": columns, "archive": list(doc.get("archive") or []) + [card]}


def restore_card(doc: dict[str, Any], card_id: str, *, now: str) -> dict[str, Any]:
    archive = list(doc.get("archive") or [])
    card = find(archive, card_id)
    columns = _columns(doc)
    done = find(columns, DONE_COLUMN)
    if card is None or done is None:
        return doc
    done["cards"].insert(0, {**card, "updatedAt": now})
    return {**doc, "columns": columns, "archive": without_id(archive, card_id)}


def add_label(doc: dict[str, Any], label: str) -> dict[str, Any]:
    return {**doc, "labels": add_tag(doc.get("labels") or KANBAN_LABELS, label)}


def delete_label(doc: dict[str, Any], label: str) -> dict[str, Any]:
    return {**doc, "labels": remove_tag(doc.get("labels") or KANBAN_LABELS, label)}
