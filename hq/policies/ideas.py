"""Idea inbox policies. New and restored ideas go to the top of the list."""

from __future__ import annotations

from typing import Any

from hq.policies.common import add_tag as _add, clean_updates, find, new_id, patch_by_id, remove_tag, without_id
from hq.store.registry import IDEA_TAGS


def with_tag_seed(doc: dict[str, Any]) -> dict[str, Any]:
    return {
        **doc,
        "ideas": list(doc.get("ideas") or []),
        "archive": list(doc.get("archive") or []),
        "tags": list(doc.get("tags") or IDEA_TAGS),
    }


def add_idea(doc: dict[str, Any], fields: dict[str, Any], *, now: str) -> dict[str, Any]:
    doc = with_tag_seed(doc)
    idea = {
        "id": new_id(),
        "title": fields.get("title", ""),
        "body": fields.get("body") or "",
        "source": fields.get("source") or "ivan",
        "tags": list(fields.get("tags") or []),
        "createdAt": now,
        "updatedAt": now,
    }
    return {**doc, "ideas": [idea] + doc["ideas"]}


def update_idea(doc: dict[str, Any], idea_id: str, updates: dict[str, Any], *, now: str) -> dict[str, Any]:
    doc = with_tag_seed(doc)
    updates = clean_updates(updates, ("id", "createdAt"))
    return {**doc, "ideas": patch_by_id(doc["ideas"], idea_id, lambda i: {**i, **updates, "updatedAt": now})}


def archive_idea(doc: dict[str, Any], idea_id: str, *, now: str) -> dict[str, Any]:
    doc = with_tag_seed(doc)
    idea = find(doc["ideas"], idea_id)
    if idea is None:
        return doc
    return {
        **doc,
        "ideas": without_id(doc["ideas"], idea_id),
        "archive": [{**idea, "updatedAt": now}] + doc["archive"],
    }


def restore_idea(doc: dict[str, Any], idea_id: str, *, now: str) -> dict[str, Any]:
    doc = with_tag_seed(doc)
    idea = find(doc["archive"], idea_id)
    if idea is None:
        return doc
    return {
        **doc,
        "archive": without_id(doc["archive"], idea_id),
        "ideas": [{**idea, "updatedAt": now}] + doc["ideas"],
    }


def delete_idea(doc: dict[str, Any], idea_id: str) -> dict[str, Any]:
    """Permanently remove an idea; only archived ideas can be deleted."""
    doc = with_tag_seed(doc)
    return {**doc, "archive": without_id(doc["archive"], idea_id)}


def add_tag(doc: dict[str, Any], tag: str) -> dict[str, Any]:
    doc = with_tag_seed(doc)
    return {**doc, "tags": _add(doc["tags"], tag)}


def delete_tag(doc: dict[str, Any], tag: str) -> dict[str, Any]:
    doc = with_tag_seed(doc)
    return {**doc, "tags": remove_tag(doc["tags"], tag)}
