"""Docs registry policies. File contents live under ``docs/`` (see DraftStore)."""

from __future__ import annotations

from typing import Any

from hq.policies.common import clean_updates, new_id, patch_by_id, without_id

DEFAULT_CATEGORY = "strategy"


def register_doc(doc: dict[str, Any], fields: dict[str, Any], *, now: str) -> dict[str, Any]:
    entry = {
        "id": new_id(),
        "filename": fields["filename"],
        "title": fields.get("title") or fields["filename"],
        "category": fields.get("category") or DEFAULT_CATEGORY,
        "description": fields.get("description") or "",
        "addedAt": now,
        "lastModified": now,
    }
    return {**doc, "docs": list(doc.get("docs") or []) + [entry]}


def update_doc(doc: dict[str, Any], doc_id: str, updates: dict[str, Any], *, now: str) -> dict[str, Any]:
    updates = clean_updates(updates, ("id", "addedAt", "content"))
    docs = patch_by_id(list(doc.get("docs") or []), doc_id, lambda d: {**d, **updates, "lastModified": now})
    return {**doc, "docs": docs}


def delete_doc(doc: dict[str, Any], doc_id: str) -> dict[str, Any]:
    return {**doc, "docs": without_id(list(doc.get("docs") or []), doc_id)}


def find_doc(doc: dict[str, Any], doc_id: str) -> dict[str, Any] | None:
    return next((d for d in doc.get("docs") or [] if d.get("id") == doc_id), None)
