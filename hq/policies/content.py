"""Content pipeline policies: pieces, per-channel formats, angles, archive."""

from __future__ import annotations

from typing import Any

from hq.policies.common import (
    Item,
    archive_overflow,
    clean_updates,
    find,
    new_id,
    patch_by_id,
    without_id,
)

PUBLISHED_CAP = 6
PUBLISHED = "published"
CHANNELS = ("linkedin", "youtube", "email", "twitter", "instagram")
DEFAULT_ANGLE_COLOR = "#D97706"


def _empty_format() -> Item:
    return {"status": "not-started", "publishDate": None, "url": ""}


def normalize_formats(formats: dict[str, Any] | None) -> dict[str, Any]:
    formats = formats or {}
    return {**formats, **{ch: formats.get(ch) or _empty_format() for ch in CHANNELS}}


def normalize_content(doc: dict[str, Any]) -> dict[str, Any]:
    """Read-time view: archive list present, every piece has all channels."""
    return {
        **doc,
        "archive": list(doc.get("archive") or []),
        "angles": list(doc.get("angles") or []),
        "content": [
            {**p, "formats": normalize_formats(p.get("formats"))} for p in doc.get("content") or []
        ],
    }


def _published_key(piece: Item) -> str:
    return piece.get("publishedAt") or piece.get("createdAt") or ""


def _cap_published(content: list[Item], archive: list[Item], cap: int) -> tuple[list[Item], list[Item]]:
    published = [p for p in content if p.get("stage") == PUBLISHED]
    kept, archive = archive_overflow(published, archive, cap, _published_key)
    dropped = {p["id"] for p in published} - {p["id"] for p in kept}
    return [p for p in content if p["id"] not in dropped], archive


def add_piece(
    doc: dict[str, Any],
    fields: dict[str, Any],
    *,
    now: str,
    cap: int = PUBLISHED_CAP,
) -> dict[str, Any]:
    """Append a new piece; one created as "published" is capped like a publish."""
    piece = {
        "id": new_id(),
        "title": fields.get("title") or "",
        "angle": fields.get("angle") or "",
        "stage": fields.get("stage") or "idea",
        "formats": normalize_formats(fields.get("formats")),
        "coreIdea": fields.get("coreIdea") or "",
        "notes": fields.get("notes") or "",
        "weekNumber": fields.get("weekNumber") or 0,
        "createdAt": now,
        "publishedAt": now if fields.get("stage") == PUBLISHED else None,
    }
    doc = normalize_content(doc)
    content, archive = doc["content"] + [piece], doc["archive"]
    if piece["stage"] == PUBLISHED:
        content, archive = _cap_published(content, archive, cap)
    return {**doc, "content": content, "archive": archive}


def update_piece(
    doc: dict[str, Any],
    piece_id: str,
    updates: dict[str, Any],
    *,
    now: str,
    cap: int = PUBLISHED_CAP,
) -> dict[str, Any]:
    """Update one piece; a first transition to "published" stamps and caps.

    When the published set then exceeds ``cap``, the oldest published pieces
    (by ``publishedAt``, falling back to ``createdAt``) move to the archive head.
    """
    updates = clean_updates(updates, ("id", "createdAt", "publishedAt"))
    doc = normalize_content(doc)
    piece = find(doc["content"], piece_id)
    if piece is None:
        return doc

    newly_published = updates.get("stage") == PUBLISHED and piece.get("stage") != PUBLISHED

    def apply(p: Item) -> Item:
        merged = {**p, **updates}
        if "formats" in updates:
            merged["formats"] = normalize_formats(updates["formats"])
        if newly_published:
            merged["publishedAt"] = now
        return merged

    content = patch_by_id(doc["content"], piece_id, apply)
    archive = doc["archive"]

    if newly_published:
        content, archive = _cap_published(content, archive, cap)

    return {**doc, "content": content, "archive": archive}


def archive_piece(doc: dict[str, Any], piece_id: str) -> dict[str, Any]:
    doc = normalize_content(doc)
    piece = find(doc["content"], piece_id)
    if piece is None:
        return doc
    return {
        **doc,
        "content": without_id(doc["content"], piece_id),
        "archive": [piece] + doc["archive"],
    }


def restore_piece(doc: dict[str, Any], piece_id: str) -> dict[str, Any]:
    """Bring an archived piece back into the pipeline at the "ready" stage."""
    doc = normalize_content(doc)
    piece = find(doc["archive"], piece_id)
    if piece is None:
        return doc
    restored = {**piece, "stage": "ready", "publishedAt": None}
    return {
        **doc,
        "archive": without_id(doc["archive"], piece_id),
        "content": doc["content"] + [restored],
    }


def delete_piece(doc: dict[str, Any], piece_id: str, source: str = "content") -> dict[str, Any]:
    doc = normalize_content(doc)
    key = "archive" if source == "archive" else "content"
    return {**doc, key: without_id(doc[key], piece_id)}


def add_angle(doc: dict[str, Any], name: str, color: str | None = None) -> dict[str, Any]:
    doc = normalize_content(doc)
    angle = {"id": new_id(), "name": name, "color": color or DEFAULT_ANGLE_COLOR}
    return {**doc, "angles": doc["angles"] + [angle]}


def update_angle(
    doc: dict[str, Any], angle_id: str, name: str | None = None, color: str | None = None
) -> dict[str, Any]:
    doc = normalize_content(doc)

    def apply(a: Item) -> Item:
        return {
            **a,
            "name": a.get("name") if name is None else name,
            "color": a.get("color") if color is None else color,
        }

    return {**doc, "angles": patch_by_id(doc["angles"], angle_id, apply)}


def delete_angle(doc: dict[str, Any], angle_id: str) -> dict[str, Any]:
    doc = normalize_content(doc)
    return {**doc, "angles": without_id(doc["angles"], angle_id)}
