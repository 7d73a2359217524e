"""Analytics and sprint policies: per-platform metric entries and shallow merges."""

from __future__ import annotations

from typing import Any


def add_entry(doc: dict[str, Any], platform: str, entry: dict[str, Any], *, today: str) -> dict[str, Any]:
    """Append a metrics entry to a known platform; unknown platforms are ignored."""
    platforms = dict(doc.get("platforms") or {})
    current = platforms.get(platform)
    if current is None:
        return doc
    platforms[platform] = {
        **current,
        "entries": list(current.get("entries") or []) + [{**entry, "date": entry.get("date") or today}],
    }
    return {**doc, "platforms": platforms}


def merge(doc: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Shallow merge of top-level keys; ``lastModified`` is owned by the store."""
    return {**doc, **{k: v for k, v in patch.items() if k != "lastModified"}}
