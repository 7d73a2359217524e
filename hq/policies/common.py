"""Helpers shared by the per-document policies.

Policies are pure: they take the current document and return a new one,
leaving the input untouched. Callers run them inside ``DocumentStore.update``.
"""

from __future__ import annotations

import uuid
from typing import Any, Callable, Iterable

Item = dict[str, Any]


def new_id() -> str:
    return str(uuid.uuid4())


def archive_overflow(
    live: list[Item],
    archive: list[Item],
    cap: int,
    key: Callable[[Item], str],
) -> tuple[list[Item], list[Item]]:
    """Move the oldest items of ``live`` beyond ``cap`` to the head of ``archive``.

    Oldest is decided by ``key`` ascending with a stable sort, so equal keys
    keep insertion order. Returns ``(live, archive)``; the surviving live
    items keep their original order.
    """
    surplus = len(live) - cap
    if surplus <= 0:
        return live, archive
    oldest = sorted(live, key=key)[:surplus]
    moved = {id(item) for item in oldest}
    return [item for item in live if id(item) not in moved], oldest + archive


def normalize_tag(value: str) -> str:
    return value.strip().lower()


def add_tag(tags: Iterable[str], value: str) -> list[str]:
    tags = list(tags)
    tag = normalize_tag(value)
    if not tag or tag in tags:
        return tags
    return tags + [tag]


def remove_tag(tags: Iterable[str], value: str) -> list[str]:
    tag = normalize_tag(value)
    return [t for t in tags if t != tag]


def find(items: Iterable[Item], item_id: str | None) -> Item | None:
    return next((i for i in items if i.get("id") == item_id), None)


def patch_by_id(items: list[Item], item_id: str | None, fn: Callable[[Item], Item]) -> list[Item]:
    return [fn(i) if i.get("id") == item_id else i for i in items]


def without_id(items: list[Item], item_id: str | None) -> list[Item]:
    return [i for i in items if i.get("id") != item_id]


def clean_updates(updates: dict[str, Any], protected: Iterable[str] = ("id",)) -> dict[str, Any]:
    """Drop keys a caller is not allowed to overwrite."""
    blocked = set(protected)
    return {k: v for k, v in updates.items() if k not in blocked}
