"""Registry of the named JSON documents HQ persists, and their defaults.

Every document the store knows about is declared here with its backing
filename and a factory for the value returned when the file is missing or
unreadable. Defaults are built fresh on each call so callers can never
mutate a shared seed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

KANBAN_COLUMNS: tuple[tuple[str, str], ...] = (
    ("backlog", "Backlog"),
    ("in-progress", "In Progress"),
    ("review", "Review"),
    ("done", "Done"),
)
KANBAN_LABELS: tuple[str, ...] = ("research", "tool-building", "content", "admin")
IDEA_TAGS: tuple[str, ...] = ("content", "business", "personal", "tool", "strategy")

# Stamped into defaults so a never-written document still has the field.
EPOCH = "1970-01-01T00:00:00.000Z"


class UnknownDocumentError(KeyError):
    """Raised for a document name that is not in the registry."""


@dataclass(frozen=True)
class DocumentSpec:
    name: str
    filename: str
    factory: Callable[[], dict[str, Any]]

    def default(self) -> dict[str, Any]:
        value = self.factory()
        value.setdefault("lastModified", EPOCH)
        return value


def _kanban() -> dict[str, Any]:
    return {
        "columns": [{"id": cid, "title": title, "cards": []} for cid, title in KANBAN_COLUMNS],
        "archive": [],
        "labels": list(KANBAN_LABELS),
    }


DOCUMENTS: dict[str, DocumentSpec] = {
    spec.name: spec
    for spec in (
        DocumentSpec("sprint", "sprint.json", lambda: {"currentSprint": None, "pastSprints": []}),
        DocumentSpec("tasks", "tasks.json", lambda: {"tasks": []}),
        DocumentSpec("kanban", "kanban.json", _kanban),
        DocumentSpec(
            "content-pipeline", "content-pipeline.json",
            lambda: {"content": [], "archive": [], "angles": []},
        ),
        DocumentSpec(
            "ideas", "ideas.json",
            lambda: {"ideas": [], "archive": [], "tags": list(IDEA_TAGS)},
        ),
        DocumentSpec("memory-log", "memory-log.json", lambda: {"entries": [], "archive": []}),
        DocumentSpec("analytics", "analytics.json", lambda: {"platforms": {}}),
        DocumentSpec("docs-registry", "docs-registry.json", lambda: {"docs": []}),
        DocumentSpec("agenda", "agenda.json", lambda: {"entries": []}),
        DocumentSpec("calendar-cache", "calendar-cache.json", lambda: {"events": [], "fetchedAt": ""}),
    )
}


def get_spec(name: str) -> DocumentSpec:
    try:
        return DOCUMENTS[name]
    except KeyError:
        raise UnknownDocumentError(name) from None
