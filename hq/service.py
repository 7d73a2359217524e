"""HQ operations: every module action as one store read-modify-write.

``HQService`` depends on a ``DocumentStore`` capability rather than on the
filesystem, so tests can hand it an ``InMemoryDocumentStore``. Mutations
return the full document as written; reads return the stored document after
read-time normalization.
"""

from __future__ import annotations

import logging
from typing import Any

from hq.common.timeutil import Clock, system_clock, today, utc_now
from hq.drafts.store import DraftStore
from hq.integrations.calendar import (
    CachedCalendarSource,
    CalendarSource,
    fetch_events_safe,
)
from hq.integrations.telegram import TelegramSender, build_agenda_message
from hq.policies import agenda, analytics, content, docs, ideas, kanban, memory_log, tasks
from hq.store.documents import Document, DocumentStore, JsonDocumentStore

logger = logging.getLogger("hq.service")


class SendError(RuntimeError):
    """Agenda delivery failed; nothing was recorded."""


class SenderNotConfigured(SendError):
    pass


class HQService:
    def __init__(
        self,
        store: DocumentStore,
        drafts: DraftStore,
        calendar: CalendarSource | None = None,
        sender: TelegramSender | None = None,
        *,
        clock: Clock = system_clock,
        done_cap: int = kanban.DONE_CAP,
        published_cap: int = content.PUBLISHED_CAP,
        memory_retention_days: int = 0,
    ) -> None:
        self.store = store
        self.drafts = drafts
        self.calendar = calendar
        self.sender = sender
        self._clock = clock
        self._done_cap = done_cap
        self._published_cap = published_cap
        self._retention_days = memory_retention_days

    @classmethod
    def from_config(cls, cfg: dict[str, Any]) -> "HQService":
        store = JsonDocumentStore(cfg["data_dir"])
        tg = cfg.get("telegram") or {}
        sender = TelegramSender(tg["bot_token"], tg["chat_id"]) if tg.get("bot_token") and tg.get("chat_id") else None
        return cls(
            store,
            DraftStore(cfg["data_dir"], max_backups=int(cfg["drafts"]["max_backups"])),
            CachedCalendarSource(store),
            sender,
            done_cap=int(cfg["kanban"]["done_cap"]),
            published_cap=int(cfg["content"]["published_cap"]),
            memory_retention_days=int(cfg["memory_log"]["retention_days"]),
        )

    def _now(self) -> str:
        return utc_now(self._clock)

    def _today(self) -> str:
        return today(self._clock)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def get_tasks(self) -> Document:
        return tasks.normalize_tasks(self.store.read("tasks"))

    def add_task(self, fields: dict[str, Any]) -> Document:
        now, day = self._now(), self._today()
        return self.store.update("tasks", lambda d: tasks.add_task(d, fields, now=now, today=day))

    def update_task(self, task_id: str, updates: dict[str, Any]) -> Document:
        now = self._now()
        return self.store.update("tasks", lambda d: tasks.update_task(d, task_id, updates, now=now))

    def delete_task(self, task_id: str) -> Document:
        return self.store.update("tasks", lambda d: tasks.delete_task(d, task_id))

    # ------------------------------------------------------------------
    # Kanban
    # ------------------------------------------------------------------

    def get_kanban(self) -> Document:
        return kanban.with_label_seed(self.store.read("kanban"))

    def add_card(self, fields: dict[str, Any], column_id: str | None = None) -> Document:
        now = self._now()
        return self.store.update(
            "kanban", lambda d: kanban.add_card(d, fields, now=now, column_id=column_id, cap=self._done_cap)
        )

    def move_card(self, card_id: str, from_column: str, to_column: str, to_index: int | None = None) -> Document:
        now = self._now()
        return self.store.update(
            "kanban",
            lambda d: kanban.move_card(d, card_id, from_column, to_column, to_index, now=now, cap=self._done_cap),
        )

    def update_card(self, card_id: str, updates: dict[str, Any]) -> Document:
        now = self._now()
        return self.store.update("kanban", lambda d: kanban.update_card(d, card_id, updates, now=now))

    def archive_card(self, card_id: str, column_id: str) -> Document:
        return self.store.update("kanban", lambda d: kanban.archive_card(d, card_id, column_id))

    def restore_card(self, card_id: str) -> Document:
        now = self._now()
        return self.store.update("kanban", lambda d: kanban.restore_card(d, card_id, now=now))

    def add_label(self, label: str) -> Document:
        return self.store.update("kanban", lambda d: kanban.add_label(d, label))

    def delete_label(self, label: str) -> Document:
        return self.store.update("kanban", lambda d: kanban.delete_label(d, label))

    # ------------------------------------------------------------------
    # Content pipeline
    # ------------------------------------------------------------------

    def get_content(self) -> Document:
        return content.normalize_content(self.store.read("content-pipeline"))

    def add_piece(self, fields: dict[str, Any]) -> Document:
        now = self._now()
        return self.store.update(
            "content-pipeline", lambda d: content.add_piece(d, fields, now=now, cap=self._published_cap)
        )

    def update_piece(self, piece_id: str, updates: dict[str, Any]) -> Document:
        now = self._now()
        return self.store.update(
            "content-pipeline",
            lambda d: content.update_piece(d, piece_id, updates, now=now, cap=self._published_cap),
        )

    def archive_piece(self, piece_id: str) -> Document:
        return self.store.update("content-pipeline", lambda d: content.archive_piece(d, piece_id))

    def restore_piece(self, piece_id: str) -> Document:
        return self.store.update("content-pipeline", lambda d: content.restore_piece(d, piece_id))

    def delete_piece(self, piece_id: str, source: str = "content") -> Document:
        return self.store.update("content-pipeline", lambda d: content.delete_piece(d, piece_id, source))

    def add_angle(self, name: str, color: str | None = None) -> Document:
        return self.store.update("content-pipeline", lambda d: content.add_angle(d, name, color))

    def update_angle(self, angle_id: str, name: str | None = None, color: str | None = None) -> Document:
        return self.store.update("content-pipeline", lambda d: content.update_angle(d, angle_id, name, color))

    def delete_angle(self, angle_id: str) -> Document:
        return self.store.update("content-pipeline", lambda d: content.delete_angle(d, angle_id))

    # ------------------------------------------------------------------
    # Ideas
    # ------------------------------------------------------------------

    def get_ideas(self) -> Document:
        return ideas.with_tag_seed(self.store.read("ideas"))

    def add_idea(self, fields: dict[str, Any]) -> Document:
        now = self._now()
        return self.store.update("ideas", lambda d: ideas.add_idea(d, fields, now=now))

    def update_idea(self, idea_id: str, updates: dict[str, Any]) -> Document:
        now = self._now()
        return self.store.update("ideas", lambda d: ideas.update_idea(d, idea_id, updates, now=now))

    def archive_idea(self, idea_id: str) -> Document:
        now = self._now()
        return self.store.update("ideas", lambda d: ideas.archive_idea(d, idea_id, now=now))

    def restore_idea(self, idea_id: str) -> Document:
        now = self._now()
        return self.store.update("ideas", lambda d: ideas.restore_idea(d, idea_id, now=now))

    def delete_idea(self, idea_id: str) -> Document:
        return self.store.update("ideas", lambda d: ideas.delete_idea(d, idea_id))

    def add_idea_tag(self, tag: str) -> Document:
        return self.store.update("ideas", lambda d: ideas.add_tag(d, tag))

    def delete_idea_tag(self, tag: str) -> Document:
        return self.store.update("ideas", lambda d: ideas.delete_tag(d, tag))

    # ------------------------------------------------------------------
    # Memory log
    # ------------------------------------------------------------------

    def get_memory(self) -> Document:
        return self.store.read("memory-log")

    def memory_activity(self, days: int = 90) -> list[dict[str, Any]]:
        return memory_log.activity_by_day(self.get_memory(), today=self._today(), days=days)

    def add_memory_entry(self, fields: dict[str, Any]) -> Document:
        now, day = self._now(), self._today()
        return self.store.update(
            "memory-log",
            lambda d: memory_log.add_entry(d, fields, now=now, today=day, retention_days=self._retention_days),
        )

    def update_memory_entry(self, entry_id: str, updates: dict[str, Any]) -> Document:
        return self.store.update("memory-log", lambda d: memory_log.update_entry(d, entry_id, updates))

    def delete_memory_entry(self, entry_id: str) -> Document:
        return self.store.update("memory-log", lambda d: memory_log.delete_entry(d, entry_id))

    # ------------------------------------------------------------------
    # Docs
    # ------------------------------------------------------------------

    def get_docs(self) -> Document:
        return self.store.read("docs-registry")

    def read_doc(self, filename: str) -> str:
        return self.drafts.read_doc_file(filename)

    def register_doc(self, fields: dict[str, Any]) -> Document:
        if not fields.get("filename"):
            raise ValueError("filename is required")
        if fields.get("content"):
            self.drafts.write_doc_file(fields["filename"], fields["content"])
        now = self._now()
        return self.store.update("docs-registry", lambda d: docs.register_doc(d, fields, now=now))

    def update_doc(self, doc_id: str, updates: dict[str, Any]) -> Document:
        if updates.get("content") and updates.get("filename"):
            self.drafts.write_doc_file(updates["filename"], updates["content"])
        now = self._now()
        return self.store.update("docs-registry", lambda d: docs.update_doc(d, doc_id, updates, now=now))

    def delete_doc(self, doc_id: str) -> Document:
        return self.store.update("docs-registry", lambda d: docs.delete_doc(d, doc_id))

    # ------------------------------------------------------------------
    # Analytics & sprint
    # ------------------------------------------------------------------

    def get_analytics(self) -> Document:
        return self.store.read("analytics")

    def add_analytics_entry(self, platform: str, entry: dict[str, Any]) -> Document:
        day = self._today()
        return self.store.update("analytics", lambda d: analytics.add_entry(d, platform, entry, today=day))

    def merge_analytics(self, patch: dict[str, Any]) -> Document:
        return self.store.update("analytics", lambda d: analytics.merge(d, patch))

    def get_sprint(self) -> Document:
        return self.store.read("sprint")

    def merge_sprint(self, patch: dict[str, Any]) -> Document:
        return self.store.update("sprint", lambda d: analytics.merge(d, patch))

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    def read_draft(self, piece_id: str, fmt: str) -> str:
        return self.drafts.read_draft(piece_id, fmt)

    def save_draft(self, piece_id: str, fmt: str, text: str) -> str | None:
        return self.drafts.write_draft_with_backup(piece_id, fmt, text)

    def list_backups(self, piece_id: str, fmt: str) -> list[dict[str, Any]]:
        return self.drafts.list_backups(piece_id, fmt)

    def read_backup(self, filename: str) -> str:
        return self.drafts.read_backup(filename)

    # ------------------------------------------------------------------
    # Agenda & calendar
    # ------------------------------------------------------------------

    def get_agenda(self) -> Document:
        return self.store.read("agenda")

    def save_agenda_notes(self, notes: str | None, date: str | None = None) -> Document:
        day, now = date or self._today(), self._now()
        return self.store.update("agenda", lambda d: agenda.upsert_notes(d, day, notes, now=now))

    def update_agenda_entry(self, entry_id: str, updates: dict[str, Any]) -> Document:
        now = self._now()
        return self.store.update("agenda", lambda d: agenda.update_entry(d, entry_id, updates, now=now))

    def calendar_events(self, start_iso: str, end_iso: str) -> list[dict[str, Any]]:
        return [e.to_dict() for e in fetch_events_safe(self.calendar, start_iso, end_iso)]

    def calendar_status(self) -> dict[str, Any]:
        if isinstance(self.calendar, CachedCalendarSource):
            return self.calendar.status()
        if self.calendar is None:
            return {"connected": False, "source": "none"}
        return {"connected": True, "source": type(self.calendar).__name__}

    def today_agenda(self) -> dict[str, Any]:
        day = self._today()
        events = fetch_events_safe(self.calendar, f"{day}T00:00:00.000Z", f"{day}T23:59:59.999Z")
        return {
            "date": day,
            "agendaEntry": agenda.entry_for_date(self.get_agenda(), day),
            "tasks": tasks.tasks_for_date(self.store.read("tasks"), day),
            "events": [e.to_dict() for e in events],
        }

    def send_agenda(self) -> dict[str, Any]:
        """Send today's agenda; the entry is marked sent only after delivery."""
        if self.sender is None:
            raise SenderNotConfigured("Telegram not configured. Set TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID")

        day = self._today()
        events = fetch_events_safe(self.calendar, f"{day}T00:00:00.000Z", f"{day}T23:59:59.999Z")
        entry = agenda.entry_for_date(self.get_agenda(), day) or {}
        message = build_agenda_message(
            tasks.tasks_for_date(self.store.read("tasks"), day),
            events,
            entry.get("apolloNotes") or "",
            day,
        )
        if not self.sender.send(message):
            raise SendError("Failed to send Telegram message")

        now = self._now()
        self.store.update("agenda", lambda d: agenda.mark_sent(d, day, now=now))
        return {"success": True, "sentAt": now}
