"""Daily agenda delivery through the Telegram Bot API."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable

import requests

from hq.integrations.calendar import CalendarEvent

logger = logging.getLogger("hq.telegram")

_API_URL = "https://api.telegram.org/bot{token}/sendMessage"
_PRIORITY_MARK = {"high": "🔴", "medium": "🟡", "low": "⚪"}


class TelegramSender:
    def __init__(self, bot_token: str, chat_id: str, timeout: float = 15) -> None:
        self._token = bot_token
        self._chat_id = chat_id
        self._timeout = timeout

    def send(self, text: str) -> bool:
        """Send ``text`` to the configured chat. Never raises."""
        try:
            resp = requests.post(
                _API_URL.format(token=self._token),
                json={"chat_id": self._chat_id, "text": text},
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except Exception as exc:
            logger.warning("Telegram send failed: %s", exc)
            return False
        logger.info("Sent agenda message to chat %s", self._chat_id)
        return True


def _clock_time(iso_ts: str) -> str:
    try:
        dt = datetime.fromisoformat(iso_ts.replace("Z", "+00:00"))
    except ValueError:
        return iso_ts
    return dt.strftime("%I:%M %p").lstrip("0")


def build_agenda_message(
    tasks: Iterable[dict[str, Any]],
    events: Iterable[CalendarEvent],
    notes: str,
    date: str,
) -> str:
    tasks, events = list(tasks), list(events)
    label = datetime.strptime(date, "%Y-%m-%d").strftime("%A, %B %d").replace(" 0", " ")
    lines = [f"Daily Agenda — {label}", "", "Meetings"]

    if not events:
        lines.append("No meetings today.")
    for event in events:
        if event.all_day:
            lines.append(f"• {event.title} (all day)")
            continue
        line = f"• {_clock_time(event.start)} – {_clock_time(event.end)}: {event.title}"
        if event.location:
            line += f" ({event.location})"
        lines.append(line)

    lines += ["", "Tasks"]
    if not tasks:
        lines.append("No tasks for today.")
    for task in tasks:
        done = " ✅" if task.get("status") == "done" else ""
        lines.append(f"{_PRIORITY_MARK.get(task.get('priority'), '⚪')} {task.get('title', '')}{done}")

    if notes:
        lines += ["", "Apollo's Notes", notes]

    return "\n".join(lines)
