"""Long-form draft files with timestamped backups, plus the docs folder.

Layout under the data directory::

    drafts/<piece>-<format>.md
    drafts/backups/<piece>-<format>-<YYYY-MM-DDTHH-MM-SS>.md
    docs/<filename>

Backup filenames are the index: sorting them by name sorts them by time, so
no manifest is kept. Copies left behind by file-sync tools
(``*.sync-conflict-*``) are ignored everywhere.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

from hq.common.timeutil import Clock, system_clock

logger = logging.getLogger("hq.drafts")

VALID_FORMATS = ("research", "youtube", "linkedin", "twitter", "instagram", "email")
MAX_BACKUPS = 10

_STAMP_RE = re.compile(r"(\d{4}-\d{2}-\d{2})T(\d{2})-(\d{2})-(\d{2})\.md$")
_PIECE_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
_CONFLICT_MARK = ".sync-conflict-"


def _check_key(piece_id: str, fmt: str) -> None:
    if fmt not in VALID_FORMATS:
        raise ValueError(f"Invalid format: {fmt!r}")
    if not piece_id or not _PIECE_RE.match(piece_id):
        raise ValueError(f"Invalid piece id: {piece_id!r}")


class DraftStore:
    """Draft and doc file access rooted at ``data_dir``."""

    def __init__(
        self,
        data_dir: str | Path,
        max_backups: int = MAX_BACKUPS,
        clock: Clock = system_clock,
    ) -> None:
        root = Path(os.path.expanduser(str(data_dir)))
        self._drafts = root / "drafts"
        self._backups = self._drafts / "backups"
        self._docs = root / "docs"
        self._max_backups = max_backups
        self._clock = clock

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    def _draft_path(self, piece_id: str, fmt: str) -> Path:
        _check_key(piece_id, fmt)
        return self._drafts / f"{piece_id}-{fmt}.md"

    def read_draft(self, piece_id: str, fmt: str) -> str:
        path = self._draft_path(piece_id, fmt)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""

    def write_draft_with_backup(self, piece_id: str, fmt: str, new_text: str) -> str | None:
        """Overwrite a draft, snapshotting the previous text first if it changed.

        Returns the backup filename when one was written.
        """
        path = self._draft_path(piece_id, fmt)
        current = self.read_draft(piece_id, fmt)

        backup_name = None
        if current and current.strip() != new_text.strip():
            self._backups.mkdir(parents=True, exist_ok=True)
            stamp = self._clock().strftime("%Y-%m-%dT%H-%M-%S")
            backup_name = f"{piece_id}-{fmt}-{stamp}.md"
            (self._backups / backup_name).write_text(current, encoding="utf-8")
            logger.debug("Backed up %s to %s", path.name, backup_name)

        self._prune(piece_id, fmt)

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(new_text, encoding="utf-8")
        return backup_name

    def _backup_names(self, piece_id: str, fmt: str) -> list[str]:
        """Backup filenames for one draft, oldest first."""
        prefix = f"{piece_id}-{fmt}-"
        try:
            names = os.listdir(self._backups)
        except FileNotFoundError:
            return []
        return sorted(
            n for n in names
            if n.startswith(prefix)
            and _CONFLICT_MARK not in n
            and _STAMP_RE.fullmatch(n[len(prefix):])
        )

    def _prune(self, piece_id: str, fmt: str) -> None:
        names = self._backup_names(piece_id, fmt)
        for old in names[: max(0, len(names) - self._max_backups)]:
            try:
                (self._backups / old).unlink()
            except FileNotFoundError:
                pass
            logger.debug("Pruned backup %s", old)

    def list_backups(self, piece_id: str, fmt: str) -> list[dict[str, Any]]:
        _check_key(piece_id, fmt)
        prefix = f"{piece_id}-{fmt}-"
        result = []
        for name in reversed(self._backup_names(piece_id, fmt)):
            m = _STAMP_RE.fullmatch(name[len(prefix):])
            saved_at = f"{m.group(1)}T{m.group(2)}:{m.group(3)}:{m.group(4)}Z"
            result.append({"filename": name, "savedAt": saved_at})
        return result

    def read_backup(self, filename: str) -> str:
        safe = Path(filename).name
        if not safe:
            return ""
        try:
            return (self._backups / safe).read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError):
            return ""

    # ------------------------------------------------------------------
    # Docs folder
    # ------------------------------------------------------------------

    def read_doc_file(self, filename: str) -> str:
        safe = Path(filename).name
        if not safe:
            return ""
        try:
            return (self._docs / safe).read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError):
            return ""

    def write_doc_file(self, filename: str, content: str) -> Path:
        safe = Path(filename).name
        if not safe or safe.startswith("."):
            raise ValueError(f"Invalid doc filename: {filename!r}")
        self._docs.mkdir(parents=True, exist_ok=True)
        target = self._docs / safe
        target.write_text(content, encoding="utf-8")
        return target

    def list_doc_files(self) -> list[str]:
        try:
            names = os.listdir(self._docs)
        except FileNotFoundError:
            return []
        return sorted(n for n in names if not n.startswith(".") and _CONFLICT_MARK not in n)
