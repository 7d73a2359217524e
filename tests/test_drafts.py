"""Tests for draft files: diff-gated backups, pruning, listing, safe reads."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from hq.drafts.store import DraftStore
from tests.conftest import TickingClock


def _backup_files(data_dir: Path) -> list[str]:
    d = data_dir / "drafts" / "backups"
    return sorted(p.name for p in d.iterdir()) if d.exists() else []


class TestReadWrite:
    def test_missing_draft_reads_empty(self, drafts: DraftStore) -> None:
        assert drafts.read_draft("p1", "linkedin") == ""

    def test_first_write_creates_no_backup(self, drafts: DraftStore, data_dir: Path) -> None:
        assert drafts.write_draft_with_backup("p1", "linkedin", "v1") is None
        assert drafts.read_draft("p1", "linkedin") == "v1"
        assert (data_dir / "drafts" / "p1-linkedin.md").read_text(encoding="utf-8") == "v1"
        assert _backup_files(data_dir) == []

    def test_changed_text_backs_up_previous(self, drafts: DraftStore, data_dir: Path) -> None:
        drafts.write_draft_with_backup("p1", "email", "v1")
        name = drafts.write_draft_with_backup("p1", "email", "v2")
        assert name == "p1-email-2026-03-02T09-00-00.md"
        assert drafts.read_backup(name) == "v1"
        assert drafts.read_draft("p1", "email") == "v2"

    def test_identical_text_modulo_whitespace_skips_backup(self, drafts: DraftStore, data_dir: Path) -> None:
        drafts.write_draft_with_backup("p1", "email", "v1")
        drafts.write_draft_with_backup("p1", "email", "v2")
        drafts.write_draft_with_backup("p1", "email", "  v2\n\n")
        assert len(_backup_files(data_dir)) == 1
        assert drafts.read_draft("p1", "email") == "  v2\n\n"

    @pytest.mark.parametrize("fmt", ["tiktok", "", "../linkedin"])
    def test_invalid_format_rejected(self, drafts: DraftStore, fmt: str) -> None:
        with pytest.raises(ValueError):
            drafts.read_draft("p1", fmt)

    @pytest.mark.parametrize("piece", ["", "../etc", "a/b", ".hidden"])
    def test_unsafe_piece_id_rejected(self, drafts: DraftStore, piece: str) -> None:
        with pytest.raises(ValueError):
            drafts.write_draft_with_backup(piece, "email", "x")


class TestPruning:
    def test_keeps_ten_most_recent(self, drafts: DraftStore, data_dir: Path, clock: TickingClock) -> None:
        for i in range(16):
            drafts.write_draft_with_backup("p1", "youtube", f"version {i}")

        files = _backup_files(data_dir)
        assert len(files) == 10
        # 15 backups were taken (versions 0..14); the five oldest were pruned.
        contents = [drafts.read_backup(f) for f in files]
        assert contents == [f"version {i}" for i in range(5, 15)]

    def test_prune_is_per_piece_and_format(self, data_dir: Path, clock: TickingClock) -> None:
        store = DraftStore(data_dir, max_backups=2, clock=clock)
        for i in range(4):
            store.write_draft_with_backup("p1", "email", f"e{i}")
            store.write_draft_with_backup("p1", "twitter", f"t{i}")
            store.write_draft_with_backup("p2", "email", f"x{i}")
        assert len(store.list_backups("p1", "email")) == 2
        assert len(store.list_backups("p1", "twitter")) == 2
        assert len(store.list_backups("p2", "email")) == 2

    def test_sync_conflict_copies_are_ignored(self, drafts: DraftStore, data_dir: Path) -> None:
        backups = data_dir / "drafts" / "backups"
        backups.mkdir(parents=True)
        conflict = backups / "p1-email-2020-01-01T00-00-00.sync-conflict-ABC.md"
        conflict.write_text("conflict", encoding="utf-8")

        drafts.write_draft_with_backup("p1", "email", "a")
        drafts.write_draft_with_backup("p1", "email", "b")

        assert conflict.exists()
        assert [b["filename"] for b in drafts.list_backups("p1", "email")] == ["p1-email-2026-03-02T09-00-00.md"]


class TestListAndRead:
    def test_list_newest_first_with_saved_at(self, drafts: DraftStore) -> None:
        for text in ("a", "b", "c"):
            drafts.write_draft_with_backup("p1", "research", text)
        backups = drafts.list_backups("p1", "research")
        assert [b["savedAt"] for b in backups] == ["2026-03-02T09:00:01Z", "2026-03-02T09:00:00Z"]
        assert backups[0]["filename"] == "p1-research-2026-03-02T09-00-01.md"

    def test_list_empty_when_no_backups(self, drafts: DraftStore) -> None:
        assert drafts.list_backups("p1", "research") == []

    def test_other_piece_with_shared_prefix_not_listed(self, drafts: DraftStore, data_dir: Path) -> None:
        backups = data_dir / "drafts" / "backups"
        backups.mkdir(parents=True)
        (backups / "p1-email-extra-2026-01-01T00-00-00.md").write_text("x", encoding="utf-8")
        assert drafts.list_backups("p1", "email") == []

    def test_read_backup_strips_directories(self, drafts: DraftStore, data_dir: Path) -> None:
        (data_dir / "secret.md").write_text("secret", encoding="utf-8")
        assert drafts.read_backup("../../secret.md") == ""

    def test_read_unknown_backup_is_empty(self, drafts: DraftStore) -> None:
        assert drafts.read_backup("nope.md") == ""


class TestDocsFolder:
    def test_write_read_list(self, drafts: DraftStore) -> None:
        drafts.write_doc_file("plan.md", "# Plan")
        assert drafts.read_doc_file("plan.md") == "# Plan"
        assert drafts.read_doc_file("../docs/plan.md") == "# Plan"
        assert drafts.list_doc_files() == ["plan.md"]

    def test_list_skips_hidden_and_conflicts(self, drafts: DraftStore, data_dir: Path) -> None:
        docs = data_dir / "docs"
        docs.mkdir()
        for name in ("a.md", ".DS_Store", "a.sync-conflict-1.md"):
            (docs / name).write_text("x", encoding="utf-8")
        assert drafts.list_doc_files() == ["a.md"]

    def test_missing_doc_is_empty(self, drafts: DraftStore) -> None:
        assert drafts.read_doc_file("missing.md") == ""


def test_backup_uses_utc_second_resolution(tmp_path: Path) -> None:
    clock = TickingClock(start=datetime(2026, 7, 4, 23, 59, 58, 999000, tzinfo=timezone.utc))
    store = DraftStore(tmp_path, clock=clock)
    store.write_draft_with_backup("p", "email", "a")
    assert store.write_draft_with_backup("p", "email", "b") == "p-email-2026-07-04T23-59-58.md"
