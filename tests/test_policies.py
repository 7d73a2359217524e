"""Tests for the smaller policies: ideas, memory log, agenda, docs, analytics."""

from __future__ import annotations

from hq.policies import agenda, analytics, docs, ideas, memory_log
from hq.policies.common import add_tag, archive_overflow, remove_tag
from tests.conftest import ts


class TestCommon:
    def test_archive_overflow_under_cap_is_identity(self) -> None:
        live, archive = [{"id": "a", "t": ts(1)}], []
        assert archive_overflow(live, archive, 6, lambda i: i["t"]) == (live, archive)

    def test_archive_overflow_keeps_live_order(self) -> None:
        live = [{"id": "b", "t": ts(2)}, {"id": "a", "t": ts(1)}, {"id": "c", "t": ts(3)}]
        kept, archive = archive_overflow(live, [], 2, lambda i: i["t"])
        assert [i["id"] for i in kept] == ["b", "c"]
        assert [i["id"] for i in archive] == ["a"]

    def test_tags(self) -> None:
        assert add_tag(["a"], " A ") == ["a"]
        assert add_tag(["a"], "") == ["a"]
        assert remove_tag(["a", "b"], "B") == ["a"]
        assert remove_tag(["a"], "zzz") == ["a"]


class TestIdeas:
    def test_new_idea_goes_first(self) -> None:
        doc = ideas.add_idea({"ideas": [{"id": "old"}]}, {"title": "New"}, now=ts(1))
        assert doc["ideas"][0]["title"] == "New"
        assert doc["ideas"][1]["id"] == "old"
        assert doc["tags"] == ["content", "business", "personal", "tool", "strategy"]

    def test_archive_and_restore(self) -> None:
        doc = {"ideas": [{"id": "i", "updatedAt": ts(0)}], "archive": [], "tags": ["x"]}
        doc = ideas.archive_idea(doc, "i", now=ts(1))
        assert doc["ideas"] == []
        assert doc["archive"][0]["updatedAt"] == ts(1)

        doc = ideas.restore_idea(doc, "i", now=ts(2))
        assert doc["archive"] == []
        assert doc["ideas"][0]["updatedAt"] == ts(2)

    def test_restore_unknown_is_noop(self) -> None:
        doc = ideas.with_tag_seed({"ideas": [], "archive": [{"id": "a"}], "tags": ["x"]})
        assert ideas.restore_idea(doc, "ghost", now=ts(1)) == doc

    def test_delete_only_from_archive(self) -> None:
        doc = {"ideas": [{"id": "i"}], "archive": [{"id": "i"}], "tags": ["x"]}
        result = ideas.delete_idea(doc, "i")
        assert result["ideas"] == [{"id": "i"}]
        assert result["archive"] == []

    def test_tag_management(self) -> None:
        doc = ideas.add_tag({"tags": ["x"]}, "Research")
        doc = ideas.add_tag(doc, "research")
        assert doc["tags"] == ["x", "research"]
        assert ideas.delete_tag(doc, "x")["tags"] == ["research"]


class TestMemoryLog:
    def test_add_entry_defaults(self) -> None:
        doc = memory_log.add_entry({"entries": []}, {"title": "Note"}, now=ts(1), today="2026-03-02")
        e = doc["entries"][0]
        assert e["date"] == "2026-03-02"
        assert e["author"] == "ivan"
        assert e["type"] == "manual-note"
        assert "relatedTo" not in e

    def test_retention_moves_old_entries_to_archive(self) -> None:
        doc = {"entries": [
            {"id": "ancient", "date": "2025-01-01"},
            {"id": "old", "date": "2025-12-01"},
            {"id": "recent", "date": "2026-02-28"},
        ]}
        result = memory_log.add_entry(doc, {"title": "t"}, now=ts(1), today="2026-03-02", retention_days=30)
        assert [e["id"] for e in result["archive"]] == ["ancient", "old"]
        assert [e["id"] for e in result["entries"]][0] == "recent"
        assert len(result["entries"]) + len(result["archive"]) == 4

    def test_retention_disabled_keeps_everything(self) -> None:
        doc = {"entries": [{"id": "ancient", "date": "2020-01-01"}]}
        result = memory_log.add_entry(doc, {}, now=ts(1), today="2026-03-02")
        assert result["archive"] == []
        assert len(result["entries"]) == 2

    def test_activity_by_day(self) -> None:
        doc = {"entries": [{"date": "2026-03-02"}, {"date": "2026-03-02"}, {"date": "2026-03-01"}]}
        days = memory_log.activity_by_day(doc, today="2026-03-02", days=3)
        assert days == [
            {"date": "2026-02-28", "count": 0},
            {"date": "2026-03-01", "count": 1},
            {"date": "2026-03-02", "count": 2},
        ]

    def test_update_and_delete(self) -> None:
        doc = {"entries": [{"id": "e", "title": "a"}]}
        assert memory_log.update_entry(doc, "e", {"title": "b"})["entries"][0]["title"] == "b"
        assert memory_log.delete_entry(doc, "e")["entries"] == []


class TestAgenda:
    def test_upsert_creates_then_updates(self) -> None:
        doc = agenda.upsert_notes({"entries": []}, "2026-03-02", "Focus", now=ts(1))
        assert len(doc["entries"]) == 1
        assert doc["entries"][0]["sentToTelegram"] is False

        doc = agenda.upsert_notes(doc, "2026-03-02", "Refocus", now=ts(2))
        assert len(doc["entries"]) == 1
        assert doc["entries"][0]["apolloNotes"] == "Refocus"
        assert doc["entries"][0]["updatedAt"] == ts(2)

    def test_mark_sent_creates_missing_entry(self) -> None:
        doc = agenda.mark_sent({"entries": []}, "2026-03-02", now=ts(3))
        entry = doc["entries"][0]
        assert entry["sentToTelegram"] is True
        assert entry["sentAt"] == ts(3)

    def test_mark_sent_keeps_notes(self) -> None:
        doc = agenda.upsert_notes({"entries": []}, "2026-03-02", "Focus", now=ts(1))
        doc = agenda.mark_sent(doc, "2026-03-02", now=ts(3))
        assert doc["entries"][0]["apolloNotes"] == "Focus"
        assert doc["entries"][0]["sentAt"] == ts(3)


class TestDocsAndAnalytics:
    def test_register_and_update_doc(self) -> None:
        doc = docs.register_doc({"docs": []}, {"filename": "plan.md"}, now=ts(1))
        entry = doc["docs"][0]
        assert entry["title"] == "plan.md"
        assert entry["category"] == "strategy"

        doc = docs.update_doc(doc, entry["id"], {"title": "Plan", "content": "ignored"}, now=ts(2))
        assert doc["docs"][0]["title"] == "Plan"
        assert "content" not in doc["docs"][0]
        assert doc["docs"][0]["lastModified"] == ts(2)

    def test_analytics_entry_only_for_known_platform(self) -> None:
        doc = {"platforms": {"youtube": {"name": "YouTube", "entries": []}}}
        result = analytics.add_entry(doc, "youtube", {"views": 10}, today="2026-03-02")
        assert result["platforms"]["youtube"]["entries"] == [{"views": 10, "date": "2026-03-02"}]
        assert analytics.add_entry(doc, "tiktok", {"views": 1}, today="2026-03-02") == doc

    def test_merge_ignores_last_modified(self) -> None:
        result = analytics.merge({"currentSprint": None, "lastModified": "a"}, {"currentSprint": {"n": 1}, "lastModified": "b"})
        assert result == {"currentSprint": {"n": 1}, "lastModified": "a"}
