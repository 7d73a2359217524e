"""Tests for the hq command-line interface."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from hq import cli


@pytest.fixture()
def run(tmp_path: Path, data_dir: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(f"data_dir: {data_dir}\n")
    for key in ("HQ_DATA_DIR", "DATA_DIR"):
        monkeypatch.delenv(key, raising=False)

    def _run(*argv: str) -> str:
        monkeypatch.setattr(sys, "argv", ["hq", "--config", str(cfg_file), *argv])
        cli.main()
        return capsys.readouterr().out

    return _run


class TestCLI:
    def test_show_prints_default_document(self, run) -> None:
        doc = json.loads(run("show", "tasks"))
        assert doc["tasks"] == []

    def test_backups_empty(self, run) -> None:
        assert "No backups for p1 (email)." in run("backups", "p1", "email")

    def test_docs_lists_unregistered_files(self, run, data_dir: Path) -> None:
        (data_dir / "docs").mkdir()
        (data_dir / "docs" / "loose.md").write_text("x", encoding="utf-8")
        out = run("docs")
        assert "Unregistered files:" in out
        assert "loose.md" in out

    def test_unknown_document_rejected(self, run) -> None:
        with pytest.raises(SystemExit):
            run("show", "nope")


def test_serve_exports_config_path_for_the_app(
    tmp_path: Path, data_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    cfg_file = tmp_path / "alt.yaml"
    cfg_file.write_text(f"data_dir: {data_dir}\n")
    for key in ("HQ_DATA_DIR", "DATA_DIR"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HQ_CONFIG", "")
    monkeypatch.delenv("HQ_CONFIG")
    monkeypatch.setattr(sys, "argv", ["hq", "--config", str(cfg_file), "serve", "--port", "3999"])

    with patch("hq.cli.setup_logging"), patch("uvicorn.run") as run_server:
        cli.main()

    assert run_server.call_args.kwargs["port"] == 3999
    assert os.environ["HQ_CONFIG"] == str(cfg_file.resolve())

    from hq.dashboard import routes
    assert routes._cfg()["data_dir"] == str(data_dir)
