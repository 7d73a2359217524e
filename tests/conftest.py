"""Shared fixtures: deterministic clocks, temp data dirs, API client."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
import pytest_asyncio

from hq.drafts.store import DraftStore
from hq.service import HQService
from hq.store.documents import InMemoryDocumentStore, JsonDocumentStore

REPO_DIR = Path(__file__).resolve().parent.parent


class TickingClock:
    """Clock that advances by ``step`` on every call."""

    def __init__(
        self,
        start: datetime = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc),
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current += self.step
        return now


def ts(n: int) -> str:
    """The n-th timestamp of a strictly increasing series."""
    return f"2026-01-01T00:00:{n:02d}.000Z"


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture()
def data_dir(tmp_path: Path) -> Path:
    d = tmp_path / "data"
    d.mkdir()
    return d


@pytest.fixture()
def json_store(data_dir: Path, clock: TickingClock) -> JsonDocumentStore:
    return JsonDocumentStore(data_dir, clock=clock)


@pytest.fixture()
def drafts(data_dir: Path, clock: TickingClock) -> DraftStore:
    return DraftStore(data_dir, clock=clock)


@pytest.fixture()
def service(data_dir: Path, clock: TickingClock) -> HQService:
    return HQService(InMemoryDocumentStore(clock=clock), DraftStore(data_dir, clock=clock), clock=clock)


@pytest_asyncio.fixture()
async def client(tmp_path: Path, data_dir: Path):
    """Async httpx client bound to the FastAPI app with a temp config and data dir."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    config_file = config_dir / "config.yaml"
    config_file.write_text(
        f"""
data_dir: {data_dir}
log_level: DEBUG
drafts:
  max_backups: 3
"""
    )

    with patch("hq.dashboard.routes.CONFIG_PATH", config_file), \
         patch.dict("os.environ", {}, clear=False):
        for key in ("HQ_CONFIG", "HQ_DATA_DIR", "DATA_DIR", "TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID"):
            os.environ.pop(key, None)

        from hq.dashboard.routes import _services
        _services.clear()

        from hq.dashboard.app import app
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
        _services.clear()
