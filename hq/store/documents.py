"""Named JSON document store with atomic writes and serialized updates.

Each logical document (see ``hq.store.registry``) lives in one pretty-printed
JSON file under the data directory. Reads never fail: a missing or corrupt
file yields the registered default. Writes go to a temp file in the same
directory and are renamed over the target, so readers only ever see a
complete document. ``update`` is the mutation primitive: read, apply a pure
function, write, all under a per-document lock.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Protocol

from hq.common.timeutil import Clock, system_clock, utc_now
from hq.store.registry import get_spec

logger = logging.getLogger("hq.store")

Document = dict[str, Any]
Policy = Callable[[Document], Document]


class DocumentStore(Protocol):
    def read(self, name: str) -> Document: ...

    def write(self, name: str, value: Document) -> Document: ...

    def update(self, name: str, fn: Policy) -> Document: ...


class _NameLocks:
    """Lazily created lock per document name."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def __call__(self, name: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.Lock()
            return lock


class JsonDocumentStore:
    """File-backed store: one ``<filename>.json`` per document name."""

    def __init__(self, data_dir: str | Path, clock: Clock = system_clock) -> None:
        self._data_dir = Path(os.path.expanduser(str(data_dir)))
        self._clock = clock
        self._lock_for = _NameLocks()

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, name: str) -> Path:
        return self._data_dir / get_spec(name).filename

    def read(self, name: str) -> Document:
        spec = get_spec(name)
        path = self._data_dir / spec.filename
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return spec.default()
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
            logger.warning("Unreadable document %s, using default: %s", path, exc)
            return spec.default()
        if not isinstance(data, dict):
            logger.warning("Document %s is not a JSON object, using default", path)
            return spec.default()
        return data

    def write(self, name: str, value: Document) -> Document:
        path = self.path_for(name)
        stamped = {**value, "lastModified": utc_now(self._clock)}
        content = json.dumps(stamped, indent=2, ensure_ascii=False)

        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{path.stem}-", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("Wrote %s (%d bytes)", path, len(content))
        return stamped

    def update(self, name: str, fn: Policy) -> Document:
        with self._lock_for(name):
            current = self.read(name)
            return self.write(name, fn(current))


class InMemoryDocumentStore:
    """Dict-backed store with the same contract, for tests and fakes."""

    def __init__(self, clock: Clock = system_clock) -> None:
        self._docs: dict[str, str] = {}
        self._clock = clock
        self._lock_for = _NameLocks()

    def read(self, name: str) -> Document:
        spec = get_spec(name)
        raw = self._docs.get(name)
        if raw is None:
            return spec.default()
        return json.loads(raw)

    def write(self, name: str, value: Document) -> Document:
        get_spec(name)
        stamped = {**copy.deepcopy(value), "lastModified": utc_now(self._clock)}
        self._docs[name] = json.dumps(stamped)
        return stamped

    def update(self, name: str, fn: Policy) -> Document:
        with self._lock_for(name):
            return self.write(name, fn(self.read(name)))
