"""Snapshot persistence.

Snapshots are append-only: each successful ingestion adds one record, and the
"latest" snapshot for a URL is the one with the greatest ``created_at``. Chunks are
read back by scanning every snapshot of a collection.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from collections import defaultdict
from typing import Dict, Iterator, List, Optional, Protocol

from docwatch import config
from docwatch.core.schema import Chunk, Snapshot

LOGGER = logging.getLogger(__name__)


class ChunkStore(Protocol):
    def insert_snapshot(self, snapshot: Snapshot, collection: Optional[str] = None) -> None: ...

    def find_latest_snapshot(self, url: str, collection: Optional[str] = None) -> Optional[Snapshot]: ...

    def scan_all_chunks(self, collection: Optional[str] = None) -> List[Chunk]: ...

    def tracked_urls(self, collection: Optional[str] = None) -> List[str]: ...


def _latest(snapshots: List[Snapshot]) -> Optional[Snapshot]:
    return max(snapshots, key=lambda s: s.created_at, default=None)


class InMemoryChunkStore:
    """Process-local store, mostly for tests and one-off scripts."""

    def __init__(self, collection: str = config.COLLECTION_NAME):
        self.collection = collection
        self._snapshots: Dict[str, List[Snapshot]] = defaultdict(list)
        self._lock = threading.Lock()

    def insert_snapshot(self, snapshot: Snapshot, collection: Optional[str] = None) -> None:
        with self._lock:
            self._snapshots[collection or self.collection].append(snapshot)

    def find_latest_snapshot(self, url: str, collection: Optional[str] = None) -> Optional[Snapshot]:
        with self._lock:
            return _latest([s for s in self._snapshots[collection or self.collection] if s.url == url])

    def scan_all_chunks(self, collection: Optional[str] = None) -> List[Chunk]:
        with self._lock:
            return [c for s in self._snapshots[collection or self.collection] for c in s.chunks]

    def tracked_urls(self, collection: Optional[str] = None) -> List[str]:
        with self._lock:
            return list(dict.fromkeys(s.url for s in self._snapshots[collection or self.collection]))


class JsonChunkStore:
    """
    Stores each collection as a JSON-lines file (one snapshot per line) under
    *root_dir*. Writes append, so earlier snapshots are never rewritten.
    """

    def __init__(self, root_dir: str = config.SNAPSHOT_DIR, collection: str = config.COLLECTION_NAME):
        self.root_dir = root_dir
        self.collection = collection
        self._lock = threading.Lock()
        os.makedirs(self.root_dir, exist_ok=True)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _path(self, collection: Optional[str]) -> str:
        name = collection or self.collection
        safe = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in name)
        return os.path.join(self.root_dir, f"{safe}.jsonl")

    def _iter_snapshots(self, collection: Optional[str]) -> Iterator[Snapshot]:
        path = self._path(collection)
        if not os.path.exists(path):
            return
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    yield Snapshot.from_dict(json.loads(line))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def insert_snapshot(self, snapshot: Snapshot, collection: Optional[str] = None) -> None:
        line = json.dumps(snapshot.to_dict(), ensure_ascii=False)
        with self._lock:
            with open(self._path(collection), "a", encoding="utf-8") as f:
                f.write(line + "\n")
        LOGGER.debug("Appended snapshot %s for %s", snapshot.id, snapshot.url)

    def find_latest_snapshot(self, url: str, collection: Optional[str] = None) -> Optional[Snapshot]:
        with self._lock:
            return _latest([s for s in self._iter_snapshots(collection) if s.url == url])

    def scan_all_chunks(self, collection: Optional[str] = None) -> List[Chunk]:
        with self._lock:
            return [c for s in self._iter_snapshots(collection) for c in s.chunks]

    def tracked_urls(self, collection: Optional[str] = None) -> List[str]:
        with self._lock:
            return list(dict.fromkeys(s.url for s in self._iter_snapshots(collection)))
