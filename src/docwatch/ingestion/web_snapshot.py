"""WebSnapshotIngester – capture a URL and keep only versions that changed
-------------------------------------------------------------------------
• Renders the page (scripts executed), normalizes whitespace
• Splits the text into word windows and drops noise-sized windows
• Diffs against the latest stored snapshot of the same URL
• Embeds and stores a new snapshot only on first capture or on change

Public API
~~~~~~~~~~
    ingest(url)          -> list[ChangeRun]
    ingest_all(urls)     -> list[IngestOutcome]
    tracked_urls()       -> list[str]
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from docwatch import config
from docwatch.core.chunking import chunk_text
from docwatch.core.differ import diff, normalize_text
from docwatch.core.embeddings import EmbeddingProvider
from docwatch.core.schema import ChangeRun, Chunk, Snapshot, utcnow
from docwatch.ingestion.page_renderer import PageRenderer
from docwatch.rag.chunk_store import ChunkStore

__all__ = ["WebSnapshotIngester", "IngestOutcome"]

LOGGER = logging.getLogger(__name__)


@dataclass
class IngestOutcome:
    url: str
    changes: List[ChangeRun] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class WebSnapshotIngester:
    def __init__(
        self,
        renderer: PageRenderer,
        embedder: EmbeddingProvider,
        store: ChunkStore,
        params: config.SysParams | None = None,
        collection: Optional[str] = None,
    ):
        self.renderer = renderer
        self.embedder = embedder
        self.store = store
        self.params = params or config.SysParams.from_env()
        self.collection = collection
        # one lock per URL so two captures of the same page never race on "latest";
        # an entry lives only while some ingest of that URL holds or awaits it
        self._url_locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(self, url: str) -> List[ChangeRun]:
        lock = self._url_locks.setdefault(url, asyncio.Lock())
        self._lock_users[url] = self._lock_users.get(url, 0) + 1
        try:
            async with lock:
                return await self._ingest_locked(url)
        finally:
            self._lock_users[url] -= 1
            if not self._lock_users[url]:
                del self._lock_users[url]
                del self._url_locks[url]

    async def tracked_urls(self) -> List[str]:
        """Web URLs with at least one stored snapshot; uploaded files are left out."""
        tracked = await asyncio.to_thread(self.store.tracked_urls, self.collection)
        return [u for u in tracked if u.startswith(("http://", "https://"))]

    async def ingest_all(self, urls: Optional[Iterable[str]] = None) -> List[IngestOutcome]:
        """Re-run ``ingest`` for every tracked URL; one failing URL never blocks the rest."""
        if urls is None:
            urls = await self.tracked_urls()
        urls = list(dict.fromkeys(urls))
        semaphore = asyncio.Semaphore(max(1, self.params.max_concurrent_ingests))

        async def run_one(url: str) -> IngestOutcome:
            async with semaphore:
                try:
                    changes = await self.ingest(url)
                except Exception as err:
                    LOGGER.exception("Failed to process %s: %s", url, err)
                    return IngestOutcome(url=url, error=err)
                return IngestOutcome(url=url, changes=changes)

        outcomes = await asyncio.gather(*(run_one(u) for u in urls))
        failed = sum(1 for o in outcomes if not o.ok)
        LOGGER.info("Checked %d URLs (%d failed)", len(outcomes), failed)
        return list(outcomes)

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    async def _ingest_locked(self, url: str) -> List[ChangeRun]:
        page = await self.renderer.render(url)
        text = normalize_text(page.text)
        texts = chunk_text(text, self.params.chunk_words, self.params.min_chunk_chars)

        previous = await asyncio.to_thread(self.store.find_latest_snapshot, url, self.collection)
        changes = diff(previous.original_text, text) if previous else []

        if previous is not None and not changes:
            LOGGER.info("No significant change for %s, skipping snapshot.", url)
            return []

        vectors = await asyncio.to_thread(self.embedder.embed, texts)
        created_at = utcnow()
        snapshot = Snapshot(
            id=str(uuid.uuid4()),
            url=url,
            title=page.title,
            original_text=text,
            chunks=[
                Chunk(source_id=url, source_title=page.title, text=t, vector=v, created_at=created_at)
                for t, v in zip(texts, vectors)
            ],
            changes_from_previous=changes,
            created_at=created_at,
            previous_id=previous.id if previous else None,
        )
        await asyncio.to_thread(self.store.insert_snapshot, snapshot, self.collection)
        LOGGER.info("Embedded and stored %d chunks from %s", len(snapshot.chunks), url)
        return changes
