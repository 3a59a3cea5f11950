"""Batch web snapshot refresh.

Re-captures every URL already tracked in the snapshot store (plus any URLs
given on the command line), stores a new snapshot for each page whose text
changed and logs the word-level changes.

    docwatch-refresh [URL ...]

Environment variables
---------------------
OPENAI_API_KEY          – OpenAI key for embeddings
DOCWATCH_DATA_DIR       – root of the snapshot store (default ./data)
MAX_CONCURRENT_INGESTS  – pages rendered at once (default 4)
"""
from __future__ import annotations

import asyncio
import logging
import sys
from typing import List, Optional

from docwatch import config
from docwatch.core.embeddings import OpenAIEmbedding
from docwatch.ingestion.page_renderer import PlaywrightPageRenderer
from docwatch.ingestion.web_snapshot import IngestOutcome, WebSnapshotIngester
from docwatch.rag.chunk_store import JsonChunkStore

LOGGER = logging.getLogger("batch_ingest")


def build_ingester(params: config.SysParams | None = None) -> WebSnapshotIngester:
    params = params or config.SysParams.from_env()
    return WebSnapshotIngester(
        renderer=PlaywrightPageRenderer(timeout=params.fetch_timeout),
        embedder=OpenAIEmbedding(timeout=params.provider_timeout),
        store=JsonChunkStore(),
        params=params,
    )


async def refresh(ingester: WebSnapshotIngester, extra_urls: Optional[List[str]] = None) -> List[IngestOutcome]:
    urls = [*await ingester.tracked_urls(), *(extra_urls or [])]
    if not urls:
        LOGGER.warning("No URLs tracked yet; pass one or more URLs to start tracking.")
        return []

    outcomes = await ingester.ingest_all(urls)
    for outcome in outcomes:
        if not outcome.ok:
            LOGGER.error("%s: failed (%s)", outcome.url, outcome.error)
        elif outcome.changes:
            LOGGER.info("%s: %d change runs", outcome.url, len(outcome.changes))
            for run in outcome.changes:
                LOGGER.info("  %s %s", "+" if run.type == "added" else "-", run.text[:120])
        else:
            LOGGER.info("%s: unchanged or first capture", outcome.url)
    return outcomes


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    argv = sys.argv[1:] if argv is None else argv

    outcomes = asyncio.run(refresh(build_ingester(), argv))
    return 1 if any(not o.ok for o in outcomes) else 0


if __name__ == "__main__":
    sys.exit(main())
