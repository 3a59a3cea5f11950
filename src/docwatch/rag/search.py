from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from docwatch.core.embeddings import EmbeddingProvider
from docwatch.core.schema import RankedChunk
from docwatch.rag.chunk_store import ChunkStore

LOGGER = logging.getLogger(__name__)


def cosine_scores(query: Sequence[float], matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of *query* against every row of *matrix*; zero-norm rows score 0."""
    q = np.asarray(query, dtype=float)
    q_norm = np.linalg.norm(q)
    row_norms = np.linalg.norm(matrix, axis=1)
    denom = row_norms * q_norm
    dots = matrix @ q
    return np.divide(dots, denom, out=np.zeros_like(dots, dtype=float), where=denom > 0)


class SimilaritySearch:
    """
    Ranks stored chunks against a query by cosine similarity.

    Every call reads the whole collection from the store, so there is no index
    to keep in sync between calls.
    """

    def __init__(self, store: ChunkStore, embedder: EmbeddingProvider, collection: Optional[str] = None):
        self.store = store
        self.embedder = embedder
        self.collection = collection

    def search(self, query_text: str, top_k: int = 10) -> List[RankedChunk]:
        if top_k <= 0:
            return []

        chunks = self.store.scan_all_chunks(self.collection)
        if not chunks:
            LOGGER.info("Collection is empty, nothing to search.")
            return []

        query_vector = self.embedder.embed([query_text])[0]
        dim = len(query_vector)
        usable = [c for c in chunks if len(c.vector) == dim]
        if len(usable) < len(chunks):
            LOGGER.warning(
                "Skipping %d chunks whose vector size differs from the query (%d).",
                len(chunks) - len(usable), dim,
            )
        if not usable:
            return []

        matrix = np.asarray([c.vector for c in usable], dtype=float)
        scores = cosine_scores(query_vector, matrix)
        order = np.argsort(-scores, kind="stable")[:top_k]
        return [RankedChunk(chunk=usable[i], score=float(scores[i])) for i in order]
