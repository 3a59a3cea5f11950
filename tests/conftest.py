"""
Shared fakes for the collaborators around the pipeline.

Provides: deterministic embedder, scripted page renderer, in-memory remote index
"""

from __future__ import annotations

import pytest

from docwatch.config import SysParams
from docwatch.exceptions import RemoteIndexError
from docwatch.ingestion.page_renderer import RenderedPage
from docwatch.rag.chunk_store import InMemoryChunkStore


class FakeEmbedder:
    """Letter-frequency vectors: same text, same vector; records every call."""

    def __init__(self, fixed: dict[str, list[float]] | None = None):
        self.fixed = fixed or {}
        self.calls: list[list[str]] = []

    def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self.fixed.get(t) or self._vector(t) for t in texts]

    @staticmethod
    def _vector(text: str) -> list[float]:
        vec = [0.0] * 26
        for ch in text.lower():
            if "a" <= ch <= "z":
                vec[ord(ch) - ord("a")] += 1.0
        return vec


class FakeRenderer:
    """Returns queued pages per URL; an exception in the queue is raised instead."""

    def __init__(self, pages: dict[str, list] | None = None):
        self.pages = {url: list(queue) for url, queue in (pages or {}).items()}
        self.rendered: list[str] = []

    async def render(self, url: str) -> RenderedPage:
        self.rendered.append(url)
        item = self.pages[url].pop(0) if len(self.pages[url]) > 1 else self.pages[url][0]
        if isinstance(item, BaseException):
            raise item
        return item


class FakeRemoteIndex:
    def __init__(self, members: list[str] | None = None, failing: set[str] | None = None):
        self.members = list(members or [])
        self.failing = set(failing or ())
        self.added: list[str] = []
        self.removed: list[str] = []
        self.created: list[str] = []
        self.uploads: dict[str, bytes] = {}

    def create_index(self, name: str) -> str:
        self.created.append(name)
        return f"vs_{name}"

    def upload_file(self, file_name: str, data: bytes) -> str:
        file_id = f"file_{len(self.uploads) + 1}"
        self.uploads[file_id] = data
        return file_id

    def list_members(self, index_id: str) -> list[str]:
        return list(self.members)

    def add_member(self, index_id: str, doc_id: str) -> None:
        if doc_id in self.failing:
            raise RemoteIndexError(f"File {doc_id} did not become ready: failed")
        self.members.append(doc_id)
        self.added.append(doc_id)

    def remove_member(self, index_id: str, doc_id: str) -> None:
        if doc_id in self.failing:
            raise RemoteIndexError(f"cannot delete {doc_id}")
        self.members.remove(doc_id)
        self.removed.append(doc_id)


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def store() -> InMemoryChunkStore:
    return InMemoryChunkStore(collection="test")


@pytest.fixture
def params() -> SysParams:
    return SysParams(history_length=4, num_top_links=3, max_concurrent_ingests=2)


def page(text: str, title: str = "Example") -> RenderedPage:
    return RenderedPage(title=title, text=text)
