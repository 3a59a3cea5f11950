"""FileIngester – upload path for office documents
--------------------------------------------------
• Supports .pdf, .docx, .xlsx, .pptx (easily extensible)
• Converts each file to plain text, one "page" per page/sheet/slide
• Splits the text into the same word windows used for web pages
• Stores the result as a snapshot keyed ``file://<name>``
• Optionally uploads the raw bytes to the remote index service

Public API
~~~~~~~~~~
    DocumentIngestor.extract_text(file_bytes, file_name) -> str
    FileIngester.ingest(file_bytes, file_name)          -> Snapshot
"""

from __future__ import annotations

import logging
import unicodedata
import uuid
from io import BytesIO
from pathlib import Path
from typing import List, Optional

import pdfplumber
import pandas as pd
from docx import Document as DocxDocument
from pptx import Presentation

from docwatch import config
from docwatch.core.chunking import chunk_text
from docwatch.core.differ import diff, normalize_text
from docwatch.core.embeddings import EmbeddingProvider
from docwatch.core.schema import Chunk, Snapshot, utcnow
from docwatch.rag.chunk_store import ChunkStore
from docwatch.rag.vector_store import ManagedIndexService

__all__ = ["DocumentIngestor", "FileIngester", "file_source_id"]

LOGGER = logging.getLogger(__name__)

ALLOWED_EXT = {".pdf", ".docx", ".xlsx", ".pptx"}


def file_source_id(file_name: str) -> str:
    return f"file://{file_name}"


class DocumentIngestor:
    """Convert heterogeneous files to plain text."""

    def extract_text(self, file_bytes: bytes, file_name: str) -> str:
        ext = self._detect_extension(file_name)
        pages = self._parse_to_pages(file_bytes, ext)
        return "\n\n".join(p for p in pages if p.strip())

    # ------------------------------------------------------------------
    # Private — detection / parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _detect_extension(file_name: str) -> str:
        ext = Path(file_name).suffix.lower()
        if ext not in ALLOWED_EXT:
            raise ValueError(f"Unsupported file extension: {ext}")
        return ext

    def _parse_to_pages(self, file_bytes: bytes, ext: str) -> List[str]:
        match ext:
            case ".pdf":
                return self._parse_pdf(file_bytes)
            case ".docx":
                return self._parse_docx(file_bytes)
            case ".xlsx":
                return self._parse_excel(file_bytes)
            case ".pptx":
                return self._parse_pptx(file_bytes)
            case _:
                raise AssertionError("unreachable")

    # ---- format‑specific parsers -------------------------------------

    def _parse_pdf(self, file_bytes: bytes) -> List[str]:
        pages = []
        with pdfplumber.open(BytesIO(file_bytes)) as pdf:
            for page in pdf.pages:
                text = page.extract_text() or ""
                text = unicodedata.normalize("NFKC", text).strip()
                if text:
                    pages.append(text)
        return pages

    def _parse_docx(self, file_bytes: bytes) -> List[str]:
        doc = DocxDocument(BytesIO(file_bytes))
        paragraphs = [p.text.strip() for p in doc.paragraphs if p.text.strip()]
        return ["\n".join(paragraphs)]

    def _parse_excel(self, file_bytes: bytes) -> List[str]:
        xl = pd.ExcelFile(BytesIO(file_bytes))
        pages = []
        for sheet in xl.sheet_names:
            df = xl.parse(sheet)
            pages.append(f"### Sheet: {sheet}\n" + df.to_markdown(index=False))
        return pages

    def _parse_pptx(self, file_bytes: bytes) -> List[str]:
        prs = Presentation(BytesIO(file_bytes))
        pages = []
        for slide in prs.slides:
            texts = [s.text for s in slide.shapes if hasattr(s, "text") and s.text.strip()]
            pages.append("\n".join(texts))
        return pages


class FileIngester:
    """Chunk, embed and store an uploaded document like a captured page."""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        store: ChunkStore,
        parser: Optional[DocumentIngestor] = None,
        remote: Optional[ManagedIndexService] = None,
        params: config.SysParams | None = None,
        collection: Optional[str] = None,
    ):
        self.embedder = embedder
        self.store = store
        self.parser = parser or DocumentIngestor()
        self.remote = remote
        self.params = params or config.SysParams.from_env()
        self.collection = collection

    def ingest(self, file_bytes: bytes, file_name: str) -> Snapshot:
        text = normalize_text(self.parser.extract_text(file_bytes, file_name))
        texts = chunk_text(text, self.params.chunk_words, self.params.min_chunk_chars)

        source_id = file_source_id(file_name)
        previous = self.store.find_latest_snapshot(source_id, self.collection)
        changes = diff(previous.original_text, text) if previous else []
        if previous is not None and not changes:
            LOGGER.info("%s is unchanged since its last upload, skipping.", file_name)
            return previous

        vectors = self.embedder.embed(texts)
        remote_file_id = self.remote.upload_file(file_name, file_bytes) if self.remote else None

        created_at = utcnow()
        snapshot = Snapshot(
            id=str(uuid.uuid4()),
            url=source_id,
            title=file_name,
            original_text=text,
            chunks=[
                Chunk(source_id=source_id, source_title=file_name, text=t, vector=v, created_at=created_at)
                for t, v in zip(texts, vectors)
            ],
            changes_from_previous=changes,
            created_at=created_at,
            previous_id=previous.id if previous else None,
            remote_file_id=remote_file_id,
        )
        self.store.insert_snapshot(snapshot, self.collection)
        LOGGER.info("  ↳ stored %d chunks from %s", len(snapshot.chunks), file_name)
        return snapshot
