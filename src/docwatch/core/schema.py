from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Literal, Optional

ChangeType = Literal["added", "removed"]
Role = Literal["user", "assistant"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Chunk:
    source_id: str       # url, or file://<name> for uploads
    source_title: str
    text: str
    vector: List[float]
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "source_title": self.source_title,
            "text": self.text,
            "vector": list(self.vector),
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Chunk":
        return cls(
            source_id=data["source_id"],
            source_title=data.get("source_title", ""),
            text=data["text"],
            vector=[float(v) for v in data["vector"]],
            created_at=datetime.fromisoformat(data["created_at"]),
        )


@dataclass(frozen=True)
class RankedChunk:
    chunk: Chunk
    score: float

    @property
    def source_id(self) -> str:
        return self.chunk.source_id

    @property
    def source_title(self) -> str:
        return self.chunk.source_title

    @property
    def text(self) -> str:
        return self.chunk.text


@dataclass(frozen=True)
class ChangeRun:
    type: ChangeType
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "text": self.text}


@dataclass
class Snapshot:
    id: str
    url: str
    title: str
    original_text: str
    chunks: List[Chunk]
    changes_from_previous: List[ChangeRun]
    created_at: datetime = field(default_factory=utcnow)
    previous_id: Optional[str] = None
    remote_file_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "original_text": self.original_text,
            "chunks": [c.to_dict() for c in self.chunks],
            "changes_from_previous": [c.to_dict() for c in self.changes_from_previous],
            "created_at": self.created_at.isoformat(),
            "previous_id": self.previous_id,
            "remote_file_id": self.remote_file_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        return cls(
            id=data["id"],
            url=data["url"],
            title=data.get("title", ""),
            original_text=data.get("original_text", ""),
            chunks=[Chunk.from_dict(c) for c in data.get("chunks", [])],
            changes_from_previous=[
                ChangeRun(type=c["type"], text=c["text"])
                for c in data.get("changes_from_previous", [])
            ],
            created_at=datetime.fromisoformat(data["created_at"]),
            previous_id=data.get("previous_id"),
            remote_file_id=data.get("remote_file_id"),
        )


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    content: str

    def to_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ContextPayload:
    history: List[ConversationTurn]
    context_block: str


@dataclass(frozen=True)
class ReconcileResult:
    added: List[str]
    removed: List[str]
