"""Conversation history window and context assembly for the answering step."""

from __future__ import annotations

import json
import threading
from collections import deque
from typing import Any, Iterable, Tuple

from docwatch import config
from docwatch.core.schema import ContextPayload, ConversationTurn, RankedChunk
from docwatch.exceptions import ParseError

SUMMARY_FIELDS = ("summary", "answer", "explanation")


def format_citation(chunk: RankedChunk) -> str:
    title = chunk.source_title or chunk.source_id
    label = f"Source: {title}" if title == chunk.source_id else f"Source: {title} ({chunk.source_id})"
    return f"[{label}]\n{chunk.text}"


class ConversationContextBuilder:
    """
    Fixed-capacity FIFO of conversation turns. Appending past ``max_length`` drops
    the oldest turn; reads never reorder the window.
    """

    def __init__(self, max_length: int = config.HISTORY_LENGTH):
        if max_length < 1:
            raise ValueError("max_length must be at least 1")
        self.max_length = max_length
        self._history: deque[ConversationTurn] = deque(maxlen=max_length)
        self._lock = threading.Lock()

    @property
    def history(self) -> list[ConversationTurn]:
        with self._lock:
            return list(self._history)

    def _append(self, role: str, content: str) -> None:
        with self._lock:
            self._history.append(ConversationTurn(role=role, content=content))

    def append_user_turn(self, text: str) -> None:
        self._append("user", text)

    def append_assistant_turn(self, summary_text: str) -> None:
        """Record only the summary extracted from a parsed reply, never the raw reply."""
        self._append("assistant", summary_text)

    def build_context(self, retrieved: Iterable[RankedChunk]) -> ContextPayload:
        context_block = "\n\n".join(format_citation(c) for c in retrieved)
        return ContextPayload(history=self.history, context_block=context_block)

    def checkpoint(self) -> Tuple[ConversationTurn, ...]:
        with self._lock:
            return tuple(self._history)

    def rollback(self, checkpoint: Tuple[ConversationTurn, ...]) -> None:
        with self._lock:
            self._history.clear()
            self._history.extend(checkpoint)


def parse_reply(text: str) -> dict[str, Any]:
    """Parse the outermost JSON object embedded in a possibly noisy reply."""
    if not text:
        raise ParseError("Empty reply")
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise ParseError("No JSON object found in reply")
    try:
        parsed = json.loads(text[start : end + 1])
    except json.JSONDecodeError as err:
        raise ParseError(f"Reply is not valid JSON: {err}") from err
    if not isinstance(parsed, dict):
        raise ParseError("Reply JSON is not an object")
    return parsed


def extract_summary(reply: dict[str, Any]) -> str:
    for key in SUMMARY_FIELDS:
        value = reply.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    raise ParseError(f"Reply has none of the fields {', '.join(SUMMARY_FIELDS)}")
