"""Word-level change detection between two text snapshots.

Tokens are compared case-insensitively after whitespace normalization. Only the
changed material is reported: one run per contiguous block of added or removed
words. Unchanged text between two blocks always separates their runs.
"""

from __future__ import annotations

import re
from difflib import SequenceMatcher
from typing import List

from docwatch.core.schema import ChangeRun, ChangeType

__all__ = ["diff", "normalize_text"]

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Collapse every whitespace run to a single space and trim."""
    return _WHITESPACE.sub(" ", text or "").strip()


def _tokens(text: str) -> List[str]:
    return normalize_text(text).split()


def diff(old_text: str, new_text: str) -> List[ChangeRun]:
    old_words, new_words = _tokens(old_text), _tokens(new_text)
    matcher = SequenceMatcher(
        None,
        [w.lower() for w in old_words],
        [w.lower() for w in new_words],
        autojunk=False,
    )

    runs: List[ChangeRun] = []

    def emit(kind: ChangeType, words: List[str]) -> None:
        if words:
            runs.append(ChangeRun(type=kind, text=" ".join(words)))

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        # a "replace" reports the old words before the new ones
        if tag in ("delete", "replace"):
            emit("removed", old_words[i1:i2])
        if tag in ("insert", "replace"):
            emit("added", new_words[j1:j2])

    return runs
