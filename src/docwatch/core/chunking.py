from __future__ import annotations

from typing import List

from docwatch.core.differ import normalize_text


def chunk_text(text: str, max_words: int = 200, min_chars: int = 20) -> List[str]:
    """
    Split *text* into consecutive windows of ``max_words`` words.

    Windows of ``min_chars`` characters or fewer are dropped as noise.
    """
    if max_words < 1:
        raise ValueError("max_words must be positive")

    words = normalize_text(text).split(" ") if text and text.strip() else []
    chunks = []
    for i in range(0, len(words), max_words):
        chunk = " ".join(words[i : i + max_words])
        if len(chunk) > min_chars:  # skip very short ones
            chunks.append(chunk)
    return chunks
