from __future__ import annotations

import math

import pytest

from docwatch.core.chunking import chunk_text


def _words(n: int) -> str:
    return " ".join(f"word{i}" for i in range(1, n + 1))


def test_250_words_with_window_200_gives_two_chunks():
    chunks = chunk_text(_words(250), max_words=200)

    assert len(chunks) == 2
    assert chunks[0].split() == [f"word{i}" for i in range(1, 201)]
    assert chunks[1].split() == [f"word{i}" for i in range(201, 251)]


@pytest.mark.parametrize("n,w", [(1, 5), (10, 3), (12, 4), (401, 200)])
def test_window_count_is_ceil_n_over_w(n, w):
    # long words so nothing is filtered as noise
    text = " ".join(f"somewhatlongword{i}" for i in range(n))
    assert len(chunk_text(text, max_words=w, min_chars=0)) == math.ceil(n / w)


def test_short_chunks_are_discarded():
    text = _words(200) + " tail"
    chunks = chunk_text(text, max_words=200, min_chars=20)
    assert len(chunks) == 1


def test_whitespace_is_collapsed_before_splitting():
    chunks = chunk_text("alpha\n\n beta\t gamma   delta epsilon zeta", max_words=3, min_chars=0)
    assert chunks == ["alpha beta gamma", "delta epsilon zeta"]


def test_empty_text_gives_no_chunks():
    assert chunk_text("   ") == []


def test_invalid_window_raises():
    with pytest.raises(ValueError):
        chunk_text("text", max_words=0)
