"""Unit tests for the sliding-window chunker."""

import math

import pytest

from pdf_chat_server.core.errors import ChunkingConfigInvalid
from pdf_chat_server.ingestion.chunker import chunk_text


def _reconstruct(chunks, overlap):
    if not chunks:
        return ""
    return chunks[0] + "".join(c[overlap:] for c in chunks[1:])


def test_small_fixture_overlap_math() -> None:
    assert chunk_text("abcdefghij", 4, 1) == ["abcd", "defg", "ghij"]


def test_empty_text_yields_no_chunks() -> None:
    assert chunk_text("", 500, 50) == []


def test_short_text_is_single_chunk() -> None:
    assert chunk_text("hello", 500, 50) == ["hello"]
    assert chunk_text("x" * 500, 500, 50) == ["x" * 500]


def test_final_chunk_may_be_short() -> None:
    chunks = chunk_text("abcdefgh", 5, 1)
    assert chunks == ["abcde", "efgh"]


@pytest.mark.parametrize(
    "length,chunk_size,overlap",
    [(1, 4, 1), (10, 4, 1), (11, 4, 1), (501, 500, 50), (1234, 500, 50), (97, 10, 0), (30, 7, 6)],
)
def test_count_and_reconstruction(length, chunk_size, overlap) -> None:
    text = "".join(chr(ord("a") + i % 26) for i in range(length))
    chunks = chunk_text(text, chunk_size, overlap)

    if length <= chunk_size:
        expected = 1
    else:
        expected = math.ceil((length - overlap) / (chunk_size - overlap))
    assert len(chunks) == expected
    assert _reconstruct(chunks, overlap) == text
    assert all(len(c) <= chunk_size for c in chunks)


def test_whitespace_chunks_are_kept() -> None:
    chunks = chunk_text("ab    cd", 3, 0)
    assert chunks == ["ab ", "   ", "cd"]


def test_deterministic() -> None:
    text = "The quick brown fox jumps over the lazy dog. " * 40
    assert chunk_text(text, 500, 50) == chunk_text(text, 500, 50)


@pytest.mark.parametrize("chunk_size,overlap", [(4, 4), (4, 5), (0, 0), (-1, 0), (4, -1)])
def test_invalid_config_fails_fast(chunk_size, overlap) -> None:
    with pytest.raises(ChunkingConfigInvalid):
        chunk_text("abcdefghij", chunk_size, overlap)


def test_invalid_config_fails_even_for_empty_text() -> None:
    with pytest.raises(ChunkingConfigInvalid):
        chunk_text("", 10, 10)
