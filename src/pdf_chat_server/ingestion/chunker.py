"""Sliding-window text chunking."""

from __future__ import annotations

from typing import List

from ..core.errors import ChunkingConfigInvalid


def chunk_text(text: str, chunk_size: int, overlap: int) -> List[str]:
    """Split *text* into overlapping fixed-width character windows.

    Parameters
    ----------
    text:
        Source text. Empty text yields no chunks.
    chunk_size:
        Maximum number of characters per chunk.
    overlap:
        Number of characters shared by consecutive chunks.

    Returns
    -------
    list[str]
        Chunks in source order. The final chunk may be shorter than
        ``chunk_size``. Blank chunks are returned as-is.

    Raises
    ------
    ChunkingConfigInvalid
        If ``chunk_size <= 0``, ``overlap < 0`` or ``chunk_size <= overlap``.
    """
    if chunk_size <= 0 or overlap < 0 or chunk_size - overlap <= 0:
        raise ChunkingConfigInvalid(
            f"Invalid chunking config: chunk_size={chunk_size}, overlap={overlap}"
        )

    step = chunk_size - overlap
    chunks: List[str] = []
    start = 0

    while start < len(text):
        end = min(start + chunk_size, len(text))
        chunks.append(text[start:end])
        if end == len(text):
            break
        start += step

    return chunks
