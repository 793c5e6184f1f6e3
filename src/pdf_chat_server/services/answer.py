"""
Answer Synthesis

Builds the answer string returned alongside the ranked chunks. By default
the relevant snippets are concatenated; when an LLM client is supplied the
chunks are sent to it as context.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import httpx

from ..db.chunk_store import RankedChunk
from ..llm.client import LLMClient

logger = logging.getLogger("pdf_chat.answer")

NO_CONTEXT_ANSWER = (
    "I couldn't find any relevant information in the document to answer your question."
)

SYSTEM_PROMPT = (
    "You answer questions about a PDF document. Use only the numbered excerpts "
    "provided by the user. If the excerpts do not contain the answer, say so."
)


def _concatenate(chunks: Sequence[RankedChunk]) -> str:
    return "Based on the document, here's some relevant information:\n" + "\n\n".join(
        chunk.chunk_text for chunk in chunks
    )


def _build_context(chunks: Sequence[RankedChunk], question: str) -> str:
    excerpts = "\n\n".join(
        f"[{i + 1}] {chunk.chunk_text}" for i, chunk in enumerate(chunks)
    )
    return f"Excerpts:\n{excerpts}\n\nQuestion: {question}"


async def synthesize_answer(
    chunks: Sequence[RankedChunk],
    question: str,
    llm_client: Optional[LLMClient] = None,
) -> str:
    if not chunks:
        return NO_CONTEXT_ANSWER

    if llm_client is None:
        return _concatenate(chunks)

    try:
        message = await llm_client.chat(
            system_prompt=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": _build_context(chunks, question)}],
        )
    except httpx.HTTPError as exc:
        logger.warning("LLM answer failed (%s); falling back to snippets", type(exc).__name__)
        return _concatenate(chunks)

    content = message.get("content") or ""
    logger.debug("LLM answer length: %d", len(content))
    return content.strip() or _concatenate(chunks)
