"""
Chunk Retrieval

Ranks a document's stored chunks against a free-text question.

Responsibilities
----------------
- Embed the question
- Delegate top-K cosine-distance ranking to the chunk store
- Distinguish "unknown document" from "nothing relevant"
"""

from __future__ import annotations

import logging
from typing import List

from ..core.errors import EmbeddingUnavailable, QueryTargetMissing
from ..db.chunk_store import ChunkStore, RankedChunk
from ..embeddings.embedder import Embedder

logger = logging.getLogger("pdf_chat.retrieval")

TOP_K = 5


async def query_document(
    document_id: int,
    question: str,
    store: ChunkStore,
    embedder: Embedder,
    k: int = TOP_K,
) -> List[RankedChunk]:
    """
    Return up to ``k`` chunks of a document, closest first.

    Parameters
    ----------
    document_id : int
        Target document.

    question : str
        Free-text question. Must not be blank.

    store : ChunkStore
        Storage gateway used for ranking.

    embedder : Embedder
        Shared embedder; the question embedding is recomputed per call.

    k : int
        Maximum number of results.

    Returns
    -------
    List[RankedChunk]
        Ascending by distance. Empty only if the document exists but has no
        stored chunks.

    Raises
    ------
    EmbeddingUnavailable
        If the question cannot be embedded (including a blank question).
    QueryTargetMissing
        If no document with ``document_id`` exists.
    """
    logger.info("Querying document ID %s with question: %r", document_id, question)

    query_vector = await embedder.embed(question)
    if len(query_vector) == 0:
        raise EmbeddingUnavailable("Could not generate embedding for the question.")

    results = await store.top_k_by_distance(document_id, query_vector, k)

    # Existence is only checked on the empty path; a non-empty ranking
    # implies the document exists.
    if not results and not await store.document_exists(document_id):
        raise QueryTargetMissing(document_id)

    logger.info("Found %d relevant chunks.", len(results))
    return results
