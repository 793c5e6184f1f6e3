"""
Document Ingestion

Turns raw document text into persisted, searchable chunks as one atomic
unit: either every non-blank chunk of a document is stored with its
embedding, or no row of that document exists.

Workflow
--------
1. Chunk the text (fixed window policy).
2. Open a transaction and insert the document row.
3. Embed and insert each non-blank chunk, in source order.
4. Commit; on any failure, roll back and raise IngestionAborted.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..core.errors import EmptyDocument, EmbeddingUnavailable, IngestionAborted
from ..db.chunk_store import ChunkStore
from ..embeddings.embedder import Embedder
from ..ingestion.chunker import chunk_text
from ..ingestion.extractor import extract_text

logger = logging.getLogger("pdf_chat.ingestion")

CHUNK_SIZE = 500
CHUNK_OVERLAP = 50


@dataclass(frozen=True)
class IngestionResult:
    document_id: int
    filename: str
    chunks_stored: int


async def ingest_document(
    raw_text: str,
    filename: str,
    store: ChunkStore,
    embedder: Embedder,
) -> IngestionResult:
    """
    Chunk, embed and store one document.

    Stored chunk orders are renumbered ``0..n-1`` over the non-blank chunks,
    so they stay gap-free even when blank windows are skipped.

    Raises
    ------
    EmptyDocument
        If ``raw_text`` is empty or whitespace-only. Nothing is written.
    IngestionAborted
        If anything fails once the transaction is open. The transaction is
        rolled back and the original error is chained as ``__cause__``.
    """
    if not raw_text.strip():
        raise EmptyDocument(filename)

    chunks = chunk_text(raw_text, CHUNK_SIZE, CHUNK_OVERLAP)
    logger.info("Divided %s into %d chunks.", filename, len(chunks))

    await store.begin()
    try:
        document_id = await store.insert_document(filename)
        logger.info("Stored document record for %s with ID: %s", filename, document_id)

        stored = 0
        for index, chunk in enumerate(chunks):
            if not chunk.strip():
                logger.debug("Skipping blank chunk %d/%d of %s", index + 1, len(chunks), filename)
                continue

            logger.debug("Generating embedding for chunk %d/%d...", index + 1, len(chunks))
            vector = await embedder.embed(chunk)
            if len(vector) == 0:
                raise EmbeddingUnavailable(f"No embedding produced for chunk {index}.")

            await store.insert_chunk(document_id, chunk, vector, stored)
            stored += 1

        await store.commit()
    except asyncio.CancelledError:
        await store.rollback()
        logger.warning("Ingestion of %s cancelled and rolled back", filename)
        raise
    except Exception as exc:
        await store.rollback()
        logger.error("Ingestion of %s rolled back: %s", filename, exc)
        raise IngestionAborted(filename, type(exc).__name__) from exc

    logger.info("Committed %d chunks for document ID: %s", stored, document_id)
    return IngestionResult(
        document_id=document_id,
        filename=filename,
        chunks_stored=stored,
    )


async def ingest_pdf(
    pdf_bytes: bytes,
    filename: str,
    store: ChunkStore,
    embedder: Embedder,
) -> IngestionResult:
    """
    Extract the text of an uploaded PDF and ingest it.
    """
    logger.info("Processing PDF: %s", filename)
    raw_text = await extract_text(pdf_bytes, filename)
    return await ingest_document(raw_text, filename, store, embedder)
