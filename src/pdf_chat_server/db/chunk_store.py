"""
Chunk Store

PostgreSQL + pgvector storage gateway for documents and their embedded
chunks. This is the only module that knows about SQL; services talk to it
through plain Python values.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Union

import numpy as np
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Document, TextChunk
from ..config import settings

VectorLike = Union[np.ndarray, Sequence[float]]


@dataclass(frozen=True)
class RankedChunk:
    """One row of a distance-ranked query result (lower score = closer)."""

    chunk_text: str
    chunk_order: int
    similarity_score: float


class ChunkStore:
    """
    Transactional storage gateway bound to one async database session.

    Ownership contract: a document's chunks reference it through a
    ``ON DELETE CASCADE`` foreign key, so deleting a document removes its
    chunks in the same statement.
    """

    def __init__(self, session: AsyncSession, dimension: Optional[int] = None) -> None:
        """
        Parameters
        ----------
        session : AsyncSession
            SQLAlchemy async session for database operations.

        dimension : Optional[int]
            Expected vector width. Defaults to settings.embedding_dimension.
        """
        self._session = session
        self._dimension = dimension or settings.embedding_dimension

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def begin(self) -> None:
        """
        Start a transaction unless one is already open on the session.
        """
        if not self._session.in_transaction():
            await self._session.begin()

    async def commit(self) -> None:
        """
        Commit the current transaction.
        """
        await self._session.commit()

    async def rollback(self) -> None:
        """
        Roll back the current transaction, discarding all pending rows.
        """
        await self._session.rollback()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert_document(self, filename: str) -> int:
        """
        Insert a document row and return its generated id.

        The row is flushed, not committed; it becomes visible to other
        sessions only on commit.
        """
        document = Document(filename=filename)
        self._session.add(document)
        await self._session.flush()
        return document.id

    async def insert_chunk(
        self,
        document_id: int,
        text: str,
        vector: VectorLike,
        order: int,
    ) -> None:
        """
        Insert one chunk with its embedding.

        Raises
        ------
        ValueError
            If the vector is not a 1-D array of the configured dimension.
        """
        embedding = self._as_vector(vector)
        self._session.add(
            TextChunk(
                document_id=document_id,
                chunk_text=text,
                chunk_order=order,
                embedding_vector=embedding,
            )
        )
        await self._session.flush()

    async def delete_document(self, document_id: int) -> bool:
        """
        Delete a document and, through the FK cascade, all its chunks.

        Returns True if a document row was removed.
        """
        stmt = delete(Document).where(Document.id == document_id)
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def top_k_by_distance(
        self,
        document_id: int,
        query_vector: VectorLike,
        k: int = 5,
    ) -> List[RankedChunk]:
        """
        Return the ``k`` chunks of a document closest to ``query_vector``.

        Uses pgvector's cosine distance operator (``<=>``); results are
        ascending by distance, ties in chunk order.
        """
        embedding = self._as_vector(query_vector)
        cosine_distance = TextChunk.embedding_vector.cosine_distance(embedding)

        stmt = (
            select(
                TextChunk.chunk_text,
                TextChunk.chunk_order,
                cosine_distance.label("similarity_score"),
            )
            .where(TextChunk.document_id == document_id)
            .order_by(cosine_distance, TextChunk.chunk_order)
            .limit(k)
        )

        result = await self._session.execute(stmt)
        rows = result.all()

        return [
            RankedChunk(
                chunk_text=row.chunk_text,
                chunk_order=row.chunk_order,
                similarity_score=float(row.similarity_score),
            )
            for row in rows
        ]

    async def document_exists(self, document_id: int) -> bool:
        stmt = select(Document.id).where(Document.id == document_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def ping(self) -> datetime:
        """
        Round-trip to the database and return its current time.
        """
        result = await self._session.execute(select(func.now()))
        return result.scalar_one()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _as_vector(self, vector: VectorLike) -> np.ndarray:
        embedding = np.asarray(vector, dtype=np.float32)
        if embedding.shape != (self._dimension,):
            raise ValueError(
                f"Expected a vector of dimension {self._dimension}, got shape {embedding.shape}."
            )
        return embedding
