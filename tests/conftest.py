"""Shared pytest fixtures: an in-memory chunk store and a deterministic embedding model."""

from __future__ import annotations

import zlib
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pytest

from pdf_chat_server.db.chunk_store import RankedChunk
from pdf_chat_server.embeddings.embedder import Embedder

DIM = 32


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


class HashingBackend:
    """Bag-of-words model: each word bumps one of DIM buckets."""

    def __init__(self, dimension: int = DIM) -> None:
        self.dimension = dimension
        self.calls: List[str] = []

    async def encode(self, texts: Sequence[str]) -> List[List[float]]:
        vectors = []
        for text in texts:
            self.calls.append(text)
            vector = [0.01] * self.dimension
            for word in text.lower().split():
                vector[zlib.crc32(word.encode()) % self.dimension] += 1.0
            vectors.append(vector)
        return vectors


class FailingAfterBackend(HashingBackend):
    """Raises on the n-th encode call (1-based)."""

    def __init__(self, fail_on_call: int, dimension: int = DIM) -> None:
        super().__init__(dimension)
        self.fail_on_call = fail_on_call

    async def encode(self, texts: Sequence[str]) -> List[List[float]]:
        if len(self.calls) + 1 == self.fail_on_call:
            self.calls.append(texts[0])
            raise RuntimeError("inference crashed")
        return await super().encode(texts)


class InMemoryChunkStore:
    """
    Same interface as ChunkStore; rows become visible only on commit.
    """

    def __init__(self, dimension: int = DIM) -> None:
        self.dimension = dimension
        self.documents: Dict[int, str] = {}
        self.chunks: List[Tuple[int, str, np.ndarray, int]] = []
        self._pending_documents: Dict[int, str] = {}
        self._pending_chunks: List[Tuple[int, str, np.ndarray, int]] = []
        self._next_id = 1
        self.in_transaction = False
        self.commits = 0
        self.rollbacks = 0

    async def begin(self) -> None:
        self.in_transaction = True

    async def commit(self) -> None:
        self.documents.update(self._pending_documents)
        self.chunks.extend(self._pending_chunks)
        self._reset()
        self.commits += 1

    async def rollback(self) -> None:
        self._reset()
        self.rollbacks += 1

    def _reset(self) -> None:
        self._pending_documents = {}
        self._pending_chunks = []
        self.in_transaction = False

    async def insert_document(self, filename: str) -> int:
        document_id = self._next_id
        self._next_id += 1
        self._pending_documents[document_id] = filename
        return document_id

    async def insert_chunk(self, document_id, text, vector, order) -> None:
        vector = np.asarray(vector, dtype=np.float32)
        if vector.shape != (self.dimension,):
            raise ValueError("bad dimension")
        self._pending_chunks.append((document_id, text, vector, order))

    async def delete_document(self, document_id: int) -> bool:
        if document_id not in self.documents:
            return False
        del self.documents[document_id]
        self.chunks = [c for c in self.chunks if c[0] != document_id]
        return True

    async def top_k_by_distance(self, document_id, query_vector, k=5) -> List[RankedChunk]:
        query = np.asarray(query_vector, dtype=np.float32)
        scored = []
        for doc_id, text, vector, order in self.chunks:
            if doc_id != document_id:
                continue
            cosine = float(np.dot(query, vector) / (np.linalg.norm(query) * np.linalg.norm(vector)))
            scored.append(RankedChunk(chunk_text=text, chunk_order=order, similarity_score=1.0 - cosine))
        scored.sort(key=lambda r: (r.similarity_score, r.chunk_order))
        return scored[:k]

    async def document_exists(self, document_id: int) -> bool:
        return document_id in self.documents

    def orders_for(self, document_id: int) -> List[int]:
        return [order for doc_id, _, _, order in self.chunks if doc_id == document_id]


def make_embedder(backend: Optional[HashingBackend] = None) -> Embedder:
    backend = backend or HashingBackend()

    async def loader():
        return backend

    return Embedder(loader=loader, expected_dimension=backend.dimension)


@pytest.fixture
def backend() -> HashingBackend:
    return HashingBackend()


@pytest.fixture
def embedder(backend) -> Embedder:
    return make_embedder(backend)


@pytest.fixture
def store() -> InMemoryChunkStore:
    return InMemoryChunkStore()
