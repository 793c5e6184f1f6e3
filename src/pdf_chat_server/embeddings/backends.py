"""
Embedding Model Backends

This module implements the model-loading collaborator used by the Embedder.
A backend is a loaded, ready-to-use embedding model exposing:

- ``dimension``: the fixed output width D
- ``encode(texts)``: raw (not necessarily normalized) vectors, one per text

Two backends are provided:

- ``SentenceTransformerBackend``: a local sentence-transformers model, run
  in worker threads so inference never blocks the event loop.
- ``OpenAIEmbeddingBackend``: any OpenAI-compatible ``/embeddings`` HTTP
  endpoint.

Backends hold no per-request state and are safe to share across tasks.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Protocol, Sequence

import httpx

from ..config import Settings
from ..core.errors import EmbeddingUnavailable

logger = logging.getLogger("pdf_chat.embedder")


class EmbeddingBackend(Protocol):
    """Structural interface every loaded embedding model satisfies."""

    dimension: int

    async def encode(self, texts: Sequence[str]) -> List[List[float]]:
        ...


# ---------------------------------------------------------------------
# Local sentence-transformers model
# ---------------------------------------------------------------------

class SentenceTransformerBackend:
    """
    Wraps an already-loaded ``SentenceTransformer`` instance.

    Use :meth:`load` to construct one; loading downloads/reads model weights
    and can take seconds, so it is done off the event loop.
    """

    def __init__(self, model, model_name: str) -> None:
        self._model = model
        self.model_name = model_name
        self.dimension = int(model.get_sentence_embedding_dimension())

    @classmethod
    async def load(cls, model_name: str, device: str = "cpu") -> "SentenceTransformerBackend":
        from sentence_transformers import SentenceTransformer

        model = await asyncio.to_thread(SentenceTransformer, model_name, device=device)
        return cls(model, model_name)

    async def encode(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []

        vectors = await asyncio.to_thread(
            self._model.encode,
            list(texts),
            convert_to_numpy=True,
            normalize_embeddings=False,
            show_progress_bar=False,
        )
        return [vector.tolist() for vector in vectors]


# ---------------------------------------------------------------------
# OpenAI-compatible HTTP API
# ---------------------------------------------------------------------

class OpenAIEmbeddingBackend:
    """
    Asynchronous embedding generator backed by an OpenAI-compatible API.

    This class performs no caching; a new HTTP client is opened per call.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        dimension: int,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
    ) -> None:
        """
        Parameters
        ----------
        api_key : str
            Bearer token for the embeddings endpoint.

        model : str
            Embedding model identifier.

        dimension : int
            Requested output width. Sent as ``dimensions`` so models that
            support shortening return vectors matching the storage column.

        base_url : str
            API root; ``/embeddings`` is appended.

        timeout : float
            HTTP timeout for each request.
        """
        self.api_key = api_key
        self.model = model
        self.dimension = dimension
        self.url = base_url.rstrip("/") + "/embeddings"
        self.timeout = timeout

    async def encode(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Raises
        ------
        EmbeddingUnavailable
            If the request fails or the response is malformed.
        """
        if not texts:
            return []

        payload = {
            "model": self.model,
            "input": list(texts),
            "dimensions": self.dimension,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error(
                "Embedding request failed (%s): batch size=%d, error=%s",
                type(exc).__name__,
                len(texts),
                str(exc),
            )
            raise EmbeddingUnavailable(
                f"Embedding generation failed: {type(exc).__name__}"
            ) from exc

        return self._extract_embeddings(response.json())

    @staticmethod
    def _extract_embeddings(data: dict) -> List[List[float]]:
        """
        Parse and validate embedding output format.

        OpenAI returns:
            { "data": [ {"embedding": [...]}, ... ] }
        """
        if "data" not in data:
            raise EmbeddingUnavailable("Embedding response missing 'data' field.")

        records = data["data"]
        if not isinstance(records, list):
            raise EmbeddingUnavailable("'data' field must be a list.")

        embeddings: List[List[float]] = []

        for index, record in enumerate(records):
            if not isinstance(record, dict) or "embedding" not in record:
                raise EmbeddingUnavailable(
                    f"Malformed embedding record at index {index}."
                )

            emb = record["embedding"]
            if not isinstance(emb, list) or not all(
                isinstance(x, (float, int)) for x in emb
            ):
                raise EmbeddingUnavailable(
                    f"Invalid embedding vector at index {index}: must be float list."
                )

            embeddings.append([float(x) for x in emb])

        return embeddings


# ---------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------

async def load_backend(config: Settings) -> EmbeddingBackend:
    """
    Load the backend selected by ``config.embedding_backend``.

    Any exception raised here is treated by the Embedder as a retryable
    load failure.
    """
    if config.embedding_backend == "openai":
        api_key: Optional[str] = (
            config.openai_api_key.get_secret_value() if config.openai_api_key else None
        )
        if not api_key:
            raise EmbeddingUnavailable("OPENAI_API_KEY is required for the openai embedding backend.")

        return OpenAIEmbeddingBackend(
            api_key=api_key,
            model=config.embedding_model,
            dimension=config.embedding_dimension,
            base_url=config.openai_base_url,
            timeout=config.embedding_timeout,
        )

    return await SentenceTransformerBackend.load(
        config.embedding_model,
        device=config.embedding_device,
    )
