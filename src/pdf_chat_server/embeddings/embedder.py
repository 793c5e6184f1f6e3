"""
Embedder

This module owns the process-wide embedding model lifecycle. It is
responsible for:

- Loading exactly one model instance, lazily, on first use
- Sharing a single in-flight load between all concurrent first callers
- Forgetting failed loads so the next call retries them
- Returning unit-length vectors of a fixed dimension D

Lifecycle
---------
``UNINITIALIZED -> LOADING -> READY``, or ``LOADING -> FAILED_RETRYABLE``
on error. ``FAILED_RETRYABLE`` behaves like ``UNINITIALIZED`` for the next
caller: a half-loaded model is never kept. Inference failures do not change
the state and are not retried here; the caller decides retry policy.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from functools import lru_cache, partial
from typing import Awaitable, Callable, Optional

import numpy as np

from .backends import EmbeddingBackend, load_backend
from ..config import settings
from ..core.errors import EmbeddingUnavailable

logger = logging.getLogger("pdf_chat.embedder")

BackendLoader = Callable[[], Awaitable[EmbeddingBackend]]


class ModelState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED_RETRYABLE = "failed_retryable"


def empty_vector() -> np.ndarray:
    """The "no embedding available" result: a zero-length vector."""
    return np.empty(0, dtype=np.float32)


class Embedder:
    """
    Lazily-initialized, shareable text embedder.

    After initialization the instance is read-only and safe to use from any
    number of concurrent tasks on the same event loop.
    """

    def __init__(
        self,
        loader: Optional[BackendLoader] = None,
        expected_dimension: Optional[int] = None,
    ) -> None:
        """
        Parameters
        ----------
        loader : Optional[BackendLoader]
            Zero-argument coroutine function returning a loaded backend.
            Defaults to the backend selected in settings.

        expected_dimension : Optional[int]
            If given, a loaded model whose dimension differs is rejected as
            a load failure.
        """
        self._loader: BackendLoader = loader or partial(load_backend, settings)
        self._expected_dimension = expected_dimension
        self._backend: Optional[EmbeddingBackend] = None
        self._loading: Optional[asyncio.Task] = None
        self._state = ModelState.UNINITIALIZED

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def dimension(self) -> Optional[int]:
        return self._backend.dimension if self._backend is not None else None

    async def ensure_loaded(self) -> EmbeddingBackend:
        """
        Return the loaded backend, loading it first if necessary.

        Raises
        ------
        EmbeddingUnavailable
            If the load fails. The failure is not cached.
        """
        if self._backend is not None:
            return self._backend

        # No await between the check and the assignment: exactly one task
        # per load attempt, shared by every concurrent caller.
        if self._loading is None:
            self._state = ModelState.LOADING
            self._loading = asyncio.ensure_future(self._load())
            self._loading.add_done_callback(self._on_load_done)

        task = self._loading
        # A cancelled waiter must not cancel the load other waiters share.
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                raise EmbeddingUnavailable("Embedding model load was cancelled.") from None
            raise

    def _on_load_done(self, task: asyncio.Task) -> None:
        # Covers a load cancelled before its first step, when _load never ran.
        if task.cancelled():
            if self._loading is task:
                self._state = ModelState.FAILED_RETRYABLE
                self._loading = None
            return
        # Marks the exception retrieved when every waiter was cancelled.
        task.exception()

    async def _load(self) -> EmbeddingBackend:
        logger.info("Initializing embedding model...")
        try:
            backend = await self._loader()
            if (
                self._expected_dimension is not None
                and backend.dimension != self._expected_dimension
            ):
                raise EmbeddingUnavailable(
                    f"Model dimension {backend.dimension} does not match "
                    f"configured dimension {self._expected_dimension}."
                )
        except asyncio.CancelledError:
            self._state = ModelState.FAILED_RETRYABLE
            self._loading = None
            logger.warning("Embedding model load cancelled.")
            raise
        except Exception as exc:
            self._state = ModelState.FAILED_RETRYABLE
            self._loading = None
            logger.error("Failed to load embedding model: %s", exc)
            if isinstance(exc, EmbeddingUnavailable):
                raise
            raise EmbeddingUnavailable("Embedding model is not available.") from exc

        self._backend = backend
        self._state = ModelState.READY
        self._loading = None
        logger.info("Embedding model initialized (dimension=%d).", backend.dimension)
        return backend

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> np.ndarray:
        """
        Embed one text.

        Returns
        -------
        np.ndarray
            A float32 vector of shape ``(D,)`` with unit L2 norm, or a
            zero-length vector if ``text`` is empty or whitespace-only.

        Raises
        ------
        EmbeddingUnavailable
            If the model cannot be loaded or inference fails.
        """
        if not text or not text.strip():
            logger.warning("Attempted to generate embedding for empty text.")
            return empty_vector()

        backend = await self.ensure_loaded()

        try:
            raw = await backend.encode([text])
        except EmbeddingUnavailable:
            raise
        except Exception as exc:
            logger.error("Error generating embedding: %s", exc)
            raise EmbeddingUnavailable("Failed to generate embedding.") from exc

        if len(raw) != 1:
            raise EmbeddingUnavailable(
                f"Model returned {len(raw)} vectors for a single input."
            )

        return self._normalize(raw[0], backend.dimension)

    @staticmethod
    def _normalize(raw, dimension: int) -> np.ndarray:
        vector = np.asarray(raw, dtype=np.float32)
        if vector.shape != (dimension,):
            raise EmbeddingUnavailable(
                f"Model returned a vector of shape {vector.shape}, expected ({dimension},)."
            )

        norm = float(np.linalg.norm(vector))
        if not np.isfinite(norm) or norm == 0.0:
            raise EmbeddingUnavailable("Model returned a vector that cannot be normalized.")

        return vector / norm


@lru_cache
def get_embedder() -> Embedder:
    """Process-wide Embedder instance."""
    return Embedder(expected_dimension=settings.embedding_dimension)
