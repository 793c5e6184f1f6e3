"""
Error Taxonomy and Global Error Handling

This module defines the typed failures raised by the ingestion and retrieval
pipeline, and the application-wide exception handlers that turn them into
HTTP responses.

Design Goals
------------
- Never leak internal exception details to clients
- Always return deterministic, machine-readable error responses
- Log full stack traces internally for debugging
- Keep pipeline errors framework-agnostic (services never import FastAPI)
"""

from __future__ import annotations

import logging
from typing import Dict, Any, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("pdf_chat.errors")


# ---------------------------------------------------------------------
# Pipeline Exceptions
# ---------------------------------------------------------------------

class PdfChatError(Exception):
    """Base class for all failures surfaced by the ingestion/retrieval core."""


class EmptyDocument(PdfChatError):
    """Raised when a document has no extractable (non-blank) text."""

    def __init__(self, filename: Optional[str] = None) -> None:
        self.filename = filename
        super().__init__("Extracted text is empty. Cannot process PDF.")


class TextExtractionFailed(PdfChatError):
    """Raised when the uploaded bytes cannot be parsed as a PDF."""

    def __init__(self, filename: Optional[str] = None) -> None:
        self.filename = filename
        super().__init__("Failed to extract text from PDF.")


class ChunkingConfigInvalid(ValueError):
    """
    Raised when chunk size / overlap would make the chunker loop forever.

    Not a PdfChatError: it reaches clients only through the catch-all
    handler as a generic 500.
    """


class EmbeddingUnavailable(PdfChatError):
    """Raised when the embedding model cannot be loaded or invoked."""


class IngestionAborted(PdfChatError):
    """
    Raised when the transactional batch of an ingestion fails.

    The transaction has been rolled back by the time this is raised; the
    originating exception is chained as ``__cause__``.
    """

    def __init__(self, filename: str, reason: str) -> None:
        self.filename = filename
        self.reason = reason
        super().__init__(f"Ingestion of {filename!r} aborted: {reason}")


class QueryTargetMissing(PdfChatError):
    """Raised when a query references a document id that does not exist."""

    def __init__(self, document_id: int) -> None:
        self.document_id = document_id
        super().__init__(f"Document {document_id} not found.")


# ---------------------------------------------------------------------
# Error -> HTTP mapping
# ---------------------------------------------------------------------

_EMBEDDING_DETAIL = "Internal server error during embedding generation."


def _describe(exc: PdfChatError) -> Tuple[int, str, str]:
    """
    Return (status_code, error_code, detail) for a pipeline error.
    """
    if isinstance(exc, (EmptyDocument, TextExtractionFailed)):
        code = "empty_document" if isinstance(exc, EmptyDocument) else "text_extraction_failed"
        return 400, code, str(exc)

    if isinstance(exc, EmbeddingUnavailable):
        return 503, "embedding_unavailable", _EMBEDDING_DETAIL

    if isinstance(exc, IngestionAborted):
        if isinstance(exc.__cause__, EmbeddingUnavailable):
            return 503, "embedding_unavailable", _EMBEDDING_DETAIL
        return 500, "ingestion_aborted", "Error processing PDF."

    if isinstance(exc, QueryTargetMissing):
        return 404, "document_not_found", str(exc)

    return 500, "internal_server_error", "Internal server error"


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def pdf_chat_error_handler(
    request: Request,
    exc: PdfChatError,
) -> JSONResponse:
    """
    Translate a typed pipeline failure into a JSON error response.

    Client errors (4xx) are logged at INFO, server-side failures at ERROR
    with the chained cause, so operators can tell a bad upload from a
    broken model.
    """
    status_code, code, detail = _describe(exc)

    if status_code >= 500:
        logger.error(
            "Request %s %s failed: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
    else:
        logger.info(
            "Request %s %s rejected (%s): %s",
            request.method,
            request.url.path,
            code,
            exc,
        )

    payload: Dict[str, Any] = {
        "error": code,
        "detail": detail,
    }

    return JSONResponse(
        status_code=status_code,
        content=payload,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    This handler should be registered with FastAPI as the final safety net
    for any exception not otherwise handled by route-level or framework-level
    handlers.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.
    - Ensures consistent error response format across the entire API.

    Parameters
    ----------
    request : Request
        The incoming HTTP request that triggered the exception.

    exc : Exception
        The uncaught exception instance.

    Returns
    -------
    JSONResponse
        A JSON 500 response with a minimal error payload.
    """

    # Log full traceback internally (never returned to client)
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )
