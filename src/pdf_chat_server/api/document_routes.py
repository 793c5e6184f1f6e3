"""
Document Routes

This module exposes the PDF endpoints:
- Uploading a PDF for ingestion
- Asking a question about an uploaded PDF

Pipeline failures are raised as typed errors and translated to HTTP
responses by the handlers registered in main.create_app().
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse

from .models import (
    QueryRequest,
    QueryResponse,
    QueryResult,
    RelevantChunk,
    UploadResponse,
    UploadResult,
)
from .dependencies import get_chunk_store, get_embedder, get_llm_client
from ..db import ChunkStore
from ..embeddings.embedder import Embedder
from ..llm.client import LLMClient
from ..services.answer import synthesize_answer
from ..services.ingestion import ingest_pdf
from ..services.retrieval import query_document

router = APIRouter(prefix="/api/pdfs", tags=["pdfs"])


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload and ingest a PDF",
)
async def upload_pdf(
    pdf_file: Annotated[UploadFile, File(alias="pdfFile")],
    store: Annotated[ChunkStore, Depends(get_chunk_store)],
    embedder: Annotated[Embedder, Depends(get_embedder)],
) -> UploadResponse:
    """
    Extract, chunk, embed and store an uploaded PDF.

    The document is either stored completely or not at all.
    """
    pdf_bytes = await pdf_file.read()
    filename = pdf_file.filename or "document.pdf"

    result = await ingest_pdf(pdf_bytes, filename, store, embedder)

    return UploadResponse(
        data=UploadResult(
            document_id=result.document_id,
            filename=result.filename,
            chunks_stored=result.chunks_stored,
        )
    )


@router.post(
    "/query/{document_id}",
    response_model=QueryResponse,
    summary="Ask a question about a PDF",
    responses={404: {"description": "Unknown document or no relevant chunks"}},
)
async def query_pdf(
    document_id: int,
    req: QueryRequest,
    store: Annotated[ChunkStore, Depends(get_chunk_store)],
    embedder: Annotated[Embedder, Depends(get_embedder)],
    llm_client: Annotated[Optional[LLMClient], Depends(get_llm_client)],
):
    """
    Rank the document's chunks against the question and synthesize an answer.
    """
    chunks = await query_document(document_id, req.question, store, embedder)

    if not chunks:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "error": "no_relevant_chunks",
                "detail": "No relevant information found for your query in this document.",
            },
        )

    answer = await synthesize_answer(chunks, req.question, llm_client)

    return QueryResponse(
        data=QueryResult(
            answer=answer,
            relevant_chunks=[
                RelevantChunk(
                    chunk_text=chunk.chunk_text,
                    chunk_order=chunk.chunk_order,
                    similarity_score=chunk.similarity_score,
                )
                for chunk in chunks
            ],
        )
    )
