"""
API Models

This module defines all Pydantic models used for request/response validation
across the upload and query endpoints.

Design Goals
------------
- Strong typing
- camelCase on the wire, snake_case in Python
- Clear schema documentation
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# ---------------------------------------------------------------------
# Upload Models
# ---------------------------------------------------------------------

class UploadResult(_WireModel):
    """
    Outcome of a successful ingestion.
    """
    document_id: int
    filename: str
    chunks_stored: int = Field(..., ge=0)


class UploadResponse(_WireModel):
    message: str = "PDF processed and stored successfully."
    data: UploadResult


# ---------------------------------------------------------------------
# Query Models
# ---------------------------------------------------------------------

class QueryRequest(_WireModel):
    """
    Question about a previously uploaded document.
    """
    question: str = Field(..., min_length=1, pattern=r"\S")


class RelevantChunk(_WireModel):
    """
    One ranked chunk. Lower ``similarity_score`` means more similar
    (cosine distance).
    """
    chunk_text: str
    chunk_order: int = Field(..., ge=0)
    similarity_score: float


class QueryResult(_WireModel):
    answer: str
    relevant_chunks: List[RelevantChunk] = Field(default_factory=list)


class QueryResponse(_WireModel):
    message: str = "Query successful."
    data: QueryResult


# ---------------------------------------------------------------------
# Operational Models
# ---------------------------------------------------------------------

class HealthResponse(_WireModel):
    status: str
    embedder: str


class DbTestResponse(_WireModel):
    message: str
    time: Optional[datetime] = None
    error: Optional[str] = None
