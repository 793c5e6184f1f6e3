"""
SQLAlchemy Models

Defines the database schema for:
- Documents (one row per successful upload)
- Text chunks with their pgvector embeddings
"""

from __future__ import annotations

from datetime import datetime
from typing import List

from sqlalchemy import (
    Column,
    Integer,
    Text,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from pgvector.sqlalchemy import Vector

from ..config import settings


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ---------------------------------------------------------------------
# Document Model
# ---------------------------------------------------------------------

class Document(Base):
    """
    An uploaded PDF. Immutable once committed; owns its chunks.
    """
    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    filename: Mapped[str] = mapped_column(Text, nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    chunks: Mapped[List["TextChunk"]] = relationship(
        "TextChunk",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TextChunk.chunk_order",
    )


# ---------------------------------------------------------------------
# Text Chunk Model
# ---------------------------------------------------------------------

class TextChunk(Base):
    """
    One window of a document's text with its normalized embedding.

    ``chunk_order`` is zero-based and gap-free within a document.
    """
    __tablename__ = "text_chunks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    chunk_text: Mapped[str] = mapped_column(Text, nullable=False)
    chunk_order: Mapped[int] = mapped_column(Integer, nullable=False)

    # pgvector column; width fixed for the lifetime of the deployment
    embedding_vector = Column(Vector(settings.embedding_dimension), nullable=False)

    document: Mapped["Document"] = relationship("Document", back_populates="chunks")

    __table_args__ = (
        UniqueConstraint("document_id", "chunk_order", name="uq_chunk_document_order"),
        Index("idx_chunk_document", "document_id"),
    )
