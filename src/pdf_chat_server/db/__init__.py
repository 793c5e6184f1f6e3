"""
Database Package

Provides SQLAlchemy async session management, model definitions and the
chunk storage gateway for PostgreSQL with pgvector.
"""

from .session import get_async_session, async_engine, AsyncSessionLocal, init_db
from .models import Base, Document, TextChunk
from .chunk_store import ChunkStore, RankedChunk

__all__ = [
    "get_async_session",
    "async_engine",
    "AsyncSessionLocal",
    "init_db",
    "Base",
    "Document",
    "TextChunk",
    "ChunkStore",
    "RankedChunk",
]
