from functools import lru_cache
from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..db import ChunkStore, get_async_session
from ..embeddings.embedder import Embedder, get_embedder as _process_embedder
from ..llm.client import LLMClient


@lru_cache
def get_llm_client() -> Optional[LLMClient]:
    # None selects plain concatenation in answer synthesis
    if settings.answer_backend != "openai":
        return None
    return LLMClient()


def get_chunk_store(
    session: AsyncSession = Depends(get_async_session),
) -> ChunkStore:
    return ChunkStore(session)


def get_embedder() -> Embedder:
    return _process_embedder()
