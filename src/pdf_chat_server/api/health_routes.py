import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from .dependencies import get_chunk_store, get_embedder
from .models import DbTestResponse, HealthResponse
from ..db import ChunkStore
from ..embeddings.embedder import Embedder

logger = logging.getLogger("pdf_chat.app")

router = APIRouter(tags=["health"])

@router.get("/")
def root():
    return {"status": "ok", "service": "pdf-chat-server"}

@router.get("/health", response_model=HealthResponse)
def health(embedder: Annotated[Embedder, Depends(get_embedder)]):
    return HealthResponse(status="ok", embedder=embedder.state.value)

@router.get("/api/db-test", response_model=DbTestResponse)
async def db_test(store: Annotated[ChunkStore, Depends(get_chunk_store)]):
    try:
        now = await store.ping()
    except Exception as exc:
        logger.error("Database connection test failed: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"message": "Database connection failed.", "error": type(exc).__name__},
        )
    return DbTestResponse(message="Database connection successful!", time=now)
