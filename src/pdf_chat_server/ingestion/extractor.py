"""
PDF Text Extraction

Turns raw uploaded PDF bytes into a single text string using PyMuPDF.
Parsing is CPU-bound and synchronous, so it runs in a worker thread to
keep the event loop free.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import fitz  # PyMuPDF

from ..core.errors import TextExtractionFailed

logger = logging.getLogger("pdf_chat.extractor")


def _extract_sync(pdf_bytes: bytes) -> str:
    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        return "\n".join(page.get_text() for page in doc)


async def extract_text(pdf_bytes: bytes, filename: Optional[str] = None) -> str:
    """
    Extract the text of every page, in page order.

    Raises
    ------
    TextExtractionFailed
        If the bytes are not a readable PDF.
    """
    try:
        text = await asyncio.to_thread(_extract_sync, pdf_bytes)
    except Exception as exc:
        logger.error("Error extracting text from PDF %s: %s", filename, exc)
        raise TextExtractionFailed(filename) from exc

    logger.info("Extracted %d characters from %s", len(text), filename)
    return text
