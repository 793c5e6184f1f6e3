from unittest.mock import AsyncMock

import httpx
import pytest

from pdf_chat_server.db.chunk_store import RankedChunk
from pdf_chat_server.llm.client import LLMClient
from pdf_chat_server.services.answer import NO_CONTEXT_ANSWER, synthesize_answer

CHUNKS = [
    RankedChunk(chunk_text="First relevant passage.", chunk_order=2, similarity_score=0.1),
    RankedChunk(chunk_text="Second relevant passage.", chunk_order=0, similarity_score=0.3),
]


@pytest.mark.asyncio
async def test_no_chunks_gives_fixed_answer():
    assert await synthesize_answer([], "anything?") == NO_CONTEXT_ANSWER


@pytest.mark.asyncio
async def test_concatenates_in_rank_order():
    answer = await synthesize_answer(CHUNKS, "q")

    assert answer == (
        "Based on the document, here's some relevant information:\n"
        "First relevant passage.\n\nSecond relevant passage."
    )


@pytest.mark.asyncio
async def test_llm_receives_question_and_excerpts():
    llm = AsyncMock(spec=LLMClient)
    llm.chat.return_value = {"role": "assistant", "content": " The answer. "}

    answer = await synthesize_answer(CHUNKS, "What is it?", llm)

    assert answer == "The answer."
    kwargs = llm.chat.await_args.kwargs
    user_message = kwargs["messages"][0]["content"]
    assert "[1] First relevant passage." in user_message
    assert "[2] Second relevant passage." in user_message
    assert user_message.endswith("Question: What is it?")


@pytest.mark.asyncio
async def test_empty_llm_answer_falls_back_to_concatenation():
    llm = AsyncMock(spec=LLMClient)
    llm.chat.return_value = {"role": "assistant", "content": None}

    answer = await synthesize_answer(CHUNKS, "q", llm)

    assert answer.startswith("Based on the document")


@pytest.mark.asyncio
async def test_llm_transport_error_falls_back_to_concatenation():
    llm = AsyncMock(spec=LLMClient)
    llm.chat.side_effect = httpx.ConnectError("connection refused")

    answer = await synthesize_answer(CHUNKS, "q", llm)

    assert answer.startswith("Based on the document")
    assert "First relevant passage." in answer
    llm.chat.assert_awaited_once()
