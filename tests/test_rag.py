"""Tests for chat pipeline module."""

from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from context_rag.exceptions import (
    EmbeddingError,
    InvalidQueryError,
    LLMError,
    VectorStoreError,
)
from context_rag.llm.models import GenerationResult
from context_rag.llm.prompts import NO_CONTEXT_NOTICE
from context_rag.rag.models import ChatRequest, ChatResponse, SourceAttribution
from context_rag.rag.pipeline import ChatPipeline
from context_rag.retrieval.models import RetrievalResult
from context_rag.vectorstore.models import Passage


class TestSourceAttribution:
    """Tests for SourceAttribution model."""

    def test_create_attribution(self) -> None:
        """Attribution can be created."""
        attr = SourceAttribution(
            source="doc.txt",
            content="Sample content",
            score=0.95,
        )
        assert attr.source == "doc.txt"
        assert attr.page_number is None
        assert attr.score == 0.95


class TestChatRequest:
    """Tests for ChatRequest model."""

    def test_default_values(self) -> None:
        """Budget and floor default to the configured values."""
        request = ChatRequest(message="What is AI?")
        assert request.top_k is None
        assert request.score_floor is None

    def test_custom_values(self) -> None:
        """Request accepts custom values."""
        request = ChatRequest(message="What is AI?", top_k=10, score_floor=0.7)
        assert request.top_k == 10
        assert request.score_floor == 0.7

    def test_top_k_bounds(self) -> None:
        """top_k must be between 1 and 20."""
        with pytest.raises(ValidationError):
            ChatRequest(message="q", top_k=0)
        with pytest.raises(ValidationError):
            ChatRequest(message="q", top_k=21)


class TestChatResponse:
    """Tests for ChatResponse model."""

    def test_create_response(self) -> None:
        """Response can be created."""
        response = ChatResponse(
            answer="AI is artificial intelligence.",
            sources=[
                SourceAttribution(source="ai.txt", content="...", score=0.9),
            ],
            model="gpt-3.5-turbo",
            tokens_used=100,
            context_used=True,
        )
        assert response.answer == "AI is artificial intelligence."
        assert len(response.sources) == 1
        assert response.tokens_used == 100


class TestChatPipeline:
    """Tests for ChatPipeline."""

    def _create_mock_retriever(self, passages: list[Passage] | None = None) -> AsyncMock:
        """Create mock retriever."""
        retriever = AsyncMock()
        retriever.fetch = AsyncMock(
            return_value=RetrievalResult(
                query="q",
                passages=passages or [],
                candidate_count=len(passages or []),
            )
        )
        return retriever

    def _create_mock_llm(self) -> AsyncMock:
        """Create mock LLM client."""
        llm = AsyncMock()
        llm.model_name = "test-model"
        llm.generate_text = AsyncMock(
            return_value=GenerationResult(
                content="Generated answer",
                model="test-model",
                prompt_tokens=50,
                completion_tokens=20,
                total_tokens=70,
            )
        )
        return llm

    def _passages(self) -> list[Passage]:
        return [
            Passage(
                id="1",
                source_name="handbook.pdf",
                text="Employees get 25 vacation days.",
                page_number=4,
                similarity=0.91,
            ),
            Passage(
                id="2",
                source_name="faq.md",
                text="x" * 300,
                similarity=0.72,
            ),
        ]

    @pytest.mark.asyncio
    async def test_ask_with_context(self) -> None:
        """Retrieved passages reach the prompt and the citations."""
        retriever = self._create_mock_retriever(self._passages())
        llm = self._create_mock_llm()
        pipeline = ChatPipeline(retriever=retriever, llm_client=llm)

        response = await pipeline.ask(ChatRequest(message="How many vacation days?"))

        assert response.answer == "Generated answer"
        assert response.context_used is True
        assert response.tokens_used == 70
        assert [s.source for s in response.sources] == ["handbook.pdf", "faq.md"]
        assert response.sources[0].page_number == 4

        prompt = llm.generate_text.call_args.kwargs["prompt"]
        assert "Source: handbook.pdf" in prompt
        assert "Employees get 25 vacation days." in prompt
        assert "How many vacation days?" in prompt

    @pytest.mark.asyncio
    async def test_passes_budget_and_floor(self) -> None:
        """Request overrides are forwarded to the retriever."""
        retriever = self._create_mock_retriever()
        pipeline = ChatPipeline(retriever=retriever, llm_client=self._create_mock_llm())

        await pipeline.ask(ChatRequest(message="q", top_k=3, score_floor=0.6))

        retriever.fetch.assert_called_once_with("q", top_k=3, score_floor=0.6)

    @pytest.mark.asyncio
    async def test_snippets_truncated(self) -> None:
        """Long passages are cut to a snippet in the citations."""
        pipeline = ChatPipeline(
            retriever=self._create_mock_retriever(self._passages()),
            llm_client=self._create_mock_llm(),
        )

        response = await pipeline.ask(ChatRequest(message="q"))

        assert response.sources[1].content == "x" * 200 + "..."

    @pytest.mark.asyncio
    async def test_ask_without_context(self) -> None:
        """With no passages the prompt carries the no-context notice."""
        llm = self._create_mock_llm()
        pipeline = ChatPipeline(retriever=self._create_mock_retriever(), llm_client=llm)

        response = await pipeline.ask(ChatRequest(message="Unknown topic?"))

        assert response.context_used is False
        assert response.sources == []
        assert NO_CONTEXT_NOTICE in llm.generate_text.call_args.kwargs["prompt"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [EmbeddingError("embedder down"), VectorStoreError("index down")],
    )
    async def test_degrades_on_retrieval_failure(self, error: Exception) -> None:
        """Collaborator failures still produce an answer, without context."""
        retriever = self._create_mock_retriever()
        retriever.fetch.side_effect = error
        llm = self._create_mock_llm()
        pipeline = ChatPipeline(retriever=retriever, llm_client=llm)

        response = await pipeline.ask(ChatRequest(message="q"))

        assert response.answer == "Generated answer"
        assert response.context_used is False
        llm.generate_text.assert_called_once()

    @pytest.mark.asyncio
    async def test_invalid_query_propagates(self) -> None:
        """An invalid query is not answered."""
        retriever = self._create_mock_retriever()
        retriever.fetch.side_effect = InvalidQueryError("Query text must not be empty")
        llm = self._create_mock_llm()
        pipeline = ChatPipeline(retriever=retriever, llm_client=llm)

        with pytest.raises(InvalidQueryError):
            await pipeline.ask(ChatRequest(message=""))

        llm.generate_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_llm_error_propagates(self) -> None:
        """Generation failures reach the caller."""
        llm = self._create_mock_llm()
        llm.generate_text.side_effect = LLMError("down")
        pipeline = ChatPipeline(retriever=self._create_mock_retriever(), llm_client=llm)

        with pytest.raises(LLMError):
            await pipeline.ask(ChatRequest(message="q"))
