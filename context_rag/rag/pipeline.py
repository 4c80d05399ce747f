"""Chat pipeline: retrieve context, prompt, generate."""

import time

from context_rag.exceptions import EmbeddingError, VectorStoreError
from context_rag.llm.client import LLMClient
from context_rag.llm.prompts import RAGPromptTemplate
from context_rag.logging_config import get_logger
from context_rag.observability.metrics import track_chat_request
from context_rag.rag.models import ChatRequest, ChatResponse, SourceAttribution
from context_rag.retrieval.context import format_context
from context_rag.retrieval.models import RetrievalResult
from context_rag.retrieval.retriever import Retriever

logger = get_logger(__name__)

SNIPPET_LENGTH = 200


def _snippet(text: str) -> str:
    if len(text) > SNIPPET_LENGTH:
        return text[:SNIPPET_LENGTH] + "..."
    return text


class ChatPipeline:
    """Answers a message with knowledge-base context when there is any.

    When the embedder or the vector index fails, the question is still
    answered, without context.
    """

    def __init__(
        self,
        retriever: Retriever,
        llm_client: LLMClient,
        prompt_template: RAGPromptTemplate | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            retriever: Context retriever.
            llm_client: LLM client for generation.
            prompt_template: Prompt template.
        """
        self._retriever = retriever
        self._llm_client = llm_client
        self._prompt_template = prompt_template or RAGPromptTemplate()

    async def ask(self, request: ChatRequest) -> ChatResponse:
        """Answer a chat message.

        Args:
            request: The chat request.

        Returns:
            ChatResponse with answer and citations.

        Raises:
            InvalidQueryError: If the message is empty.
            LLMError: If generation fails.
        """
        start = time.perf_counter()
        logger.info(
            "Processing chat message",
            extra={"message_length": len(request.message), "top_k": request.top_k},
        )

        degraded = False
        try:
            result = await self._retriever.fetch(
                request.message,
                top_k=request.top_k,
                score_floor=request.score_floor,
            )
        except (EmbeddingError, VectorStoreError) as e:
            logger.warning(
                f"Answering without context: {e.message}",
                extra={"error_code": e.code.value},
            )
            result = RetrievalResult(query=request.message)
            degraded = True

        context = format_context(result.passages)
        system_prompt, user_prompt = self._prompt_template.build_prompt(
            question=request.message,
            context=context,
        )

        generation = await self._llm_client.generate_text(
            prompt=user_prompt,
            system_prompt=system_prompt,
        )

        sources = [
            SourceAttribution(
                source=p.source_name,
                page_number=p.page_number,
                content=_snippet(p.text),
                score=p.similarity,
            )
            for p in result.passages
        ]

        if degraded:
            outcome = "degraded"
        elif result:
            outcome = "used"
        else:
            outcome = "empty"
        track_chat_request(context=outcome, duration=time.perf_counter() - start)

        logger.info(
            "Chat message answered",
            extra={
                "context": outcome,
                "sources_count": len(sources),
                "tokens_used": generation.total_tokens,
            },
        )

        return ChatResponse(
            answer=generation.content,
            sources=sources,
            model=generation.model,
            tokens_used=generation.total_tokens,
            context_used=bool(result),
        )
