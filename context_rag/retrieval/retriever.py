"""Retriever interface and the source-diverse context retriever."""

from abc import ABC, abstractmethod

from context_rag.config import RetrievalSettings, get_settings
from context_rag.embeddings.service import EmbeddingService
from context_rag.exceptions import EmbeddingError, InvalidQueryError, VectorStoreError
from context_rag.logging_config import get_logger
from context_rag.observability.metrics import track_retrieval_request
from context_rag.retrieval.context import format_context
from context_rag.retrieval.models import RetrievalResult
from context_rag.retrieval.selection import select_diverse
from context_rag.vectorstore.service import VectorIndex

logger = get_logger(__name__)


class Retriever(ABC):
    """Abstract base class for retrievers.

    Defines the interface for retrieving prompt context.
    """

    @abstractmethod
    async def fetch(
        self,
        query: str,
        top_k: int | None = None,
        score_floor: float | None = None,
    ) -> RetrievalResult:
        """Retrieve passages relevant to a query.

        Args:
            query: Free-form query text.
            top_k: Maximum passages to return.
            score_floor: Minimum similarity for a candidate.

        Returns:
            RetrievalResult ordered by similarity.

        Raises:
            InvalidQueryError: If the query or budget is unusable.
            EmbeddingError: If the query cannot be embedded.
            VectorStoreError: If the index cannot be searched.
        """
        ...

    def format_context(self, result: RetrievalResult) -> str:
        """Render a result as prompt context ("" when empty)."""
        return format_context(result.passages)


class ContextRetriever(Retriever):
    """Embeds the query, over-fetches candidates and diversifies by source.

    Stateless apart from its two collaborators; safe to share across
    concurrent requests.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_index: VectorIndex,
        settings: RetrievalSettings | None = None,
    ) -> None:
        """Initialize the retriever.

        Args:
            embedding_service: Service for embedding query text.
            vector_index: Index searched for candidates.
            settings: Default budget, floor and overfetch factor.
        """
        self._embedding_service = embedding_service
        self._vector_index = vector_index
        self._settings = settings or get_settings().retrieval

    async def fetch(
        self,
        query: str,
        top_k: int | None = None,
        score_floor: float | None = None,
    ) -> RetrievalResult:
        """Retrieve a bounded, source-diverse set of passages."""
        if not query or not query.strip():
            raise InvalidQueryError("Query text must not be empty")

        top_k = self._settings.top_k if top_k is None else top_k
        if top_k < 1:
            raise InvalidQueryError(
                "top_k must be a positive integer",
                details={"top_k": top_k},
            )
        score_floor = self._settings.score_floor if score_floor is None else score_floor
        candidate_count = top_k * self._settings.overfetch_factor

        try:
            embedding = await self._embedding_service.embed(query)
            candidates = await self._vector_index.search(
                vector=embedding.embedding,
                candidate_count=candidate_count,
                score_floor=score_floor,
            )
        except (EmbeddingError, VectorStoreError) as e:
            logger.error(
                f"Retrieval failed: {e.message}",
                extra={"error_code": e.code.value, "query_length": len(query)},
            )
            raise

        usable = [
            c for c in candidates if c.text.strip() and c.similarity >= score_floor
        ]
        result = RetrievalResult(
            query=query,
            passages=select_diverse(usable, top_k),
            candidate_count=len(candidates),
        )

        track_retrieval_request(
            candidates=len(candidates),
            chunks_returned=len(result.passages),
            sources_returned=len(result.sources),
            top_score=result.top_score,
        )
        logger.debug(
            f"Selected {len(result.passages)} of {len(candidates)} candidates",
            extra={
                "top_k": top_k,
                "score_floor": score_floor,
                "requested": candidate_count,
                "usable": len(usable),
                "sources": len(result.sources),
            },
        )

        return result
