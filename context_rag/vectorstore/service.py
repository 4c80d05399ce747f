"""Vector index interface and Qdrant implementation."""

import time
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchValue,
    PointStruct,
    VectorParams,
)

from context_rag.config import QdrantSettings, get_settings
from context_rag.exceptions import ErrorCode, VectorStoreError
from context_rag.logging_config import get_logger
from context_rag.observability.metrics import track_vectorstore_operation
from context_rag.vectorstore.models import (
    SOURCE_KEYS,
    IndexedChunk,
    IndexStats,
    Passage,
    normalize_payload,
)

logger = get_logger(__name__)

SCROLL_PAGE_SIZE = 256


class VectorIndex(ABC):
    """Abstract base class for vector indexes.

    Implementations return canonical Passages so callers never see
    back-end specific payload layouts.
    """

    backend_name: str = "unknown"

    @abstractmethod
    async def search(
        self,
        vector: list[float],
        candidate_count: int,
        score_floor: float,
    ) -> list[Passage]:
        """Find the passages most similar to a query vector.

        Args:
            vector: Query embedding.
            candidate_count: Maximum passages to return.
            score_floor: Minimum cosine similarity.

        Returns:
            Passages ranked by similarity, highest first. Empty when
            nothing clears the floor.

        Raises:
            VectorStoreError: If the index cannot be queried.
        """
        ...

    @abstractmethod
    async def upsert(self, chunks: list[IndexedChunk]) -> int:
        """Insert or update chunks.

        Args:
            chunks: Chunks with vectors.

        Returns:
            Number of chunks written.

        Raises:
            VectorStoreError: If the write fails.
        """
        ...

    @abstractmethod
    async def delete_source(self, source_name: str) -> None:
        """Remove every chunk of a source.

        Args:
            source_name: Source whose chunks are removed.

        Raises:
            VectorStoreError: If deletion fails.
        """
        ...

    @abstractmethod
    async def stats(self) -> IndexStats:
        """Count stored chunks and distinct sources.

        Raises:
            VectorStoreError: If the index cannot be read.
        """
        ...

    @abstractmethod
    async def ensure_collection(self, dimensions: int) -> None:
        """Make sure the index can accept vectors of this size.

        Args:
            dimensions: Vector dimensions.

        Raises:
            VectorStoreError: If the collection cannot be prepared.
        """
        ...

    async def close(self) -> None:
        """Release client resources."""
        return None

    @contextmanager
    def _track(self, operation: str) -> Iterator[None]:
        """Record duration and outcome of an index call."""
        start = time.perf_counter()
        success = False
        try:
            yield
            success = True
        finally:
            track_vectorstore_operation(
                backend=self.backend_name,
                operation=operation,
                duration=time.perf_counter() - start,
                success=success,
            )


class QdrantVectorIndex(VectorIndex):
    """Qdrant-backed index storing chunk fields in the point payload."""

    backend_name = "qdrant"

    def __init__(
        self,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize Qdrant vector index.

        Args:
            settings: Qdrant configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None

    @property
    def collection(self) -> str:
        """Name of the collection holding the chunks."""
        return self._settings.collection_name

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is None:
            api_key = None
            if self._settings.api_key:
                api_key = self._settings.api_key.get_secret_value()

            self._client = AsyncQdrantClient(
                url=self._settings.url,
                api_key=api_key,
            )
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    async def search(
        self,
        vector: list[float],
        candidate_count: int,
        score_floor: float,
    ) -> list[Passage]:
        """Query the collection with a score threshold."""
        client = await self._get_client()

        try:
            with self._track("search"):
                response = await client.query_points(
                    collection_name=self.collection,
                    query=vector,
                    limit=candidate_count,
                    score_threshold=score_floor,
                    with_payload=True,
                )
        except UnexpectedResponse as e:
            if e.status_code == 404:
                raise VectorStoreError(
                    f"Collection not found: {self.collection}",
                    code=ErrorCode.COLLECTION_NOT_FOUND,
                    details={"collection": self.collection},
                ) from e
            raise VectorStoreError(
                f"Failed to search: {e}",
                details={"collection": self.collection, "error": str(e)},
            ) from e
        except Exception as e:
            raise VectorStoreError(
                f"Failed to search: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "error": str(e)},
            ) from e

        passages = [
            normalize_payload(
                point.id,
                point.score if point.score is not None else 0.0,
                point.payload,
            )
            for point in response.points
        ]

        logger.debug(
            f"Qdrant returned {len(passages)} candidates",
            extra={"collection": self.collection, "limit": candidate_count},
        )
        return passages

    async def upsert(self, chunks: list[IndexedChunk]) -> int:
        """Write chunks as points; text and source live in the payload."""
        if not chunks:
            return 0

        client = await self._get_client()
        created_at = datetime.now(UTC).isoformat()

        points = [
            PointStruct(
                id=chunk.id,
                vector=chunk.vector,
                payload={
                    **chunk.metadata,
                    "text": chunk.text,
                    "source": chunk.source_name,
                    "file_name": chunk.source_name,
                    "page_number": chunk.page_number,
                    "created_at": created_at,
                },
            )
            for chunk in chunks
        ]

        try:
            with self._track("upsert"):
                await client.upsert(collection_name=self.collection, points=points)
        except Exception as e:
            raise VectorStoreError(
                f"Failed to upsert chunks: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "error": str(e)},
            ) from e

        logger.info(
            f"Upserted {len(points)} points",
            extra={"collection": self.collection},
        )
        return len(points)

    async def delete_source(self, source_name: str) -> None:
        """Delete points whose `file_name` matches the source."""
        client = await self._get_client()

        selector = FilterSelector(
            filter=Filter(
                must=[
                    FieldCondition(key="file_name", match=MatchValue(value=source_name))
                ]
            )
        )

        try:
            with self._track("delete"):
                await client.delete(
                    collection_name=self.collection,
                    points_selector=selector,
                )
        except Exception as e:
            raise VectorStoreError(
                f"Failed to delete chunks of {source_name}: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "source": source_name},
            ) from e

        logger.info(
            f"Deleted existing chunks for {source_name}",
            extra={"collection": self.collection},
        )

    async def ensure_collection(self, dimensions: int) -> None:
        """Create a cosine collection if it does not exist yet."""
        client = await self._get_client()

        try:
            with self._track("ensure_collection"):
                if await client.collection_exists(self.collection):
                    return

                await client.create_collection(
                    collection_name=self.collection,
                    vectors_config=VectorParams(
                        size=dimensions,
                        distance=Distance.COSINE,
                    ),
                )
        except Exception as e:
            raise VectorStoreError(
                f"Failed to prepare collection: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "error": str(e)},
            ) from e

        logger.info(
            f"Created collection: {self.collection}",
            extra={"dimensions": dimensions},
        )

    async def stats(self) -> IndexStats:
        """Count points, then scroll source payloads for distinct names."""
        client = await self._get_client()
        sources: set[str] = set()

        try:
            with self._track("stats"):
                if not await client.collection_exists(self.collection):
                    return IndexStats(total_chunks=0, sources=0)

                counted = await client.count(collection_name=self.collection, exact=True)
                offset = None
                while True:
                    points, offset = await client.scroll(
                        collection_name=self.collection,
                        limit=SCROLL_PAGE_SIZE,
                        offset=offset,
                        with_payload=list(SOURCE_KEYS),
                        with_vectors=False,
                    )
                    sources.update(
                        normalize_payload(point.id, 0.0, point.payload).source_name
                        for point in points
                    )
                    if offset is None:
                        break
        except Exception as e:
            raise VectorStoreError(
                f"Failed to read collection stats: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "error": str(e)},
            ) from e

        return IndexStats(total_chunks=counted.count, sources=len(sources))
