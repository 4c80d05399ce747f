"""Embedding service interface and implementations."""

import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from context_rag.config import EmbeddingSettings, get_settings
from context_rag.embeddings.models import EmbeddingResult
from context_rag.exceptions import EmbeddingError, ErrorCode
from context_rag.logging_config import get_logger
from context_rag.observability.metrics import track_embedding_request

logger = get_logger(__name__)


class EmbeddingService(ABC):
    """Abstract base class for embedding services.

    Defines the interface for generating text embeddings.
    """

    @abstractmethod
    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.

        Raises:
            EmbeddingError: If embedding fails.
        """
        ...

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts.

        Args:
            texts: List of texts to embed.

        Returns:
            List of EmbeddingResult objects, in input order.

        Raises:
            EmbeddingError: If embedding fails.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Get the embedding dimensions."""
        ...


class HTTPEmbeddingService(EmbeddingService):
    """Embedding service for OpenAI-style `/embeddings` APIs.

    Works against the OpenAI API itself and compatible servers
    (text-embeddings-inference, vLLM, Ollama).
    """

    MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
        "BAAI/bge-large-en-v1.5": 1024,
        "BAAI/bge-base-en-v1.5": 768,
        "BAAI/bge-small-en-v1.5": 384,
    }

    DEFAULT_DIMENSIONS = 1536

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the HTTP embedding service.

        Args:
            settings: Embedding configuration. Uses defaults if not provided.
            client: HTTP client. Creates new one if not provided.
        """
        self._settings = settings or get_settings().embedding
        self._client = client
        self._owns_client = client is None
        self._dimensions: int | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    @property
    def dimensions(self) -> int:
        """Get embedding dimensions.

        Learned from the first response; before that, looked up by model.
        """
        if self._dimensions is not None:
            return self._dimensions
        return self.MODEL_DIMENSIONS.get(self._settings.model, self.DEFAULT_DIMENSIONS)

    def _headers(self) -> dict[str, str]:
        """Build request headers."""
        headers: dict[str, str] = {}
        if self._settings.api_key is not None:
            api_key = self._settings.api_key.get_secret_value()
            if api_key:
                headers["Authorization"] = f"Bearer {api_key}"
        return headers

    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text."""
        results = await self.embed_batch([text])
        return results[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts, batching requests."""
        if not texts:
            return []

        client = await self._get_client()
        url = f"{self._settings.base_url.rstrip('/')}/embeddings"

        all_results: list[EmbeddingResult] = []
        batch_size = self._settings.batch_size

        for i in range(0, len(texts), batch_size):
            batch = texts[i : i + batch_size]
            start = time.perf_counter()
            try:
                batch_results = await self._embed_batch_request(client, url, batch)
            except EmbeddingError:
                track_embedding_request(
                    model=self._settings.model,
                    duration=time.perf_counter() - start,
                    batch_size=len(batch),
                    success=False,
                )
                raise
            track_embedding_request(
                model=self._settings.model,
                duration=time.perf_counter() - start,
                batch_size=len(batch),
            )
            all_results.extend(batch_results)

        return all_results

    async def _embed_batch_request(
        self,
        client: httpx.AsyncClient,
        url: str,
        texts: list[str],
    ) -> list[EmbeddingResult]:
        """Make embedding request for a batch.

        Args:
            client: HTTP client.
            url: Embedding endpoint URL.
            texts: Batch of texts.

        Returns:
            List of EmbeddingResult objects.

        Raises:
            EmbeddingError: If the request fails or the response is malformed.
        """
        payload = {
            # Newlines degrade embedding quality for OpenAI models
            "input": [text.replace("\n", " ") for text in texts],
            "model": self._settings.model,
        }

        try:
            response = await client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Embedding request failed: {e.response.status_code}",
                extra={"url": url, "status": e.response.status_code},
            )
            raise EmbeddingError(
                f"Embedding service returned {e.response.status_code}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            logger.error(
                f"Embedding request error: {e}",
                extra={"url": url},
            )
            raise EmbeddingError(
                f"Failed to connect to embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"url": url},
            ) from e

        try:
            data = response.json()
            items: list[dict[str, Any]] = data.get("data", [])
            # OpenAI tags each item with its input position
            items = sorted(items, key=lambda item: item.get("index", 0))
        except (AttributeError, TypeError, ValueError) as e:
            raise EmbeddingError(
                f"Invalid response from embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e

        if len(items) != len(texts):
            raise EmbeddingError(
                f"Expected {len(texts)} embeddings, received {len(items)}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"expected": len(texts), "received": len(items)},
            )

        results: list[EmbeddingResult] = []
        for text, item in zip(texts, items, strict=True):
            embedding = item.get("embedding") or []
            if not embedding:
                raise EmbeddingError(
                    "Embedding service returned an empty vector",
                    code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                    details={"model": self._settings.model},
                )

            if self._dimensions is None:
                self._dimensions = len(embedding)
            elif len(embedding) != self._dimensions:
                raise EmbeddingError(
                    f"Embedding has {len(embedding)} dimensions, "
                    f"expected {self._dimensions}",
                    code=ErrorCode.EMBEDDING_DIMENSION_MISMATCH,
                    details={"expected": self._dimensions, "received": len(embedding)},
                )

            results.append(
                EmbeddingResult(
                    text=text,
                    embedding=embedding,
                    model=self._settings.model,
                    dimensions=len(embedding),
                )
            )

        return results
