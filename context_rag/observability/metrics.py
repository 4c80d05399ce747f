"""Prometheus metrics for the context retrieval service.

Provides metrics instrumentation for:
- HTTP request latency and counts
- Chat request outcomes (with or without context)
- LLM token usage and latency
- Embedding request latency
- Retrieval selection (candidates, passages, sources, scores)
- Vector index operation latency
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from context_rag.logging_config import get_logger

logger = get_logger(__name__)

# HTTP Request Metrics
HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

HTTP_REQUEST_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

# Chat Metrics
CHAT_REQUEST_DURATION = Histogram(
    "chat_request_duration_seconds",
    "Chat request duration in seconds",
    ["context"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)

CHAT_REQUEST_TOTAL = Counter(
    "chat_requests_total",
    "Total chat requests",
    ["context"],  # "context" label values: used, empty, degraded
)

# LLM Metrics
LLM_REQUEST_DURATION = Histogram(
    "llm_request_duration_seconds",
    "LLM request duration in seconds",
    ["model", "status"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

LLM_TOKENS_TOTAL = Counter(
    "llm_tokens_total",
    "Total LLM tokens used",
    ["model", "type"],  # "type" label values: prompt, completion
)

LLM_REQUEST_TOTAL = Counter(
    "llm_requests_total",
    "Total LLM requests",
    ["model", "status"],
)

# Embedding Metrics
EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Embedding request duration in seconds",
    ["model", "status"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total",
    "Total embedding requests",
    ["model", "status"],
)

EMBEDDING_BATCH_SIZE = Histogram(
    "embedding_batch_size",
    "Embedding batch size",
    ["model"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500],
)

# Retrieval Metrics
RETRIEVAL_CANDIDATES = Histogram(
    "retrieval_candidates",
    "Candidates returned by the vector index per retrieval",
    buckets=[0, 5, 10, 25, 50, 100, 250],
)

RETRIEVAL_CHUNKS_RETURNED = Histogram(
    "retrieval_chunks_returned",
    "Number of passages returned per retrieval",
    buckets=[0, 1, 2, 3, 5, 10, 20, 50],
)

RETRIEVAL_SOURCES_RETURNED = Histogram(
    "retrieval_sources_returned",
    "Distinct sources among returned passages",
    buckets=[0, 1, 2, 3, 5, 10],
)

RETRIEVAL_TOP_SCORE = Histogram(
    "retrieval_top_score",
    "Top retrieval score per query",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
)

# Vector Index Metrics
VECTORSTORE_OPERATION_DURATION = Histogram(
    "vectorstore_operation_duration_seconds",
    "Vector index operation duration",
    ["backend", "operation", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect HTTP request metrics."""

    def __init__(self, app: ASGIApp) -> None:
        """Initialize the middleware."""
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and collect metrics."""
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - start_time

        # Normalize endpoint for cardinality control
        endpoint = self._normalize_endpoint(request.url.path)

        HTTP_REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).observe(duration)

        HTTP_REQUEST_TOTAL.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce cardinality."""
        if path.startswith("/health"):
            return "/health"
        if path.startswith("/api/v1/"):
            parts = path.split("/")
            if len(parts) >= 4:
                return f"/api/v1/{parts[3]}"
        return path


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST


def track_chat_request(context: str, duration: float) -> None:
    """Track a completed chat request.

    Args:
        context: "used", "empty" or "degraded".
        duration: Request duration in seconds.
    """
    CHAT_REQUEST_DURATION.labels(context=context).observe(duration)
    CHAT_REQUEST_TOTAL.labels(context=context).inc()


def track_llm_request(
    model: str,
    duration: float,
    prompt_tokens: int,
    completion_tokens: int,
    success: bool = True,
) -> None:
    """Track LLM request metrics.

    Args:
        model: LLM model name.
        duration: Request duration in seconds.
        prompt_tokens: Number of prompt tokens.
        completion_tokens: Number of completion tokens.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    LLM_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    LLM_REQUEST_TOTAL.labels(model=model, status=status).inc()

    if success:
        LLM_TOKENS_TOTAL.labels(model=model, type="prompt").inc(prompt_tokens)
        LLM_TOKENS_TOTAL.labels(model=model, type="completion").inc(completion_tokens)


def track_embedding_request(
    model: str,
    duration: float,
    batch_size: int,
    success: bool = True,
) -> None:
    """Track embedding request metrics.

    Args:
        model: Embedding model name.
        duration: Request duration in seconds.
        batch_size: Number of texts in the batch.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    EMBEDDING_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(model=model, status=status).inc()
    EMBEDDING_BATCH_SIZE.labels(model=model).observe(batch_size)


def track_retrieval_request(
    candidates: int,
    chunks_returned: int,
    sources_returned: int,
    top_score: float,
) -> None:
    """Track retrieval request metrics.

    Args:
        candidates: Candidates returned by the vector index.
        chunks_returned: Number of passages selected.
        sources_returned: Distinct sources among selected passages.
        top_score: Highest similarity among selected passages.
    """
    RETRIEVAL_CANDIDATES.observe(candidates)
    RETRIEVAL_CHUNKS_RETURNED.observe(chunks_returned)
    RETRIEVAL_SOURCES_RETURNED.observe(sources_returned)
    if top_score > 0:
        RETRIEVAL_TOP_SCORE.observe(top_score)


def track_vectorstore_operation(
    backend: str,
    operation: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track a vector index call.

    Args:
        backend: "qdrant" or "supabase".
        operation: search, upsert, delete or ensure_collection.
        duration: Call duration in seconds.
        success: Whether the call succeeded.
    """
    status = "success" if success else "error"
    VECTORSTORE_OPERATION_DURATION.labels(
        backend=backend, operation=operation, status=status
    ).observe(duration)
