"""Observability module for metrics and monitoring."""

from context_rag.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    track_chat_request,
    track_embedding_request,
    track_llm_request,
    track_retrieval_request,
    track_vectorstore_operation,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "track_chat_request",
    "track_embedding_request",
    "track_llm_request",
    "track_retrieval_request",
    "track_vectorstore_operation",
]
