"""Context retrieval: over-fetch, diversify by source, format."""

from context_rag.retrieval.context import format_context
from context_rag.retrieval.models import RetrievalResult
from context_rag.retrieval.retriever import ContextRetriever, Retriever
from context_rag.retrieval.selection import select_diverse, source_quota

__all__ = [
    "ContextRetriever",
    "Retriever",
    "RetrievalResult",
    "format_context",
    "select_diverse",
    "source_quota",
]
