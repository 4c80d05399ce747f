"""Query and chunk embedding."""

from context_rag.embeddings.models import EmbeddingResult
from context_rag.embeddings.service import EmbeddingService, HTTPEmbeddingService

__all__ = [
    "EmbeddingResult",
    "EmbeddingService",
    "HTTPEmbeddingService",
]
