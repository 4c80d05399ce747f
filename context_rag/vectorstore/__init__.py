"""Vector index adapters."""

from context_rag.vectorstore.models import (
    UNKNOWN_SOURCE,
    IndexedChunk,
    IndexStats,
    Passage,
    normalize_payload,
)
from context_rag.vectorstore.pgvector import SupabaseVectorIndex
from context_rag.vectorstore.service import QdrantVectorIndex, VectorIndex

__all__ = [
    "UNKNOWN_SOURCE",
    "IndexStats",
    "IndexedChunk",
    "Passage",
    "QdrantVectorIndex",
    "SupabaseVectorIndex",
    "VectorIndex",
    "normalize_payload",
]
