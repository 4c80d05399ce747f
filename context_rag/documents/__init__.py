"""Document ingestion module."""

from context_rag.documents.chunker import CharacterChunker, Chunker, ChunkerConfig
from context_rag.documents.indexer import DocumentIndexer
from context_rag.documents.models import Chunk, Document, IndexingReport

__all__ = [
    "CharacterChunker",
    "Chunk",
    "Chunker",
    "ChunkerConfig",
    "Document",
    "DocumentIndexer",
    "IndexingReport",
]
