"""Text chunking for ingestion."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from context_rag.config import ChunkingSettings
from context_rag.documents.models import Chunk, Document


class ChunkerConfig(BaseModel):
    """Configuration for text chunking.

    Attributes:
        chunk_size: Target size of each chunk in characters.
        chunk_overlap: Characters shared by consecutive chunks.
        min_chunk_size: A whitespace break is only used past this length.
    """

    chunk_size: int = Field(default=1000, ge=100, description="Target chunk size")
    chunk_overlap: int = Field(default=200, ge=0, description="Overlap between chunks")
    min_chunk_size: int = Field(default=100, ge=10, description="Minimum chunk size")

    def model_post_init(self, __context: Any) -> None:
        """Validate overlap is less than chunk size."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")

    @classmethod
    def from_settings(cls, settings: ChunkingSettings) -> "ChunkerConfig":
        """Build from environment-backed settings."""
        return cls(chunk_size=settings.chunk_size, chunk_overlap=settings.chunk_overlap)


class Chunker(ABC):
    """Abstract base class for text chunkers."""

    def __init__(self, config: ChunkerConfig | None = None) -> None:
        """Initialize chunker with configuration.

        Args:
            config: Chunking configuration. Uses defaults if not provided.
        """
        self.config = config or ChunkerConfig()

    @abstractmethod
    def chunk(self, document: Document) -> list[Chunk]:
        """Split a document into non-empty chunks.

        Args:
            document: The document to chunk.

        Returns:
            List of Chunk objects; empty for blank documents.
        """
        ...

    def _create_chunk(
        self,
        content: str,
        document: Document,
        index: int,
        start_char: int,
        end_char: int,
    ) -> Chunk:
        return Chunk(
            content=content,
            source=document.source,
            page_number=document.page_number,
            index=index,
            start_char=start_char,
            end_char=end_char,
            metadata={
                **document.metadata,
                "chunk_index": index,
                "start_char": start_char,
                "end_char": end_char,
            },
        )


class CharacterChunker(Chunker):
    """Chunk text by character count with overlap.

    Breaks at the last whitespace inside the window when there is one.
    """

    def chunk(self, document: Document) -> list[Chunk]:
        """Split document by character count."""
        text = document.content
        if not text.strip():
            return []

        size = self.config.chunk_size
        overlap = self.config.chunk_overlap

        chunks: list[Chunk] = []
        start = 0

        while start < len(text):
            end = min(start + size, len(text))

            if end < len(text):
                last_space = max(
                    text.rfind(" ", start, end),
                    text.rfind("\n", start, end),
                )
                if last_space > start + self.config.min_chunk_size:
                    end = last_space + 1

            chunk_text = text[start:end].strip()
            if chunk_text:
                chunks.append(
                    self._create_chunk(
                        content=chunk_text,
                        document=document,
                        index=len(chunks),
                        start_char=start,
                        end_char=end,
                    )
                )

            if end >= len(text):
                break
            # Always advance, even when the overlap swallows the window
            start = max(end - overlap, start + 1)

        return chunks
