"""Document data models."""

from typing import Any

from pydantic import BaseModel, Field


class Document(BaseModel):
    """Extracted text of one source, ready for chunking.

    Attributes:
        content: Plain text content.
        source: File name or URL; chunks are grouped and replaced by it.
        page_number: Page, when the text is a single page of a paginated source.
        metadata: Extra fields copied onto every chunk.
    """

    content: str = Field(description="Text content of the document")
    source: str = Field(min_length=1, description="Source name")
    page_number: int | None = Field(default=None, description="Page number")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional metadata",
    )


class Chunk(BaseModel):
    """A chunk of text cut from a document.

    Attributes:
        content: The text content of the chunk.
        source: Source of the parent document.
        page_number: Page of the parent document, if any.
        index: Position of this chunk in the sequence.
        start_char: Starting character position in the document.
        end_char: Ending character position in the document.
        metadata: Document metadata plus chunk position.
    """

    content: str = Field(description="Text content of the chunk")
    source: str = Field(description="Source name")
    page_number: int | None = Field(default=None, description="Page number")
    index: int = Field(description="Chunk index in sequence")
    start_char: int = Field(description="Start position in document")
    end_char: int = Field(description="End position in document")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Metadata")


class IndexingReport(BaseModel):
    """Outcome of indexing one document."""

    source: str = Field(description="Source name")
    chunks_created: int = Field(description="Chunks written to the index")
