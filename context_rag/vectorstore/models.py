"""Vector index data models and payload normalization."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_SOURCE = "Unknown Source"

# Payload keys in lookup order. Chunks written by different ingestion
# paths name the same fields differently.
TEXT_KEYS = ("text", "chunk_text", "content")
SOURCE_KEYS = ("file_name", "original_filename", "source")
PAGE_KEYS = ("page_number", "page")


class Passage(BaseModel):
    """A retrievable chunk of text scored against one query.

    Attributes:
        id: Opaque record identifier.
        source_name: File name, URL or "Unknown Source".
        text: Literal chunk content.
        page_number: Page of a paginated source, if known.
        similarity: Cosine similarity to the query (higher is more relevant).
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Record identifier")
    source_name: str = Field(default=UNKNOWN_SOURCE, description="Origin of the chunk")
    text: str = Field(default="", description="Chunk content")
    page_number: int | None = Field(default=None, description="Page number")
    similarity: float = Field(description="Cosine similarity")


class IndexedChunk(BaseModel):
    """A chunk and its vector, ready to be written to the index.

    Attributes:
        id: Unique identifier for the record.
        vector: The embedding vector.
        text: Chunk content.
        source_name: Source the chunk was cut from.
        page_number: Page of a paginated source, if known.
        metadata: Extra fields stored alongside the chunk.
    """

    id: str = Field(description="Unique record identifier")
    vector: list[float] = Field(description="Embedding vector")
    text: str = Field(description="Chunk content")
    source_name: str = Field(description="Source identifier")
    page_number: int | None = Field(default=None, description="Page number")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra metadata",
    )


class IndexStats(BaseModel):
    """Size of the knowledge base."""

    total_chunks: int = Field(ge=0, description="Chunks stored")
    sources: int = Field(ge=0, description="Distinct source names")


def _lookup(payload: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    """First non-empty value under `keys`, then under nested `metadata`."""
    nested = payload.get("metadata")
    scopes: list[Mapping[str, Any]] = [payload]
    if isinstance(nested, Mapping):
        scopes.append(nested)

    for scope in scopes:
        for key in keys:
            value = scope.get(key)
            if value not in (None, ""):
                return value
    return None


def _as_page_number(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_payload(
    record_id: Any,
    similarity: float,
    payload: Mapping[str, Any] | None,
) -> Passage:
    """Build the canonical Passage from a back-end specific record.

    Args:
        record_id: Identifier assigned by the index.
        similarity: Score reported by the index.
        payload: Stored fields; may be None.

    Returns:
        Passage with source name, text and page number resolved.
    """
    payload = payload or {}

    text = _lookup(payload, TEXT_KEYS)
    source = _lookup(payload, SOURCE_KEYS)

    return Passage(
        id=str(record_id),
        source_name=str(source) if source is not None else UNKNOWN_SOURCE,
        text=text if isinstance(text, str) else "",
        page_number=_as_page_number(_lookup(payload, PAGE_KEYS)),
        similarity=float(similarity),
    )
