"""Retrieval-augmented chat."""

from context_rag.rag.models import ChatRequest, ChatResponse, SourceAttribution
from context_rag.rag.pipeline import ChatPipeline

__all__ = [
    "ChatPipeline",
    "ChatRequest",
    "ChatResponse",
    "SourceAttribution",
]
