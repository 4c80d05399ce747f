"""API routes for chat, retrieval and ingestion."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from context_rag.documents.indexer import DocumentIndexer
from context_rag.documents.models import Document
from context_rag.logging_config import get_logger
from context_rag.rag.models import ChatRequest, ChatResponse
from context_rag.rag.pipeline import ChatPipeline
from context_rag.retrieval.context import format_context
from context_rag.retrieval.models import RetrievalResult
from context_rag.retrieval.retriever import Retriever
from context_rag.vectorstore.models import IndexStats

logger = get_logger(__name__)

PREVIEW_LENGTH = 200

# Create router
router = APIRouter(prefix="/api/v1", tags=["RAG"])


class RetrieveRequest(BaseModel):
    """Request body for a retrieval-only query."""

    query: str = Field(description="Query text")
    top_k: int | None = Field(default=None, ge=1, le=20, description="Passages")
    score_floor: float | None = Field(
        default=None,
        ge=-1.0,
        le=1.0,
        description="Minimum similarity",
    )


class RetrievedPassage(BaseModel):
    """One selected passage, text truncated for display."""

    id: str = Field(description="Record identifier")
    source: str = Field(description="Source name")
    page_number: int | None = Field(default=None, description="Page number")
    score: float = Field(description="Similarity score")
    text: str = Field(description="Passage preview")


class RetrieveResponse(BaseModel):
    """Selected passages and the context block built from them."""

    query: str = Field(description="Query text")
    count: int = Field(description="Passages selected")
    candidate_count: int = Field(description="Candidates from the index")
    results: list[RetrievedPassage] = Field(description="Selected passages")
    context: str = Field(description="Formatted context block")


class IngestRequest(BaseModel):
    """Request body for document ingestion."""

    content: str = Field(description="Document content to ingest")
    source: str = Field(min_length=1, description="Source name")
    page_number: int | None = Field(default=None, description="Page number")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional metadata",
    )


class IngestResponse(BaseModel):
    """Response from document ingestion."""

    success: bool = Field(description="Whether ingestion succeeded")
    chunks_created: int = Field(description="Number of chunks created")
    source: str = Field(description="Source name")


class DeleteResponse(BaseModel):
    """Response from removing a source."""

    success: bool = Field(description="Whether deletion succeeded")
    source: str = Field(description="Source name")


def _not_configured(service: str) -> HTTPException:
    logger.warning(f"{service} not configured")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={
            "error": f"{service} not configured",
            "message": "The service is started by the application lifespan",
        },
    )


def get_retriever(request: Request) -> Retriever:
    """Retriever built at startup."""
    retriever = getattr(request.app.state, "retriever", None)
    if retriever is None:
        raise _not_configured("Retriever")
    return retriever


def get_chat_pipeline(request: Request) -> ChatPipeline:
    """Chat pipeline built at startup."""
    pipeline = getattr(request.app.state, "chat_pipeline", None)
    if pipeline is None:
        raise _not_configured("Chat pipeline")
    return pipeline


def get_document_indexer(request: Request) -> DocumentIndexer:
    """Document indexer built at startup."""
    indexer = getattr(request.app.state, "document_indexer", None)
    if indexer is None:
        raise _not_configured("Document indexer")
    return indexer


@router.post("/chat", response_model=ChatResponse)
async def chat_endpoint(
    request: ChatRequest,
    pipeline: ChatPipeline = Depends(get_chat_pipeline),
) -> ChatResponse:
    """Answer a message using knowledge-base context."""
    return await pipeline.ask(request)


@router.post("/retrieve", response_model=RetrieveResponse)
async def retrieve_endpoint(
    request: RetrieveRequest,
    retriever: Retriever = Depends(get_retriever),
) -> RetrieveResponse:
    """Show which passages a query selects, without generating an answer."""
    result = await retriever.fetch(
        request.query,
        top_k=request.top_k,
        score_floor=request.score_floor,
    )
    return retrieval_result_to_response(result)


@router.post("/documents", response_model=IngestResponse)
async def ingest_endpoint(
    request: IngestRequest,
    indexer: DocumentIndexer = Depends(get_document_indexer),
) -> IngestResponse:
    """Index a document, replacing earlier chunks of the same source."""
    report = await indexer.index(ingest_request_to_document(request))
    return IngestResponse(
        success=True,
        chunks_created=report.chunks_created,
        source=report.source,
    )


@router.get("/documents/stats", response_model=IndexStats)
async def stats_endpoint(
    indexer: DocumentIndexer = Depends(get_document_indexer),
) -> IndexStats:
    """Report how many chunks and sources the knowledge base holds."""
    return await indexer.stats()


@router.delete("/documents/{source:path}", response_model=DeleteResponse)
async def delete_endpoint(
    source: str,
    indexer: DocumentIndexer = Depends(get_document_indexer),
) -> DeleteResponse:
    """Remove every chunk of a source."""
    await indexer.remove(source)
    return DeleteResponse(success=True, source=source)


def retrieval_result_to_response(result: RetrievalResult) -> RetrieveResponse:
    """Convert a RetrievalResult to the API response."""
    return RetrieveResponse(
        query=result.query,
        count=len(result),
        candidate_count=result.candidate_count,
        results=[
            RetrievedPassage(
                id=p.id,
                source=p.source_name,
                page_number=p.page_number,
                score=p.similarity,
                text=p.text[:PREVIEW_LENGTH],
            )
            for p in result.passages
        ],
        context=format_context(result.passages),
    )


def ingest_request_to_document(request: IngestRequest) -> Document:
    """Convert an IngestRequest to a Document."""
    return Document(
        content=request.content,
        source=request.source,
        page_number=request.page_number,
        metadata=request.metadata,
    )
