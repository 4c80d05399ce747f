"""FastAPI application entry point.

Configures the application with logging, exception handling, metrics,
health checks and the service graph behind the API routes.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from context_rag import __version__
from context_rag.api.routes import router
from context_rag.config import Settings, VectorBackend, get_settings
from context_rag.documents.chunker import CharacterChunker, ChunkerConfig
from context_rag.documents.indexer import DocumentIndexer
from context_rag.embeddings.service import HTTPEmbeddingService
from context_rag.exceptions import ErrorCode, RAGPlatformError
from context_rag.llm.client import OpenAICompatibleClient
from context_rag.logging_config import get_logger, setup_logging
from context_rag.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
)
from context_rag.rag.pipeline import ChatPipeline
from context_rag.retrieval.retriever import ContextRetriever
from context_rag.vectorstore.pgvector import SupabaseVectorIndex
from context_rag.vectorstore.service import QdrantVectorIndex, VectorIndex

logger = get_logger(__name__)

_STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INVALID_QUERY: 400,
    ErrorCode.EMPTY_DOCUMENT: 400,
    ErrorCode.COLLECTION_NOT_FOUND: 404,
    ErrorCode.LLM_RATE_LIMIT: 429,
    ErrorCode.EMBEDDING_SERVICE_ERROR: 502,
    ErrorCode.EMBEDDING_DIMENSION_MISMATCH: 502,
    ErrorCode.VECTOR_STORE_ERROR: 502,
    ErrorCode.LLM_TIMEOUT: 504,
}


def build_vector_index(settings: Settings) -> VectorIndex:
    """Create the vector index selected by VECTOR_BACKEND."""
    if settings.vector_backend == VectorBackend.SUPABASE:
        return SupabaseVectorIndex(settings=settings.supabase)
    return QdrantVectorIndex(settings=settings.qdrant)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the services on startup and closes their clients on shutdown.
    """
    # Startup
    settings = get_settings()
    setup_logging(level=settings.log_level)
    logger.info(
        "Starting Context RAG",
        extra={
            "version": __version__,
            "environment": settings.environment.value,
            "vector_backend": settings.vector_backend.value,
        },
    )

    embedding_service = HTTPEmbeddingService(settings=settings.embedding)
    vector_index = build_vector_index(settings)
    llm_client = OpenAICompatibleClient(settings=settings.llm)
    retriever = ContextRetriever(
        embedding_service=embedding_service,
        vector_index=vector_index,
        settings=settings.retrieval,
    )

    app.state.retriever = retriever
    app.state.chat_pipeline = ChatPipeline(retriever=retriever, llm_client=llm_client)
    app.state.document_indexer = DocumentIndexer(
        embedding_service=embedding_service,
        vector_index=vector_index,
        chunker=CharacterChunker(ChunkerConfig.from_settings(settings.chunking)),
    )

    yield

    # Shutdown
    logger.info("Shutting down Context RAG")
    await embedding_service.close()
    await llm_client.close()
    await vector_index.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Context RAG",
        description="Source-diverse retrieval and grounded chat over a document index",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.add_middleware(MetricsMiddleware)

    # Register exception handlers
    app.add_exception_handler(RAGPlatformError, rag_exception_handler)

    # Register routes
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route(
        "/metrics",
        metrics_endpoint,
        methods=["GET"],
        tags=["Observability"],
        include_in_schema=False,
    )
    app.include_router(router)

    return app


async def rag_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle RAGPlatformError exceptions.

    Converts exceptions to structured JSON responses.
    """
    if not isinstance(exc, RAGPlatformError):
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": str(exc),
                    "details": {},
                }
            },
        )

    status_code = get_status_code(exc.code)
    log = logger.warning if status_code < 500 else logger.error
    log(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )

    return JSONResponse(
        status_code=status_code,
        content=exc.to_dict(),
    )


def get_status_code(error_code: ErrorCode) -> int:
    """Map an error code to an HTTP status code (500 when unmapped)."""
    return _STATUS_CODES.get(error_code, 500)


async def health_check() -> dict[str, Any]:
    """Basic health check endpoint.

    Returns:
        Health status with version and timestamp.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def readiness_check(request: Request) -> dict[str, Any]:
    """Kubernetes readiness probe.

    Reports whether the services behind the API routes were built.

    Returns:
        Readiness status with component checks.
    """
    state = request.app.state
    checks: dict[str, str] = {"config": "ok"}
    for name in ("retriever", "chat_pipeline", "document_indexer"):
        service = getattr(state, name, None)
        checks[name] = "ok" if service is not None else "not_configured"

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe.

    Returns:
        Liveness status.
    """
    return {"status": "alive"}


async def metrics_endpoint() -> Response:
    """Expose Prometheus metrics."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


# Create the application instance
app = create_app()


def main() -> None:
    """Run the API server."""
    settings = get_settings()
    uvicorn.run(
        "context_rag.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
