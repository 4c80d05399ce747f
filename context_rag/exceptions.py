"""Error types raised across the retrieval service.

Every error carries a `RAG-XXXX` code; the API maps codes to HTTP statuses.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "RAG-1000"
    CONFIGURATION_ERROR = "RAG-1001"
    VALIDATION_ERROR = "RAG-1002"

    # Document ingestion errors (2xxx)
    EMPTY_DOCUMENT = "RAG-2000"

    # Embedding errors (3xxx)
    EMBEDDING_SERVICE_ERROR = "RAG-3000"
    EMBEDDING_DIMENSION_MISMATCH = "RAG-3001"

    # Vector index errors (4xxx)
    VECTOR_STORE_ERROR = "RAG-4000"
    COLLECTION_NOT_FOUND = "RAG-4001"

    # LLM errors (5xxx)
    LLM_SERVICE_ERROR = "RAG-5000"
    LLM_TIMEOUT = "RAG-5001"
    LLM_RATE_LIMIT = "RAG-5002"

    # Retrieval errors (6xxx)
    INVALID_QUERY = "RAG-6000"


class RAGPlatformError(Exception):
    """Base exception for all platform errors.

    Subclasses only pick a `default_code`; callers may still pass a more
    specific one.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(RAGPlatformError):
    """Missing or unusable settings."""

    default_code = ErrorCode.CONFIGURATION_ERROR


class ValidationError(RAGPlatformError):
    """Input validation error."""

    default_code = ErrorCode.VALIDATION_ERROR


class InvalidQueryError(ValidationError):
    """Retrieval query rejected before any network call."""

    default_code = ErrorCode.INVALID_QUERY


class DocumentError(RAGPlatformError):
    """Document could not be ingested."""

    default_code = ErrorCode.EMPTY_DOCUMENT


class EmbeddingError(RAGPlatformError):
    """Embedding endpoint failed or returned unusable vectors."""

    default_code = ErrorCode.EMBEDDING_SERVICE_ERROR


class VectorStoreError(RAGPlatformError):
    """Vector index operation error."""

    default_code = ErrorCode.VECTOR_STORE_ERROR


class LLMError(RAGPlatformError):
    """Chat completion failed."""

    default_code = ErrorCode.LLM_SERVICE_ERROR
