"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache
from typing import Any

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class VectorBackend(str, Enum):
    """Vector index implementation to wire at startup."""

    QDRANT = "qdrant"
    SUPABASE = "supabase"


class LLMSettings(BaseSettings):
    """LLM service configuration.

    Any OpenAI-compatible chat completions endpoint.
    """

    model_config = SettingsConfigDict(env_prefix="LLM_")

    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="LLM API base URL",
    )
    model: str = Field(
        default="gpt-3.5-turbo",
        description="Model name to use for generation",
    )
    api_key: SecretStr = Field(
        default=SecretStr("not-required"),
        description="API key (not required for local servers)",
    )
    timeout: float = Field(
        default=120.0,
        description="Request timeout in seconds",
    )
    max_tokens: int = Field(
        default=1024,
        description="Maximum tokens in response",
    )
    temperature: float = Field(
        default=0.1,
        description="Sampling temperature (lower = more deterministic)",
    )


class EmbeddingSettings(BaseSettings):
    """Embedding service configuration."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI-compatible embedding API base URL",
    )
    model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model name",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="API key sent as a bearer token",
    )
    batch_size: int = Field(
        default=32,
        description="Batch size for embedding requests",
    )
    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds",
    )


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_")

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Qdrant API key (optional for local)",
    )
    collection_name: str = Field(
        default="lucient_documents",
        description="Collection holding document chunks",
    )


class SupabaseSettings(BaseSettings):
    """Supabase pgvector configuration."""

    model_config = SettingsConfigDict(env_prefix="SUPABASE_")

    url: str = Field(
        default="http://localhost:54321",
        description="Supabase project URL",
    )
    service_role_key: SecretStr = Field(
        default=SecretStr(""),
        description="Service role key for server-side access",
    )
    table_name: str = Field(
        default="documents",
        description="Table holding document chunks",
    )
    match_function: str = Field(
        default="match_documents",
        description="Postgres function performing the similarity search",
    )
    owner_id: str | None = Field(
        default=None,
        description="User id recorded on ingested rows and used as search filter",
    )


class RetrievalSettings(BaseSettings):
    """Context retrieval tuning knobs."""

    model_config = SettingsConfigDict(env_prefix="RETRIEVAL_")

    top_k: int = Field(
        default=5,
        ge=1,
        description="Passages returned to the prompt builder",
    )
    score_floor: float = Field(
        default=0.5,
        description="Minimum cosine similarity for a candidate",
    )
    overfetch_factor: int = Field(
        default=10,
        ge=1,
        description="Candidates requested per returned passage",
    )


class ChunkingSettings(BaseSettings):
    """Ingestion chunking configuration."""

    model_config = SettingsConfigDict(env_prefix="CHUNKING_")

    chunk_size: int = Field(default=1000, ge=100, description="Target chunk size")
    chunk_overlap: int = Field(default=200, ge=0, description="Overlap between chunks")

    def model_post_init(self, __context: Any) -> None:
        """Validate overlap is less than chunk size."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                "CHUNKING_CHUNK_OVERLAP must be less than CHUNKING_CHUNK_SIZE"
            )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    vector_backend: VectorBackend = Field(
        default=VectorBackend.QDRANT,
        description="Vector index implementation",
    )

    # API settings
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        description="API server port",
    )

    # Nested settings
    llm: LLMSettings = Field(default_factory=LLMSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
