"""Supabase pgvector implementation of the vector index.

Searches through a Postgres function and writes rows to the documents table.
The function is expected to have the signature

    match_documents(query_embedding vector, match_threshold float,
                    match_count int, user_filter uuid default null)

and to return `id`, `user_id`, `file_name`, `chunk_text`, `metadata` and
`similarity` (cosine, `1 - (embedding <=> query_embedding)`) for rows whose
similarity exceeds the threshold, best first.

The supabase client is synchronous, so calls run in a worker thread.
"""

import asyncio
from typing import Any

from supabase import Client, create_client

from context_rag.config import SupabaseSettings, get_settings
from context_rag.exceptions import ConfigurationError, ErrorCode, VectorStoreError
from context_rag.logging_config import get_logger
from context_rag.vectorstore.models import (
    IndexedChunk,
    IndexStats,
    Passage,
    normalize_payload,
)
from context_rag.vectorstore.service import VectorIndex

logger = get_logger(__name__)


class SupabaseVectorIndex(VectorIndex):
    """Vector index over a Supabase table with a pgvector column."""

    backend_name = "supabase"

    def __init__(
        self,
        settings: SupabaseSettings | None = None,
        client: Client | None = None,
    ) -> None:
        """Initialize the Supabase index.

        Args:
            settings: Supabase configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().supabase
        self._client = client

    def _get_client(self) -> Client:
        """Get or create the Supabase client."""
        if self._client is None:
            key = self._settings.service_role_key.get_secret_value()
            if not key:
                raise ConfigurationError(
                    "SUPABASE_SERVICE_ROLE_KEY is not set",
                    details={"url": self._settings.url},
                )
            self._client = create_client(self._settings.url, key)
        return self._client

    async def search(
        self,
        vector: list[float],
        candidate_count: int,
        score_floor: float,
    ) -> list[Passage]:
        """Call the match function and normalize its rows."""
        params = {
            "query_embedding": vector,
            "match_threshold": score_floor,
            "match_count": candidate_count,
            "user_filter": self._settings.owner_id,
        }

        try:
            with self._track("search"):
                response = await asyncio.to_thread(self._rpc, params)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Supabase search failed: {e}")
            raise VectorStoreError(
                f"Failed to search: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"function": self._settings.match_function, "error": str(e)},
            ) from e

        rows: list[dict[str, Any]] = response.data or []
        passages = [
            normalize_payload(row.get("id"), row.get("similarity") or 0.0, row)
            for row in rows
        ]
        passages.sort(key=lambda p: p.similarity, reverse=True)

        logger.debug(
            f"Supabase returned {len(passages)} candidates",
            extra={"match_count": candidate_count, "match_threshold": score_floor},
        )
        return passages

    def _rpc(self, params: dict[str, Any]) -> Any:
        return self._get_client().rpc(self._settings.match_function, params).execute()

    async def upsert(self, chunks: list[IndexedChunk]) -> int:
        """Insert one row per chunk, owned by the configured user."""
        if not chunks:
            return 0

        if not self._settings.owner_id:
            raise ConfigurationError(
                "SUPABASE_OWNER_ID is required to write documents",
                details={"table": self._settings.table_name},
            )

        rows = [
            {
                "id": chunk.id,
                "user_id": self._settings.owner_id,
                "file_name": chunk.source_name,
                "original_text": chunk.text,
                "chunk_text": chunk.text,
                "embedding": chunk.vector,
                "metadata": {**chunk.metadata, "page_number": chunk.page_number},
            }
            for chunk in chunks
        ]

        try:
            with self._track("upsert"):
                await asyncio.to_thread(self._insert, rows)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Supabase insert failed: {e}")
            raise VectorStoreError(
                f"Failed to insert chunks: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"table": self._settings.table_name, "error": str(e)},
            ) from e

        logger.info(
            f"Inserted {len(rows)} rows",
            extra={"table": self._settings.table_name},
        )
        return len(rows)

    def _insert(self, rows: list[dict[str, Any]]) -> Any:
        return self._get_client().table(self._settings.table_name).insert(rows).execute()

    async def delete_source(self, source_name: str) -> None:
        """Delete every row whose file_name matches the source."""
        try:
            with self._track("delete"):
                await asyncio.to_thread(self._delete, source_name)
        except ConfigurationError:
            raise
        except Exception as e:
            raise VectorStoreError(
                f"Failed to delete chunks of {source_name}: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"table": self._settings.table_name, "source": source_name},
            ) from e

        logger.info(f"Deleted existing chunks for {source_name}")

    def _delete(self, source_name: str) -> Any:
        return (
            self._get_client()
            .table(self._settings.table_name)
            .delete()
            .eq("file_name", source_name)
            .execute()
        )

    async def ensure_collection(self, dimensions: int) -> None:
        """Schema and vector dimension are fixed by the database migration."""
        logger.debug(
            "Supabase schema is managed by migrations",
            extra={"table": self._settings.table_name, "dimensions": dimensions},
        )

    async def stats(self) -> IndexStats:
        """Count the owner's rows and their distinct file names."""
        try:
            with self._track("stats"):
                counted, files = await asyncio.to_thread(self._stats_queries)
        except ConfigurationError:
            raise
        except Exception as e:
            raise VectorStoreError(
                f"Failed to read document stats: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"table": self._settings.table_name, "error": str(e)},
            ) from e

        sources = {row.get("file_name") for row in files.data or []}
        sources.discard(None)
        return IndexStats(total_chunks=counted.count or 0, sources=len(sources))

    def _stats_queries(self) -> tuple[Any, Any]:
        client = self._get_client()
        table = self._settings.table_name
        count_query = client.table(table).select("id", count="exact")
        files_query = client.table(table).select("file_name")
        if self._settings.owner_id:
            count_query = count_query.eq("user_id", self._settings.owner_id)
            files_query = files_query.eq("user_id", self._settings.owner_id)
        return count_query.execute(), files_query.execute()
