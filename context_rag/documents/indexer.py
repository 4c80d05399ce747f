"""Chunk, embed and write documents to the vector index."""

import uuid

from context_rag.documents.chunker import CharacterChunker, Chunker
from context_rag.documents.models import Document, IndexingReport
from context_rag.embeddings.service import EmbeddingService
from context_rag.exceptions import DocumentError, ErrorCode, VectorStoreError
from context_rag.logging_config import get_logger
from context_rag.vectorstore.models import IndexedChunk, IndexStats
from context_rag.vectorstore.service import VectorIndex

logger = get_logger(__name__)


class DocumentIndexer:
    """Replaces the indexed chunks of a source with a fresh set."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_index: VectorIndex,
        chunker: Chunker | None = None,
    ) -> None:
        """Initialize the indexer.

        Args:
            embedding_service: Service for chunk embeddings.
            vector_index: Index that receives the chunks.
            chunker: Text chunker. Defaults to CharacterChunker.
        """
        self._embedding_service = embedding_service
        self._vector_index = vector_index
        self._chunker = chunker or CharacterChunker()

    async def index(self, document: Document) -> IndexingReport:
        """Index a document, replacing earlier chunks of the same source.

        Args:
            document: Document to index.

        Returns:
            IndexingReport with the number of chunks written.

        Raises:
            DocumentError: If the document has no text.
            EmbeddingError: If embedding fails.
            VectorStoreError: If the index write fails. A failed write after
                the delete leaves the source without chunks until it is
                ingested again.
        """
        chunks = self._chunker.chunk(document)
        if not chunks:
            raise DocumentError(
                "Document has no text to index",
                code=ErrorCode.EMPTY_DOCUMENT,
                details={"source": document.source},
            )

        logger.info(
            f"Indexing {len(chunks)} chunks",
            extra={"source": document.source},
        )

        embeddings = await self._embedding_service.embed_batch(
            [chunk.content for chunk in chunks]
        )

        await self._vector_index.ensure_collection(embeddings[0].dimensions)
        # Old chunks go only after the new vectors are in hand
        await self._vector_index.delete_source(document.source)

        records = [
            IndexedChunk(
                id=str(uuid.uuid4()),
                vector=embedding.embedding,
                text=chunk.content,
                source_name=chunk.source,
                page_number=chunk.page_number,
                metadata=chunk.metadata,
            )
            for chunk, embedding in zip(chunks, embeddings, strict=True)
        ]
        try:
            written = await self._vector_index.upsert(records)
        except VectorStoreError:
            logger.error(
                "Write failed after old chunks were deleted; re-ingest the source",
                extra={"source": document.source, "chunks": len(records)},
            )
            raise

        logger.info(
            "Document indexed",
            extra={"source": document.source, "chunks_created": written},
        )
        return IndexingReport(source=document.source, chunks_created=written)

    async def remove(self, source: str) -> None:
        """Delete every chunk of a source from the index.

        Raises:
            VectorStoreError: If deletion fails.
        """
        await self._vector_index.delete_source(source)
        logger.info("Source removed", extra={"source": source})

    async def stats(self) -> IndexStats:
        """Chunk and source counts of the index."""
        return await self._vector_index.stats()
