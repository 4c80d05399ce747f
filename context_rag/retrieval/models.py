"""Retrieval data models."""

from pydantic import BaseModel, Field

from context_rag.vectorstore.models import Passage


class RetrievalResult(BaseModel):
    """Passages selected for one query.

    Attributes:
        query: The query text as received.
        passages: Selected passages, highest similarity first.
        candidate_count: Candidates the vector index returned.
    """

    query: str = Field(description="Query text")
    passages: list[Passage] = Field(
        default_factory=list,
        description="Selected passages",
    )
    candidate_count: int = Field(default=0, ge=0, description="Index candidates")

    @property
    def sources(self) -> list[str]:
        """Distinct source names in result order, for citations."""
        return list(dict.fromkeys(p.source_name for p in self.passages))

    @property
    def top_score(self) -> float:
        """Highest similarity among the passages, 0.0 when empty."""
        return self.passages[0].similarity if self.passages else 0.0

    def __len__(self) -> int:
        return len(self.passages)

    def __bool__(self) -> bool:
        return bool(self.passages)
