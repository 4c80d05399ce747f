"""Embedding data models."""

from pydantic import BaseModel, Field, model_validator


class EmbeddingResult(BaseModel):
    """A text and its dense vector.

    Attributes:
        text: The text as submitted (before newline normalization).
        embedding: The embedding vector.
        model: The model used to generate the embedding.
        dimensions: Number of dimensions in the embedding.
    """

    text: str = Field(description="Original text")
    embedding: list[float] = Field(min_length=1, description="Embedding vector")
    model: str = Field(description="Model used for embedding")
    dimensions: int = Field(gt=0, description="Vector dimensions")

    @model_validator(mode="after")
    def _check_dimensions(self) -> "EmbeddingResult":
        if self.dimensions != len(self.embedding):
            raise ValueError(
                f"dimensions ({self.dimensions}) does not match "
                f"embedding length ({len(self.embedding)})"
            )
        return self
