"""Chat pipeline data models."""

from pydantic import BaseModel, Field


class SourceAttribution(BaseModel):
    """Citation for a passage used as context.

    Attributes:
        source: Source name (file name or URL).
        page_number: Page of the passage, when known.
        content: Snippet of the passage.
        score: Similarity to the question.
    """

    source: str = Field(description="Source name")
    page_number: int | None = Field(default=None, description="Page number")
    content: str = Field(description="Passage snippet")
    score: float = Field(description="Similarity score")


class ChatRequest(BaseModel):
    """A user message to answer with knowledge-base context.

    Attributes:
        message: The user's message.
        top_k: Passages to include; None uses the configured default.
        score_floor: Minimum similarity; None uses the configured default.
    """

    message: str = Field(description="User message")
    top_k: int | None = Field(default=None, ge=1, le=20, description="Passages")
    score_floor: float | None = Field(
        default=None,
        ge=-1.0,
        le=1.0,
        description="Minimum similarity",
    )


class ChatResponse(BaseModel):
    """Answer with the passages it was grounded on.

    Attributes:
        answer: Generated answer.
        sources: Citations, highest similarity first.
        model: LLM model used.
        tokens_used: Total tokens consumed.
        context_used: Whether any passage reached the prompt.
    """

    answer: str = Field(description="Generated answer")
    sources: list[SourceAttribution] = Field(
        default_factory=list,
        description="Source attributions",
    )
    model: str = Field(description="LLM model used")
    tokens_used: int = Field(default=0, description="Total tokens consumed")
    context_used: bool = Field(default=False, description="Context was injected")
