"""LLM data models."""

from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A chat message."""

    role: Role = Field(description="Message role")
    content: str = Field(description="Message content")

    def to_payload(self) -> dict[str, str]:
        """Chat completions wire format."""
        return {"role": self.role.value, "content": self.content}


class GenerationResult(BaseModel):
    """Result from LLM generation.

    Attributes:
        content: The generated text, stripped.
        model: Model that produced the text.
        finish_reason: Why generation stopped, as reported by the server.
        prompt_tokens: Number of tokens in the prompt.
        completion_tokens: Number of tokens in the completion.
        total_tokens: Total tokens used.
    """

    content: str = Field(description="Generated text")
    model: str = Field(description="Model used")
    finish_reason: str | None = Field(default=None, description="Stop reason")
    prompt_tokens: int = Field(default=0, description="Prompt token count")
    completion_tokens: int = Field(default=0, description="Completion token count")
    total_tokens: int = Field(default=0, description="Total token count")
