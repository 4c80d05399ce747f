"""LLM client and prompts."""

from context_rag.llm.client import LLMClient, OpenAICompatibleClient
from context_rag.llm.models import GenerationResult, Message, Role
from context_rag.llm.prompts import NO_CONTEXT_NOTICE, RAGPromptTemplate

__all__ = [
    "NO_CONTEXT_NOTICE",
    "GenerationResult",
    "LLMClient",
    "Message",
    "OpenAICompatibleClient",
    "RAGPromptTemplate",
    "Role",
]
