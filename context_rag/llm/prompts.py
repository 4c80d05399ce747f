"""Prompt template for context-grounded answers."""

NO_CONTEXT_NOTICE = "No relevant context was found in the knowledge base."


class RAGPromptTemplate:
    """Wraps formatted context and the user's question into chat prompts."""

    DEFAULT_SYSTEM_PROMPT = """You are a helpful assistant that answers questions using the provided context.

Rules:
- Base your answer on the context when it is relevant
- If the context does not contain the answer, say so before answering from general knowledge
- Be concise and direct
- Cite the source (and page, when given) you relied on"""

    DEFAULT_USER_TEMPLATE = """Context:
{context}

Question: {question}

Answer:"""

    def __init__(
        self,
        system_prompt: str | None = None,
        user_template: str | None = None,
    ) -> None:
        """Initialize the template.

        Args:
            system_prompt: Custom system prompt.
            user_template: Custom user template with {context} and {question}.
        """
        self.system_prompt = system_prompt or self.DEFAULT_SYSTEM_PROMPT
        self.user_template = user_template or self.DEFAULT_USER_TEMPLATE

    def build_prompt(self, question: str, context: str) -> tuple[str, str]:
        """Build (system_prompt, user_prompt).

        An empty context is replaced by NO_CONTEXT_NOTICE.
        """
        user_prompt = self.user_template.format(
            context=context or NO_CONTEXT_NOTICE,
            question=question,
        )
        return self.system_prompt, user_prompt
