"""Rendering of selected passages for prompt injection."""

from collections.abc import Iterable

from context_rag.vectorstore.models import Passage

PASSAGE_SEPARATOR = "\n\n---\n\n"


def format_passage(passage: Passage) -> str:
    """Render one passage with its citation header."""
    header = f"Source: {passage.source_name}\n"
    if passage.page_number is not None:
        header += f"Page: {passage.page_number}\n"
    return f"{header}Content:\n{passage.text}"


def format_context(passages: Iterable[Passage]) -> str:
    """Join passages into a single context block.

    Returns an empty string for no passages; callers substitute their own
    "no context" notice.
    """
    return PASSAGE_SEPARATOR.join(format_passage(p) for p in passages)
