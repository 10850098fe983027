"""Token-budget packing of ranked context chunks."""

import math

from .document import ContextChunk, RAGContext

CHARS_PER_TOKEN = 4


def estimate_token_count(text: str) -> int:
    """Rough token estimate: one token per four characters, rounded up."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def assemble_context_within_budget(
    chunks: list[ContextChunk],
    token_budget: int,
) -> RAGContext:
    """Pack the most relevant chunks into a token budget.

    Chunks are taken in descending score order (ties keep their input
    order). A chunk that does not fit the remaining budget is skipped and
    smaller, less relevant chunks may still be accepted after it.

    Args:
        chunks: Candidate chunks, normally already sorted by score
        token_budget: Maximum estimated tokens across accepted chunks

    Returns:
        Context whose estimated size never exceeds ``token_budget``
    """
    if token_budget < 0:
        raise ValueError("token_budget must not be negative")

    assembled: list[ContextChunk] = []
    used = 0

    for chunk in sorted(chunks, key=lambda c: c.score, reverse=True):
        cost = estimate_token_count(chunk.text)
        if used + cost > token_budget:
            continue
        assembled.append(chunk)
        used += cost

    return RAGContext.from_chunks(assembled)
