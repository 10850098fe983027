"""Prompt composition from retrieved context."""

import logging
import math
from typing import Any, NamedTuple, Optional

from .assembler import assemble_context_within_budget
from .config import RAGConfig
from .document import PreparedPrompt, QueryOptions, RAGContext
from .retriever import ContextRetriever

logger = logging.getLogger(__name__)


DEFAULT_SYSTEM_PROMPT = """You are a helpful assistant that answers questions based on the provided context.
Always cite your sources using the [Source X] format when referencing information from the context.
If the context doesn't contain enough information to fully answer the question, acknowledge this limitation."""

USER_PROMPT_TEMPLATE = """Context:
{context}

Question: {query}

Please provide a comprehensive answer based on the context above, citing specific sources."""


class ModelProfile(NamedTuple):
    context_limit: int
    reserved_tokens: int


# reserved_tokens covers the system prompt, the query and the response
MODEL_PROFILES: dict[str, ModelProfile] = {
    "claude-sonnet-4-20250514": ModelProfile(200_000, 2_700),
    "claude-sonnet-4-5-20250929": ModelProfile(200_000, 2_700),
    "claude-opus-4-20250514": ModelProfile(200_000, 4_700),
    "claude-3-5-sonnet-20241022": ModelProfile(200_000, 2_700),
    "claude-3-opus": ModelProfile(200_000, 4_700),
    "claude-3-sonnet": ModelProfile(200_000, 2_700),
    "claude-3-haiku": ModelProfile(200_000, 1_700),
}
DEFAULT_PROFILE = ModelProfile(200_000, 2_700)
SAFETY_MARGIN = 0.1


class PromptComposer:
    """Builds system and user prompts with cited context."""

    def __init__(self, retriever: ContextRetriever, config: Optional[RAGConfig] = None):
        self.retriever = retriever
        self.config = config or RAGConfig()

    @staticmethod
    def format_context_for_claude(context: RAGContext) -> str:
        """Render context chunks as numbered citation blocks.

        Each block carries the source number, document id, position (when
        known) and relevance percentage, followed by the chunk text.
        """
        sections = []

        for index, chunk in enumerate(context.chunks, start=1):
            details = [f"Document: {chunk.metadata.get('documentId') or 'Unknown'}"]
            position = chunk.metadata.get("position")
            if position is not None:
                details.append(f"Position: {position}")
            details.append(f"Relevance: {chunk.score * 100:.1f}%")

            sections.append(f"[Source {index}] ({', '.join(details)})\n{chunk.text}\n")

        return "\n---\n\n".join(sections)

    async def prepare_prompt(
        self,
        query: str,
        options: Optional[QueryOptions] = None,
        **overrides: Any,
    ) -> PreparedPrompt:
        """Retrieve context for a query and build the prompt around it.

        Args:
            query: User query
            options: Retrieval options; ``system_prompt`` replaces the default
                system prompt and ``token_budget`` packs the context

        Raises:
            RetrievalError: The vector search failed
        """
        if overrides or options is None:
            base = options.model_dump(exclude_none=True) if options else {}
            options = QueryOptions(**{**base, **overrides})

        context = await self.retriever.retrieve_context(query, options)
        if options.token_budget is not None:
            context = assemble_context_within_budget(context.chunks, options.token_budget)
            logger.debug(
                f"Packed context into {options.token_budget} tokens: {context.total_chunks} chunks kept"
            )

        system_prompt = options.system_prompt or self.config.system_prompt or DEFAULT_SYSTEM_PROMPT
        user_prompt = USER_PROMPT_TEMPLATE.format(
            context=self.format_context_for_claude(context),
            query=query,
        )

        return PreparedPrompt(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            context=context,
        )

    def get_optimal_context_window(
        self,
        total_budget: Optional[int] = None,
        model: Optional[str] = None,
    ) -> int:
        """Tokens available for context within a budget for a model.

        Leaves room for the model's output and the non-context parts of
        the prompt. The result is always below ``total_budget``.
        """
        if total_budget is None:
            total_budget = self.config.context_token_budget
        if total_budget <= 0:
            raise ValueError("total_budget must be positive")

        profile = MODEL_PROFILES.get(model or self.config.default_model, DEFAULT_PROFILE)
        available = min(total_budget, profile.context_limit - profile.reserved_tokens)

        return math.floor(available * (1 - SAFETY_MARGIN))
