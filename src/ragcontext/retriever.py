"""Context retrieval over the vector store."""

import logging
from typing import Any, Optional

from .base import BaseVectorStore
from .config import RAGConfig
from .document import ContextChunk, QueryOptions, RAGContext, SearchResult
from .exceptions import RetrievalError
from .reranker import Reranker

logger = logging.getLogger(__name__)


class ContextRetriever:
    """Retrieves a ranked context for a query.

    Searches the vector store, applies relevance and document filters and
    optionally reranks an over-fetched shortlist before truncating to
    ``top_k``.
    """

    def __init__(
        self,
        vectorstore: BaseVectorStore,
        reranker: Optional[Reranker] = None,
        config: Optional[RAGConfig] = None,
    ):
        """Initialize the context retriever.

        Args:
            vectorstore: Vector store to search
            reranker: Reranker for the candidate shortlist (optional)
            config: Engine configuration (defaults apply when omitted)
        """
        self.vectorstore = vectorstore
        self.reranker = reranker
        self.config = config or RAGConfig()

    def candidate_count(self, top_k: int, rerank: bool) -> int:
        """Number of results to request from the store."""
        if not rerank:
            return top_k
        over_fetch = min(
            top_k * self.config.rerank_candidate_multiplier,
            self.config.max_rerank_candidates,
        )
        return max(top_k, over_fetch)

    async def retrieve_context(
        self,
        query: str,
        options: Optional[QueryOptions] = None,
        **overrides: Any,
    ) -> RAGContext:
        """Retrieve relevant context chunks for a query.

        Args:
            query: Query string
            options: Retrieval options; keyword overrides are merged in

        Returns:
            Context with chunks in final order

        Raises:
            RetrievalError: The vector search failed
        """
        if overrides or options is None:
            base = options.model_dump(exclude_none=True) if options else {}
            options = QueryOptions(**{**base, **overrides})
        top_k = options.top_k or self.config.default_top_k
        min_relevance = (
            options.min_relevance if options.min_relevance is not None else self.config.min_relevance
        )
        rerank = (options.rerank if options.rerank is not None else self.config.rerank)
        rerank = rerank and self.reranker is not None

        filter = None
        if options.document_ids is not None:
            filter = {"documentId": {"$in": list(options.document_ids)}}

        try:
            results = await self.vectorstore.search(
                query,
                filter=filter,
                top_k=self.candidate_count(top_k, rerank),
                min_relevance=min_relevance,
                namespace=options.namespace,
            )
        except Exception as e:
            raise RetrievalError() from e

        results = self._apply_filters(results, options.document_ids, min_relevance)

        if rerank and results:
            outcome = await self.reranker.rerank_results(query, results)
            if not outcome.reranked:
                logger.debug(f"Using vector order for query: {outcome.fallback_reason}")
            results = outcome.results

        results = results[:top_k]
        return RAGContext.from_chunks([ContextChunk.from_result(r) for r in results])

    def _apply_filters(
        self,
        results: list[SearchResult],
        document_ids: Optional[list[str]],
        min_relevance: Optional[float],
    ) -> list[SearchResult]:
        # The store may ignore filters it was asked to apply
        if document_ids is not None:
            allowed = set(document_ids)
            results = [r for r in results if r.document_id in allowed]
        if min_relevance is not None:
            results = [r for r in results if r.score >= min_relevance]
        return results

    async def retrieve_context_for_question(
        self,
        question: str,
        document_ids: list[str],
        top_k: Optional[int] = None,
        namespace: Optional[str] = None,
    ) -> RAGContext:
        """Retrieve context for a question, restricted to the given documents."""
        return await self.retrieve_context(
            question,
            QueryOptions(top_k=top_k, document_ids=document_ids, namespace=namespace),
        )
