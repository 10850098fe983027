"""Reranker implementations."""

import asyncio
import logging
from typing import Optional

from pydantic import BaseModel, ValidationError

from .base import BaseReranker
from .document import RerankOutcome, RerankScore, SearchResult
from .exceptions import GatewayError
from .http import ServiceClient

logger = logging.getLogger(__name__)


class IdentityReranker(BaseReranker):
    """Reranker that keeps the original order and scores."""

    async def rerank(
        self,
        query: str,
        candidates: list[SearchResult],
    ) -> list[RerankScore]:
        return [RerankScore(index=i, score=c.score) for i, c in enumerate(candidates)]


class _RerankResponse(BaseModel):
    results: list[RerankScore]


class HTTPReranker(BaseReranker):
    """Reranking model served over HTTP.

    Calls ``POST /v1/rag/rerank`` with the query and candidate texts and
    expects ``{"results": [{"index": ..., "score": ...}]}``.
    """

    SERVICE = "reranker"

    def __init__(self, client: ServiceClient, model: str = "cross-encoder"):
        self.client = client
        self.model = model

    async def rerank(
        self,
        query: str,
        candidates: list[SearchResult],
    ) -> list[RerankScore]:
        payload = await self.client.request(
            "POST",
            "/v1/rag/rerank",
            json={
                "query": query,
                "documents": [c.text for c in candidates],
                "model": self.model,
            },
            service=self.SERVICE,
        )
        try:
            return _RerankResponse.model_validate(payload).results
        except ValidationError as e:
            raise GatewayError(self.SERVICE, f"malformed rerank response: {e}") from e


class CrossEncoderReranker(BaseReranker):
    """Reranker using a sentence-transformers cross-encoder.

    Note: Requires the 'local' extra to be installed.
    """

    def __init__(
        self,
        model_name: str = "cross-encoder/ms-marco-MiniLM-L-6-v2",
        device: Optional[str] = None,
    ):
        self.model_name = model_name
        self.device = device
        self._model = None

    def _get_model(self):
        """Get or load the cross-encoder model."""
        if self._model is None:
            try:
                from sentence_transformers import CrossEncoder
            except ImportError:
                raise ImportError(
                    "CrossEncoder requires 'sentence-transformers'. "
                    "Install it with: pip install ragcontext[local]"
                )

            self._model = CrossEncoder(self.model_name, device=self.device)
            logger.info(f"Loaded cross-encoder model: {self.model_name}")
        return self._model

    async def rerank(
        self,
        query: str,
        candidates: list[SearchResult],
    ) -> list[RerankScore]:
        if not candidates:
            return []

        model = self._get_model()
        pairs = [(query, c.text) for c in candidates]

        # Score in thread pool
        loop = asyncio.get_running_loop()
        scores = await loop.run_in_executor(None, lambda: model.predict(pairs))

        ranked = [RerankScore(index=i, score=float(score)) for i, score in enumerate(scores)]
        ranked.sort(key=lambda item: item.score, reverse=True)
        return ranked


class Reranker:
    """Applies a reranking model to a candidate shortlist.

    Reranking never fails from the caller's point of view: any problem with
    the model call or its response yields the original candidates, tagged
    with the reason in the returned outcome.
    """

    def __init__(
        self,
        gateway: BaseReranker,
        max_candidates: int = 20,
        threshold: Optional[float] = None,
    ):
        """Initialize the reranker.

        Args:
            gateway: Reranking model
            max_candidates: Most candidates sent to the model
            threshold: Drop reranked items scoring below this value
        """
        self.gateway = gateway
        self.max_candidates = max_candidates
        self.threshold = threshold

    def _fallback(self, candidates: list[SearchResult], reason: str) -> RerankOutcome:
        logger.warning(f"Reranking failed, using original order: {reason}")
        return RerankOutcome(results=candidates, reranked=False, fallback_reason=reason)

    async def rerank_results(
        self,
        query: str,
        candidates: list[SearchResult],
    ) -> RerankOutcome:
        """Rerank candidates.

        Args:
            query: Original query string
            candidates: Results ordered by vector similarity

        Returns:
            The shortlist in the model's order with its scores followed by
            any candidates beyond ``max_candidates`` in their original order,
            or the unchanged candidates when reranking failed
        """
        if not candidates:
            return RerankOutcome(results=[], reranked=True)

        shortlist = candidates[:self.max_candidates]

        try:
            raw_scores = await self.gateway.rerank(query, shortlist)
            scores = [RerankScore.model_validate(item) for item in raw_scores]
        except Exception as e:
            return self._fallback(candidates, str(e) or type(e).__name__)

        seen: set[int] = set()
        reranked = []
        for item in scores:
            if item.index >= len(shortlist):
                return self._fallback(candidates, f"index {item.index} out of range")
            if item.index in seen:
                return self._fallback(candidates, f"duplicate index {item.index}")
            seen.add(item.index)

            if self.threshold is not None and item.score < self.threshold:
                continue
            reranked.append(shortlist[item.index].model_copy(update={"score": item.score}))

        # Candidates past the shortlist were never scored; they keep vector order
        reranked.extend(candidates[self.max_candidates:])
        return RerankOutcome(results=reranked, reranked=True)
