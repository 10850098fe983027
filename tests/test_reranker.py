"""Tests for reranking."""

import pytest

from conftest import make_result
from ragcontext import IdentityReranker, Reranker, RerankScore


@pytest.fixture
def candidates():
    return [
        make_result("c1", 0.9),
        make_result("c2", 0.85),
        make_result("c3", 0.8),
    ]


class TestReranker:
    """Tests for Reranker.rerank_results."""

    @pytest.mark.asyncio
    async def test_uses_model_order_and_scores(self, mock_reranker, candidates):
        """Output follows the model's order with replacement scores."""
        mock_reranker.rerank.return_value = [
            RerankScore(index=2, score=0.95),
            RerankScore(index=0, score=0.85),
            RerankScore(index=1, score=0.3),
        ]

        outcome = await Reranker(mock_reranker).rerank_results("query", candidates)

        assert outcome.reranked is True
        assert outcome.fallback_reason is None
        assert [(r.id, r.score) for r in outcome.results] == [
            ("c3", 0.95),
            ("c1", 0.85),
            ("c2", 0.3),
        ]

    @pytest.mark.asyncio
    async def test_threshold_drops_low_scores(self, mock_reranker, candidates):
        """Items under the threshold are removed."""
        mock_reranker.rerank.return_value = [
            RerankScore(index=2, score=0.95),
            RerankScore(index=0, score=0.85),
            RerankScore(index=1, score=0.3),
        ]

        outcome = await Reranker(mock_reranker, threshold=0.5).rerank_results("query", candidates)

        assert [r.id for r in outcome.results] == ["c3", "c1"]

    @pytest.mark.asyncio
    async def test_limits_candidates(self, mock_reranker):
        """Only max_candidates are sent to the model."""
        many = [make_result(f"c{i}", 0.9) for i in range(15)]
        mock_reranker.rerank.return_value = []

        await Reranker(mock_reranker, max_candidates=10).rerank_results("query", many)

        sent = mock_reranker.rerank.call_args.args[1]
        assert len(sent) == 10

    @pytest.mark.asyncio
    async def test_candidates_past_cap_follow_in_vector_order(self, mock_reranker):
        """Candidates beyond max_candidates are kept after the reranked ones."""
        many = [make_result(f"c{i}", 1.0 - i / 100) for i in range(30)]
        mock_reranker.rerank.return_value = [
            RerankScore(index=i, score=0.5 + i / 100) for i in reversed(range(20))
        ]

        outcome = await Reranker(mock_reranker, max_candidates=20).rerank_results("query", many)

        assert outcome.reranked is True
        assert len(outcome.results) == 30
        assert [r.id for r in outcome.results[:20]] == [f"c{i}" for i in reversed(range(20))]
        assert outcome.results[20:] == many[20:]

    @pytest.mark.asyncio
    async def test_failure_returns_candidates_unchanged(self, mock_reranker, candidates):
        """A failing model call falls back to the original list."""
        mock_reranker.rerank.side_effect = RuntimeError("Reranking failed")

        outcome = await Reranker(mock_reranker).rerank_results("query", candidates)

        assert outcome.reranked is False
        assert outcome.results == candidates
        assert "Reranking failed" in outcome.fallback_reason

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        [{"index": 7, "score": 0.9}],
        [{"index": 0, "score": 0.9}, {"index": 0, "score": 0.8}],
        [{"position": 0}],
    ])
    async def test_bad_response_falls_back(self, mock_reranker, candidates, response):
        """Out-of-range, duplicate or malformed items trigger the fallback."""
        mock_reranker.rerank.return_value = response

        outcome = await Reranker(mock_reranker).rerank_results("query", candidates)

        assert outcome.reranked is False
        assert outcome.results == candidates

    @pytest.mark.asyncio
    async def test_empty_candidates(self, mock_reranker):
        """No model call is made for an empty shortlist."""
        outcome = await Reranker(mock_reranker).rerank_results("query", [])

        assert outcome.results == []
        mock_reranker.rerank.assert_not_awaited()


class TestIdentityReranker:
    """Tests for IdentityReranker."""

    @pytest.mark.asyncio
    async def test_keeps_order(self, candidates):
        """Scores point back at the candidates in order."""
        scores = await IdentityReranker().rerank("query", candidates)
        assert [(s.index, s.score) for s in scores] == [(0, 0.9), (1, 0.85), (2, 0.8)]
