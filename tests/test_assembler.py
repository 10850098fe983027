"""Tests for token-budget context assembly."""

import random

import pytest

from ragcontext import ContextChunk, assemble_context_within_budget, estimate_token_count


def chunk(text: str, score: float, document_id: str = "doc-1") -> ContextChunk:
    return ContextChunk(text=text, score=score, metadata={"documentId": document_id})


class TestEstimateTokenCount:
    """Tests for the character-based token estimate."""

    @pytest.mark.parametrize("text,expected", [("", 0), ("a", 1), ("abcd", 1), ("abcde", 2), ("x" * 400, 100)])
    def test_estimate(self, text, expected):
        assert estimate_token_count(text) == expected


class TestAssembleContextWithinBudget:
    """Tests for assemble_context_within_budget."""

    def test_all_fit(self):
        """Everything is kept when the budget allows it."""
        chunks = [chunk("a" * 40, 0.9), chunk("b" * 40, 0.8, "doc-2")]

        context = assemble_context_within_budget(chunks, 100)

        assert context.chunks == chunks
        assert context.total_chunks == 2
        assert context.document_ids == ["doc-1", "doc-2"]

    def test_oversized_chunk_skipped(self):
        """A chunk too large for the remaining budget is skipped, not truncated."""
        chunks = [
            chunk("a" * 40, 0.9),   # 10 tokens
            chunk("b" * 80, 0.8),   # 20 tokens
            chunk("c" * 20, 0.7),   # 5 tokens
        ]

        context = assemble_context_within_budget(chunks, 16)

        assert [c.score for c in context.chunks] == [0.9, 0.7]

    def test_ties_keep_input_order(self):
        """Equal scores stay in their original order."""
        chunks = [chunk("first", 0.5), chunk("second", 0.5), chunk("third", 0.5)]

        context = assemble_context_within_budget(chunks, 100)

        assert [c.text for c in context.chunks] == ["first", "second", "third"]

    def test_zero_budget(self):
        """Nothing with text fits into a zero budget."""
        assert assemble_context_within_budget([chunk("abc", 0.9)], 0).total_chunks == 0

    def test_negative_budget(self):
        with pytest.raises(ValueError):
            assemble_context_within_budget([], -1)

    def test_random_inputs_respect_budget(self):
        """Output stays within budget and is a descending subsequence."""
        rng = random.Random(7)
        for _ in range(200):
            scores = sorted((rng.random() for _ in range(rng.randint(0, 12))), reverse=True)
            chunks = [chunk("x" * rng.randint(0, 200), s) for s in scores]
            budget = rng.randint(0, 150)

            context = assemble_context_within_budget(chunks, budget)

            assert sum(estimate_token_count(c.text) for c in context.chunks) <= budget
            out_scores = [c.score for c in context.chunks]
            assert out_scores == sorted(out_scores, reverse=True)
            remaining = iter(chunks)
            assert all(any(c == original for original in remaining) for c in context.chunks)

    def test_numeric_document_ids(self):
        """Document ids that are not strings are reported as strings."""
        chunks = [chunk("a", 0.9, 42), chunk("b", 0.8, "42")]

        context = assemble_context_within_budget(chunks, 10)

        assert context.document_ids == ["42"]
