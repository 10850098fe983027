"""Tests for prompt composition."""

import pytest

from conftest import make_result
from ragcontext import (
    DEFAULT_SYSTEM_PROMPT,
    ContextChunk,
    ContextRetriever,
    PromptComposer,
    RAGConfig,
    RAGContext,
    RetrievalError,
)


@pytest.fixture
def composer(mock_store):
    config = RAGConfig(rerank=False)
    return PromptComposer(ContextRetriever(mock_store, config=config), config)


class TestFormatContext:
    """Tests for citation formatting."""

    def test_two_chunks(self):
        """Blocks carry source number, document, position and relevance."""
        context = RAGContext.from_chunks([
            ContextChunk(text="First passage", score=0.95, metadata={"documentId": "doc-1", "position": 0}),
            ContextChunk(text="Second passage", score=0.823, metadata={"documentId": "doc-2", "position": 4}),
        ])

        text = PromptComposer.format_context_for_claude(context)

        for expected in [
            "[Source 1]",
            "[Source 2]",
            "Document: doc-1",
            "Position: 0",
            "Relevance: 95.0%",
            "Relevance: 82.3%",
            "---",
        ]:
            assert expected in text
        assert text.index("First passage") < text.index("---") < text.index("Second passage")

    def test_missing_metadata(self):
        """Position is omitted and the document falls back to Unknown."""
        context = RAGContext.from_chunks([ContextChunk(text="Loose text", score=0.5)])

        text = PromptComposer.format_context_for_claude(context)

        assert "Document: Unknown" in text
        assert "Position" not in text

    def test_empty_context(self):
        assert PromptComposer.format_context_for_claude(RAGContext()) == ""


class TestPreparePrompt:
    """Tests for PromptComposer.prepare_prompt."""

    @pytest.mark.asyncio
    async def test_builds_prompt(self, composer, mock_store):
        """The user prompt holds the context blocks then the question."""
        mock_store.search.return_value = [make_result("c1", 0.9, "doc-1", text="The answer is 42.")]

        prompt = await composer.prepare_prompt("What is the answer?")

        assert prompt.system_prompt == DEFAULT_SYSTEM_PROMPT
        assert "cite your sources" in prompt.system_prompt
        assert prompt.user_prompt.startswith("Context:\n[Source 1]")
        assert prompt.user_prompt.index("The answer is 42.") < prompt.user_prompt.index("What is the answer?")
        assert prompt.context.total_chunks == 1

    @pytest.mark.asyncio
    async def test_custom_system_prompt(self, composer):
        """A caller system prompt replaces the default verbatim."""
        prompt = await composer.prepare_prompt("query", system_prompt="You are a literary critic.")

        assert prompt.system_prompt == "You are a literary critic."

    @pytest.mark.asyncio
    async def test_token_budget_packs_context(self, composer, mock_store):
        """A token budget trims the retrieved context."""
        mock_store.search.return_value = [
            make_result("c1", 0.9, text="a" * 40),
            make_result("c2", 0.8, text="b" * 40),
        ]

        prompt = await composer.prepare_prompt("query", token_budget=12)

        assert prompt.context.total_chunks == 1
        assert "b" * 40 not in prompt.user_prompt

    @pytest.mark.asyncio
    async def test_retrieval_failure_propagates(self, composer, mock_store):
        mock_store.search.side_effect = RuntimeError("down")

        with pytest.raises(RetrievalError):
            await composer.prepare_prompt("query")


class TestOptimalContextWindow:
    """Tests for get_optimal_context_window."""

    def test_default_budget(self, composer):
        window = composer.get_optimal_context_window(8000, "claude-sonnet-4-20250514")
        assert 6000 < window < 8000

    def test_small_budget(self, composer):
        assert composer.get_optimal_context_window(5000) < 5000

    def test_model_limit_caps_large_budget(self, composer):
        window = composer.get_optimal_context_window(1_000_000, "claude-3-haiku")
        assert 150_000 < window < 200_000

    def test_reservation_varies_by_model(self, composer):
        opus = composer.get_optimal_context_window(1_000_000, "claude-3-opus")
        haiku = composer.get_optimal_context_window(1_000_000, "claude-3-haiku")
        assert opus < haiku

    def test_unknown_model(self, composer):
        assert 0 < composer.get_optimal_context_window(4000, "some-future-model") < 4000

    @pytest.mark.parametrize("budget", [1, 2, 10, 199_999])
    def test_always_below_budget(self, composer, budget):
        assert composer.get_optimal_context_window(budget) < budget

    def test_non_positive_budget(self, composer):
        with pytest.raises(ValueError):
            composer.get_optimal_context_window(0)
