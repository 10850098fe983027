"""
Test configuration and fixtures.
"""

from unittest.mock import AsyncMock

import pytest

from ragcontext import (
    BaseReranker,
    BaseVectorStore,
    RAGConfig,
    SearchResult,
    UpsertResult,
)


def make_result(id: str, score: float, document_id: str = "doc-1", position: int = 0, text: str | None = None) -> SearchResult:
    """Build a search result carrying the engine's metadata keys."""
    return SearchResult(
        id=id,
        text=text if text is not None else f"Text of {id}",
        score=score,
        metadata={"documentId": document_id, "position": position},
    )


@pytest.fixture
def config():
    """Default engine configuration."""
    return RAGConfig()


@pytest.fixture
def mock_store():
    """Vector store whose calls are recorded."""
    store = AsyncMock(spec=BaseVectorStore)
    store.upsert.return_value = UpsertResult(upserted_count=0, ids=[])
    store.search.return_value = []
    store.delete.return_value = None
    return store


@pytest.fixture
def mock_embedding():
    """Embedding model returning one small vector per text."""
    embedding = AsyncMock()
    embedding.embed.side_effect = lambda texts: [[0.1, 0.2, 0.3] for _ in texts]
    return embedding


@pytest.fixture
def mock_reranker():
    """Reranking model gateway."""
    return AsyncMock(spec=BaseReranker)
