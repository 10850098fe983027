"""RAG (Retrieval-Augmented Generation) context engine.

This package turns documents into searchable chunks, a query into a ranked
and budget-constrained context, and that context into a cited prompt for a
downstream language model:
- Document, chunk and context data structures
- Character and word chunking with overlap
- Embedding, vector store and reranker gateways (HTTP, in-memory, OpenAI,
  sentence-transformers, ChromaDB)
- Indexing with per-document failure isolation
- Retrieval with over-fetch, relevance filtering and fallback-safe reranking
- Token-budget packing and prompt composition
- Health and index statistics probes

Example:
    ```python
    from ragcontext import Document, FakeEmbedding, MemoryVectorStore, RAGEngine

    embedding = FakeEmbedding()
    engine = RAGEngine(embedding, MemoryVectorStore(embedding))

    await engine.index_documents([
        Document(id="doc-1", text="Python is a programming language."),
    ])

    prompt = await engine.prepare_prompt("What is Python?")
    ```
"""

# Data structures
from .document import (
    Chunk,
    ContextChunk,
    Document,
    EmbeddingRecord,
    HealthStatus,
    IndexingErrorEntry,
    IndexingResult,
    IndexOptions,
    IndexStats,
    PreparedPrompt,
    QueryOptions,
    RAGContext,
    RerankOutcome,
    RerankScore,
    SearchResult,
    UpsertResult,
)

# Base classes
from .base import BaseChunker, BaseEmbedding, BaseReranker, BaseVectorStore

# Errors
from .exceptions import (
    DocumentRemovalError,
    EmptyInputError,
    GatewayError,
    IndexingError,
    RAGError,
    RetrievalError,
)

# Configuration
from .config import RAGConfig, load_config

# Chunking
from .chunking import FixedSizeChunker, WordChunker, chunk_text, create_chunker

# Gateways
from .http import ServiceClient
from .embeddings import FakeEmbedding, HTTPEmbedding, LocalEmbedding, OpenAIEmbedding
from .vectorstore import (
    ChromaVectorStore,
    HTTPVectorStore,
    MemoryVectorStore,
    cosine_similarity,
)
from .reranker import CrossEncoderReranker, HTTPReranker, IdentityReranker, Reranker

# Components
from .assembler import assemble_context_within_budget, estimate_token_count
from .pipeline import IndexingPipeline
from .retriever import ContextRetriever
from .prompts import DEFAULT_SYSTEM_PROMPT, PromptComposer
from .health import HealthMonitor
from .engine import RAGEngine

__all__ = [
    # Data structures
    "Chunk",
    "ContextChunk",
    "Document",
    "EmbeddingRecord",
    "HealthStatus",
    "IndexingErrorEntry",
    "IndexingResult",
    "IndexOptions",
    "IndexStats",
    "PreparedPrompt",
    "QueryOptions",
    "RAGContext",
    "RerankOutcome",
    "RerankScore",
    "SearchResult",
    "UpsertResult",
    # Base classes
    "BaseChunker",
    "BaseEmbedding",
    "BaseReranker",
    "BaseVectorStore",
    # Errors
    "DocumentRemovalError",
    "EmptyInputError",
    "GatewayError",
    "IndexingError",
    "RAGError",
    "RetrievalError",
    # Configuration
    "RAGConfig",
    "load_config",
    # Chunking
    "FixedSizeChunker",
    "WordChunker",
    "chunk_text",
    "create_chunker",
    # Gateways
    "ServiceClient",
    "FakeEmbedding",
    "HTTPEmbedding",
    "LocalEmbedding",
    "OpenAIEmbedding",
    "ChromaVectorStore",
    "HTTPVectorStore",
    "MemoryVectorStore",
    "cosine_similarity",
    "CrossEncoderReranker",
    "HTTPReranker",
    "IdentityReranker",
    "Reranker",
    # Components
    "assemble_context_within_budget",
    "estimate_token_count",
    "IndexingPipeline",
    "ContextRetriever",
    "DEFAULT_SYSTEM_PROMPT",
    "PromptComposer",
    "HealthMonitor",
    "RAGEngine",
]
