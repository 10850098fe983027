"""RAG engine facade wiring all components together."""

import logging
from typing import Any, Optional

from .assembler import assemble_context_within_budget
from .base import BaseEmbedding, BaseReranker, BaseVectorStore
from .config import RAGConfig
from .document import (
    ContextChunk,
    Document,
    HealthStatus,
    IndexingResult,
    IndexOptions,
    IndexStats,
    PreparedPrompt,
    QueryOptions,
    RAGContext,
    RerankOutcome,
    SearchResult,
    UpsertResult,
)
from .embeddings import FakeEmbedding, HTTPEmbedding, LocalEmbedding, OpenAIEmbedding
from .health import HealthMonitor
from .http import ServiceClient
from .pipeline import IndexingPipeline
from .prompts import PromptComposer
from .reranker import CrossEncoderReranker, HTTPReranker, Reranker
from .retriever import ContextRetriever
from .vectorstore import ChromaVectorStore, HTTPVectorStore, MemoryVectorStore

logger = logging.getLogger(__name__)


class RAGEngine:
    """Retrieval-augmented generation context engine.

    Indexes documents, retrieves ranked context for queries and prepares
    cited prompts for a downstream language model. All external services
    are passed in explicitly.

    Example:
        ```python
        embedding = FakeEmbedding()
        engine = RAGEngine(embedding, MemoryVectorStore(embedding))

        await engine.index_documents([
            Document(id="doc-1", text="Python is a programming language."),
        ])
        prompt = await engine.prepare_prompt("What is Python?")
        ```

    Or build everything from configuration:
        ```python
        async with RAGEngine.from_config(load_config()) as engine:
            context = await engine.retrieve_context("What is Python?")
        ```
    """

    def __init__(
        self,
        embedding: BaseEmbedding,
        vectorstore: BaseVectorStore,
        reranker: Optional[BaseReranker] = None,
        config: Optional[RAGConfig] = None,
        clients: Optional[list[ServiceClient]] = None,
    ):
        """Initialize the engine.

        Args:
            embedding: Embedding model for chunks
            vectorstore: Vector store for records
            reranker: Reranking model (optional; reranking is skipped without it)
            config: Engine configuration (defaults apply when omitted)
            clients: HTTP clients owned by the engine and closed by aclose()
        """
        self.config = config or RAGConfig()
        self.embedding = embedding
        self.vectorstore = vectorstore
        self._clients = clients or []

        self.reranker = (
            Reranker(
                reranker,
                max_candidates=self.config.max_rerank_candidates,
                threshold=self.config.rerank_threshold,
            )
            if reranker is not None
            else None
        )
        self.indexer = IndexingPipeline(embedding, vectorstore, self.config)
        self.retriever = ContextRetriever(vectorstore, self.reranker, self.config)
        self.composer = PromptComposer(self.retriever, self.config)
        self.monitor = HealthMonitor(vectorstore, self.config)

    @classmethod
    def from_config(cls, config: Optional[RAGConfig] = None) -> "RAGEngine":
        """Build an engine and its gateways from configuration."""
        config = config or RAGConfig()
        clients: list[ServiceClient] = []

        def service_client() -> ServiceClient:
            if not clients:
                settings = config.service
                clients.append(ServiceClient(
                    base_url=settings.base_url,
                    api_key=settings.api_key,
                    timeout=settings.timeout,
                    retry_attempts=settings.retry_attempts,
                    retry_delay=settings.retry_delay,
                ))
            return clients[0]

        embedding: BaseEmbedding
        provider = config.embedding.provider
        if provider == "http":
            embedding = HTTPEmbedding(service_client(), dimension=config.embedding.dimension)
        elif provider == "openai":
            embedding = OpenAIEmbedding(
                model=config.embedding.model or "text-embedding-3-small",
                api_key=config.service.api_key,
            )
        elif provider == "local":
            embedding = LocalEmbedding(model_name=config.embedding.model or "all-MiniLM-L6-v2")
        else:
            embedding = FakeEmbedding(dimension=config.embedding.dimension)

        vectorstore: BaseVectorStore
        if config.vectorstore.provider == "http":
            vectorstore = HTTPVectorStore(service_client(), embedding)
        elif config.vectorstore.provider == "chroma":
            vectorstore = ChromaVectorStore(
                embedding,
                collection_name=config.vectorstore.collection_name,
                persist_directory=config.vectorstore.persist_directory,
            )
        else:
            vectorstore = MemoryVectorStore(embedding)

        reranker: Optional[BaseReranker] = None
        if config.reranker.provider == "http":
            reranker = HTTPReranker(service_client(), model=config.reranker.model or config.rerank_model)
        elif config.reranker.provider == "cross-encoder":
            reranker = CrossEncoderReranker(
                model_name=config.reranker.model or "cross-encoder/ms-marco-MiniLM-L-6-v2",
            )

        logger.info(
            f"Built RAG engine: embedding={provider}, "
            f"vectorstore={config.vectorstore.provider}, reranker={config.reranker.provider}"
        )
        return cls(embedding, vectorstore, reranker, config, clients)

    async def aclose(self) -> None:
        """Close HTTP clients owned by the engine."""
        for client in self._clients:
            await client.aclose()

    async def __aenter__(self) -> "RAGEngine":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # Indexing

    async def index_document(
        self, document: Document, options: Optional[IndexOptions] = None
    ) -> UpsertResult:
        return await self.indexer.index_document(document, options)

    async def index_documents(
        self,
        documents: list[Document],
        options: Optional[IndexOptions] = None,
        max_concurrency: Optional[int] = None,
    ) -> IndexingResult:
        return await self.indexer.index_documents(documents, options, max_concurrency)

    async def remove_document(self, document_id: str, namespace: Optional[str] = None) -> list[str]:
        return await self.indexer.remove_document(document_id, namespace)

    # Retrieval

    async def retrieve_context(
        self, query: str, options: Optional[QueryOptions] = None, **overrides: Any
    ) -> RAGContext:
        return await self.retriever.retrieve_context(query, options, **overrides)

    async def retrieve_context_for_question(
        self,
        question: str,
        document_ids: list[str],
        top_k: Optional[int] = None,
        namespace: Optional[str] = None,
    ) -> RAGContext:
        return await self.retriever.retrieve_context_for_question(
            question, document_ids, top_k, namespace
        )

    async def rerank_results(self, query: str, candidates: list[SearchResult]) -> RerankOutcome:
        """Rerank candidates; without a reranker the candidates pass through."""
        if self.reranker is None:
            return RerankOutcome(results=candidates, reranked=False, fallback_reason="no reranker configured")
        return await self.reranker.rerank_results(query, candidates)

    # Context and prompts

    def assemble_context_within_budget(
        self, chunks: list[ContextChunk], token_budget: int
    ) -> RAGContext:
        return assemble_context_within_budget(chunks, token_budget)

    def format_context_for_claude(self, context: RAGContext) -> str:
        return self.composer.format_context_for_claude(context)

    async def prepare_prompt(
        self, query: str, options: Optional[QueryOptions] = None, **overrides: Any
    ) -> PreparedPrompt:
        return await self.composer.prepare_prompt(query, options, **overrides)

    def get_optimal_context_window(
        self, total_budget: Optional[int] = None, model: Optional[str] = None
    ) -> int:
        return self.composer.get_optimal_context_window(total_budget, model)

    # Monitoring

    async def health_check(self) -> HealthStatus:
        return await self.monitor.health_check()

    async def get_index_stats(self, namespace: Optional[str] = None) -> IndexStats:
        return await self.monitor.get_index_stats(namespace)
