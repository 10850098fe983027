"""Data structures shared by the RAG context engine."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Chunk(BaseModel):
    """A bounded slice of a document's text.

    Attributes:
        id: Unique identifier for the chunk
        text: The text content of the chunk
        position: Ordinal of the chunk within its parent document
        metadata: Chunk-specific metadata
    """

    id: str
    text: str
    position: int = Field(ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)

    def __repr__(self) -> str:
        text_preview = self.text[:30] + "..." if len(self.text) > 30 else self.text
        return f"Chunk(id={self.id!r}, position={self.position}, text={text_preview!r})"


class Document(BaseModel):
    """A document to be indexed.

    Attributes:
        id: Unique identifier for the document
        text: The full text of the document
        metadata: Metadata copied onto every indexed chunk
        chunks: Optional pre-built chunks; when given, chunking is skipped
    """

    id: str
    text: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    chunks: Optional[list[Chunk]] = None

    def __repr__(self) -> str:
        text_preview = self.text[:50] + "..." if len(self.text) > 50 else self.text
        return f"Document(id={self.id!r}, text={text_preview!r})"


class EmbeddingRecord(BaseModel):
    """The unit persisted to the vector store.

    ``metadata`` always carries ``documentId`` and ``position``.
    """

    id: str
    vector: list[float]
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class UpsertResult(BaseModel):
    """Acknowledgement returned by a vector store upsert."""

    model_config = ConfigDict(populate_by_name=True)

    upserted_count: int = Field(alias="upsertedCount", ge=0)
    ids: list[str] = Field(default_factory=list)


class SearchResult(BaseModel):
    """A single hit returned by a vector store search."""

    id: str
    text: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("metadata", mode="before")
    @classmethod
    def _none_metadata(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def document_id(self) -> Optional[str]:
        document_id = self.metadata.get("documentId")
        return None if document_id is None else str(document_id)

    def __repr__(self) -> str:
        return f"SearchResult(id={self.id!r}, score={self.score:.4f})"


class ContextChunk(BaseModel):
    """A chunk selected into a RAG context."""

    text: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result: SearchResult) -> "ContextChunk":
        return cls(text=result.text, score=result.score, metadata=dict(result.metadata))


class RAGContext(BaseModel):
    """An ordered set of chunks chosen to accompany a query.

    Attributes:
        chunks: Chunks in final relevance order
        document_ids: Distinct source document ids, in order of first appearance
        total_chunks: Number of chunks
    """

    chunks: list[ContextChunk] = Field(default_factory=list)
    document_ids: list[str] = Field(default_factory=list)
    total_chunks: int = 0

    @model_validator(mode="after")
    def _check_counts(self) -> "RAGContext":
        if self.total_chunks != len(self.chunks):
            raise ValueError("total_chunks must equal the number of chunks")
        if len(set(self.document_ids)) != len(self.document_ids):
            raise ValueError("document_ids must not contain duplicates")
        return self

    @classmethod
    def from_chunks(cls, chunks: list[ContextChunk]) -> "RAGContext":
        """Build a context, deriving document ids from chunk metadata."""
        document_ids: list[str] = []
        for chunk in chunks:
            document_id = chunk.metadata.get("documentId")
            if document_id is None or document_id == "":
                continue
            # Stores may hand back numeric ids
            document_id = str(document_id)
            if document_id not in document_ids:
                document_ids.append(document_id)

        return cls(
            chunks=list(chunks),
            document_ids=document_ids,
            total_chunks=len(chunks),
        )


class IndexingErrorEntry(BaseModel):
    """A per-document failure recorded during batch indexing."""

    document_id: str
    index: int
    message: str


class IndexingResult(BaseModel):
    """Outcome of a batch indexing call."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: list[IndexingErrorEntry] = Field(default_factory=list)


class HealthStatus(BaseModel):
    """Liveness of the vector store as seen by the engine."""

    status: Literal["healthy", "unhealthy"]
    latency: float
    error: Optional[str] = None


class IndexStats(BaseModel):
    """Sampled statistics about the index.

    Counts are bounded by the probe's sample size, so large indexes are
    under-reported.
    """

    total_documents: int = 0
    total_chunks: int = 0
    avg_chunks_per_document: float = 0.0
    error: Optional[str] = None


class RerankScore(BaseModel):
    """One item of a reranker response."""

    index: int = Field(ge=0)
    score: float


class RerankOutcome(BaseModel):
    """Result of a reranking attempt.

    When ``reranked`` is False the results are the original candidates and
    ``fallback_reason`` says why.
    """

    results: list[SearchResult]
    reranked: bool
    fallback_reason: Optional[str] = None


class PreparedPrompt(BaseModel):
    """Prompt parts handed to the downstream language model."""

    system_prompt: str
    user_prompt: str
    context: RAGContext


class IndexOptions(BaseModel):
    """Per-call indexing options. Unset fields fall back to the config."""

    chunk_size: Optional[int] = Field(default=None, gt=0)
    chunk_overlap: Optional[int] = Field(default=None, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)
    namespace: Optional[str] = None


class QueryOptions(BaseModel):
    """Per-call retrieval options. Unset fields fall back to the config."""

    top_k: Optional[int] = Field(default=None, gt=0)
    min_relevance: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    rerank: Optional[bool] = None
    document_ids: Optional[list[str]] = None
    system_prompt: Optional[str] = None
    token_budget: Optional[int] = Field(default=None, ge=0)
    namespace: Optional[str] = None
