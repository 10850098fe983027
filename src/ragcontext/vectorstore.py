"""Vector store implementations."""

import asyncio
import logging
import math
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from .base import BaseEmbedding, BaseVectorStore
from .document import EmbeddingRecord, SearchResult, UpsertResult
from .exceptions import GatewayError
from .http import ServiceClient

logger = logging.getLogger(__name__)


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Calculate cosine similarity between two vectors."""
    if len(a) != len(b):
        raise ValueError("Vectors must have the same dimension")

    dot_product = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(x * x for x in b))

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return dot_product / (norm_a * norm_b)


def matches_filter(metadata: dict[str, Any], filter: Optional[dict[str, Any]]) -> bool:
    """Check metadata against a filter.

    Supports plain equality (``{"field": value}``), ``{"field": {"$eq": value}}``
    and set membership (``{"field": {"$in": [...]}}``).
    """
    if not filter:
        return True

    for key, condition in filter.items():
        if key not in metadata:
            return False
        value = metadata[key]

        if isinstance(condition, dict):
            for op, operand in condition.items():
                if op == "$in":
                    if value not in operand:
                        return False
                elif op == "$eq":
                    if value != operand:
                        return False
                else:
                    raise ValueError(f"Unsupported filter operator: {op}")
        elif value != condition:
            return False
    return True


class MemoryVectorStore(BaseVectorStore):
    """In-memory vector store for tests and small datasets.

    Performs exact cosine search; scores are clamped to [0, 1]. An empty
    query skips similarity and returns filter matches in insertion order
    with a score of 0.
    """

    DEFAULT_NAMESPACE = ""

    def __init__(self, embedding: BaseEmbedding) -> None:
        self.embedding = embedding
        self._namespaces: dict[str, dict[str, EmbeddingRecord]] = {}

    def _records(self, namespace: Optional[str]) -> dict[str, EmbeddingRecord]:
        key = self.DEFAULT_NAMESPACE if namespace is None else namespace
        return self._namespaces.setdefault(key, {})

    async def upsert(
        self,
        records: list[EmbeddingRecord],
        *,
        namespace: Optional[str] = None,
    ) -> UpsertResult:
        """Insert or replace records."""
        stored = self._records(namespace)
        ids = []
        for record in records:
            stored[record.id] = record
            ids.append(record.id)

        logger.debug(f"Upserted {len(ids)} records into memory store")
        return UpsertResult(upserted_count=len(ids), ids=ids)

    async def search(
        self,
        query: str,
        *,
        filter: Optional[dict[str, Any]] = None,
        top_k: int = 10,
        min_relevance: Optional[float] = None,
        namespace: Optional[str] = None,
    ) -> list[SearchResult]:
        """Search for similar records using cosine similarity."""
        candidates = [
            r for r in self._records(namespace).values() if matches_filter(r.metadata, filter)
        ]
        if not candidates:
            return []

        if query:
            query_embedding = await self.embedding.embed_query(query)
            scored = [
                (record, max(0.0, min(1.0, cosine_similarity(query_embedding, record.vector))))
                for record in candidates
            ]
            scored.sort(key=lambda x: x[1], reverse=True)
        else:
            scored = [(record, 0.0) for record in candidates]

        if min_relevance is not None:
            scored = [(record, score) for record, score in scored if score >= min_relevance]

        return [
            SearchResult(
                id=record.id,
                text=record.text,
                score=score,
                metadata=dict(record.metadata),
            )
            for record, score in scored[:top_k]
        ]

    async def delete(self, ids: list[str], *, namespace: Optional[str] = None) -> None:
        """Delete records by their ids."""
        stored = self._records(namespace)
        for id in ids:
            stored.pop(id, None)

    async def count(self, namespace: Optional[str] = None) -> int:
        """Return the number of records stored in a namespace."""
        return len(self._records(namespace))


class _SearchResponse(BaseModel):
    results: list[SearchResult] = Field(default_factory=list)


class HTTPVectorStore(BaseVectorStore):
    """Vector store served over HTTP.

    Queries are embedded locally with ``embedding`` and sent as vectors.
    A namespace, when given, travels in the request body.
    """

    SERVICE = "vectorstore"

    def __init__(self, client: ServiceClient, embedding: BaseEmbedding):
        self.client = client
        self.embedding = embedding

    async def upsert(
        self,
        records: list[EmbeddingRecord],
        *,
        namespace: Optional[str] = None,
    ) -> UpsertResult:
        body: dict[str, Any] = {"embeddings": [record.model_dump() for record in records]}
        if namespace is not None:
            body["namespace"] = namespace

        payload = await self.client.request(
            "POST", "/v1/vector/upsert", json=body, service=self.SERVICE
        )
        try:
            return UpsertResult.model_validate(payload)
        except ValidationError as e:
            raise GatewayError(self.SERVICE, f"malformed upsert response: {e}") from e

    async def search(
        self,
        query: str,
        *,
        filter: Optional[dict[str, Any]] = None,
        top_k: int = 10,
        min_relevance: Optional[float] = None,
        namespace: Optional[str] = None,
    ) -> list[SearchResult]:
        body: dict[str, Any] = {"topK": top_k, "includeMetadata": True}
        if query:
            body["vector"] = await self.embedding.embed_query(query)
        if filter:
            body["filter"] = filter
        if min_relevance is not None:
            body["minSimilarity"] = min_relevance
        if namespace is not None:
            body["namespace"] = namespace

        payload = await self.client.request(
            "POST", "/v1/vector/search", json=body, service=self.SERVICE
        )
        try:
            return _SearchResponse.model_validate(payload).results
        except ValidationError as e:
            raise GatewayError(self.SERVICE, f"malformed search response: {e}") from e

    async def delete(self, ids: list[str], *, namespace: Optional[str] = None) -> None:
        body: dict[str, Any] = {"ids": ids}
        if namespace is not None:
            body["namespace"] = namespace

        await self.client.request(
            "DELETE", "/v1/vector/delete", json=body, service=self.SERVICE
        )


def to_chroma_where(filter: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Translate a metadata filter into a ChromaDB ``where`` clause."""
    if not filter:
        return None

    clauses = []
    for key, condition in filter.items():
        if isinstance(condition, dict):
            clauses.append({key: condition})
        else:
            clauses.append({key: {"$eq": condition}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


class ChromaVectorStore(BaseVectorStore):
    """ChromaDB vector store implementation.

    Each namespace maps to its own collection, named
    ``{collection_name}-{namespace}``; the default namespace uses
    ``collection_name`` itself.

    Requires the 'chroma' extra to be installed.
    """

    SERVICE = "chroma"

    def __init__(
        self,
        embedding: BaseEmbedding,
        collection_name: str = "ragcontext",
        persist_directory: Optional[str] = None,
    ):
        """Initialize the ChromaDB vector store.

        Args:
            embedding: Embedding model used for query text
            collection_name: Name of the default ChromaDB collection
            persist_directory: Directory for persistent storage (None for in-memory)
        """
        self.embedding = embedding
        self.collection_name = collection_name
        self.persist_directory = persist_directory
        self._client = None
        self._collections: dict[str, Any] = {}

    def collection_for(self, namespace: Optional[str]) -> str:
        """Name of the collection backing a namespace."""
        if namespace is None:
            return self.collection_name
        return f"{self.collection_name}-{namespace}"

    def _get_collection(self, namespace: Optional[str] = None):
        """Get or create the collection for a namespace."""
        name = self.collection_for(namespace)
        if name not in self._collections:
            if self._client is None:
                try:
                    import chromadb
                except ImportError:
                    raise ImportError(
                        "ChromaDB vector store requires 'chromadb'. "
                        "Install it with: pip install ragcontext[chroma]"
                    )

                if self.persist_directory:
                    self._client = chromadb.PersistentClient(path=self.persist_directory)
                else:
                    self._client = chromadb.Client()

            self._collections[name] = self._client.get_or_create_collection(
                name=name,
                metadata={"hnsw:space": "cosine"},
            )
        return self._collections[name]

    async def _run(self, func):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, func)
        except Exception as e:
            raise GatewayError(self.SERVICE, str(e)) from e

    async def upsert(
        self,
        records: list[EmbeddingRecord],
        *,
        namespace: Optional[str] = None,
    ) -> UpsertResult:
        collection = self._get_collection(namespace)
        ids = [record.id for record in records]

        await self._run(
            lambda: collection.upsert(
                ids=ids,
                documents=[record.text for record in records],
                embeddings=[record.vector for record in records],
                metadatas=[record.metadata for record in records],
            )
        )

        logger.debug(
            f"Upserted {len(ids)} records into ChromaDB collection '{self.collection_for(namespace)}'"
        )
        return UpsertResult(upserted_count=len(ids), ids=ids)

    async def search(
        self,
        query: str,
        *,
        filter: Optional[dict[str, Any]] = None,
        top_k: int = 10,
        min_relevance: Optional[float] = None,
        namespace: Optional[str] = None,
    ) -> list[SearchResult]:
        collection = self._get_collection(namespace)
        where = to_chroma_where(filter)

        if not query:
            raw = await self._run(
                lambda: collection.get(where=where, limit=top_k, include=["documents", "metadatas"])
            )
            return [
                SearchResult(
                    id=chunk_id,
                    text=raw["documents"][i],
                    score=0.0,
                    metadata=raw["metadatas"][i] or {},
                )
                for i, chunk_id in enumerate(raw["ids"])
            ]

        query_embedding = await self.embedding.embed_query(query)
        raw = await self._run(
            lambda: collection.query(
                query_embeddings=[query_embedding],
                n_results=top_k,
                where=where,
                include=["documents", "metadatas", "distances"],
            )
        )

        results = []
        if raw and raw["ids"] and raw["ids"][0]:
            for i, chunk_id in enumerate(raw["ids"][0]):
                # Cosine distance to similarity
                score = max(0.0, min(1.0, 1 - raw["distances"][0][i]))
                if min_relevance is not None and score < min_relevance:
                    continue
                results.append(SearchResult(
                    id=chunk_id,
                    text=raw["documents"][0][i],
                    score=score,
                    metadata=raw["metadatas"][0][i] or {},
                ))

        return results

    async def delete(self, ids: list[str], *, namespace: Optional[str] = None) -> None:
        collection = self._get_collection(namespace)
        await self._run(lambda: collection.delete(ids=ids))
