"""Abstract interfaces for the engine's external collaborators."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .document import (
        Chunk,
        Document,
        EmbeddingRecord,
        RerankScore,
        SearchResult,
        UpsertResult,
    )


class BaseEmbedding(ABC):
    """Abstract base class for embedding models.

    Embedding models convert text into fixed-length vectors.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed a list of texts.

        Args:
            texts: Texts to embed

        Returns:
            One vector per input text, in input order. Any failure fails
            the whole call.
        """
        pass

    async def embed_query(self, text: str) -> list[float]:
        """Embed a single query string."""
        vectors = await self.embed([text])
        return vectors[0]

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the dimension of the embedding vectors."""
        pass


class BaseVectorStore(ABC):
    """Abstract base class for vector stores.

    Vector stores persist embedding records and answer similarity queries.
    Every operation accepts an optional ``namespace``; records in one
    namespace are invisible to the others, and ``None`` selects the store's
    default namespace.
    """

    @abstractmethod
    async def upsert(
        self,
        records: list["EmbeddingRecord"],
        *,
        namespace: Optional[str] = None,
    ) -> "UpsertResult":
        """Insert or replace records.

        Args:
            records: Records to persist
            namespace: Namespace receiving the records

        Returns:
            Acknowledgement with the count and ids of upserted records
        """
        pass

    @abstractmethod
    async def search(
        self,
        query: str,
        *,
        filter: Optional[dict[str, Any]] = None,
        top_k: int = 10,
        min_relevance: Optional[float] = None,
        namespace: Optional[str] = None,
    ) -> list["SearchResult"]:
        """Search for records similar to a query.

        Args:
            query: Query text; an empty string scans by filter only
            filter: Metadata filter supporting equality and ``$in``
            top_k: Maximum number of results
            min_relevance: Optional minimum score
            namespace: Namespace to search

        Returns:
            Results ordered by descending score
        """
        pass

    @abstractmethod
    async def delete(self, ids: list[str], *, namespace: Optional[str] = None) -> None:
        """Delete records by id."""
        pass


class BaseReranker(ABC):
    """Abstract base class for reranking models.

    Rerankers rescore a candidate shortlist against a query.
    """

    @abstractmethod
    async def rerank(
        self,
        query: str,
        candidates: list["SearchResult"],
    ) -> list["RerankScore"]:
        """Score candidates against a query.

        Args:
            query: Original query string
            candidates: Shortlist to rescore

        Returns:
            Items pointing back into ``candidates`` by index, ordered by
            descending score
        """
        pass


class BaseChunker(ABC):
    """Abstract base class for document chunkers."""

    @abstractmethod
    def chunk(self, document: "Document") -> list["Chunk"]:
        """Split a document into chunks.

        Args:
            document: Document to chunk

        Returns:
            Ordered, non-empty list of chunks
        """
        pass
