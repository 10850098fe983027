"""Indexing pipeline: chunk, embed and upsert documents."""

import asyncio
import logging
from typing import Optional

from .base import BaseEmbedding, BaseVectorStore
from .chunking import create_chunker
from .config import RAGConfig
from .document import (
    Chunk,
    Document,
    EmbeddingRecord,
    IndexingErrorEntry,
    IndexingResult,
    IndexOptions,
    UpsertResult,
)
from .exceptions import DocumentRemovalError, EmptyInputError, IndexingError

logger = logging.getLogger(__name__)


class IndexingPipeline:
    """Turns documents into embedding records in the vector store.

    Example:
        ```python
        embedding = FakeEmbedding()
        pipeline = IndexingPipeline(embedding, MemoryVectorStore(embedding))

        result = await pipeline.index_documents([
            Document(id="doc-1", text="Close reading rewards patience."),
        ])
        ```
    """

    def __init__(
        self,
        embedding: BaseEmbedding,
        vectorstore: BaseVectorStore,
        config: Optional[RAGConfig] = None,
    ):
        """Initialize the indexing pipeline.

        Args:
            embedding: Embedding model for chunk texts
            vectorstore: Vector store receiving the records
            config: Engine configuration (defaults apply when omitted)
        """
        self.embedding = embedding
        self.vectorstore = vectorstore
        self.config = config or RAGConfig()

    def _chunk(self, document: Document, options: IndexOptions) -> list[Chunk]:
        if document.chunks:
            return list(document.chunks)
        if not document.text:
            raise EmptyInputError(document.id)

        chunk_size = options.chunk_size or self.config.chunk_size
        if options.chunk_overlap is None:
            # An inherited overlap must stay below a smaller per-call size
            overlap = min(self.config.chunk_overlap, chunk_size - 1)
        else:
            overlap = options.chunk_overlap

        chunker = create_chunker(self.config.chunk_unit, chunk_size, overlap)
        return chunker.chunk(document)

    def _build_records(
        self,
        document: Document,
        chunks: list[Chunk],
        vectors: list[list[float]],
        options: IndexOptions,
    ) -> list[EmbeddingRecord]:
        records = []
        for chunk, vector in zip(chunks, vectors):
            metadata = {
                **options.metadata,
                **document.metadata,
                **chunk.metadata,
                # Engine keys override caller metadata
                "documentId": document.id,
                "position": chunk.position,
                "chunkId": chunk.id,
                "totalChunks": len(chunks),
            }
            records.append(EmbeddingRecord(
                id=chunk.id,
                vector=vector,
                text=chunk.text,
                metadata=metadata,
            ))
        return records

    async def index_document(
        self,
        document: Document,
        options: Optional[IndexOptions] = None,
    ) -> UpsertResult:
        """Index a single document.

        Args:
            document: Document to index
            options: Chunking overrides and extra metadata

        Returns:
            The vector store's upsert acknowledgement

        Raises:
            EmptyInputError: The document has no text and no chunks
            IndexingError: Chunking, embedding or upsert failed
        """
        options = options or IndexOptions()

        try:
            chunks = self._chunk(document, options)
        except IndexingError:
            raise
        except Exception as e:
            raise IndexingError(document.id, "chunking", e) from e

        try:
            vectors = await self.embedding.embed([chunk.text for chunk in chunks])
            if len(vectors) != len(chunks):
                raise ValueError(f"expected {len(chunks)} embeddings, got {len(vectors)}")
        except Exception as e:
            raise IndexingError(document.id, "embedding", e) from e

        records = self._build_records(document, chunks, vectors, options)

        try:
            result = await self.vectorstore.upsert(records, namespace=options.namespace)
        except Exception as e:
            raise IndexingError(document.id, "upsert", e) from e

        logger.debug(f"Indexed document {document.id}: {len(chunks)} chunks")
        return result

    async def index_documents(
        self,
        documents: list[Document],
        options: Optional[IndexOptions] = None,
        max_concurrency: Optional[int] = None,
    ) -> IndexingResult:
        """Index documents independently, collecting per-document failures.

        A failing document never aborts the batch; it is recorded in
        ``errors`` in input order.

        Args:
            documents: Documents to index
            options: Options applied to every document
            max_concurrency: Documents indexed at once (default from config)

        Returns:
            Aggregated batch result
        """
        concurrency = max_concurrency or self.config.index_concurrency
        semaphore = asyncio.Semaphore(concurrency)

        async def index_one(document: Document) -> Optional[str]:
            async with semaphore:
                try:
                    await self.index_document(document, options)
                except Exception as e:
                    logger.warning(f"Skipping document {document.id}: {e}")
                    return str(e)
            return None

        if concurrency > 1:
            outcomes = await asyncio.gather(*(index_one(doc) for doc in documents))
        else:
            outcomes = [await index_one(doc) for doc in documents]

        result = IndexingResult(total=len(documents))
        for index, (document, error) in enumerate(zip(documents, outcomes)):
            if error is None:
                result.succeeded += 1
            else:
                result.failed += 1
                result.errors.append(IndexingErrorEntry(
                    document_id=document.id,
                    index=index,
                    message=error,
                ))

        logger.info(
            f"Indexed {result.succeeded}/{result.total} documents ({result.failed} failed)"
        )
        return result

    async def remove_document(
        self,
        document_id: str,
        namespace: Optional[str] = None,
    ) -> list[str]:
        """Delete every chunk of a document.

        Chunks are discovered with a single filtered scan bounded by
        ``removal_scan_top_k``. A document with more chunks than that bound
        is only partially removed.

        Args:
            document_id: Id of the document to remove
            namespace: Namespace the document was indexed into

        Returns:
            Ids of the deleted chunks
        """
        scan_limit = self.config.removal_scan_top_k

        try:
            results = await self.vectorstore.search(
                "",
                filter={"documentId": document_id},
                top_k=scan_limit,
                namespace=namespace,
            )
            chunk_ids = [result.id for result in results]
            if chunk_ids:
                await self.vectorstore.delete(chunk_ids, namespace=namespace)
        except Exception as e:
            raise DocumentRemovalError(document_id, e) from e

        if len(chunk_ids) >= scan_limit:
            logger.warning(
                f"Removal scan for {document_id} hit the {scan_limit} chunk limit; "
                "some chunks may remain"
            )

        logger.debug(f"Removed {len(chunk_ids)} chunks of document {document_id}")
        return chunk_ids
