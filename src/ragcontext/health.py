"""Health and statistics probes against the vector store."""

import logging
import time
from typing import Optional

from .base import BaseVectorStore
from .config import RAGConfig
from .document import HealthStatus, IndexStats

logger = logging.getLogger(__name__)


class HealthMonitor:
    """Derives liveness and index statistics from vector store searches.

    Neither probe raises; failures are reported in the returned value.
    """

    def __init__(self, vectorstore: BaseVectorStore, config: Optional[RAGConfig] = None):
        self.vectorstore = vectorstore
        self.config = config or RAGConfig()

    async def health_check(self) -> HealthStatus:
        """Run a minimal search and report latency in milliseconds."""
        start = time.perf_counter()

        try:
            await self.vectorstore.search("", top_k=self.config.health_probe_top_k)
        except Exception as e:
            latency = (time.perf_counter() - start) * 1000
            logger.warning(f"Vector store health check failed: {e}")
            return HealthStatus(
                status="unhealthy",
                latency=latency,
                error=str(e) or type(e).__name__,
            )

        return HealthStatus(status="healthy", latency=(time.perf_counter() - start) * 1000)

    async def get_index_stats(self, namespace: Optional[str] = None) -> IndexStats:
        """Estimate document and chunk counts from a broad search of a namespace.

        The estimate only sees the first ``stats_sample_size`` records the
        store returns; it is not a catalog scan.
        """
        try:
            results = await self.vectorstore.search(
                "", top_k=self.config.stats_sample_size, namespace=namespace
            )
        except Exception as e:
            logger.warning(f"Index stats probe failed: {e}")
            return IndexStats(error=str(e) or type(e).__name__)

        document_ids = {r.document_id for r in results if r.document_id}
        total_documents = len(document_ids)

        return IndexStats(
            total_documents=total_documents,
            total_chunks=len(results),
            avg_chunks_per_document=len(results) / total_documents if total_documents else 0.0,
        )
