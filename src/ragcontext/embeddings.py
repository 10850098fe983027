"""Embedding model implementations."""

import asyncio
import hashlib
import logging
from typing import Optional

from pydantic import BaseModel, ValidationError

from .base import BaseEmbedding
from .exceptions import GatewayError
from .http import ServiceClient

logger = logging.getLogger(__name__)


class _EmbedResponse(BaseModel):
    embeddings: list[list[float]]


def _check_vectors(service: str, texts: list[str], vectors: list[list[float]], dimension: Optional[int]) -> None:
    if len(vectors) != len(texts):
        raise GatewayError(service, f"expected {len(texts)} embeddings, got {len(vectors)}")
    if dimension is not None and any(len(v) != dimension for v in vectors):
        raise GatewayError(service, f"embedding dimension differs from {dimension}")


class FakeEmbedding(BaseEmbedding):
    """Fake embedding that generates deterministic embeddings from text.

    Useful for tests and local demos. Identical texts map to identical
    vectors; the vector is derived from a SHA-256 digest of the text.
    """

    def __init__(self, dimension: int = 64, seed: int = 42):
        """Initialize the fake embedding.

        Args:
            dimension: Dimension of the embedding vectors
            seed: Seed mixed into the hash for reproducibility
        """
        self._dimension = dimension
        self.seed = seed

    @property
    def dimension(self) -> int:
        return self._dimension

    def _hash_text(self, text: str) -> list[float]:
        """Generate a deterministic embedding from text hash."""
        embedding: list[float] = []
        counter = 0
        while len(embedding) < self._dimension:
            digest = hashlib.sha256(f"{self.seed}:{counter}:{text}".encode()).digest()
            # Map each byte to [-1, 1]
            embedding.extend(b / 127.5 - 1.0 for b in digest)
            counter += 1
        return embedding[: self._dimension]

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [self._hash_text(text) for text in texts]


class HTTPEmbedding(BaseEmbedding):
    """Embedding model served over HTTP.

    Calls ``POST /v1/vector/embed`` with ``{"texts": [...]}`` and expects
    ``{"embeddings": [[...], ...]}`` back.
    """

    SERVICE = "embedding"

    def __init__(self, client: ServiceClient, dimension: int = 1536, batch_size: int = 100):
        self.client = client
        self._dimension = dimension
        self.batch_size = batch_size

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed(self, texts: list[str]) -> list[list[float]]:
        all_embeddings: list[list[float]] = []

        for i in range(0, len(texts), self.batch_size):
            batch = texts[i:i + self.batch_size]
            payload = await self.client.request(
                "POST", "/v1/vector/embed", json={"texts": batch}, service=self.SERVICE
            )
            try:
                response = _EmbedResponse.model_validate(payload)
            except ValidationError as e:
                raise GatewayError(self.SERVICE, f"malformed embed response: {e}") from e
            all_embeddings.extend(response.embeddings)

        _check_vectors(self.SERVICE, texts, all_embeddings, self._dimension)
        return all_embeddings


class OpenAIEmbedding(BaseEmbedding):
    """OpenAI embedding model.

    Uses OpenAI's embedding API (text-embedding-3-small/large).

    Note: Requires the 'openai' extra to be installed.
    """

    SERVICE = "openai"

    MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        batch_size: int = 100,
    ):
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.batch_size = batch_size
        self._client = None

    @property
    def dimension(self) -> int:
        return self.MODEL_DIMENSIONS.get(self.model, 1536)

    def _get_client(self):
        """Get or create the OpenAI client."""
        if self._client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError:
                raise ImportError(
                    "OpenAI embedding requires the 'openai' package. "
                    "Install it with: pip install ragcontext[openai]"
                )

            kwargs = {}
            if self.api_key:
                kwargs["api_key"] = self.api_key
            if self.base_url:
                kwargs["base_url"] = self.base_url

            self._client = AsyncOpenAI(**kwargs)
        return self._client

    async def embed(self, texts: list[str]) -> list[list[float]]:
        client = self._get_client()
        all_embeddings: list[list[float]] = []

        for i in range(0, len(texts), self.batch_size):
            batch = texts[i:i + self.batch_size]
            try:
                response = await client.embeddings.create(model=self.model, input=batch)
            except Exception as e:
                raise GatewayError(self.SERVICE, str(e)) from e
            all_embeddings.extend(item.embedding for item in response.data)

        _check_vectors(self.SERVICE, texts, all_embeddings, None)
        return all_embeddings


class LocalEmbedding(BaseEmbedding):
    """Local embedding model using sentence-transformers.

    Runs entirely on the local machine.

    Note: Requires the 'local' extra to be installed.
    """

    MODEL_DIMENSIONS = {
        "all-MiniLM-L6-v2": 384,
        "all-mpnet-base-v2": 768,
        "multi-qa-mpnet-base-dot-v1": 768,
    }

    def __init__(
        self,
        model_name: str = "all-MiniLM-L6-v2",
        device: Optional[str] = None,
        normalize: bool = True,
    ):
        self.model_name = model_name
        self.device = device
        self.normalize = normalize
        self._model = None

    @property
    def dimension(self) -> int:
        return self.MODEL_DIMENSIONS.get(self.model_name, 384)

    def _get_model(self):
        """Get or load the sentence-transformers model."""
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError:
                raise ImportError(
                    "Local embedding requires 'sentence-transformers'. "
                    "Install it with: pip install ragcontext[local]"
                )

            self._model = SentenceTransformer(self.model_name, device=self.device)
            logger.info(f"Loaded embedding model: {self.model_name}")
        return self._model

    async def embed(self, texts: list[str]) -> list[list[float]]:
        model = self._get_model()

        # Run in thread pool to avoid blocking
        loop = asyncio.get_running_loop()
        embeddings = await loop.run_in_executor(
            None,
            lambda: model.encode(
                texts,
                normalize_embeddings=self.normalize,
                convert_to_numpy=True,
            ),
        )

        return embeddings.tolist()
