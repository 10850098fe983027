"""
Configuration for the RAG context engine.
"""

import json
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, model_validator


class ServiceSettings(BaseModel):
    """Connection settings for the HTTP services."""
    base_url: str = "http://localhost:8080"
    api_key: str | None = None
    timeout: float = Field(default=30.0, gt=0)
    retry_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=1.0, ge=0)


class EmbeddingSettings(BaseModel):
    provider: Literal["fake", "http", "openai", "local"] = "fake"
    model: str | None = None
    dimension: int = Field(default=64, gt=0)


class VectorStoreSettings(BaseModel):
    provider: Literal["memory", "http", "chroma"] = "memory"
    collection_name: str = "ragcontext"
    persist_directory: str | None = None


class RerankerSettings(BaseModel):
    provider: Literal["none", "http", "cross-encoder"] = "none"
    model: str | None = None


class RAGConfig(BaseModel):
    """Configuration for the RAG context engine."""

    # Chunking
    chunk_size: int = Field(default=512, gt=0)
    chunk_overlap: int = Field(default=50, ge=0)
    chunk_unit: Literal["characters", "words"] = "characters"

    # Retrieval
    default_top_k: int = Field(default=5, gt=0)
    min_relevance: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    rerank: bool = True
    rerank_candidate_multiplier: int = Field(default=3, ge=1)
    max_rerank_candidates: int = Field(default=20, gt=0)
    rerank_threshold: Optional[float] = None
    rerank_model: str = "cross-encoder"

    # Index maintenance and probes
    removal_scan_top_k: int = Field(default=1000, gt=0)
    stats_sample_size: int = Field(default=10000, gt=0)
    health_probe_top_k: int = Field(default=1, gt=0)
    index_concurrency: int = Field(default=1, ge=1)

    # Prompting
    context_token_budget: int = Field(default=8000, gt=0)
    default_model: str = "claude-sonnet-4-20250514"
    system_prompt: str | None = None

    # Gateways
    service: ServiceSettings = Field(default_factory=ServiceSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    vectorstore: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    reranker: RerankerSettings = Field(default_factory=RerankerSettings)

    @model_validator(mode="after")
    def _check_chunking(self) -> "RAGConfig":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")
        return self

    @classmethod
    def from_yaml(cls, path: Path) -> "RAGConfig":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    @classmethod
    def from_file(cls, path: str | Path) -> "RAGConfig":
        """Load configuration from file (YAML or JSON)."""
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        elif path.suffix == ".json":
            with open(path) as f:
                data = json.load(f)
            return cls(**data)
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")


def load_config(path: str | Path = "ragcontext.yaml") -> RAGConfig:
    """
    Load engine configuration from file.

    Args:
        path: Path to config file

    Returns:
        RAGConfig instance, with defaults when the file does not exist
    """
    path = Path(path)

    if not path.exists():
        return RAGConfig()

    return RAGConfig.from_file(path)
