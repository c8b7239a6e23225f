"""
Backend selection from ``config/config.yaml``.

embedding.provider: hash (deterministic, offline) | huggingface (local model) | ollama (HTTP)
vectorstore.backend: memory (process-local) | chroma (persistent)
"""
from __future__ import annotations

from common.config import GlobalYAMLConfig, yaml_config
from common.logger import get_logger
from embeddings.base import Embedder
from embeddings.hash_embedder import HashEmbedder
from knowledge.service import KnowledgeService
from vectorstore.base import VectorStore
from vectorstore.memory_store import InMemoryVectorStore

log = get_logger(__name__)


def build_embedder(config: GlobalYAMLConfig | None = None) -> Embedder:
    cfg = (config or yaml_config).embedding
    provider = cfg.provider.lower()

    if provider == "hash":
        return HashEmbedder(dimension=cfg.dimension)
    elif provider == "huggingface":
        from embeddings.huggingface_embedder import HuggingFaceEmbedder

        return HuggingFaceEmbedder(model_name=cfg.model_name)
    elif provider == "ollama":
        from embeddings.ollama_embedder import OllamaEmbedder

        return OllamaEmbedder(
            model_name=cfg.model_name,
            dimension=cfg.dimension,
            base_url=cfg.base_url,
            batch_size=cfg.batch_size,
        )
    raise ValueError(
        f"Invalid embedding provider: {cfg.provider}. Must be 'hash', 'huggingface' or 'ollama'."
    )


def build_vector_store(config: GlobalYAMLConfig | None = None) -> VectorStore:
    config = config or yaml_config
    backend = config.vectorstore.backend.lower()

    if backend == "memory":
        log.info("Using in-memory vector store (process-local)")
        return InMemoryVectorStore()
    elif backend == "chroma":
        from vectorstore.chroma_store import ChromaStore

        log.info("Using Chroma vector store at %s", config.app.persist_dir)
        return ChromaStore(
            persist_dir=config.app.persist_dir,
            collection_prefix=config.vectorstore.collection_prefix,
        )
    raise ValueError(
        f"Invalid vector store backend: {config.vectorstore.backend}. Must be 'memory' or 'chroma'."
    )


def build_service(config: GlobalYAMLConfig | None = None) -> KnowledgeService:
    config = config or yaml_config
    return KnowledgeService(
        embedder=build_embedder(config),
        store=build_vector_store(config),
        sort_merged_results=config.retrieval.sort_merged_results,
        chunk_size=config.chunking.chunk_size,
        chunk_overlap=config.chunking.chunk_overlap,
    )
