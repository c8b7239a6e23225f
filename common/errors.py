class KnowledgeError(Exception):
    """Base class for ingestion and retrieval failures."""


class EmbeddingError(KnowledgeError):
    """The embedder failed or returned vectors that violate its contract."""


class StorageError(KnowledgeError):
    """The vector store rejected a write."""
