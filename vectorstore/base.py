"""
Vector store contract shared by every backend.

Implementations must tolerate concurrent ``store_chunks`` calls, including concurrent
writes into the same knowledge base.
"""
from __future__ import annotations

from typing import List, Protocol, Sequence

from ingestion.document_models import Chunk, SearchResult


class VectorStore(Protocol):
    def store_chunks(self, knowledge_base_id: str, chunks: Sequence[Chunk]) -> None:
        ...

    def search(
        self, knowledge_base_id: str, query_vector: Sequence[float], limit: int
    ) -> List[SearchResult]:
        """Highest score first. Unknown or empty knowledge bases give ``[]``."""
        ...

    def delete_document(self, document_id: str) -> None:
        ...

    def delete_knowledge_base(self, knowledge_base_id: str) -> None:
        ...


__all__ = ["VectorStore"]
