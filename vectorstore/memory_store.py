from __future__ import annotations

import math
import threading
from collections import defaultdict
from dataclasses import replace
from typing import Dict, List, Sequence

from common.logger import get_logger
from ingestion.document_models import Chunk, SearchResult

log = get_logger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        raise ValueError(f"Vector length mismatch: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    if na == 0 or nb == 0:
        return 0.0
    return dot / (na * nb)


class InMemoryVectorStore:
    """
    Brute-force cosine search over chunks held in a dict keyed by knowledge base.

    The dict is not safe for concurrent writers on its own; every access goes through
    ``self._lock``.
    """

    def __init__(self):
        self._chunks: Dict[str, List[Chunk]] = defaultdict(list)
        self._lock = threading.Lock()

    def store_chunks(self, knowledge_base_id: str, chunks: Sequence[Chunk]) -> None:
        for c in chunks:
            if c.embedding is None:
                raise ValueError(f"Chunk {c.chunk_id} has no embedding")
        copies = [
            replace(c, embedding=list(c.embedding), metadata=dict(c.metadata))
            for c in chunks
        ]
        with self._lock:
            self._chunks[knowledge_base_id].extend(copies)

    def search(
        self, knowledge_base_id: str, query_vector: Sequence[float], limit: int
    ) -> List[SearchResult]:
        with self._lock:
            chunks = list(self._chunks.get(knowledge_base_id, ()))
        if not chunks or limit <= 0:
            return []

        scored = [(cosine_similarity(query_vector, c.embedding), c) for c in chunks]
        scored.sort(key=lambda sc: sc[0], reverse=True)
        return [
            SearchResult(
                chunk_id=c.chunk_id,
                document_id=c.document_id,
                text=c.text,
                score=score,
                metadata=dict(c.metadata),
            )
            for score, c in scored[:limit]
        ]

    def delete_document(self, document_id: str) -> None:
        removed = 0
        with self._lock:
            for kb_id, chunks in list(self._chunks.items()):
                kept = [c for c in chunks if c.document_id != document_id]
                removed += len(chunks) - len(kept)
                self._chunks[kb_id] = kept
        log.debug("Deleted %d chunks for document '%s'", removed, document_id)

    def delete_knowledge_base(self, knowledge_base_id: str) -> None:
        with self._lock:
            self._chunks.pop(knowledge_base_id, None)

    def count(self, knowledge_base_id: str) -> int:
        with self._lock:
            return len(self._chunks.get(knowledge_base_id, ()))
