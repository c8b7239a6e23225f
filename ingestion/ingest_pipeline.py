from __future__ import annotations

import time
import uuid
from dataclasses import replace
from typing import List, Sequence

from common.config import yaml_config
from common.errors import EmbeddingError, StorageError
from common.logger import get_logger
from embeddings.base import Embedder
from ingestion.chunkers import chunk_content
from ingestion.document_models import (
    SOURCE_KINDS,
    Chunk,
    Document,
    IngestRequest,
    IngestResult,
)
from ingestion.hash_utils import sha256_text
from vectorstore.base import VectorStore

log = get_logger(__name__)


def _embed_chunks(embedder: Embedder, chunks: Sequence[Chunk]) -> List[List[float]]:
    """
    Embed all chunk texts in one batch and check the result against the embedder's contract.
    """
    texts = [c.text for c in chunks]
    try:
        vectors = embedder.embed_batch(texts)
    except Exception as e:
        raise EmbeddingError(f"failed to generate embeddings: {e}") from e

    if len(vectors) != len(texts):
        raise EmbeddingError(
            f"embedder returned {len(vectors)} vectors for {len(texts)} chunks"
        )
    dim = embedder.dimension
    for i, v in enumerate(vectors):
        if len(v) != dim:
            raise EmbeddingError(
                f"embedding {i} has length {len(v)}, expected dimension {dim}"
            )
    return vectors


class IngestionPipeline:
    """
    Chunk, embed and store a single document.

    Holds no state besides the injected embedder and store, so one instance can serve
    concurrent callers. Nothing is written unless every chunk was embedded. A failing
    write is raised as-is; chunks the store already accepted are not rolled back.
    """

    def __init__(
        self,
        embedder: Embedder,
        store: VectorStore,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
    ):
        self.embedder = embedder
        self.store = store
        self.chunk_size = chunk_size or yaml_config.chunking.chunk_size
        self.chunk_overlap = (
            chunk_overlap if chunk_overlap is not None else yaml_config.chunking.chunk_overlap
        )

    def ingest(self, req: IngestRequest) -> IngestResult:
        start = time.perf_counter()
        if req.source_kind not in SOURCE_KINDS:
            raise ValueError(
                f"Unknown source kind '{req.source_kind}', expected one of {SOURCE_KINDS}"
            )

        # 1) Identity
        content_hash = sha256_text(req.content)
        document = Document(
            document_id=str(uuid.uuid4()),
            source=req.source,
            source_kind=req.source_kind,
            content_hash=content_hash,
            metadata=dict(req.metadata),
        )
        document_id = document.document_id

        # 2) Chunk
        chunks = chunk_content(
            req.content, document_id, self.chunk_size, self.chunk_overlap
        )
        log.info(
            "Chunking complete: document=%s source=%s chunks=%d",
            document_id,
            req.source,
            len(chunks),
        )

        if chunks:
            # 3) Embed, then attach vectors and request metadata
            vectors = _embed_chunks(self.embedder, chunks)
            chunks = [
                replace(c, embedding=list(v), metadata=dict(req.metadata))
                for c, v in zip(chunks, vectors)
            ]

            # 4) Store
            try:
                self.store.store_chunks(req.knowledge_base_id, chunks)
            except Exception as e:
                raise StorageError(f"failed to store chunks: {e}") from e

        return IngestResult(
            document_id=document_id,
            chunk_count=len(chunks),
            content_hash=content_hash,
            duration=time.perf_counter() - start,
            document=document,
        )
