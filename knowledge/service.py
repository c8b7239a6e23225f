from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from embeddings.base import Embedder
from ingestion.document_models import (
    IndexReport,
    IngestRequest,
    IngestResult,
    QueryRequest,
    QueryResult,
    Repository,
    RepositoryFile,
)
from ingestion.ingest_pipeline import IngestionPipeline
from ingestion.repo_indexer import RepositoryIndexer
from retrieval.query_pipeline import QueryPipeline
from vectorstore.base import VectorStore


class KnowledgeService:
    """
    Entry point for callers (HTTP handlers, briefing builders, CLIs).
    The embedder and store are fixed at construction and shared by every pipeline.
    """

    def __init__(
        self,
        embedder: Embedder,
        store: VectorStore,
        sort_merged_results: bool | None = None,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
    ):
        self.embedder = embedder
        self.store = store
        self.ingestion = IngestionPipeline(embedder, store, chunk_size, chunk_overlap)
        self.retrieval = QueryPipeline(
            embedder, store, sort_merged_results=sort_merged_results
        )
        self.indexer = RepositoryIndexer(self.ingestion)

    def ingest(
        self,
        knowledge_base_id: str,
        source: str,
        source_kind: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> IngestResult:
        return self.ingestion.ingest(
            IngestRequest(
                knowledge_base_id=knowledge_base_id,
                source=source,
                source_kind=source_kind,
                content=content,
                metadata=metadata or {},
            )
        )

    def query(
        self,
        knowledge_base_ids: List[str],
        query: str,
        limit: int = 0,
        min_score: Optional[float] = None,
    ) -> QueryResult:
        return self.retrieval.query(
            QueryRequest(
                knowledge_base_ids=list(knowledge_base_ids),
                query=query,
                limit=limit,
                min_score=min_score,
            )
        )

    def index_repository(
        self,
        knowledge_base_id: str,
        repository: Repository,
        files: Iterable[RepositoryFile],
    ) -> IndexReport:
        return self.indexer.index_repository(knowledge_base_id, repository, files)

    def delete_document(self, document_id: str) -> None:
        self.store.delete_document(document_id)

    def delete_knowledge_base(self, knowledge_base_id: str) -> None:
        self.store.delete_knowledge_base(knowledge_base_id)
