from __future__ import annotations

import time
from typing import List

from common.config import yaml_config
from common.errors import EmbeddingError
from common.logger import get_logger
from embeddings.base import Embedder
from ingestion.document_models import QueryRequest, QueryResult, SearchResult
from vectorstore.base import VectorStore

log = get_logger(__name__)


class QueryPipeline:
    def __init__(
        self,
        embedder: Embedder,
        store: VectorStore,
        default_limit: int | None = None,
        sort_merged_results: bool | None = None,
    ):
        """
        Fan a query out over several knowledge bases and merge the hits.

        With ``sort_merged_results`` off (the default) the merged list keeps knowledge-base
        order and is cut to ``limit`` as is, so it is not a global top-k.
        """
        self.embedder = embedder
        self.store = store
        self.default_limit = default_limit or yaml_config.retrieval.default_limit
        self.sort_merged_results = (
            sort_merged_results
            if sort_merged_results is not None
            else yaml_config.retrieval.sort_merged_results
        )

    def query(self, req: QueryRequest) -> QueryResult:
        start = time.perf_counter()

        try:
            vector = self.embedder.embed(req.query)
        except Exception as e:
            raise EmbeddingError(f"failed to embed query: {e}") from e
        if len(vector) != self.embedder.dimension:
            raise EmbeddingError(
                f"query embedding has length {len(vector)}, "
                f"expected dimension {self.embedder.dimension}"
            )

        limit = req.limit if req.limit and req.limit > 0 else self.default_limit

        merged: List[SearchResult] = []
        for kb_id in req.knowledge_base_ids:
            try:
                hits = self.store.search(kb_id, vector, limit)
            except Exception as e:
                log.warning("Search failed for knowledge base %s: %s", kb_id, e)
                continue
            merged.extend(hits)

        if req.min_score is not None:
            merged = [r for r in merged if r.score >= req.min_score]

        if self.sort_merged_results:
            merged.sort(key=lambda r: r.score, reverse=True)

        return QueryResult(
            results=merged[:limit],
            duration=time.perf_counter() - start,
        )
