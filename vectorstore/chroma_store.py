from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Sequence

import chromadb
import orjson

from common.config import yaml_config
from common.logger import get_logger
from ingestion.document_models import Chunk, SearchResult
from ingestion.hash_utils import sha256_text

log = get_logger(__name__)

_VALID_NAME = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9._-]{1,61}[a-zA-Z0-9]$")

# bookkeeping keys stored next to user metadata; user keys never start with "__cre_"
_DOCUMENT_KEY = "__cre_document_id"
_INDEX_KEY = "__cre_chunk_index"
_JSON_KEYS = "__cre_json_keys"


def _encode_metadata(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """
    Chroma only stores scalar metadata. Other values are stored as JSON strings and their
    keys listed under ``_JSON_KEYS`` so search can decode them again.
    """
    flat: Dict[str, Any] = {}
    encoded: List[str] = []
    for k, v in metadata.items():
        if v is None:
            continue
        if isinstance(v, (str, int, float, bool)):
            flat[k] = v
        else:
            flat[k] = orjson.dumps(v, default=str).decode("utf-8")
            encoded.append(k)
    if encoded:
        flat[_JSON_KEYS] = orjson.dumps(encoded).decode("utf-8")
    return flat


def _decode_metadata(meta: Dict[str, Any]) -> Dict[str, Any]:
    meta = {k: v for k, v in meta.items() if k not in (_DOCUMENT_KEY, _INDEX_KEY)}
    encoded = meta.pop(_JSON_KEYS, None)
    for k in orjson.loads(encoded) if encoded else ():
        if k in meta:
            meta[k] = orjson.loads(meta[k])
    return meta


class ChromaStore:
    def __init__(
        self,
        persist_dir: Path | str | None = None,
        collection_prefix: str | None = None,
        client: Any = None,
    ):
        """
        Persistent Chroma backend with one cosine collection per knowledge base.
        Chroma serialises writes internally, so concurrent ``store_chunks`` calls are safe.
        """
        self.persist_dir = str(persist_dir or yaml_config.app.persist_dir)
        self.collection_prefix = (
            collection_prefix
            if collection_prefix is not None
            else yaml_config.vectorstore.collection_prefix
        )
        self._client = client or chromadb.PersistentClient(path=self.persist_dir)

    def _collection_name(self, knowledge_base_id: str) -> str:
        name = f"{self.collection_prefix}{knowledge_base_id}"
        if _VALID_NAME.match(name):
            return name
        return f"{self.collection_prefix}{sha256_text(knowledge_base_id)[:40]}"

    def _existing_names(self) -> List[str]:
        # older clients return Collection objects, newer ones plain names
        return [c if isinstance(c, str) else c.name for c in self._client.list_collections()]

    def store_chunks(self, knowledge_base_id: str, chunks: Sequence[Chunk]) -> None:
        """
        Write chunks in slices no larger than the client's max batch size. A failing slice
        raises; earlier slices stay written.
        """
        if not chunks:
            return
        for c in chunks:
            if c.embedding is None:
                raise ValueError(f"Chunk {c.chunk_id} has no embedding")

        collection = self._client.get_or_create_collection(
            name=self._collection_name(knowledge_base_id),
            metadata={"hnsw:space": "cosine"},
        )
        batch_size = self._client.get_max_batch_size()
        for i in range(0, len(chunks), batch_size):
            batch = chunks[i : i + batch_size]
            collection.add(
                ids=[c.chunk_id for c in batch],
                embeddings=[list(c.embedding) for c in batch],
                documents=[c.text for c in batch],
                metadatas=[
                    _encode_metadata(c.metadata)
                    | {_DOCUMENT_KEY: c.document_id, _INDEX_KEY: c.index}
                    for c in batch
                ],
            )
        log.info("Stored %d chunks in collection '%s'", len(chunks), collection.name)

    def search(
        self, knowledge_base_id: str, query_vector: Sequence[float], limit: int
    ) -> List[SearchResult]:
        name = self._collection_name(knowledge_base_id)
        if limit <= 0 or name not in self._existing_names():
            return []
        collection = self._client.get_collection(name=name)
        n = min(limit, collection.count())
        if n == 0:
            return []

        res = collection.query(
            query_embeddings=[list(query_vector)],
            n_results=n,
            include=["documents", "metadatas", "distances"],
        )
        results: List[SearchResult] = []
        for cid, text, meta, dist in zip(
            res["ids"][0], res["documents"][0], res["metadatas"][0], res["distances"][0]
        ):
            meta = dict(meta or {})
            results.append(
                SearchResult(
                    chunk_id=cid,
                    document_id=meta.get(_DOCUMENT_KEY, ""),
                    text=text,
                    score=1.0 - float(dist),
                    metadata=_decode_metadata(meta),
                )
            )
        return results

    def delete_document(self, document_id: str) -> None:
        for name in self._existing_names():
            if not name.startswith(self.collection_prefix):
                continue
            self._client.get_collection(name=name).delete(
                where={_DOCUMENT_KEY: document_id}
            )
        log.info("Deleted chunks for document '%s'", document_id)

    def delete_knowledge_base(self, knowledge_base_id: str) -> None:
        name = self._collection_name(knowledge_base_id)
        if name in self._existing_names():
            self._client.delete_collection(name=name)
            log.info("Deleted collection '%s'", name)
