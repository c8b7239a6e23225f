import hashlib
import uuid

import pytest

from common.errors import EmbeddingError, StorageError
from embeddings.hash_embedder import HashEmbedder
from ingestion.document_models import IngestRequest
from ingestion.ingest_pipeline import IngestionPipeline
from vectorstore.memory_store import InMemoryVectorStore

LONG_TEXT = "\n\n".join(f"Section {i}. " + "lorem ipsum " * 40 for i in range(8))


class RecordingStore(InMemoryVectorStore):
    def __init__(self):
        super().__init__()
        self.calls = []

    def store_chunks(self, knowledge_base_id, chunks):
        self.calls.append((knowledge_base_id, list(chunks)))
        super().store_chunks(knowledge_base_id, chunks)


class FailingStore(RecordingStore):
    def store_chunks(self, knowledge_base_id, chunks):
        raise RuntimeError("disk full")


class FailingEmbedder(HashEmbedder):
    def embed_batch(self, texts):
        raise RuntimeError("provider unavailable")


class ShortBatchEmbedder(HashEmbedder):
    def embed_batch(self, texts):
        return super().embed_batch(texts)[:-1]


class WrongDimensionEmbedder(HashEmbedder):
    def embed_batch(self, texts):
        return [v[:-1] for v in super().embed_batch(texts)]


def _request(content=LONG_TEXT, **kw):
    return IngestRequest(
        knowledge_base_id=kw.get("kb", "kb-1"),
        source=kw.get("source", "notes.md"),
        source_kind=kw.get("source_kind", "text"),
        content=content,
        metadata=kw.get("metadata", {"author": "ops"}),
    )


def test_ingest_chunks_embeds_and_stores():
    store = RecordingStore()
    pipeline = IngestionPipeline(HashEmbedder(dimension=32), store)

    result = pipeline.ingest(_request())

    assert uuid.UUID(result.document_id)
    assert result.content_hash == hashlib.sha256(LONG_TEXT.encode("utf-8")).hexdigest()
    assert result.duration >= 0
    assert len(store.calls) == 1

    kb_id, chunks = store.calls[0]
    assert kb_id == "kb-1"
    assert result.chunk_count == len(chunks) > 1
    assert [c.index for c in chunks] == list(range(len(chunks)))
    assert all(c.document_id == result.document_id for c in chunks)
    assert all(len(c.embedding) == 32 for c in chunks)
    assert all(c.metadata == {"author": "ops"} for c in chunks)


def test_embedding_failure_aborts_before_storage():
    store = RecordingStore()
    pipeline = IngestionPipeline(FailingEmbedder(dimension=8), store)

    with pytest.raises(EmbeddingError) as exc:
        pipeline.ingest(_request())

    assert isinstance(exc.value.__cause__, RuntimeError)
    assert store.calls == []


@pytest.mark.parametrize("embedder_cls", [ShortBatchEmbedder, WrongDimensionEmbedder])
def test_contract_violations_are_embedding_errors(embedder_cls):
    store = RecordingStore()
    pipeline = IngestionPipeline(embedder_cls(dimension=8), store)

    with pytest.raises(EmbeddingError):
        pipeline.ingest(_request())
    assert store.calls == []


def test_storage_failure_is_surfaced():
    pipeline = IngestionPipeline(HashEmbedder(dimension=8), FailingStore())

    with pytest.raises(StorageError) as exc:
        pipeline.ingest(_request())
    assert "disk full" in str(exc.value)


def test_empty_content_stores_nothing():
    store = RecordingStore()
    pipeline = IngestionPipeline(FailingEmbedder(dimension=8), store)

    result = pipeline.ingest(_request(content=""))

    assert result.chunk_count == 0
    assert result.content_hash == hashlib.sha256(b"").hexdigest()
    assert store.calls == []


def test_unknown_source_kind_is_rejected():
    pipeline = IngestionPipeline(HashEmbedder(dimension=8), RecordingStore())
    with pytest.raises(ValueError):
        pipeline.ingest(_request(source_kind="fax"))


def test_reingesting_same_content_is_not_deduplicated():
    store = RecordingStore()
    pipeline = IngestionPipeline(HashEmbedder(dimension=8), store)

    first = pipeline.ingest(_request())
    second = pipeline.ingest(_request())

    assert first.content_hash == second.content_hash
    assert first.document_id != second.document_id
    assert store.count("kb-1") == first.chunk_count + second.chunk_count


def test_custom_chunk_size_is_used():
    store = RecordingStore()
    pipeline = IngestionPipeline(
        HashEmbedder(dimension=8), store, chunk_size=100, chunk_overlap=10
    )
    result = pipeline.ingest(_request(content="alpha " * 10 + "\n\n" + "beta " * 20))
    assert result.chunk_count == 2


def test_ingest_returns_document_record():
    pipeline = IngestionPipeline(HashEmbedder(dimension=8), RecordingStore())

    result = pipeline.ingest(
        _request(source="docs/guide.md", source_kind="file", metadata={"team": "infra"})
    )

    doc = result.document
    assert doc.document_id == result.document_id
    assert doc.source == "docs/guide.md"
    assert doc.source_kind == "file"
    assert doc.content_hash == result.content_hash
    assert doc.metadata == {"team": "infra"}
