from embeddings.hash_embedder import HashEmbedder
from ingestion.document_models import Repository, RepositoryFile
from ingestion.loaders import load_file
from knowledge.service import KnowledgeService
from vectorstore.memory_store import InMemoryVectorStore


def _service():
    return KnowledgeService(HashEmbedder(dimension=64), InMemoryVectorStore())


def test_end_to_end_pipeline(tmp_path):
    # 1. Load sample text
    sample_file = tmp_path / "sample.txt"
    sample_file.write_text(
        "Machine learning is great.\n\nDeep learning is a subset of machine learning."
    )
    content = load_file(sample_file)

    # 2. Ingest into two knowledge bases
    service = _service()
    ingested = service.ingest("papers", str(sample_file), "file", content, {"type": "text"})
    service.ingest("other", "inline", "text", "Completely unrelated notes.")
    assert ingested.chunk_count == 1

    # 3. Query both
    result = service.query(["papers", "other"], content, limit=1)

    assert len(result.results) == 1
    top = result.results[0]
    assert top.document_id == ingested.document_id
    assert "deep learning" in top.text.lower()
    assert top.metadata == {"type": "text"}


def test_querying_with_ingested_text_returns_its_chunk_first():
    service = _service()
    text = "The deploy pipeline runs integration tests before promoting a build."
    ingested = service.ingest("kb", "notes", "text", text)
    for i in range(5):
        service.ingest("kb", f"noise-{i}", "text", f"Unrelated note number {i}.")

    result = service.query(["kb"], text, limit=3)

    assert result.results[0].document_id == ingested.document_id
    assert result.results[0].text == text
    assert result.results[0].score == max(r.score for r in result.results)


def test_delete_knowledge_base_then_query_is_empty():
    service = _service()
    service.ingest("kb", "notes", "text", "Paragraph one.\n\nParagraph two.")

    service.delete_knowledge_base("kb")

    assert service.store.search("kb", service.embedder.embed("anything"), 5) == []
    assert service.query(["kb"], "Paragraph one.").results == []


def test_delete_document_leaves_other_documents():
    service = _service()
    keep = service.ingest("kb", "a", "text", "Keep this document.")
    drop = service.ingest("kb", "b", "text", "Drop this document.")

    service.delete_document(drop.document_id)

    ids = {r.document_id for r in service.query(["kb"], "document", limit=10).results}
    assert ids == {keep.document_id}


def test_min_score_threshold_across_service():
    service = _service()
    service.ingest("kb", "a", "text", "Exact phrase to find.")
    service.ingest("kb", "b", "text", "Something else entirely.")

    result = service.query(["kb"], "Exact phrase to find.", min_score=0.95)

    assert [r.text for r in result.results] == ["Exact phrase to find."]


def test_index_repository_through_service():
    service = _service()
    files = [
        RepositoryFile("cmd/main.go", "package main\n\nfunc main() {}", "go"),
        RepositoryFile("docs/intro.md", "Service overview.\n\nSetup steps.", "markdown"),
        RepositoryFile("vendor/huge.js", "z" * 100_001, "javascript"),
    ]

    report = service.index_repository("repo-kb", Repository("acme/api"), files)

    assert report.repository == "acme/api"
    assert report.document_count == 2
    assert report.skipped == ["vendor/huge.js"]
    assert all(r.document.source_kind == "repository" for r in report.indexed)

    top = service.query(["repo-kb"], "Service overview.\n\nSetup steps.", limit=1).results[0]
    assert top.metadata == {
        "path": "docs/intro.md",
        "language": "markdown",
        "repository": "acme/api",
    }
