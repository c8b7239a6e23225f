from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

SOURCE_KINDS = ("file", "url", "text", "repository")


@dataclass(frozen=True)
class Document:
    document_id: str
    source: str  # path or URL
    source_kind: str  # file | url | text | repository
    content_hash: str  # sha256 of the raw content
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Chunk:
    chunk_id: str
    document_id: str
    text: str
    index: int  # 0-based ordinal within the document
    embedding: Optional[List[float]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResult:
    chunk_id: str
    document_id: str
    text: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class IngestRequest:
    knowledge_base_id: str
    source: str
    source_kind: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class IngestResult:
    document_id: str
    chunk_count: int
    content_hash: str
    duration: float  # seconds
    document: Optional[Document] = None


@dataclass
class QueryRequest:
    knowledge_base_ids: List[str]
    query: str
    limit: int = 0  # non-positive means the configured default
    min_score: Optional[float] = None


@dataclass
class QueryResult:
    results: List[SearchResult]
    duration: float


@dataclass
class Repository:
    full_name: str  # e.g. "owner/name"


@dataclass
class RepositoryFile:
    path: str
    content: str
    language: str = ""


@dataclass
class IndexReport:
    repository: str
    indexed: List[IngestResult] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def document_count(self) -> int:
        return len(self.indexed)
