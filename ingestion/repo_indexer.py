from __future__ import annotations

from typing import Iterable

from tqdm import tqdm

from common.config import yaml_config
from common.logger import get_logger
from ingestion.document_models import (
    IndexReport,
    IngestRequest,
    Repository,
    RepositoryFile,
)
from ingestion.ingest_pipeline import IngestionPipeline

log = get_logger(__name__)


class RepositoryIndexer:
    """
    Feed the files of one repository through the ingestion pipeline.

    Oversized files (usually binaries or generated code) are skipped. A file that fails to
    ingest is logged and skipped; the rest of the batch still runs.
    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        max_file_chars: int | None = None,
        show_progress: bool | None = None,
    ):
        self.pipeline = pipeline
        self.max_file_chars = max_file_chars or yaml_config.indexer.max_file_chars
        self.show_progress = (
            show_progress if show_progress is not None else yaml_config.indexer.show_progress
        )

    def index_repository(
        self,
        knowledge_base_id: str,
        repository: Repository,
        files: Iterable[RepositoryFile],
    ) -> IndexReport:
        files = list(files)
        log.info(
            "Indexing repository %s (%d files)", repository.full_name, len(files)
        )
        report = IndexReport(repository=repository.full_name)

        iterator = (
            tqdm(files, desc=f"Indexing {repository.full_name}", unit="file")
            if self.show_progress
            else files
        )
        for f in iterator:
            if len(f.content) > self.max_file_chars:
                log.debug("Skipping %s (%d chars)", f.path, len(f.content))
                report.skipped.append(f.path)
                continue

            req = IngestRequest(
                knowledge_base_id=knowledge_base_id,
                source=f.path,
                source_kind="repository",
                content=f.content,
                metadata={
                    "path": f.path,
                    "language": f.language,
                    "repository": repository.full_name,
                },
            )
            try:
                report.indexed.append(self.pipeline.ingest(req))
            except Exception as e:
                log.warning("Failed to index file %s: %s", f.path, e)
                report.failed.append(f.path)

        log.info(
            "Repository %s indexed: %d documents, %d skipped, %d failed",
            repository.full_name,
            len(report.indexed),
            len(report.skipped),
            len(report.failed),
        )
        return report
