from __future__ import annotations

import argparse
from dataclasses import asdict
from pathlib import Path

import orjson

from common.config import yaml_config
from common.logger import get_logger
from ingestion.document_models import Repository
from ingestion.loaders import load_repository_files
from knowledge.factory import build_service

log = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Index a local repository checkout into a knowledge base."
    )
    parser.add_argument("--kb", type=str, required=True, help="Knowledge base id")
    parser.add_argument(
        "--input_dir", type=str, default=".", help="Repository checkout to index"
    )
    parser.add_argument(
        "--repository",
        type=str,
        default="",
        help="Repository full name (defaults to the directory name)",
    )
    args = parser.parse_args()

    input_dir = Path(args.input_dir).resolve()
    if not input_dir.is_dir():
        log.error("Input directory does not exist: %s", input_dir)
        raise SystemExit(1)

    repo = Repository(full_name=args.repository or input_dir.name)
    files = load_repository_files(input_dir)
    log.info("Discovered %d files under %s", len(files), input_dir)

    service = build_service()
    report = service.index_repository(args.kb, repo, files)

    # Manifest for audit/debug
    manifest = {
        "knowledge_base_id": args.kb,
        "repository": report.repository,
        "indexed": [asdict(r) for r in report.indexed],
        "skipped": report.skipped,
        "failed": report.failed,
    }
    out = yaml_config.app.cache_dir / f"manifest_{args.kb}.json"
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(orjson.dumps(manifest, option=orjson.OPT_INDENT_2))
    log.info("Wrote manifest to %s", out)


if __name__ == "__main__":
    main()
