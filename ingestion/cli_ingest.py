from __future__ import annotations

import argparse
import sys
from dataclasses import asdict
from pathlib import Path

import orjson

from common.errors import KnowledgeError
from common.logger import get_logger
from ingestion.loaders import load_file, load_from_url
from knowledge.factory import build_service

log = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Ingest a single source into a knowledge base.")
    parser.add_argument("--kb", type=str, required=True, help="Knowledge base id")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=str, help="Local file (.txt, .md, .pdf, ...)")
    source.add_argument("--url", type=str, help="Web page or PDF URL")
    source.add_argument("--text", type=str, help="Raw text")
    parser.add_argument(
        "--meta",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Extra metadata, repeatable",
    )
    args = parser.parse_args()

    metadata = {}
    for item in args.meta:
        key, sep, value = item.partition("=")
        if not sep:
            parser.error(f"--meta expects KEY=VALUE, got '{item}'")
        metadata[key] = value

    if args.file:
        path = Path(args.file)
        if not path.is_file():
            log.error("File does not exist: %s", path)
            raise SystemExit(1)
        src, kind, content = str(path), "file", load_file(path)
    elif args.url:
        src, kind, content = args.url, "url", load_from_url(args.url)
    else:
        src, kind, content = "inline", "text", args.text

    service = build_service()
    try:
        result = service.ingest(args.kb, src, kind, content, metadata)
    except KnowledgeError as e:
        log.error("Ingestion of %s failed: %s", src, e)
        raise SystemExit(1)

    sys.stdout.write(orjson.dumps(asdict(result), option=orjson.OPT_INDENT_2).decode() + "\n")


if __name__ == "__main__":
    main()
