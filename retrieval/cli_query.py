from __future__ import annotations

import argparse

from common.errors import KnowledgeError
from common.logger import get_logger
from knowledge.factory import build_service

log = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Similarity search over one or more knowledge bases."
    )
    parser.add_argument(
        "--kb", action="append", required=True, help="Knowledge base id, repeatable"
    )
    parser.add_argument("--limit", type=int, default=0)
    parser.add_argument("--min_score", type=float, default=None)
    parser.add_argument("query", type=str, help="Query text")
    args = parser.parse_args()

    service = build_service()
    try:
        result = service.query(args.kb, args.query, args.limit, args.min_score)
    except KnowledgeError as e:
        log.error("Query failed: %s", e)
        raise SystemExit(1)

    print(f"\n=== {len(result.results)} RESULTS ({result.duration * 1000:.1f} ms) ===\n")
    for i, r in enumerate(result.results, start=1):
        source = r.metadata.get("path") or r.metadata.get("source") or r.document_id
        print(f"{i}. [{r.score:.3f}] {source}")
        snippet = r.text[:300].replace("\n", " ")
        print(f"   snippet: {snippet}\n")


if __name__ == "__main__":
    main()
