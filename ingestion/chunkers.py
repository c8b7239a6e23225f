from __future__ import annotations

import re
import uuid
from typing import List

from common.config import yaml_config
from ingestion.document_models import Chunk

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def split_paragraph_chunks(
    content: str,
    chunk_size: int | None = None,
    chunk_overlap: int | None = None,
) -> List[str]:
    """
    Pack blank-line separated paragraphs into chunks of roughly ``chunk_size`` characters.

    A chunk is emitted once the next paragraph would overflow a non-empty buffer. The next
    buffer starts with the last ``chunk_overlap`` characters of the emitted chunk. Paragraphs
    are never split, so a single oversized paragraph becomes one oversized chunk.
    """
    max_len = chunk_size if chunk_size is not None else yaml_config.chunking.chunk_size
    overlap = (
        chunk_overlap if chunk_overlap is not None else yaml_config.chunking.chunk_overlap
    )

    out: List[str] = []
    buf = ""
    for para in _PARAGRAPH_BREAK.split(content):
        para = para.strip()
        if not para:
            continue

        if buf and len(buf) + len(para) > max_len:
            piece = buf.strip()
            out.append(piece)
            buf = ""
            if overlap > 0 and len(piece) > overlap:
                buf = piece[-overlap:] + " "

        buf += para + "\n\n"

    # flush last buffer
    if buf.strip():
        out.append(buf.strip())
    return out


def chunk_content(
    content: str,
    document_id: str,
    chunk_size: int | None = None,
    chunk_overlap: int | None = None,
) -> List[Chunk]:
    """Chunk ``content`` and tag each piece with ``document_id`` and its ordinal."""
    return [
        Chunk(
            chunk_id=str(uuid.uuid4()),
            document_id=document_id,
            text=piece,
            index=i,
        )
        for i, piece in enumerate(split_paragraph_chunks(content, chunk_size, chunk_overlap))
    ]
