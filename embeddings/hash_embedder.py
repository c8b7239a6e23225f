"""Deterministic, dependency-free embedder for development and tests."""
from __future__ import annotations

import math
from typing import List, Sequence

from ingestion.hash_utils import sha256_bytes

DEFAULT_DIMENSION = 1536


class HashEmbedder:
    """
    Maps text to a unit vector derived from SHA-256 digests of ``text || counter``.
    Same text, same vector. Unrelated texts land close to orthogonal.
    """

    def __init__(self, dimension: int = DEFAULT_DIMENSION):
        if dimension <= 0:
            dimension = DEFAULT_DIMENSION
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> List[float]:
        data = text.encode("utf-8")
        values: List[float] = []
        counter = 0
        while len(values) < self._dimension:
            digest = sha256_bytes(data + counter.to_bytes(4, "big"))
            values.extend(b / 127.5 - 1.0 for b in digest)
            counter += 1
        values = values[: self._dimension]

        norm = math.sqrt(sum(v * v for v in values))
        if norm == 0:
            return values
        return [v / norm for v in values]

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        return [self.embed(t) for t in texts]
