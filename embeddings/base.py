"""Embedder capability contract."""
from __future__ import annotations

from typing import List, Protocol, Sequence


class Embedder(Protocol):
    @property
    def dimension(self) -> int:
        """Length of every vector this embedder returns."""
        ...

    def embed(self, text: str) -> List[float]:
        ...

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """One vector per input, in input order. Raises instead of returning partial output."""
        ...


__all__ = ["Embedder"]
