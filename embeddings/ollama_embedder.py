from __future__ import annotations

from typing import List, Sequence

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from common.config import secrets, yaml_config
from common.logger import get_logger

log = get_logger(__name__)


class OllamaEmbedder:
    """
    Client for Ollama's ``/api/embed`` endpoint.

    Texts are sent in slices of ``batch_size``; a failing slice fails the whole batch, so
    callers never see a partial result. Transport errors are retried, HTTP errors are not.
    """

    def __init__(
        self,
        model_name: str | None = None,
        dimension: int | None = None,
        base_url: str | None = None,
        batch_size: int | None = None,
        timeout: int | None = None,
        session: requests.Session | None = None,
    ):
        cfg = yaml_config.embedding
        self.model_name = model_name or cfg.model_name
        self._dimension = dimension or cfg.dimension
        self.base_url = (base_url or cfg.base_url).rstrip("/")
        self.batch_size = batch_size or cfg.batch_size
        self.timeout = timeout or yaml_config.app.timeout
        self._session = session or requests.Session()
        if secrets.embedding_api_key:
            self._session.headers["Authorization"] = f"Bearer {secrets.embedding_api_key}"

    @property
    def dimension(self) -> int:
        return self._dimension

    @retry(
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True,
    )
    def _post(self, texts: List[str]) -> dict:
        resp = self._session.post(
            f"{self.base_url}/api/embed",
            json={"model": self.model_name, "input": texts},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def _extract(self, payload: dict, expected: int) -> List[List[float]]:
        vectors = payload.get("embeddings")
        if not isinstance(vectors, list) or len(vectors) != expected:
            raise ValueError(
                f"Expected {expected} embeddings from {self.base_url}, "
                f"got {len(vectors) if isinstance(vectors, list) else 'none'}"
            )
        for v in vectors:
            if len(v) != self._dimension:
                raise ValueError(
                    f"Model {self.model_name} returned dimension {len(v)}, "
                    f"configured {self._dimension}"
                )
        return [[float(x) for x in v] for v in vectors]

    def embed(self, text: str) -> List[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        texts = list(texts)
        out: List[List[float]] = []
        for i in range(0, len(texts), self.batch_size):
            batch = texts[i : i + self.batch_size]
            out.extend(self._extract(self._post(batch), len(batch)))
        log.debug("Embedded %d texts with %s", len(out), self.model_name)
        return out
