from __future__ import annotations

from typing import List, Sequence

from langchain_huggingface.embeddings import HuggingFaceEmbeddings

from common.config import yaml_config
from common.logger import get_logger

log = get_logger(__name__)


class HuggingFaceEmbedder:
    def __init__(self, model_name: str | None = None, device: str | None = None):
        """
        Local sentence-transformers embeddings.
        The dimension is read off the loaded model with a single probe embedding.
        """
        self.model_name = model_name or yaml_config.embedding.model_name
        model_kwargs = {"device": device} if device else {}
        self._model = HuggingFaceEmbeddings(
            model_name=self.model_name, model_kwargs=model_kwargs
        )
        self._dimension = len(self._model.embed_query("dimension probe"))
        log.info("Loaded %s (dimension=%d)", self.model_name, self._dimension)

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> List[float]:
        return list(self._model.embed_query(text))

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        return [list(v) for v in self._model.embed_documents(list(texts))]
